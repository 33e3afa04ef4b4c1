"""Tests for gcp_metadata.metadata."""

from decimal import Decimal

import pytest

from gcp_metadata import residency
from gcp_metadata.core.config import MetadataConfig
from gcp_metadata.core.exceptions import ConfigurationError, HTTPStatusError, NetworkError, ProtocolError
from gcp_metadata.metadata import build_request, instance, metadata_accessor, parse_response, project, validate
from gcp_metadata.transport import MetadataResponse

PRIMARY_HOST = "169.254.169.254"
BASE = f"http://{PRIMARY_HOST}/computeMetadata/v1"


class TestValidate:
    def test_accepts_known_keys(self):
        validate({"params": {}, "property": "x", "headers": {}})

    def test_rejects_qs_with_hint(self):
        with pytest.raises(ConfigurationError, match="Please use 'params' instead"):
            validate({"qs": {"a": "b"}})

    def test_rejects_unknown_key(self):
        with pytest.raises(ConfigurationError, match="'timeout' is not a valid configuration option"):
            validate({"timeout": 5})


class TestBuildRequest:
    def test_resource_only(self):
        req = build_request("instance")
        assert req.url == f"{BASE}/instance"
        assert req.headers == {"Metadata-Flavor": "Google"}
        assert req.params is None
        assert req.no_response_retries == 3

    def test_property_string(self):
        assert build_request("project", "project-id").url == f"{BASE}/project/project-id"

    def test_structured_options(self):
        req = build_request(
            "instance",
            {"property": "attributes/foo", "params": {"recursive": "true"}, "headers": {"X-Trace": "1"}},
        )
        assert req.url == f"{BASE}/instance/attributes/foo"
        assert req.params == {"recursive": "true"}
        assert req.headers == {"Metadata-Flavor": "Google", "X-Trace": "1"}

    def test_empty_property_is_ignored(self):
        assert build_request("instance", {"property": ""}).url == f"{BASE}/instance"

    def test_config_host_override(self):
        req = build_request("instance", config=MetadataConfig(host="localhost:8080"))
        assert req.url == "http://localhost:8080/computeMetadata/v1/instance"

    def test_env_host_override(self, monkeypatch):
        monkeypatch.setenv("GCE_METADATA_HOST", "10.0.0.1")
        assert build_request("instance").url == "http://10.0.0.1/computeMetadata/v1/instance"

    def test_timeout_follows_residency(self):
        residency.set_gcp_residency(False)
        assert build_request("instance").timeout == 3000
        residency.set_gcp_residency(True)
        assert build_request("instance").timeout == 0

    def test_rejects_non_mapping_options(self):
        with pytest.raises(ConfigurationError):
            build_request("instance", 42)


class TestParseResponse:
    def test_json_body(self):
        res = MetadataResponse(status=200, headers={"metadata-flavor": "Google"}, text='{"a": [1, 2]}')
        assert parse_response(res) == {"a": [1, 2]}

    def test_big_integer_keeps_precision(self):
        res = MetadataResponse(status=200, headers={"metadata-flavor": "Google"}, text="9007199254740993123")
        assert parse_response(res) == 9007199254740993123

    @pytest.mark.parametrize("body", ["NaN", "Infinity", "-Infinity", '{"ratio": NaN}'])
    def test_non_finite_literals_fall_back_to_raw(self, body):
        res = MetadataResponse(status=200, headers={"metadata-flavor": "Google"}, text=body)
        assert parse_response(res) == body

    def test_long_decimal_keeps_precision(self):
        res = MetadataResponse(status=200, headers={"metadata-flavor": "Google"}, text="3.141592653589793238462643")
        value = parse_response(res)
        assert isinstance(value, Decimal)
        assert value == Decimal("3.141592653589793238462643")

    def test_short_decimal_is_float(self):
        res = MetadataResponse(status=200, headers={"metadata-flavor": "Google"}, text='{"load": 0.25}')
        assert parse_response(res) == {"load": 0.25}
        assert isinstance(parse_response(res)["load"], float)

    def test_plain_text_falls_back_to_raw(self):
        res = MetadataResponse(status=200, headers={"metadata-flavor": "Google"}, text="my-host.internal")
        assert parse_response(res) == "my-host.internal"

    def test_missing_header(self):
        res = MetadataResponse(status=200, headers={}, text='{"a": 1}')
        with pytest.raises(ProtocolError, match="incorrect Metadata-Flavor header"):
            parse_response(res)

    def test_wrong_header(self):
        res = MetadataResponse(status=200, headers={"metadata-flavor": "Impostor"}, text="hello")
        with pytest.raises(ProtocolError):
            parse_response(res)

    def test_empty_body(self):
        res = MetadataResponse(status=200, headers={"metadata-flavor": "Google"}, text="")
        with pytest.raises(ProtocolError, match="Invalid response from the metadata service"):
            parse_response(res)


class TestAccessors:
    @pytest.mark.asyncio
    async def test_instance_property(self, fake_transport, make_response):
        fake_transport.route(PRIMARY_HOST, make_response("my-host"))
        assert await instance("hostname") == "my-host"
        assert fake_transport.calls[0].url == f"{BASE}/instance/hostname"

    @pytest.mark.asyncio
    async def test_project_json(self, fake_transport, make_response):
        fake_transport.route(PRIMARY_HOST, make_response('{"project-id": "demo"}'))
        assert await project({"params": {"recursive": "true"}}) == {"project-id": "demo"}
        assert fake_transport.calls[0].params == {"recursive": "true"}

    @pytest.mark.asyncio
    async def test_invalid_option_never_hits_network(self, fake_transport):
        with pytest.raises(ConfigurationError):
            await instance({"qs": {"a": "b"}})
        assert fake_transport.calls == []

    @pytest.mark.asyncio
    async def test_status_error_message_is_decorated(self, fake_transport):
        fake_transport.route(PRIMARY_HOST, HTTPStatusError("Request failed with status code 404", status=404))
        with pytest.raises(HTTPStatusError) as exc_info:
            await instance("missing")
        assert str(exc_info.value) == "Unsuccessful response status code. Request failed with status code 404"
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_network_error_passes_through(self, fake_transport):
        error = NetworkError("refused", code="ECONNREFUSED")
        fake_transport.route(PRIMARY_HOST, error)
        with pytest.raises(NetworkError) as exc_info:
            await project("project-id")
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_protocol_error_regardless_of_body(self, fake_transport, make_response):
        fake_transport.route(PRIMARY_HOST, make_response('{"valid": "json"}', flavor="NotGoogle"))
        with pytest.raises(ProtocolError):
            await instance()

    @pytest.mark.asyncio
    async def test_fast_fail_uses_both_addresses(self, fake_transport, make_response):
        fake_transport.route("metadata.google.internal.", make_response("dns answer"))
        value = await metadata_accessor("instance", "zone", fast_fail=True)
        assert value == "dns answer"
        urls = sorted(req.url for req in fake_transport.calls)
        assert urls == [f"{BASE}/instance/zone", "http://metadata.google.internal./computeMetadata/v1/instance/zone"]

    @pytest.mark.asyncio
    async def test_custom_retries(self, fake_transport, make_response):
        fake_transport.route(PRIMARY_HOST, make_response("x"))
        await metadata_accessor("instance", no_response_retries=7)
        assert fake_transport.calls[0].no_response_retries == 7
