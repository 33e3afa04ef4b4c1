"""Configuration, residency detection, errors and logging shared by the client."""
