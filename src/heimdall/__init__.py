"""heimdall — schema-validated configuration store for the heimdall desktop CLI."""

__version__ = "0.2.0"
