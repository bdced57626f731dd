"""FX sentiment HTTP API."""
