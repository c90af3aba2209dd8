"""API information endpoint."""
