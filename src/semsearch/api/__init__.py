"""HTTP API for semsearch."""
