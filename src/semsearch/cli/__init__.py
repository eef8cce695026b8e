"""Command line interface for semsearch."""
