"""Command-line interface for modelconv."""
