"""Command-line interface for ucan-tokens."""
