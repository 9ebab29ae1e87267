"""Command-line interface for athena-sql."""
