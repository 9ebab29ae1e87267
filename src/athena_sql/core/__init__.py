"""Core query execution machinery for athena-sql."""
