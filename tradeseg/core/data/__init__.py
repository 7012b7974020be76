"""Storage schema, connection factory and repositories."""
