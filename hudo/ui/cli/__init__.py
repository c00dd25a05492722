"""CLI command groups registered on the root ``hudo`` group."""
