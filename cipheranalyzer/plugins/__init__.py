"""Built-in cipher-family plugins."""
