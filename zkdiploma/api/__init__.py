"""Transport handlers wrapping the core SDK."""
