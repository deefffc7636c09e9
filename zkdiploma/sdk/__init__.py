"""Core credential, commitment and proof SDK."""
