"""Core data types and constants."""
