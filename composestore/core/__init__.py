"""Core infrastructure: configuration, logging and time helpers."""
