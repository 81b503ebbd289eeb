"""Core configuration, clock and error types."""
