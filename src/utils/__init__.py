"""Shared helpers: parameter validation and engine error types."""
