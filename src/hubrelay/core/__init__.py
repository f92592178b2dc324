"""Core library: error hierarchy, structured logging and shared utilities."""
