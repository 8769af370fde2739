"""Core infrastructure: configuration, logging, errors and runtime wiring."""
