"""Vector subsystem services."""
