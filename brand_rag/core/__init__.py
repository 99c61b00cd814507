"""Settings, logging, errors and service wiring."""
