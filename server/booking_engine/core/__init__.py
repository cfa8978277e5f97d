"""Core configuration, persistence, errors and observability."""
