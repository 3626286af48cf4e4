"""PulseWatch - HTTP/TCP health checks with debounced monitor state."""
__version__ = "1.0.0"
