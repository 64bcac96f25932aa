"""An in-memory key-value server speaking the Redis protocol (RESP)."""

__version__ = "0.1.0"