from .client import CallLogClient

__all__ = ["CallLogClient"]
