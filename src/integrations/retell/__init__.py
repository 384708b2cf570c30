from .client import RetellClient

__all__ = ["RetellClient"]
