from .client import TwilioService

__all__ = ["TwilioService"]
