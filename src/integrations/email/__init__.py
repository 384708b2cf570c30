from .client import EmailService

__all__ = ["EmailService"]
