"""Message-level operations consumed by the presentation layer."""

from .service import EmailService

__all__ = ["EmailService"]
