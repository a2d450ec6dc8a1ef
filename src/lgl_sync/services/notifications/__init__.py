"""Notification delivery backends."""

from .backend import EmailBackend, InMemoryEmailBackend, LoggingEmailBackend
from .gated import GatedEmailBackend

__all__ = ["EmailBackend", "GatedEmailBackend", "InMemoryEmailBackend", "LoggingEmailBackend"]
