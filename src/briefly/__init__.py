"""Briefly - daily calendar and task digests over Telegram."""

__version__ = "0.1.0"
