"""Logging package."""

from quantor.audit.logger import ClientEventLogger

__all__ = ["ClientEventLogger"]
