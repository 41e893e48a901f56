"""Alert API implementations."""

from .http import HttpAlertApi

__all__ = ["HttpAlertApi"]
