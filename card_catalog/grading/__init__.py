"""Grading package for card condition assessment."""

from .service import GradingService

__all__ = ["GradingService"]
