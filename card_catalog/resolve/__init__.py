"""Resolve package for multi-strategy card identification."""

from .client import Endpoint, RecognitionClient, build_payload
from .orchestrator import CardResolver

__all__ = ["Endpoint", "RecognitionClient", "build_payload", "CardResolver"]
