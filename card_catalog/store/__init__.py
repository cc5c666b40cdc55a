"""Storage package for the card collection and CSV export."""

from .collection import CollectionStore
from .writer import csv_exporter

__all__ = ["CollectionStore", "csv_exporter"]
