"""Card Catalog - Identify, price, grade and organize collectible trading cards."""

__version__ = "1.0.0"
__author__ = "Card Catalog Team"
__description__ = "Multi-strategy card identification against the Ximilar collectibles API, with a local collection"

from .core.types import Card, CandidateMatch, ClassificationTags, Folder, ImageInput, MarketListing
from .grading.service import GradingService
from .match.score import ScoringWeights, pick
from .pricing.normalize import extract_price
from .resolve.assemble import assemble
from .resolve.client import Endpoint, RecognitionClient
from .resolve.extract import extract
from .resolve.orchestrator import CardResolver
from .store.collection import CollectionStore
from .store.writer import csv_exporter
from .utils.config import settings

# Core functionality imports
from .utils.log import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__description__",
    # Core components
    "configure_logging",
    "get_logger",
    "settings",
    "Card",
    "CandidateMatch",
    "ClassificationTags",
    "Folder",
    "ImageInput",
    "MarketListing",
    "RecognitionClient",
    "Endpoint",
    "CardResolver",
    "GradingService",
    "ScoringWeights",
    "extract",
    "pick",
    "extract_price",
    "assemble",
    "CollectionStore",
    "csv_exporter",
]
