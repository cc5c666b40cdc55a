"""
Match module for candidate scoring and selection.
"""

from .score import ScoringWeights, pick, score_candidate

__all__ = [
    "ScoringWeights",
    "pick",
    "score_candidate"
]
