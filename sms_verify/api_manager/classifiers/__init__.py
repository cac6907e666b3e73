"""VoIP detection strategies."""

from .heuristic_classifier import HeuristicVoipClassifier
from .lookup_classifier import LookupVoipClassifier

__all__ = ["HeuristicVoipClassifier", "LookupVoipClassifier"]
