"""
Review Sentiment Sampler

Samples random product reviews, classifies them with a pretrained
sentiment model and logs each analysis to a remote collection endpoint.
"""
__version__ = "0.1.0"

from .corpus import ReviewCorpus
from .inference import ClassificationResult, SentimentClassifier
from .telemetry import TelemetrySink
from .view import ReviewView
from .app import AnalyzeState, AppContext, analyze_random_review

__all__ = [
    "ReviewCorpus",
    "ClassificationResult",
    "SentimentClassifier",
    "TelemetrySink",
    "ReviewView",
    "AnalyzeState",
    "AppContext",
    "analyze_random_review",
]
