"""
Inference module for sentiment classification.

Wraps a pretrained Hugging Face text-classification pipeline and converts
its raw output into a ``ClassificationResult``.
"""

import asyncio
import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable

import torch
from transformers import pipeline

logger = logging.getLogger("review_sentiment")


DEFAULT_MODEL_NAME = "distilbert/distilbert-base-uncased-finetuned-sst-2-english"
PIPELINE_TASK = "text-classification"

FALLBACK_LABEL = "NEUTRAL"
FALLBACK_SCORE = 0.5
DECISION_THRESHOLD = 0.5

CATEGORY_BY_LABEL = {"POSITIVE": "positive", "NEGATIVE": "negative"}


class ClassifierLoadError(Exception):
    """Exception raised when the pretrained model cannot be loaded."""
    pass


class ClassificationError(Exception):
    """Exception raised when a text cannot be classified."""
    pass


class ClassifierNotReadyError(ClassificationError):
    """Exception raised when classifying before the model is loaded."""
    pass


@dataclass(frozen=True)
class ClassificationResult:
    """Normalized output of one classification."""

    label: str
    confidence: float
    category: str

    @property
    def confidence_percent(self) -> str:
        return format_confidence(self.confidence)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the telemetry payload."""
        return {
            "label": self.label,
            "category": self.category,
            "confidence": self.confidence,
        }


def decide_category(label: str, score: float) -> str:
    """
    Map a raw label and score to a display category.

    Args:
        label: Upper-case model label
        score: Model confidence (0-1)

    Returns:
        'positive', 'negative' or 'neutral'
    """
    category = CATEGORY_BY_LABEL.get(label)
    if category is not None and score > DECISION_THRESHOLD:
        return category
    return "neutral"


def format_confidence(score: float) -> str:
    """
    Render a confidence score as a percentage with one decimal.

    >>> format_confidence(0.8234)
    '82.3%'
    """
    return f"{score * 100:.1f}%"


def _first_candidate(raw: Any) -> dict | None:
    node = raw
    while isinstance(node, (list, tuple)):
        if not node:
            return None
        node = node[0]
    return node if isinstance(node, dict) else None


def normalize_output(raw: Any) -> ClassificationResult:
    """
    Convert raw pipeline output to a ClassificationResult.

    The pipeline returns a (possibly nested) list of ``{label, score}``
    mappings; the first one is used. Anything else yields the neutral
    fallback. A score that is missing, zero, non-finite or outside [0, 1]
    becomes 0.5.

    Args:
        raw: Raw pipeline output

    Returns:
        ClassificationResult
    """
    candidate = _first_candidate(raw)
    if candidate is None:
        return ClassificationResult(FALLBACK_LABEL, FALLBACK_SCORE, "neutral")

    label = str(candidate.get("label") or FALLBACK_LABEL).upper()

    score = candidate.get("score")
    if isinstance(score, bool) or not isinstance(score, numbers.Real) or not score:
        score = FALLBACK_SCORE
    score = float(score)
    if not math.isfinite(score) or not 0.0 <= score <= 1.0:
        score = FALLBACK_SCORE

    return ClassificationResult(label, score, decide_category(label, score))


class SentimentClassifier:
    """
    Pretrained sentiment classifier.

    The pipeline is built once, either synchronously with :meth:`load` or
    from a running event loop with :meth:`initialize`. ``pipeline_factory``
    defaults to :func:`transformers.pipeline`.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL_NAME,
        device: torch.device | None = None,
        pipeline_factory: Callable[..., Any] | None = None,
    ):
        self.model_name = model_name
        self.device = device or torch.device("cpu")
        self._pipeline_factory = pipeline_factory or pipeline
        self._pipeline = None
        self.loaded = asyncio.Event()

    @property
    def is_ready(self) -> bool:
        return self._pipeline is not None

    def load(self) -> None:
        """
        Build the classification pipeline.

        Raises:
            ClassifierLoadError: If the model cannot be loaded
        """
        if self._pipeline is not None:
            return

        logger.info(f"Loading sentiment model {self.model_name} on {self.device}...")
        try:
            self._pipeline = self._pipeline_factory(
                PIPELINE_TASK,
                model=self.model_name,
                device=self.device,
            )
        except Exception as e:
            raise ClassifierLoadError(
                f"Failed to load sentiment model {self.model_name}: {e}"
            ) from e
        logger.info("Sentiment model loaded")

    async def initialize(self) -> None:
        """
        Load the model in a worker thread.

        ``loaded`` is set once the attempt finishes, whatever its outcome.

        Raises:
            ClassifierLoadError: If the model cannot be loaded
        """
        try:
            await asyncio.to_thread(self.load)
        finally:
            self.loaded.set()

    def predict(self, text: str) -> ClassificationResult:
        """
        Classify a single text.

        Raises:
            ClassifierNotReadyError: If the model is not loaded
            ClassificationError: If the pipeline fails
        """
        if self._pipeline is None:
            raise ClassifierNotReadyError("Sentiment model is not initialized.")

        try:
            raw = self._pipeline(text)
        except Exception as e:
            raise ClassificationError(f"Sentiment analysis failed: {e}") from e

        result = normalize_output(raw)
        logger.debug(f"Classified review as {result.label} ({result.confidence_percent})")
        return result

    def predict_batch(self, texts: list[str]) -> list[ClassificationResult]:
        """
        Classify several texts in one pipeline call.

        Raises:
            ClassifierNotReadyError: If the model is not loaded
            ClassificationError: If the pipeline fails
        """
        if self._pipeline is None:
            raise ClassifierNotReadyError("Sentiment model is not initialized.")
        if not texts:
            return []

        try:
            raw = self._pipeline(list(texts))
        except Exception as e:
            raise ClassificationError(f"Sentiment analysis failed: {e}") from e

        if not isinstance(raw, list) or len(raw) != len(texts):
            raise ClassificationError(
                f"Expected {len(texts)} pipeline outputs, got {raw!r:.80}"
            )

        return [normalize_output(item) for item in raw]

    async def classify(self, text: str) -> ClassificationResult:
        """Async counterpart of :meth:`predict`."""
        if self._pipeline is None:
            raise ClassifierNotReadyError("Sentiment model is not initialized.")
        return await asyncio.to_thread(self.predict, text)
