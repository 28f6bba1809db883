"""
Pytest configuration and fixtures for review sentiment tests.
"""

import io
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from review_sentiment.app import AppContext
from review_sentiment.corpus import ReviewCorpus
from review_sentiment.inference import SentimentClassifier
from review_sentiment.telemetry import TelemetrySink
from review_sentiment.view import ReviewView


class FakePipeline:
    """Stand-in for a transformers text-classification pipeline."""

    def __init__(self, output=None, error: Exception | None = None):
        self.output = output if output is not None else [{"label": "POSITIVE", "score": 0.9}]
        self.error = error
        self.calls = []

    def __call__(self, inputs):
        self.calls.append(inputs)
        if self.error is not None:
            raise self.error
        if isinstance(inputs, list):
            return [self.output[0] for _ in inputs]
        return self.output


@pytest.fixture
def sample_reviews() -> list[str]:
    """Sample reviews for testing."""
    return [
        "This blender is fantastic. Crushes ice in seconds.",
        "Stopped working after two weeks.",
        "Great value for the price.",
        "The strap broke the first time I used it.",
        "Fits perfectly and the color is exactly as pictured.",
    ]


@pytest.fixture
def reviews_tsv(sample_reviews) -> str:
    """Tab-separated corpus with blank and whitespace-only rows."""
    rows = ["sentiment\ttext"]
    for i, text in enumerate(sample_reviews):
        rows.append(f"{i % 2}\t{text}")
    rows.append("1\t")
    rows.append("0\t   ")
    return "\n".join(rows) + "\n"


@pytest.fixture
def reviews_file(tmp_path, reviews_tsv) -> Path:
    """Corpus written to a temporary file."""
    path = tmp_path / "reviews_test.tsv"
    path.write_text(reviews_tsv, encoding="utf-8")
    return path


@pytest.fixture
def fake_pipeline() -> FakePipeline:
    return FakePipeline()


@pytest.fixture
def classifier(fake_pipeline) -> SentimentClassifier:
    """Classifier backed by the fake pipeline, not yet loaded."""
    return SentimentClassifier(
        "test-model",
        pipeline_factory=MagicMock(return_value=fake_pipeline),
    )


@pytest.fixture
def ready_classifier(classifier) -> SentimentClassifier:
    classifier.load()
    return classifier


@pytest.fixture
def telemetry() -> TelemetrySink:
    """Telemetry sink pointing at a dummy endpoint."""
    return TelemetrySink(
        endpoint_url="https://example.invalid/exec",
        model_name="test-model",
        source="reviews_test.tsv",
    )


@pytest.fixture
def view() -> ReviewView:
    return ReviewView(stream=io.StringIO())


@pytest.fixture
def app_context(sample_reviews, ready_classifier, telemetry, view) -> AppContext:
    """Fully initialized application context."""
    corpus = ReviewCorpus(sample_reviews, seed=42)
    return AppContext(corpus, ready_classifier, telemetry, view)
