"""
Application context and the analyze action.

The context owns the corpus, the classifier, the telemetry sink and the
view. Startup loads the corpus and the model concurrently; the analyze
action samples one review, classifies it, renders it and logs it.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .corpus import DEFAULT_TEXT_COLUMN, ReviewCorpus
from .inference import (
    DEFAULT_MODEL_NAME,
    ClassificationError,
    ClassifierLoadError,
    SentimentClassifier,
)
from .telemetry import DEFAULT_ENDPOINT_URL, TelemetrySink
from .utils import get_config_value, get_device
from .view import ReviewView

logger = logging.getLogger("review_sentiment")


NO_REVIEWS_MESSAGE = "No reviews available. Please try again later."
MODEL_NOT_READY_MESSAGE = "Sentiment model is not ready yet. Please wait a moment."
MODEL_LOAD_FAILED_MESSAGE = "Failed to load sentiment model. Please restart the application."
ANALYSIS_FAILED_MESSAGE = "Failed to analyze sentiment."


class AnalyzeState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    DONE = "done"
    ERROR = "error"


@dataclass
class AppContext:
    """Everything the analyze action depends on."""

    corpus: ReviewCorpus
    classifier: SentimentClassifier
    telemetry: TelemetrySink
    view: ReviewView = field(default_factory=ReviewView)
    state: AnalyzeState = AnalyzeState.IDLE

    @property
    def is_ready(self) -> bool:
        return bool(self.corpus) and self.classifier.is_ready

    async def startup(
        self,
        source: str | Path,
        text_column: str = DEFAULT_TEXT_COLUMN,
        timeout: float | None = None,
    ) -> None:
        """Load the corpus and the model concurrently."""
        await asyncio.gather(
            self.corpus.load(source, text_column, timeout),
            self._initialize_classifier(),
        )

    async def _initialize_classifier(self) -> None:
        try:
            await self.classifier.initialize()
        except ClassifierLoadError as e:
            logger.error(str(e))
            self.view.show_error(MODEL_LOAD_FAILED_MESSAGE)
            self.view.refresh()

    async def wait_until_loaded(self) -> None:
        """Wait until both startup tasks have finished, successfully or not."""
        await asyncio.gather(self.corpus.loaded.wait(), self.classifier.loaded.wait())


async def analyze_random_review(ctx: AppContext) -> AnalyzeState:
    """
    Sample a review, classify it, render it and log it.

    Missing reviews or an unloaded model show an error without entering
    the loading state. Telemetry failures never affect the outcome.

    Returns:
        The final state, DONE or ERROR
    """
    view = ctx.view
    view.hide_error()

    if not ctx.corpus:
        view.show_error(NO_REVIEWS_MESSAGE)
        ctx.state = AnalyzeState.ERROR
        return ctx.state

    if not ctx.classifier.is_ready:
        view.show_error(MODEL_NOT_READY_MESSAGE)
        ctx.state = AnalyzeState.ERROR
        return ctx.state

    review = ctx.corpus.sample_one()
    view.show_review(review)

    ctx.state = AnalyzeState.LOADING
    view.set_busy(True)
    view.clear_result()

    try:
        result = await ctx.classifier.classify(review)
        view.show_result(result)
        await ctx.telemetry.send(review, result)
        ctx.state = AnalyzeState.DONE
    except ClassificationError as e:
        logger.error(f"Error: {e}")
        view.show_error(str(e) or ANALYSIS_FAILED_MESSAGE)
        ctx.state = AnalyzeState.ERROR
    finally:
        view.set_busy(False)

    return ctx.state


def build_context(config: dict[str, Any], view: ReviewView | None = None) -> AppContext:
    """
    Create an application context from a configuration dictionary.

    Args:
        config: Configuration as loaded by ``utils.load_config``
        view: Optional view, a console view on stdout by default

    Returns:
        AppContext ready for :meth:`AppContext.startup`
    """
    model_name = get_config_value(config, "model.name", DEFAULT_MODEL_NAME)
    device = get_device(
        use_cuda=get_config_value(config, "model.use_cuda", False),
        cuda_device=get_config_value(config, "model.cuda_device", 0),
    )

    corpus = ReviewCorpus(seed=get_config_value(config, "seed"))
    classifier = SentimentClassifier(model_name, device=device)
    telemetry = TelemetrySink(
        endpoint_url=get_config_value(config, "telemetry.endpoint_url", DEFAULT_ENDPOINT_URL),
        model_name=model_name,
        source=get_config_value(config, "corpus.source"),
        enabled=get_config_value(config, "telemetry.enabled", True),
        timeout=get_config_value(config, "telemetry.timeout"),
    )

    return AppContext(corpus, classifier, telemetry, view or ReviewView())
