"""
Review corpus loading and sampling.

Fetches a tab-separated review file (local path or HTTP URL), keeps the
non-blank entries of its text column and serves uniform random samples.
"""

import asyncio
import io
import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import requests

logger = logging.getLogger("review_sentiment")


DEFAULT_TEXT_COLUMN = "text"
DEFAULT_LABEL_COLUMN = "sentiment"
LABEL_MAP = {
    "0": 0,
    "1": 1,
    "neg": 0,
    "pos": 1,
    "negative": 0,
    "positive": 1,
}


class CorpusLoadError(Exception):
    """Exception raised when the review file cannot be fetched or parsed."""
    pass


class EmptyCorpusError(ValueError):
    """Exception raised when sampling from a corpus with no reviews."""
    pass


def is_remote_source(source: str | Path) -> bool:
    """Check whether the corpus source is an HTTP(S) URL."""
    return str(source).lower().startswith(("http://", "https://"))


def fetch_corpus_text(source: str | Path, timeout: float | None = None) -> str:
    """
    Retrieve the raw corpus text.

    Args:
        source: Local file path or http(s) URL
        timeout: Optional request timeout in seconds (URLs only)

    Returns:
        Raw file contents

    Raises:
        requests.RequestException: If the HTTP request fails
        OSError: If the local file cannot be read
    """
    if is_remote_source(source):
        response = requests.get(str(source), timeout=timeout)
        response.raise_for_status()
        return response.text

    return Path(source).read_text(encoding="utf-8")


def validate_review(text: Any) -> tuple[bool, str]:
    """
    Validate a single review entry.

    Args:
        text: Candidate review text

    Returns:
        Tuple of (is_valid, error_message)
    """
    if text is None:
        return False, "Text is None"

    if not isinstance(text, str):
        return False, f"Text must be string, got {type(text).__name__}"

    if len(text.strip()) == 0:
        return False, "Text is empty or whitespace only"

    return True, ""


def _read_tsv(tsv_data: str) -> pd.DataFrame:
    try:
        return pd.read_csv(
            io.StringIO(tsv_data),
            sep="\t",
            dtype=str,
            keep_default_na=False,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError as e:
        raise CorpusLoadError("Corpus file is empty") from e
    except pd.errors.ParserError as e:
        raise CorpusLoadError(f"Could not parse corpus file: {e}") from e


def parse_reviews_tsv(tsv_data: str, text_column: str = DEFAULT_TEXT_COLUMN) -> list[str]:
    """
    Parse tab-separated review data.

    The first row is the header. Entries of ``text_column`` that are blank
    after trimming are dropped; retained entries are returned as they appear
    in the file.

    Args:
        tsv_data: Raw tab-separated text
        text_column: Name of the column holding the review text

    Returns:
        List of review strings

    Raises:
        CorpusLoadError: If the data cannot be parsed or has no text column
    """
    df = _read_tsv(tsv_data)

    if text_column not in df.columns:
        raise CorpusLoadError(
            f"Corpus has no '{text_column}' column (columns: {list(df.columns)})"
        )

    reviews = [text for text in df[text_column].tolist() if validate_review(text)[0]]

    dropped = len(df) - len(reviews)
    if dropped:
        logger.debug(f"Dropped {dropped} blank rows from corpus")

    return reviews


def load_reviews(
    source: str | Path,
    text_column: str = DEFAULT_TEXT_COLUMN,
    timeout: float | None = None,
) -> list[str]:
    """
    Fetch and parse the review corpus.

    Raises:
        CorpusLoadError: On any fetch or parse failure
    """
    try:
        tsv_data = fetch_corpus_text(source, timeout=timeout)
    except (requests.RequestException, OSError, UnicodeDecodeError) as e:
        raise CorpusLoadError(f"Could not fetch corpus from {source}: {e}") from e

    return parse_reviews_tsv(tsv_data, text_column)


def load_labeled_reviews(
    source: str | Path,
    text_column: str = DEFAULT_TEXT_COLUMN,
    label_column: str = DEFAULT_LABEL_COLUMN,
) -> tuple[list[str], list[int]]:
    """
    Load reviews together with their gold sentiment labels.

    Labels may be given as 0/1, neg/pos or negative/positive in any case.
    Rows with blank text or an unknown label are skipped.

    Args:
        source: Local file path or http(s) URL
        text_column: Name of the text column
        label_column: Name of the label column

    Returns:
        Tuple of (texts, labels) with labels 0 = negative, 1 = positive

    Raises:
        CorpusLoadError: If the file cannot be loaded or lacks a column
    """
    try:
        df = _read_tsv(fetch_corpus_text(source))
    except (requests.RequestException, OSError, UnicodeDecodeError) as e:
        raise CorpusLoadError(f"Could not fetch corpus from {source}: {e}") from e

    missing = [col for col in (text_column, label_column) if col not in df.columns]
    if missing:
        raise CorpusLoadError(f"Corpus is missing columns: {missing}")

    texts = []
    labels = []
    invalid_rows = []

    for idx, (text, raw_label) in enumerate(zip(df[text_column], df[label_column])):
        is_valid, error = validate_review(text)
        label = LABEL_MAP.get(str(raw_label).strip().lower())

        if not is_valid:
            invalid_rows.append((idx, error))
            continue
        if label is None:
            invalid_rows.append((idx, f"Unknown label {raw_label!r}"))
            continue

        texts.append(text)
        labels.append(label)

    if invalid_rows:
        logger.warning(
            f"Skipped {len(invalid_rows)} invalid rows: "
            + ", ".join(f"row {idx}: {err}" for idx, err in invalid_rows[:5])
        )

    logger.info(f"Loaded {len(texts)} labelled reviews")

    return texts, labels


def get_corpus_statistics(reviews: list[str]) -> dict[str, Any]:
    """
    Compute statistics for the loaded corpus.

    Args:
        reviews: List of review strings

    Returns:
        Dictionary with corpus statistics
    """
    if not reviews:
        return {"error": "Empty corpus"}

    word_counts = [len(text.split()) for text in reviews]
    char_counts = [len(text) for text in reviews]

    return {
        "total_reviews": len(reviews),
        "word_count": {
            "mean": float(np.mean(word_counts)),
            "std": float(np.std(word_counts)),
            "min": int(np.min(word_counts)),
            "max": int(np.max(word_counts)),
            "median": float(np.median(word_counts)),
        },
        "char_count": {
            "mean": float(np.mean(char_counts)),
            "min": int(np.min(char_counts)),
            "max": int(np.max(char_counts)),
        },
    }


class ReviewCorpus:
    """
    In-memory collection of review texts.

    Populated once by :meth:`load` and read-only afterwards. An empty
    corpus is a valid state; sampling from it raises ``EmptyCorpusError``.
    """

    def __init__(self, reviews: list[str] | None = None, seed: int | None = None):
        """
        Args:
            reviews: Initial reviews (already validated)
            seed: Optional seed for the sampling generator
        """
        self._reviews: list[str] = list(reviews or [])
        self._rng = np.random.default_rng(seed)
        self.loaded = asyncio.Event()
        if reviews is not None:
            self.loaded.set()

    @property
    def reviews(self) -> tuple[str, ...]:
        return tuple(self._reviews)

    @property
    def is_loaded(self) -> bool:
        return self.loaded.is_set()

    def __len__(self) -> int:
        return len(self._reviews)

    def __bool__(self) -> bool:
        return bool(self._reviews)

    async def load(
        self,
        source: str | Path,
        text_column: str = DEFAULT_TEXT_COLUMN,
        timeout: float | None = None,
    ) -> int:
        """
        Fetch and parse the corpus in a worker thread.

        Failures are logged and leave the corpus empty; they are never
        raised to the caller.

        Returns:
            Number of reviews loaded
        """
        try:
            self._reviews = await asyncio.to_thread(load_reviews, source, text_column, timeout)
        except CorpusLoadError as e:
            logger.error(f"Corpus load error: {e}")
            self._reviews = []
        finally:
            self.loaded.set()

        logger.info(f"Loaded {len(self._reviews)} reviews from {source}")
        return len(self._reviews)

    def sample_one(self) -> str:
        """
        Select a review uniformly at random.

        Raises:
            EmptyCorpusError: If the corpus holds no reviews
        """
        if not self._reviews:
            raise EmptyCorpusError("Cannot sample from an empty corpus")

        idx = int(self._rng.integers(len(self._reviews)))
        return self._reviews[idx]
