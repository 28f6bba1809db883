"""
Tests for the review corpus module.

Tests cover:
- TSV parsing and blank-row filtering
- Fetching from files and URLs
- Async loading and failure handling
- Random sampling
- Labelled loading and statistics
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from review_sentiment.corpus import (
    CorpusLoadError,
    EmptyCorpusError,
    ReviewCorpus,
    fetch_corpus_text,
    get_corpus_statistics,
    is_remote_source,
    load_labeled_reviews,
    load_reviews,
    parse_reviews_tsv,
    validate_review,
)


class TestReviewValidation:
    """Tests for single review validation."""

    def test_valid_review(self):
        is_valid, error = validate_review("Works as advertised")
        assert is_valid
        assert error == ""

    def test_none_review(self):
        is_valid, error = validate_review(None)
        assert not is_valid
        assert "None" in error

    def test_non_string_review(self):
        is_valid, error = validate_review(float("nan"))
        assert not is_valid
        assert "string" in error

    def test_whitespace_only_review(self):
        is_valid, error = validate_review("  \t ")
        assert not is_valid
        assert "whitespace" in error


class TestParseReviews:
    """Tests for TSV parsing."""

    def test_parses_text_column(self, reviews_tsv, sample_reviews):
        """Test that all non-blank reviews are kept in order."""
        assert parse_reviews_tsv(reviews_tsv) == sample_reviews

    def test_drops_blank_rows(self, reviews_tsv):
        reviews = parse_reviews_tsv(reviews_tsv)
        assert all(text.strip() for text in reviews)

    def test_keeps_surrounding_whitespace(self):
        """Retained entries are not trimmed."""
        reviews = parse_reviews_tsv("text\n  padded review  \n")
        assert reviews == ["  padded review  "]

    def test_header_only(self):
        assert parse_reviews_tsv("sentiment\ttext\n") == []

    def test_missing_text_column_raises(self):
        with pytest.raises(CorpusLoadError, match="text"):
            parse_reviews_tsv("review\tsentiment\nGood\t1\n")

    def test_custom_text_column(self):
        reviews = parse_reviews_tsv("body\tstars\nGood product\t5\n", text_column="body")
        assert reviews == ["Good product"]

    def test_empty_data_raises(self):
        with pytest.raises(CorpusLoadError):
            parse_reviews_tsv("")

    def test_numeric_looking_text_is_string(self):
        reviews = parse_reviews_tsv("text\n12345\n")
        assert reviews == ["12345"]


class TestFetchCorpus:
    """Tests for retrieving the raw corpus."""

    def test_is_remote_source(self):
        assert is_remote_source("https://example.com/reviews.tsv")
        assert is_remote_source("HTTP://example.com/reviews.tsv")
        assert not is_remote_source("data/reviews_test.tsv")

    def test_reads_local_file(self, reviews_file, reviews_tsv):
        assert fetch_corpus_text(reviews_file) == reviews_tsv

    def test_fetches_url(self, reviews_tsv):
        response = MagicMock(text=reviews_tsv)
        with patch("review_sentiment.corpus.requests.get", return_value=response) as mock_get:
            text = fetch_corpus_text("https://example.com/reviews.tsv")

        mock_get.assert_called_once_with("https://example.com/reviews.tsv", timeout=None)
        response.raise_for_status.assert_called_once()
        assert text == reviews_tsv

    def test_load_reviews_missing_file_raises(self, tmp_path):
        with pytest.raises(CorpusLoadError, match="Could not fetch"):
            load_reviews(tmp_path / "missing.tsv")

    def test_load_reviews_http_error_raises(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        with patch("review_sentiment.corpus.requests.get", return_value=response):
            with pytest.raises(CorpusLoadError):
                load_reviews("https://example.com/reviews.tsv")


class TestReviewCorpus:
    """Tests for the ReviewCorpus class."""

    def test_empty_corpus(self):
        corpus = ReviewCorpus()
        assert len(corpus) == 0
        assert not corpus
        assert not corpus.is_loaded

    def test_initial_reviews_mark_loaded(self, sample_reviews):
        corpus = ReviewCorpus(sample_reviews)
        assert len(corpus) == len(sample_reviews)
        assert corpus.is_loaded

    def test_sample_from_empty_raises(self):
        with pytest.raises(EmptyCorpusError):
            ReviewCorpus().sample_one()

    def test_sample_returns_member(self, sample_reviews):
        """Test that samples always come from the parsed set."""
        corpus = ReviewCorpus(sample_reviews, seed=0)
        for _ in range(50):
            assert corpus.sample_one() in sample_reviews

    def test_sample_never_blank(self, reviews_tsv):
        corpus = ReviewCorpus(parse_reviews_tsv(reviews_tsv), seed=1)
        for _ in range(50):
            assert corpus.sample_one().strip() != ""

    def test_sample_reproducible_with_seed(self, sample_reviews):
        first = [ReviewCorpus(sample_reviews, seed=7).sample_one() for _ in range(3)]
        second = [ReviewCorpus(sample_reviews, seed=7).sample_one() for _ in range(3)]
        assert first == second

    def test_sample_covers_corpus(self, sample_reviews):
        corpus = ReviewCorpus(sample_reviews, seed=3)
        seen = {corpus.sample_one() for _ in range(500)}
        assert seen == set(sample_reviews)

    def test_reviews_is_read_only_view(self, sample_reviews):
        corpus = ReviewCorpus(sample_reviews)
        assert isinstance(corpus.reviews, tuple)


class TestCorpusLoading:
    """Tests for asynchronous corpus loading."""

    def test_load_from_file(self, reviews_file, sample_reviews):
        corpus = ReviewCorpus()
        count = asyncio.run(corpus.load(reviews_file))

        assert count == len(sample_reviews)
        assert list(corpus.reviews) == sample_reviews
        assert corpus.is_loaded

    def test_load_failure_leaves_corpus_empty(self, tmp_path):
        """Test that fetch failures are logged, not raised."""
        corpus = ReviewCorpus()
        count = asyncio.run(corpus.load(tmp_path / "missing.tsv"))

        assert count == 0
        assert not corpus
        assert corpus.is_loaded

    def test_load_without_text_column(self, tmp_path):
        path = tmp_path / "bad.tsv"
        path.write_text("review\nGood\n", encoding="utf-8")

        corpus = ReviewCorpus()
        asyncio.run(corpus.load(path))

        assert len(corpus) == 0


class TestLabeledReviews:
    """Tests for loading reviews with gold labels."""

    def test_loads_texts_and_labels(self, reviews_file, sample_reviews):
        texts, labels = load_labeled_reviews(reviews_file)

        assert texts == sample_reviews
        assert labels == [i % 2 for i in range(len(sample_reviews))]

    def test_accepts_named_labels(self, tmp_path):
        path = tmp_path / "named.tsv"
        path.write_text("sentiment\ttext\nPOS\tGood\nnegative\tBad\nmeh\tOkay\n", encoding="utf-8")

        texts, labels = load_labeled_reviews(path)

        assert texts == ["Good", "Bad"]
        assert labels == [1, 0]

    def test_missing_label_column_raises(self, tmp_path):
        path = tmp_path / "unlabelled.tsv"
        path.write_text("text\nGood\n", encoding="utf-8")

        with pytest.raises(CorpusLoadError, match="sentiment"):
            load_labeled_reviews(path)


class TestCorpusStatistics:
    """Tests for corpus statistics."""

    def test_statistics_keys(self, sample_reviews):
        stats = get_corpus_statistics(sample_reviews)
        assert stats["total_reviews"] == len(sample_reviews)
        assert "word_count" in stats
        assert "char_count" in stats

    def test_statistics_empty(self):
        assert "error" in get_corpus_statistics([])
