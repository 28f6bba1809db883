"""
Evaluation script for the pretrained sentiment model on a labelled review file.

Usage:
    python -m review_sentiment.evaluate --input_path data/reviews_test.tsv
    python -m review_sentiment.evaluate --input_path data/reviews_test.tsv --output metrics.json
"""

import argparse
import json
import logging

from sklearn.metrics import accuracy_score, f1_score, precision_score, recall_score

from review_sentiment.corpus import DEFAULT_LABEL_COLUMN, DEFAULT_TEXT_COLUMN, load_labeled_reviews
from review_sentiment.inference import DEFAULT_MODEL_NAME, ClassificationResult, SentimentClassifier
from review_sentiment.utils import get_device

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate the sentiment model on labelled reviews")
    parser.add_argument("--input_path", type=str, required=True, help="Labelled TSV path or URL")
    parser.add_argument("--model", type=str, default=DEFAULT_MODEL_NAME, help="Pretrained model name")
    parser.add_argument("--text_column", type=str, default=DEFAULT_TEXT_COLUMN)
    parser.add_argument("--label_column", type=str, default=DEFAULT_LABEL_COLUMN)
    parser.add_argument("--batch-size", type=int, default=32)
    parser.add_argument("--output", type=str, default=None, help="Output metrics file")
    parser.add_argument("--cuda", action="store_true", help="Use CUDA if available")
    return parser.parse_args()


def to_binary(results: list[ClassificationResult]) -> list[int]:
    """Positive category is class 1; negative and neutral are class 0."""
    return [1 if r.category == "positive" else 0 for r in results]


def compute_metrics(labels: list[int], predictions: list[int]) -> dict:
    """Compute classification metrics."""
    return {
        "samples": len(labels),
        "accuracy": float(accuracy_score(labels, predictions)),
        "f1_score": float(f1_score(labels, predictions, average="weighted", zero_division=0)),
        "precision": float(precision_score(labels, predictions, average="weighted", zero_division=0)),
        "recall": float(recall_score(labels, predictions, average="weighted", zero_division=0)),
    }


def evaluate_classifier(
    classifier: SentimentClassifier,
    texts: list[str],
    labels: list[int],
    batch_size: int = 32,
) -> dict:
    """Classify all texts and score them against the gold labels."""
    results = []
    for start in range(0, len(texts), batch_size):
        results.extend(classifier.predict_batch(texts[start:start + batch_size]))

    metrics = compute_metrics(labels, to_binary(results))
    metrics["neutral"] = sum(1 for r in results if r.category == "neutral")
    return metrics


def main() -> None:
    args = parse_args()

    texts, labels = load_labeled_reviews(args.input_path, args.text_column, args.label_column)
    if not texts:
        raise SystemExit(f"No labelled reviews found in {args.input_path}")

    logger.info(f"Loading model {args.model}")
    classifier = SentimentClassifier(args.model, device=get_device(use_cuda=args.cuda))
    classifier.load()

    logger.info("Evaluating...")
    metrics = evaluate_classifier(classifier, texts, labels, args.batch_size)

    print(f"Accuracy: {metrics['accuracy']:.4f}, F1: {metrics['f1_score']:.4f}, Neutral: {metrics['neutral']}")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(metrics, f, indent=2)
        logger.info(f"Metrics saved to {args.output}")


if __name__ == "__main__":
    main()
