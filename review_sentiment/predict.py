"""
Batch prediction script for the review sentiment classifier.

Usage:
    python -m review_sentiment.predict --input_path data/reviews_test.tsv --output_path preds.csv
"""

import argparse
import io
import logging
from pathlib import Path

import pandas as pd
from tqdm import tqdm

from review_sentiment.corpus import fetch_corpus_text, validate_review
from review_sentiment.inference import DEFAULT_MODEL_NAME, SentimentClassifier
from review_sentiment.utils import get_device

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch sentiment prediction")
    parser.add_argument("--input_path", type=str, required=True, help="Input TSV path or URL with a 'text' column")
    parser.add_argument("--output_path", type=str, required=True, help="Output CSV path")
    parser.add_argument("--model", type=str, default=DEFAULT_MODEL_NAME, help="Pretrained model name")
    parser.add_argument("--batch_size", type=int, default=32, help="Batch size")
    parser.add_argument("--text_column", type=str, default="text", help="Text column name")
    parser.add_argument("--cuda", action="store_true", help="Use CUDA if available")
    return parser.parse_args()


def predict_frame(
    classifier: SentimentClassifier,
    df: pd.DataFrame,
    text_column: str = "text",
    batch_size: int = 32,
) -> pd.DataFrame:
    """
    Classify every row of a frame.

    Rows with blank text get the label ``unknown`` and confidence 0.

    Returns:
        Frame with ``label``, ``category`` and ``confidence`` columns
    """
    texts = df[text_column].tolist()
    results = [None] * len(texts)
    valid_idx = [i for i, text in enumerate(texts) if validate_review(text)[0]]

    for start in tqdm(range(0, len(valid_idx), batch_size), desc="Predicting"):
        batch_idx = valid_idx[start:start + batch_size]
        predictions = classifier.predict_batch([texts[i] for i in batch_idx])
        for i, pred in zip(batch_idx, predictions):
            results[i] = {
                "label": pred.label,
                "category": pred.category,
                "confidence": pred.confidence,
            }

    unknown = {"label": "unknown", "category": "unknown", "confidence": 0.0}
    return pd.DataFrame(
        [r or unknown for r in results],
        columns=["label", "category", "confidence"],
    )


def main() -> None:
    args = parse_args()

    logger.info("Loading model...")
    classifier = SentimentClassifier(args.model, device=get_device(use_cuda=args.cuda))
    classifier.load()

    logger.info(f"Loading data from {args.input_path}")
    df = pd.read_csv(
        io.StringIO(fetch_corpus_text(args.input_path)),
        sep="\t",
        dtype=str,
        keep_default_na=False,
    )

    logger.info(f"Predicting {len(df)} samples...")
    predictions = predict_frame(classifier, df, args.text_column, args.batch_size)

    output_df = pd.concat([df.reset_index(drop=True), predictions], axis=1)
    Path(args.output_path).parent.mkdir(parents=True, exist_ok=True)
    output_df.to_csv(args.output_path, index=False)

    counts = predictions["category"].value_counts()
    logger.info(
        f"Done! Positive: {counts.get('positive', 0)}, "
        f"Negative: {counts.get('negative', 0)}, Neutral: {counts.get('neutral', 0)}"
    )
    logger.info(f"Saved to {args.output_path}")


if __name__ == "__main__":
    main()
