"""
Interactive review sampler.

Usage:
    python -m review_sentiment.run --config configs/app_config.yaml
    python -m review_sentiment.run --config configs/app_config.yaml --once
    python -m review_sentiment.run --source data/reviews_test.tsv --no-telemetry

Quitting waits for the model to finish loading; no timeout applies to the
model download.
"""

import argparse
import asyncio
import logging
from typing import Any

from review_sentiment.app import AnalyzeState, AppContext, analyze_random_review, build_context
from review_sentiment.corpus import DEFAULT_TEXT_COLUMN
from review_sentiment.utils import get_config_value, load_config, set_seed, setup_logging

logger = logging.getLogger(__name__)

PROMPT = "Press Enter to analyze a random review (q to quit): "
QUIT_COMMANDS = {"q", "quit", "exit"}


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Analyze the sentiment of random product reviews",
        epilog="Quitting waits for the model to finish loading; the model download has no timeout.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=str,
        default="configs/app_config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--source",
        type=str,
        default=None,
        help="Review TSV path or URL (overrides config)",
    )
    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Telemetry endpoint URL (overrides config)",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Pretrained model name (overrides config)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for sampling",
    )
    parser.add_argument(
        "--no-telemetry",
        action="store_true",
        help="Do not send telemetry records",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Wait for startup, analyze a single review and exit",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args()


def apply_overrides(config: dict[str, Any], args: argparse.Namespace) -> dict[str, Any]:
    """Apply command line overrides to the loaded configuration."""
    if args.source is not None:
        config.setdefault("corpus", {})["source"] = args.source
    if args.endpoint is not None:
        config.setdefault("telemetry", {})["endpoint_url"] = args.endpoint
    if args.model is not None:
        config.setdefault("model", {})["name"] = args.model
    if args.seed is not None:
        config["seed"] = args.seed
    if args.no_telemetry:
        config.setdefault("telemetry", {})["enabled"] = False
    return config


async def interactive_loop(ctx: AppContext) -> None:
    """Run one analysis per Enter key until the user quits."""
    while True:
        try:
            command = await asyncio.to_thread(input, PROMPT)
        except EOFError:
            break

        if command.strip().lower() in QUIT_COMMANDS:
            break

        await analyze_random_review(ctx)
        ctx.view.refresh()


async def run(config: dict[str, Any], once: bool = False) -> AnalyzeState:
    """Start the application and serve analyze requests."""
    ctx = build_context(config)

    source = get_config_value(config, "corpus.source", "data/reviews_test.tsv")
    text_column = get_config_value(config, "corpus.text_column", DEFAULT_TEXT_COLUMN)
    timeout = get_config_value(config, "corpus.timeout")

    startup = asyncio.create_task(ctx.startup(source, text_column, timeout))

    if once:
        await startup
        state = await analyze_random_review(ctx)
        ctx.view.refresh()
        return state

    await interactive_loop(ctx)
    if not startup.done():
        logger.info("Waiting for startup to finish (model download has no timeout)...")
    await startup
    return ctx.state


def main() -> None:
    args = parse_args()

    config = load_config(args.config)
    config = apply_overrides(config, args)

    log_level = "DEBUG" if args.verbose else get_config_value(config, "logging.level", "INFO")
    setup_logging(log_level=log_level, log_file=get_config_value(config, "logging.file"))

    seed = get_config_value(config, "seed")
    if seed is not None:
        set_seed(seed)
        logger.info(f"Global random state seeded with {seed}; review sampling uses its own generator")

    state = asyncio.run(run(config, once=args.once))
    if args.once and state is AnalyzeState.ERROR:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
