"""
Best-effort telemetry for analysed reviews.

Each analysis is posted as one JSON record to a spreadsheet-backed
collection endpoint. Delivery is never retried and failures never reach
the caller.
"""

import asyncio
import locale
import logging
import os
import platform
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import requests

from . import __version__
from .inference import ClassificationResult

logger = logging.getLogger("review_sentiment")


DEFAULT_ENDPOINT_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbxqqmgGOjQtIY5_scQwOETG0z4_vsk4VUxxvrEmXbnF9NXkgSR_1GUiAfPQ4oahhg/exec"
)

FailureHandler = Callable[[Exception], None]


class TelemetryError(Exception):
    """Exception raised when the collection endpoint rejects a record."""
    pass


def _ignore_failure(error: Exception) -> None:
    pass


def user_agent() -> str:
    return (
        f"review-sentiment/{__version__} "
        f"(Python {platform.python_version()}; {platform.system()} {platform.release()})"
    )


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-05-01T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def capture_client_meta(model_name: str, source: str | Path | None = None) -> dict[str, Any]:
    """
    Snapshot of the client environment.

    The attribute set is informational and may change between releases.
    """
    terminal = shutil.get_terminal_size()
    try:
        language = locale.getlocale()[0]
    except ValueError:
        language = None
    language = language or os.environ.get("LANG", "")
    proxy = any(os.environ.get(var) for var in ("HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy"))

    return {
        "userAgent": user_agent(),
        "language": language,
        "timezone": datetime.now().astimezone().tzname(),
        "timestamp_client": int(time.time() * 1000),
        "platform": platform.platform(),
        "screen": {"columns": terminal.columns, "lines": terminal.lines},
        "proxy": proxy,
        "source": str(source) if source is not None else None,
        "model": model_name,
    }


def build_record(
    review: str,
    result: ClassificationResult,
    meta: dict[str, Any],
) -> dict[str, Any]:
    """
    Assemble the JSON body for one analysed review.

    Args:
        review: The classified review text
        result: Classification of the review
        meta: Client environment snapshot

    Returns:
        Telemetry record
    """
    return {
        "timestamp": utc_timestamp(),
        "review": review,
        "sentiment": result.to_dict(),
        "confidence": f"{result.confidence * 100:.1f}",
        "meta": meta,
    }


class TelemetrySink:
    """
    Fire-and-forget sender for telemetry records.

    ``on_failure`` receives every exception raised while sending; the
    default ignores it after it has been logged.
    """

    def __init__(
        self,
        endpoint_url: str = DEFAULT_ENDPOINT_URL,
        model_name: str = "",
        source: str | Path | None = None,
        enabled: bool = True,
        timeout: float | None = None,
        on_failure: FailureHandler | None = None,
    ):
        self.endpoint_url = endpoint_url
        self.model_name = model_name
        self.source = source
        self.enabled = enabled and bool(endpoint_url)
        self.timeout = timeout
        self.on_failure = on_failure or _ignore_failure

    def post(self, record: dict[str, Any]) -> Any:
        """
        Send one record.

        Returns:
            Decoded JSON response body

        Raises:
            TelemetryError: If the endpoint answers with a non-success status
            requests.RequestException: On network errors
            ValueError: If the response body is not JSON
        """
        response = requests.post(
            self.endpoint_url,
            json=record,
            headers={"User-Agent": user_agent()},
            timeout=self.timeout,
        )
        if not response.ok:
            raise TelemetryError(f"Telemetry endpoint returned status {response.status_code}")
        return response.json()

    async def send(self, review: str, result: ClassificationResult) -> bool:
        """
        Log an analysed review to the collection endpoint.

        Never raises.

        Returns:
            True if the endpoint accepted the record
        """
        if not self.enabled:
            logger.debug("Telemetry disabled, skipping")
            return False

        try:
            record = build_record(review, result, capture_client_meta(self.model_name, self.source))
            response = await asyncio.to_thread(self.post, record)
        except Exception as e:
            logger.warning(f"Failed to log analysis to telemetry endpoint: {e}")
            self.on_failure(e)
            return False

        logger.info(f"Analysis logged to telemetry endpoint: {response}")
        return True
