"""
Console view for the review sampler.

Holds the state of the page (review text, result panel, error banner,
busy indicator and trigger) and prints it to a text stream.
"""

import sys
from typing import TextIO

from .inference import ClassificationResult

SENTIMENT_ICONS = {
    "positive": "fa-thumbs-up",
    "negative": "fa-thumbs-down",
}
DEFAULT_ICON = "fa-question-circle"

CONSOLE_ICONS = {
    "fa-thumbs-up": "[+]",
    "fa-thumbs-down": "[-]",
    "fa-question-circle": "[?]",
}


def sentiment_icon(category: str) -> str:
    """Icon name for a sentiment category."""
    return SENTIMENT_ICONS.get(category, DEFAULT_ICON)


def format_result_line(result: ClassificationResult) -> str:
    """Result panel text, e.g. ``POSITIVE (98.7% confidence)``."""
    return f"{result.label} ({result.confidence_percent} confidence)"


class ReviewView:
    """State of the sampler page."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream
        self.review_text = ""
        self.result: ClassificationResult | None = None
        self.error_message = ""
        self.error_visible = False
        self.loading = False
        self.button_enabled = True

    @property
    def result_icon(self) -> str | None:
        if self.result is None:
            return None
        return sentiment_icon(self.result.category)

    @property
    def result_text(self) -> str:
        if self.result is None:
            return ""
        return format_result_line(self.result)

    def show_review(self, text: str) -> None:
        self.review_text = text

    def clear_result(self) -> None:
        self.result = None

    def show_result(self, result: ClassificationResult) -> None:
        self.result = result

    def show_error(self, message: str) -> None:
        self.error_message = message
        self.error_visible = True

    def hide_error(self) -> None:
        self.error_visible = False

    def set_busy(self, busy: bool) -> None:
        """Toggle the loading indicator; the trigger is disabled while busy."""
        self.loading = busy
        self.button_enabled = not busy

    def render(self) -> str:
        """Render the page as plain text."""
        lines = []

        if self.review_text:
            lines.append("Review:")
            lines.append(f"  {self.review_text}")

        if self.loading:
            lines.append("Analyzing...")
        elif self.result is not None:
            icon = CONSOLE_ICONS.get(self.result_icon, "[?]")
            lines.append(f"{icon} {self.result_text}")

        if self.error_visible:
            lines.append(f"Error: {self.error_message}")

        return "\n".join(lines)

    def refresh(self) -> None:
        """Print the current page to the output stream."""
        print(self.render(), file=self.stream or sys.stdout, flush=True)
