"""Chart output and weekly message generation."""

from __future__ import annotations

from checkin.export.formatters import build_chart_rows, format_chart
from checkin.export.message import (
    compute_message_variables,
    generate_message,
    render_message,
)

__all__ = [
    "build_chart_rows",
    "compute_message_variables",
    "format_chart",
    "generate_message",
    "render_message",
]
