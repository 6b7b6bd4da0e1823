from .activity_line import SPINNER_FRAMES, SPINNER_INTERVAL_MS, ActivityLine
from .stats_line import PLACEHOLDER, StatsLine, format_elapsed, format_tokens

__all__ = [
    "ActivityLine",
    "StatsLine",
    "SPINNER_FRAMES",
    "SPINNER_INTERVAL_MS",
    "PLACEHOLDER",
    "format_elapsed",
    "format_tokens",
]
