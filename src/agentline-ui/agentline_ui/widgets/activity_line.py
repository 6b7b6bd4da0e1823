from __future__ import annotations

from ..activity import ActivityState
from ..theme import Palette

# braille spinner, same frames as the interactive loader
SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
SPINNER_INTERVAL_MS = 80


class ActivityLine:
    """First status line: spinner, activity label and detail."""

    def __init__(self, palette: Palette) -> None:
        self.palette = palette

    def compose_line(self, activity: ActivityState, frame: int) -> str:
        glyph = SPINNER_FRAMES[frame % len(SPINNER_FRAMES)]
        spinner = self.palette.fg("accent", glyph)

        if activity.kind == "tool":
            label = self.palette.fg("accent", f"[{activity.tool_name}]")
            return f"{spinner} {label} {activity.detail}"
        if activity.kind == "thinking":
            label = self.palette.fg("accent", "[thinking]")
            if activity.detail:
                return f"{spinner} {label} {activity.detail}"
            return f"{spinner} {label}"
        if activity.kind == "text":
            return f"{spinner} {activity.detail}"
        if activity.is_retrying:
            return f"{self.palette.fg('warning', glyph)} {self.palette.fg('warning', activity.detail)}"
        return f"{spinner} {activity.detail}"

    def render(self, activity: ActivityState, frame: int) -> str:
        return self.compose_line(activity, frame)
