from __future__ import annotations

import math
from typing import Optional

from ..models import ModelInfo
from ..theme import Palette
from ..usage import UsageSnapshot

PLACEHOLDER = "---"
SEPARATOR = " | "

CONTEXT_ERROR_PERCENT = 90
CONTEXT_WARNING_PERCENT = 70


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_tokens(count: int) -> str:
    """
    将 token 数格式化为紧凑文本。

    ``<1000`` 原样输出；``<10k`` 保留一位小数加 ``k``；``<1M`` 取整加 ``k``；
    ``<10M`` 保留一位小数加 ``M``；其余取整加 ``M``。

    :param count: token 数。
    :type count: int
    :returns: 格式化后的文本，例如 ``1.0k``、``200k``、``1.5M``。
    :rtype: str
    """

    if count < 1000:
        return str(count)
    if count < 10_000:
        return f"{count / 1000:.1f}k"
    if count < 1_000_000:
        return f"{_round_half_up(count / 1000)}k"
    if count < 10_000_000:
        return f"{count / 1_000_000:.1f}M"
    return f"{_round_half_up(count / 1_000_000)}M"


def format_elapsed(seconds: float) -> str:
    elapsed = max(int(seconds), 0)
    if elapsed < 60:
        return f"{elapsed}s"
    minutes, secs = divmod(elapsed, 60)
    return f"{minutes}m {secs}s"


class StatsLine:
    """Second status line: tokens, cost, context occupancy, model and elapsed time."""

    def __init__(self, palette: Palette) -> None:
        self.palette = palette

    def _token_parts(self, usage: UsageSnapshot) -> list[str]:
        if not usage.has_stats:
            return [f"{prefix}{PLACEHOLDER}" for prefix in ("↑", "↓", "R", "W", "$")]
        totals = usage.totals
        return [
            f"↑{format_tokens(totals.input)}",
            f"↓{format_tokens(totals.output)}",
            f"R{format_tokens(totals.cache_read)}",
            f"W{format_tokens(totals.cache_write)}",
            f"${totals.cost:.3f}",
        ]

    def _context_part(self, usage: UsageSnapshot) -> Optional[str]:
        context = usage.context
        percent = context.percent
        if percent is None:
            return None
        window = format_tokens(context.window)
        if not usage.has_stats:
            return f"{PLACEHOLDER}/{window}"
        display = f"{percent:.1f}%/{window}"
        if percent > CONTEXT_ERROR_PERCENT:
            return self.palette.fg("error", display)
        if percent > CONTEXT_WARNING_PERCENT:
            return self.palette.fg("warning", display)
        return display

    @staticmethod
    def _model_part(model: Optional[ModelInfo], thinking_level: str) -> Optional[str]:
        if model is None:
            return None
        if model.reasoning and thinking_level != "off":
            return f"{model.id}:{thinking_level}"
        return model.id

    def compose_line(
        self,
        usage: UsageSnapshot,
        model: Optional[ModelInfo],
        thinking_level: str,
        elapsed_seconds: float,
    ) -> str:
        parts = self._token_parts(usage)
        context = self._context_part(usage)
        if context is not None:
            parts.append(context)
        model_part = self._model_part(model, thinking_level)
        if model_part is not None:
            parts.append(model_part)
        parts.append(format_elapsed(elapsed_seconds))
        return self.palette.fg("dim", SEPARATOR.join(parts))

    def render(
        self,
        usage: UsageSnapshot,
        model: Optional[ModelInfo],
        thinking_level: str,
        elapsed_seconds: float,
    ) -> str:
        return self.compose_line(usage, model, thinking_level, elapsed_seconds)
