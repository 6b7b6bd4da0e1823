"""
agentline_ui.renderer
=====================

把状态快照绘制为终端上的四行区域：空行、活动行、统计行、空行。

首帧直接输出四行；之后每一帧先上移 3 行，再逐行清除并重写，
光标始终停在最后一个空行的行首。
"""

from __future__ import annotations

import io
import os
from dataclasses import dataclass
from typing import IO, Callable, Optional

from .ansi import CLEAR_LINE, cursor_up, truncate_to_width
from .state import DisplayState
from .theme import Palette
from .widgets import ActivityLine, StatsLine

DEFAULT_COLUMNS = 80
OWNED_LINES = 4

# from the trailing blank line back to the leading one
_MOVE_TO_TOP = cursor_up(OWNED_LINES - 1)


def terminal_width(stream: IO[str]) -> int:
    """
    读取输出流所在终端的列数，无法获取时返回 80。

    :param stream: 输出流。
    :type stream: IO[str]
    :returns: 终端列数。
    :rtype: int
    """

    try:
        columns = os.get_terminal_size(stream.fileno()).columns
    except (AttributeError, ValueError, OSError, io.UnsupportedOperation):
        return DEFAULT_COLUMNS
    return columns or DEFAULT_COLUMNS


@dataclass(frozen=True, slots=True)
class Frame:
    activity: str
    stats: str


class FrameRenderer:
    """
    组合活动行与统计行，并负责终端区域的首绘、重绘与清除。

    :param stream: 独占写入的输出流，通常是 ``sys.stderr``。
    :type stream: IO[str]
    :param palette: 颜色方案。
    :type palette: Palette
    :param width: 返回当前终端列数的函数；缺省时每次渲染都从 ``stream`` 读取。
    :type width: Callable[[], int] | None
    """

    def __init__(
        self,
        stream: IO[str],
        palette: Palette,
        width: Optional[Callable[[], int]] = None,
    ) -> None:
        self.stream = stream
        self.palette = palette
        self._width = width
        self.activity_line = ActivityLine(palette)
        self.stats_line = StatsLine(palette)

    def terminal_width(self) -> int:
        if self._width is not None:
            return self._width() or DEFAULT_COLUMNS
        return terminal_width(self.stream)

    def compose(self, state: DisplayState, now: float) -> Frame:
        activity = self.activity_line.render(state.activity, state.spinner_frame)
        stats = self.stats_line.render(
            state.usage,
            state.model,
            state.thinking_level,
            now - state.started_at,
        )
        columns = self.terminal_width()
        return Frame(
            activity=truncate_to_width(activity, columns),
            stats=truncate_to_width(stats, columns),
        )

    def paint(self, frame: Frame, first: bool) -> None:
        prefix = "" if first else _MOVE_TO_TOP
        self._write(
            f"{prefix}{CLEAR_LINE}\n"
            f"{CLEAR_LINE}{frame.activity}\n"
            f"{CLEAR_LINE}{frame.stats}\n"
            f"{CLEAR_LINE}"
        )

    def render(self, state: DisplayState, now: float) -> Frame:
        frame = self.compose(state, now)
        self.paint(frame, first=not state.has_painted)
        return frame

    def clear(self) -> None:
        # cursor ends on the first owned line
        self._write(f"{_MOVE_TO_TOP}{CLEAR_LINE}\n{CLEAR_LINE}\n{CLEAR_LINE}\n{CLEAR_LINE}{_MOVE_TO_TOP}")

    def _write(self, data: str) -> None:
        self.stream.write(data)
        self.stream.flush()
