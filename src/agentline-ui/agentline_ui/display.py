from __future__ import annotations

import sys
import threading
import time
from contextlib import contextmanager
from typing import IO, Any, Callable, Iterator, Mapping, Optional

from loguru import logger

from .clock import Clock
from .models import AutoRetryStart, Event, ModelInfo, event_from_dict
from .renderer import FrameRenderer
from .state import DisplayState, advance_spinner, deactivate, initial_state, mark_painted, reduce_event
from .theme import Palette
from .widgets import SPINNER_FRAMES, SPINNER_INTERVAL_MS

_EVENT_TYPES = ("message_start", "message_update", "message_end", "auto_compaction_start", "auto_retry_start")


class StatusDisplay:
    """
    打印模式下的实时状态显示：一行当前活动，一行 token / 费用 / 耗时统计。

    事件与时钟节拍都汇入同一个渲染入口；时钟运行在独立线程上，
    因此所有状态读写都在 ``self._lock`` 内进行。

    :param stream: 独占写入的输出流，默认为 ``sys.stderr``。
    :type stream: IO[str] | None
    :param palette: 颜色方案，默认根据环境变量检测。
    :type palette: Palette | None
    :param clock: spinner 定时器，默认新建 :class:`Clock`。
    :type clock: Clock | None
    :param time_func: 单调时钟函数，用于计算耗时。
    :type time_func: Callable[[], float]
    :param width: 返回终端列数的函数，默认从 ``stream`` 读取。
    :type width: Callable[[], int] | None
    :param interval_ms: spinner 帧间隔（毫秒）。
    :type interval_ms: int
    """

    def __init__(
        self,
        stream: Optional[IO[str]] = None,
        palette: Optional[Palette] = None,
        clock: Optional[Clock] = None,
        time_func: Callable[[], float] = time.monotonic,
        width: Optional[Callable[[], int]] = None,
        interval_ms: int = SPINNER_INTERVAL_MS,
    ) -> None:
        self.stream = stream if stream is not None else sys.stderr
        self.palette = palette if palette is not None else Palette.detect()
        self.clock = clock if clock is not None else Clock()
        self.time_func = time_func
        self.interval_ms = interval_ms
        self.renderer = FrameRenderer(self.stream, self.palette, width=width)
        self._state = DisplayState(started_at=time_func())
        self._lock = threading.RLock()
        self._cleared = False

    @property
    def state(self) -> DisplayState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    def start(self, model: Optional[ModelInfo], thinking_level: str = "off") -> None:
        self.clock.stop()
        with self._lock:
            if self._state.has_painted and not self._cleared:
                self.renderer.clear()
            self._state = initial_state(model, thinking_level, self.time_func())
            self._cleared = False
        logger.debug(
            "status display started model=[{}] thinking_level=[{}]",
            model.id if model else None,
            thinking_level,
        )
        self.clock.start(self.interval_ms, self._tick)
        self._render()

    def handle_event(self, event: Event | Mapping[str, Any]) -> None:
        if not self._state.is_active:
            return
        if isinstance(event, Mapping):
            parsed = event_from_dict(event)
            if parsed is None:
                return
            event = parsed
        if getattr(event, "type", None) not in _EVENT_TYPES:
            return
        if isinstance(event, AutoRetryStart):
            logger.debug("retry shown attempt=[{}] max_attempts=[{}]", event.attempt, event.max_attempts)

        with self._lock:
            if not self._state.is_active:
                return
            self._state = reduce_event(self._state, event)
            self._render_locked()

    def stop(self) -> None:
        with self._lock:
            if self._cleared:
                return
            self._state = deactivate(self._state)
            self._cleared = True
        self.clock.stop()
        with self._lock:
            self.renderer.clear()
        logger.debug("status display stopped")

    @contextmanager
    def running(self, model: Optional[ModelInfo], thinking_level: str = "off") -> Iterator["StatusDisplay"]:
        self.start(model, thinking_level)
        try:
            yield self
        finally:
            self.stop()

    def _tick(self) -> None:
        with self._lock:
            if not self._state.is_active:
                return
            self._state = advance_spinner(self._state, len(SPINNER_FRAMES))
            self._render_locked()

    def _render(self) -> None:
        with self._lock:
            self._render_locked()

    def _render_locked(self) -> None:
        if not self._state.is_active:
            return
        self.renderer.render(self._state, self.time_func())
        self._state = mark_painted(self._state)
