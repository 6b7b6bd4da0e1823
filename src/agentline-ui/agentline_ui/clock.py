from __future__ import annotations

import threading
from typing import Callable

from loguru import logger

JOIN_TIMEOUT_SECONDS = 1.0


class Clock:
    """
    可取消的周期定时器，用于驱动 spinner 动画。

    每次 :meth:`start` 创建一个取消令牌（``threading.Event``）与一个守护线程，
    :meth:`stop` 置位令牌后等待线程退出。

    :param name: 定时线程名称。
    :type name: str
    """

    def __init__(self, name: str = "agentline-clock") -> None:
        self.name = name
        self._thread: threading.Thread | None = None
        self._cancel: threading.Event | None = None

    @property
    def running(self) -> bool:
        return self._cancel is not None and not self._cancel.is_set()

    def start(self, interval_ms: int, on_tick: Callable[[], None]) -> None:
        if self._cancel is not None:
            self.stop()

        interval = max(interval_ms, 1) / 1000
        cancel = threading.Event()

        def run() -> None:
            while not cancel.wait(interval):
                try:
                    on_tick()
                except Exception:
                    logger.exception("clock tick failed name=[{}]", self.name)
                    cancel.set()

        thread = threading.Thread(target=run, name=self.name, daemon=True)
        self._cancel = cancel
        self._thread = thread
        thread.start()

    def stop(self) -> None:
        cancel, thread = self._cancel, self._thread
        self._cancel = None
        self._thread = None
        if cancel is None:
            return
        cancel.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(JOIN_TIMEOUT_SECONDS)
