from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import IO, Any, Callable, Literal, Optional, Protocol, Sequence

import click
from claude_agent_sdk import ClaudeAgentOptions
from loguru import logger

from agentline_ui import AgentMessage, Event, ModelInfo, Palette, StatusDisplay, TextContent

from .session import AgentSession
from .utils.config import Settings
from .utils.log import setup_log
from .utils.model_catalog import THINKING_BUDGETS, resolve_model
from .utils.prompt import build_system_prompt

Mode = Literal["text", "json"]

_FAILED_STOP_REASONS = ("error", "aborted")


class Session(Protocol):
    model: Optional[ModelInfo]
    thinking_level: str

    @property
    def last_message(self) -> Optional[AgentMessage]: ...

    def subscribe(self, listener: Callable[[Event], None]) -> Callable[[], None]: ...

    async def prompt(self, text: str) -> None: ...


def should_show_progress(mode: Mode, is_tty: bool, quiet: Optional[bool] = None) -> bool:
    """
    判断是否显示进度：仅在 text 模式、stderr 为终端且未指定 quiet 时显示。

    :param mode: 输出模式。
    :type mode: str
    :param is_tty: stderr 是否连接到终端。
    :type is_tty: bool
    :param quiet: 是否指定了 ``--quiet``。
    :type quiet: bool | None
    :returns: 是否显示进度。
    :rtype: bool
    """

    return mode == "text" and is_tty and not quiet


def _is_tty(stream: IO[str]) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


async def run_print_mode(
    session: Session,
    mode: Mode,
    messages: Sequence[str],
    initial_message: Optional[str] = None,
    *,
    quiet: bool = False,
    stdout: Optional[IO[str]] = None,
    stderr: Optional[IO[str]] = None,
    display_factory: Callable[..., StatusDisplay] = StatusDisplay,
) -> int:
    """
    打印模式（单次执行）：依次发送提示，结束后输出结果。

    - text 模式：只输出最后一条助手消息的文本；在终端上显示实时进度。
    - json 模式：每个事件输出一行 JSON。

    无论正常结束、异常还是取消，进度显示都会在输出结果前停止并清理。

    :param session: 对话会话。
    :type session: Session
    :param mode: 输出模式，``text`` 或 ``json``。
    :type mode: str
    :param messages: 依次发送的提示。
    :type messages: Sequence[str]
    :param initial_message: 最先发送的提示（可能包含 ``@file`` 内容）。
    :type initial_message: str | None
    :param quiet: 即使在终端上也不显示进度。
    :type quiet: bool
    :returns: 进程退出码。
    :rtype: int
    """

    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr

    progress: Optional[StatusDisplay] = None
    if should_show_progress(mode, _is_tty(stderr), quiet):
        progress = display_factory(stream=stderr)

    def on_event(event: Event) -> None:
        if progress is not None:
            progress.handle_event(event)
        if mode == "json":
            click.echo(json.dumps(event.to_dict(), ensure_ascii=False), file=stdout)

    unsubscribe = session.subscribe(on_event)
    if progress is not None:
        progress.start(session.model, session.thinking_level)

    try:
        if initial_message:
            await session.prompt(initial_message)
        for message in messages:
            await session.prompt(message)
    finally:
        if progress is not None:
            progress.stop()
        unsubscribe()

    if mode != "text":
        return 0

    last_message = session.last_message
    if last_message is None or last_message.role != "assistant":
        return 0
    if last_message.stop_reason in _FAILED_STOP_REASONS:
        click.echo(last_message.error_message or f"Request {last_message.stop_reason}", file=stderr)
        return 1
    for block in last_message.content:
        if isinstance(block, TextContent):
            click.echo(block.text, file=stdout)
    return 0


class PrintModeApp:
    """
    根据配置组装会话与进度显示，并运行打印模式。

    :param settings: 已解析的配置。
    :type settings: Settings
    :param mode: 输出模式。
    :type mode: str
    :param quiet: 是否禁止进度显示。
    :type quiet: bool
    """

    def __init__(self, settings: Settings, mode: Mode = "text", quiet: bool = False) -> None:
        self.settings = settings
        self.mode = mode
        self.quiet = quiet
        self.cwd = Path(settings.agent.cwd).expanduser().resolve()

    def build_model(self) -> ModelInfo:
        model = self.settings.model
        return resolve_model(model.model_name, model.context_window, model.reasoning)

    def build_options(self) -> ClaudeAgentOptions:
        model = self.settings.model
        envs: dict[str, str] = {}
        if model.base_url:
            envs["ANTHROPIC_BASE_URL"] = model.base_url
        if model.api_key:
            envs["ANTHROPIC_AUTH_TOKEN"] = model.api_key

        options: dict[str, Any] = {
            "model": model.model_name,
            "permission_mode": self.settings.agent.permission_mode,
            "cwd": str(self.cwd),
            "env": envs,
            "setting_sources": [],
        }
        system_prompt = build_system_prompt(self.settings, self.cwd)
        if system_prompt is not None:
            options["system_prompt"] = system_prompt
        budget = THINKING_BUDGETS.get(model.thinking_level)
        if budget is not None:
            options["max_thinking_tokens"] = budget
        return ClaudeAgentOptions(**options)

    def build_session(self) -> AgentSession:
        agent = self.settings.agent
        return AgentSession(
            self.build_options(),
            self.build_model(),
            thinking_level=self.settings.model.thinking_level,
            max_retries=agent.max_retries,
            retry_base_delay=agent.retry_base_delay,
        )

    def build_display(self, stream: IO[str]) -> StatusDisplay:
        palette = Palette.detect() if self.settings.display.color else Palette.plain()
        return StatusDisplay(
            stream=stream,
            palette=palette,
            interval_ms=self.settings.display.spinner_interval_ms,
        )

    async def run(self, messages: Sequence[str], initial_message: Optional[str] = None) -> int:
        log_path = (self.cwd / self.settings.log_path).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        setup_log(str(log_path))
        logger.info(
            "print mode started mode=[{}] model=[{}] prompts=[{}]",
            self.mode,
            self.settings.model.model_name,
            len(messages) + (1 if initial_message else 0),
        )

        async with self.build_session() as session:
            return await run_print_mode(
                session,
                self.mode,
                messages,
                initial_message,
                quiet=self.quiet,
                display_factory=self.build_display,
            )
