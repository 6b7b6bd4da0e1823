"""
agentline_ui.activity
=====================

根据助手消息快照推导“当前活动”：工具调用、思考、文本生成或系统状态。
只保留最新的一条活动，不记录历史。
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Literal, Mapping

from .models import AgentMessage, TextContent, ThinkingContent, ToolCall

ActivityKind = Literal["tool", "thinking", "text", "system"]

STARTING = "Starting..."
WORKING = "Working..."
COMPACTING = "Compacting context..."
RETRYING_PREFIX = "Retrying"

JSON_ARGS_MAX_CHARS = 40


def retrying_text(attempt: int, max_attempts: int) -> str:
    return f"{RETRYING_PREFIX} ({attempt}/{max_attempts})..."


@dataclass(frozen=True, slots=True)
class ActivityState:
    kind: ActivityKind
    detail: str = ""
    tool_name: str = ""

    @classmethod
    def system(cls, text: str) -> "ActivityState":
        return cls("system", text)

    @classmethod
    def tool(cls, name: str, detail: str) -> "ActivityState":
        return cls("tool", detail, name)

    @classmethod
    def thinking(cls, text: str = "") -> "ActivityState":
        return cls("thinking", text)

    @classmethod
    def text(cls, text: str) -> "ActivityState":
        return cls("text", text)

    @property
    def is_retrying(self) -> bool:
        return self.kind == "system" and self.detail.startswith(RETRYING_PREFIX)


_LINE_BREAKS = re.compile(r"[\r\n\t]")
_SPACES = re.compile(r" +")


def normalize_text(text: str) -> str:
    """Collapse a block of text onto one line; width truncation happens at render time."""
    return _SPACES.sub(" ", _LINE_BREAKS.sub(" ", text)).strip()


def shorten_path(path: str, home: str | None = None) -> str:
    if home is None:
        home = os.environ.get("HOME") or os.environ.get("USERPROFILE") or ""
    if home and path.startswith(home):
        return f"~{path[len(home):]}"
    return path


def _arg(args: Mapping[str, Any], *keys: str, default: str = "") -> str:
    for key in keys:
        value = args.get(key)
        if value:
            return str(value)
    return default


def _format_path(args: Mapping[str, Any]) -> str:
    return shorten_path(_arg(args, "path", "file_path"))


def _format_bash(args: Mapping[str, Any]) -> str:
    return normalize_text(_arg(args, "command"))


def _format_grep(args: Mapping[str, Any]) -> str:
    return f"/{_arg(args, 'pattern')}/ in {shorten_path(_arg(args, 'path', default='.'))}"


def _format_find(args: Mapping[str, Any]) -> str:
    return f"{_arg(args, 'pattern')} in {shorten_path(_arg(args, 'path', default='.'))}"


def _format_ls(args: Mapping[str, Any]) -> str:
    return shorten_path(_arg(args, "path", default="."))


def _format_json(args: Mapping[str, Any]) -> str:
    text = json.dumps(args, ensure_ascii=False, separators=(",", ":"), default=str)
    if len(text) > JSON_ARGS_MAX_CHARS:
        return f"{text[:JSON_ARGS_MAX_CHARS - 3]}..."
    return text


TOOL_FORMATTERS: Dict[str, Callable[[Mapping[str, Any]], str]] = {
    "read": _format_path,
    "write": _format_path,
    "edit": _format_path,
    "bash": _format_bash,
    "grep": _format_grep,
    "find": _format_find,
    "glob": _format_find,
    "ls": _format_ls,
}


def format_tool_call(call: ToolCall) -> str:
    """
    生成工具调用的展示文本（不含 ``[name]`` 标签）。

    已知工具（名称不区分大小写）使用专门的格式；其余工具展示压缩后的 JSON 参数，
    超过 40 个字符时截断并追加 ``...``。

    :param call: 工具调用。
    :type call: ToolCall
    :returns: 展示文本。
    :rtype: str
    """

    args = call.arguments if isinstance(call.arguments, Mapping) else {}
    formatter = TOOL_FORMATTERS.get(call.name.lower(), _format_json)
    return formatter(args)


def activity_from_message(previous: ActivityState, message: AgentMessage) -> ActivityState:
    """
    按优先级从消息快照中推导当前活动：工具调用 > 思考 > 文本。

    消息中尚无可展示内容时沿用 ``previous``。

    :param previous: 上一次的活动状态。
    :type previous: ActivityState
    :param message: 助手消息（可能仍在生成中）。
    :type message: AgentMessage
    :returns: 新的活动状态。
    :rtype: ActivityState
    """

    tool_calls = [block for block in message.content if isinstance(block, ToolCall)]
    if tool_calls:
        last_call = tool_calls[-1]
        return ActivityState.tool(last_call.name, format_tool_call(last_call))

    thinking_blocks = [block for block in message.content if isinstance(block, ThinkingContent)]
    if thinking_blocks:
        thinking = thinking_blocks[-1].thinking or ""
        return ActivityState.thinking(normalize_text(thinking) if thinking.strip() else "")

    text_blocks = [block for block in message.content if isinstance(block, TextContent)]
    if text_blocks and text_blocks[-1].text:
        return ActivityState.text(normalize_text(text_blocks[-1].text))

    return previous
