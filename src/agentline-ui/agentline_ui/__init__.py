"""
agentline_ui
============

:mod:`agentline_ui` 提供打印模式下的实时终端状态显示：
一行当前活动（工具调用、思考、文本生成或系统状态），一行 token / 费用 / 耗时统计，
在终端原地重绘，停止时清理干净。
"""

from .ansi import strip_ansi, truncate_to_width, visible_width
from .clock import Clock
from .display import StatusDisplay
from .models import (
    THINKING_LEVELS,
    AgentMessage,
    AutoCompactionStart,
    AutoRetryStart,
    Event,
    MessageEnd,
    MessageStart,
    MessageUpdate,
    ModelInfo,
    TextContent,
    ThinkingContent,
    ToolCall,
    Usage,
    event_from_dict,
)
from .theme import Palette

__all__ = [
    "StatusDisplay",
    "Clock",
    "Palette",
    "strip_ansi",
    "visible_width",
    "truncate_to_width",
    "THINKING_LEVELS",
    "AgentMessage",
    "AutoCompactionStart",
    "AutoRetryStart",
    "Event",
    "MessageEnd",
    "MessageStart",
    "MessageUpdate",
    "ModelInfo",
    "TextContent",
    "ThinkingContent",
    "ToolCall",
    "Usage",
    "event_from_dict",
]
