from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Literal, Mapping, Optional, Union

Role = Literal["assistant", "user", "system", "tool"]

THINKING_LEVELS = ("off", "minimal", "low", "medium", "high", "xhigh")


@dataclass
class ToolCall:
    type: ClassVar[str] = "toolCall"

    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id, "name": self.name, "arguments": self.arguments}


@dataclass
class ThinkingContent:
    type: ClassVar[str] = "thinking"

    thinking: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "thinking": self.thinking}


@dataclass
class TextContent:
    type: ClassVar[str] = "text"

    text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text}


Content = Union[ToolCall, ThinkingContent, TextContent]


@dataclass
class Usage:
    input: int = 0
    output: int = 0
    cache_read: int = 0
    cache_write: int = 0
    cost_total: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input + self.output + self.cache_read + self.cache_write

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input": self.input,
            "output": self.output,
            "cacheRead": self.cache_read,
            "cacheWrite": self.cache_write,
            "cost": {"total": self.cost_total},
        }


@dataclass
class AgentMessage:
    role: Role
    content: List[Content] = field(default_factory=list)
    usage: Optional[Usage] = None
    stop_reason: Optional[str] = None
    error_message: Optional[str] = None
    model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "role": self.role,
            "content": [block.to_dict() for block in self.content],
        }
        if self.usage is not None:
            d["usage"] = self.usage.to_dict()
        if self.stop_reason:
            d["stopReason"] = self.stop_reason
        if self.error_message:
            d["errorMessage"] = self.error_message
        if self.model:
            d["model"] = self.model
        return d


@dataclass
class ModelInfo:
    """Model metadata the display needs: id, context window and reasoning support."""

    id: str
    context_window: int = 0
    reasoning: bool = False


@dataclass
class MessageStart:
    type: ClassVar[str] = "message_start"

    message: AgentMessage

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message.to_dict()}


@dataclass
class MessageUpdate:
    type: ClassVar[str] = "message_update"

    message: AgentMessage

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message.to_dict()}


@dataclass
class MessageEnd:
    type: ClassVar[str] = "message_end"

    message: AgentMessage

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message.to_dict()}


@dataclass
class AutoCompactionStart:
    type: ClassVar[str] = "auto_compaction_start"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass
class AutoRetryStart:
    type: ClassVar[str] = "auto_retry_start"

    attempt: int
    max_attempts: int
    delay_ms: int = 0
    error_message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "attempt": self.attempt,
            "maxAttempts": self.max_attempts,
            "delayMs": self.delay_ms,
            "errorMessage": self.error_message,
        }


Event = Union[MessageStart, MessageUpdate, MessageEnd, AutoCompactionStart, AutoRetryStart]


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def content_from_dict(data: Mapping[str, Any]) -> Optional[Content]:
    block_type = data.get("type")
    if block_type == ToolCall.type:
        arguments = data.get("arguments")
        return ToolCall(
            name=_as_str(data.get("name")),
            arguments=dict(arguments) if isinstance(arguments, Mapping) else {},
            id=_as_str(data.get("id")),
        )
    if block_type == ThinkingContent.type:
        return ThinkingContent(thinking=_as_str(data.get("thinking")))
    if block_type == TextContent.type:
        return TextContent(text=_as_str(data.get("text")))
    return None


def usage_from_dict(data: Mapping[str, Any]) -> Usage:
    cost = data.get("cost")
    cost_total = cost.get("total") if isinstance(cost, Mapping) else cost
    return Usage(
        input=_as_int(data.get("input")),
        output=_as_int(data.get("output")),
        cache_read=_as_int(data.get("cacheRead")),
        cache_write=_as_int(data.get("cacheWrite")),
        cost_total=_as_float(cost_total),
    )


def message_from_dict(data: Mapping[str, Any]) -> AgentMessage:
    raw_content = data.get("content")
    content: List[Content] = []
    if isinstance(raw_content, list):
        for item in raw_content:
            if isinstance(item, Mapping):
                block = content_from_dict(item)
                if block is not None:
                    content.append(block)
    raw_usage = data.get("usage")
    return AgentMessage(
        role=_as_str(data.get("role")),  # type: ignore[arg-type]
        content=content,
        usage=usage_from_dict(raw_usage) if isinstance(raw_usage, Mapping) else None,
        stop_reason=data.get("stopReason"),
        error_message=data.get("errorMessage"),
        model=data.get("model"),
    )


def event_from_dict(data: Mapping[str, Any]) -> Optional[Event]:
    """
    将 JSON 形式的事件转换为事件对象。

    无法识别的事件类型返回 ``None``；缺失的字段使用空字符串或 0 兜底。

    :param data: 事件字典，字段与 JSON 事件流一致（``cacheRead``、``maxAttempts`` 等）。
    :type data: Mapping[str, Any]
    :returns: 事件对象或 ``None``。
    :rtype: Event | None
    """

    event_type = data.get("type")
    if event_type in (MessageStart.type, MessageUpdate.type, MessageEnd.type):
        raw_message = data.get("message")
        message = message_from_dict(raw_message if isinstance(raw_message, Mapping) else {})
        if event_type == MessageStart.type:
            return MessageStart(message)
        if event_type == MessageUpdate.type:
            return MessageUpdate(message)
        return MessageEnd(message)
    if event_type == AutoCompactionStart.type:
        return AutoCompactionStart()
    if event_type == AutoRetryStart.type:
        return AutoRetryStart(
            attempt=_as_int(data.get("attempt")),
            max_attempts=_as_int(data.get("maxAttempts")),
            delay_ms=_as_int(data.get("delayMs")),
            error_message=_as_str(data.get("errorMessage")),
        )
    return None
