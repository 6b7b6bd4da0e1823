"""
agentline.session
=================

对 ``claude_agent_sdk`` 的会话封装：把 SDK 消息流翻译为状态显示使用的事件，
并在连接或进程异常时自动重试。
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ClaudeSDKClient,
    ClaudeSDKError,
    CLIConnectionError,
    CLINotFoundError,
    ProcessError,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ThinkingBlock,
    ToolUseBlock,
)
from loguru import logger

from agentline_ui import (
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
)

Listener = Callable[[Event], None]


def _short_tool_name(name: str) -> str:
    # mcp__<server>__<tool>
    if name.startswith("mcp"):
        return name.split("__")[-1]
    return name


def _convert_content(blocks: List[Any]) -> list:
    content: list = []
    for block in blocks:
        if isinstance(block, TextBlock):
            content.append(TextContent(text=block.text or ""))
        elif isinstance(block, ThinkingBlock):
            content.append(ThinkingContent(thinking=getattr(block, "thinking", "") or ""))
        elif isinstance(block, ToolUseBlock):
            arguments = block.input if isinstance(block.input, dict) else {}
            content.append(ToolCall(name=_short_tool_name(block.name), arguments=arguments, id=block.id or ""))
    return content


def usage_from_result(usage: Optional[Dict[str, Any]], total_cost_usd: Optional[float]) -> Usage:
    usage = usage or {}
    return Usage(
        input=int(usage.get("input_tokens") or 0),
        output=int(usage.get("output_tokens") or 0),
        cache_read=int(usage.get("cache_read_input_tokens") or 0),
        cache_write=int(usage.get("cache_creation_input_tokens") or 0),
        cost_total=float(total_cost_usd or 0.0),
    )


def translate_sdk_message(message: Any) -> List[Event]:
    """
    将一条 SDK 消息翻译为零个或多个会话事件。

    - ``AssistantMessage`` → ``message_start`` + ``message_update``；
      携带 ``usage`` 时追加 ``message_end``（该次 API 响应的 token，不含费用）
    - ``ResultMessage`` → ``message_end``（携带本轮用量与费用）
    - 压缩相关的 ``SystemMessage`` → ``auto_compaction_start``

    :param message: SDK 返回的消息对象。
    :type message: Any
    :returns: 事件列表，无法识别的消息返回空列表。
    :rtype: list[Event]
    """

    if isinstance(message, AssistantMessage):
        agent_message = AgentMessage(
            role="assistant",
            content=_convert_content(message.content),
            model=getattr(message, "model", None),
        )
        events: List[Event] = [MessageStart(agent_message), MessageUpdate(agent_message)]
        raw_usage = getattr(message, "usage", None)
        if raw_usage:
            agent_message.usage = usage_from_result(raw_usage, None)
            events.append(MessageEnd(agent_message))
        return events
    if isinstance(message, ResultMessage):
        agent_message = AgentMessage(
            role="assistant",
            usage=usage_from_result(message.usage, message.total_cost_usd),
            stop_reason="error" if message.is_error else "stop",
            error_message=(message.result or message.subtype) if message.is_error else None,
        )
        return [MessageEnd(agent_message)]
    if isinstance(message, SystemMessage):
        if "compact" in (message.subtype or ""):
            return [AutoCompactionStart()]
    return []


class QueryTranslator:
    """
    单次查询内的事件翻译。

    token 按每次 API 响应上报；``ResultMessage`` 中的 ``usage`` 是整个查询的合计，
    已经按响应上报过 token 时只补记费用，避免重复累加。
    同一次响应拆成多条 ``AssistantMessage`` 时 ``usage`` 相同，只上报第一条。
    """

    def __init__(self) -> None:
        self._last_usage: Optional[Dict[str, Any]] = None

    @property
    def tokens_reported(self) -> bool:
        return self._last_usage is not None

    def translate(self, message: Any) -> List[Event]:
        events = translate_sdk_message(message)
        if isinstance(message, AssistantMessage) and events and isinstance(events[-1], MessageEnd):
            raw_usage = dict(message.usage)
            if raw_usage == self._last_usage:
                events[-1].message.usage = None
                return events[:-1]
            self._last_usage = raw_usage
        elif isinstance(message, ResultMessage) and self.tokens_reported:
            events[0].message.usage = Usage(cost_total=float(message.total_cost_usd or 0.0))
        return events


class AgentSession:
    """
    一次对话会话：发送提示、转发事件、记录助手消息。

    :param options: SDK 选项。
    :type options: ClaudeAgentOptions
    :param model: 当前模型信息。
    :type model: ModelInfo
    :param thinking_level: 推理强度。
    :type thinking_level: str
    :param max_retries: 连接或进程异常时的最大重试次数。
    :type max_retries: int
    :param retry_base_delay: 首次重试前的等待秒数，之后按 2 的幂递增。
    :type retry_base_delay: float
    :param client_factory: 创建 SDK 客户端的工厂，便于测试替换。
    :type client_factory: Callable[[ClaudeAgentOptions], ClaudeSDKClient]
    :param sleep: 异步等待函数。
    :type sleep: Callable[[float], Awaitable[None]]
    """

    def __init__(
        self,
        options: ClaudeAgentOptions,
        model: ModelInfo,
        thinking_level: str = "off",
        max_retries: int = 3,
        retry_base_delay: float = 2.0,
        client_factory: Callable[[ClaudeAgentOptions], Any] = ClaudeSDKClient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.options = options
        self.model = model
        self.thinking_level = thinking_level
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.messages: List[AgentMessage] = []
        self._client_factory = client_factory
        self._sleep = sleep
        self._client: Any = None
        self._listeners: List[Listener] = []

    async def __aenter__(self) -> "AgentSession":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    @property
    def last_message(self) -> Optional[AgentMessage]:
        return self.messages[-1] if self.messages else None

    async def connect(self) -> None:
        if self._client is None:
            self._client = self._client_factory(self.options)
        await self._client.connect()
        logger.info("agent session connected model=[{}]", self.model.id)

    async def disconnect(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.disconnect()
        logger.info("agent session disconnected model=[{}]", self.model.id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def prompt(self, text: str) -> None:
        """
        发送一条提示并消费完整响应，期间的事件同步转发给订阅者。

        ``CLIConnectionError`` / ``ProcessError`` 会按指数退避重试，重试前发出
        ``auto_retry_start`` 事件；重试耗尽后记录一条 ``stop_reason="error"`` 的助手消息。
        ``CLINotFoundError`` 不重试，直接抛出。

        :param text: 提示内容。
        :type text: str
        """

        if self._client is None:
            await self.connect()

        attempt = 0
        while True:
            try:
                await self._run_query(text)
                return
            except CLINotFoundError:
                raise
            except (CLIConnectionError, ProcessError) as error:
                if attempt >= self.max_retries:
                    logger.error("agent request failed attempts=[{}] error=[{}]", attempt + 1, error)
                    self.messages.append(
                        AgentMessage(role="assistant", stop_reason="error", error_message=str(error))
                    )
                    return
                attempt += 1
                delay = self.retry_base_delay * 2 ** (attempt - 1)
                logger.warning(
                    "agent request failed, retrying attempt=[{}] max_attempts=[{}] delay=[{}] error=[{}]",
                    attempt,
                    self.max_retries,
                    delay,
                    error,
                )
                self._emit(AutoRetryStart(attempt, self.max_retries, int(delay * 1000), str(error)))
                await self._sleep(delay)
                await self._reconnect()

    async def _run_query(self, text: str) -> None:
        translator = QueryTranslator()
        await self._client.query(text)
        async for sdk_message in self._client.receive_response():
            logger.debug("sdk message type=[{}]", type(sdk_message).__name__)
            for event in translator.translate(sdk_message):
                self._record(event)
                self._emit(event)

    async def _reconnect(self) -> None:
        if self._client is not None:
            try:
                await self._client.disconnect()
            except ClaudeSDKError as error:
                logger.debug("disconnect before retry failed error=[{}]", error)
        self._client = self._client_factory(self.options)
        await self._client.connect()

    def _record(self, event: Event) -> None:
        if isinstance(event, MessageStart):
            self.messages.append(event.message)
        elif isinstance(event, MessageEnd):
            last = self.last_message
            if last is event.message:
                return
            if last is not None and last.role == "assistant" and last.stop_reason is None:
                # query result: stop reason for the last response, cost added to its usage
                result = event.message
                if last.usage is None:
                    last.usage = result.usage
                elif result.usage is not None:
                    last.usage = replace(last.usage, cost_total=last.usage.cost_total + result.usage.cost_total)
                last.stop_reason = result.stop_reason
                last.error_message = result.error_message
            else:
                self.messages.append(event.message)

    def _emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener(event)
