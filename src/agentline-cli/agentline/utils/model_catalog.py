"""Context window sizes and reasoning support for known models."""

from __future__ import annotations

from typing import Optional

from agentline_ui import ModelInfo

DEFAULT_CONTEXT_WINDOW = 200_000

# (context window, reasoning capable) by model identifier or prefix
KNOWN_MODELS: dict[str, tuple[int, bool]] = {
    "claude-opus-4": (200_000, True),
    "claude-sonnet-4": (200_000, True),
    "claude-haiku-4": (200_000, True),
    "claude-3-7-sonnet": (200_000, True),
    "claude-3-5-sonnet": (200_000, False),
    "claude-3-5-haiku": (200_000, False),
    "claude-3-opus": (200_000, False),
    "claude-3-haiku": (200_000, False),
    "deepseek-chat": (128_000, False),
    "deepseek-reasoner": (128_000, True),
    "sonnet": (200_000, True),
    "opus": (200_000, True),
    "haiku": (200_000, True),
}

# max_thinking_tokens passed to the agent for each thinking level
THINKING_BUDGETS: dict[str, Optional[int]] = {
    "off": None,
    "minimal": 1024,
    "low": 4096,
    "medium": 10_000,
    "high": 32_000,
    "xhigh": 64_000,
}


def _lookup(model_name: str) -> Optional[tuple[int, bool]]:
    if model_name in KNOWN_MODELS:
        return KNOWN_MODELS[model_name]
    lowered = model_name.lower()
    # longest prefix first so "claude-3-5-sonnet" wins over "claude-3"
    for key in sorted(KNOWN_MODELS, key=len, reverse=True):
        if lowered.startswith(key):
            return KNOWN_MODELS[key]
    return None


def resolve_model(
    model_name: str,
    context_window: Optional[int] = None,
    reasoning: Optional[bool] = None,
) -> ModelInfo:
    """
    根据模型名称解析展示所需的模型信息，配置中显式给出的值优先。

    :param model_name: 模型标识。
    :type model_name: str
    :param context_window: 显式指定的上下文窗口，``0`` 表示不展示百分比。
    :type context_window: int | None
    :param reasoning: 显式指定是否支持推理。
    :type reasoning: bool | None
    :returns: 模型信息。
    :rtype: ModelInfo
    """

    known = _lookup(model_name)
    if context_window is None:
        context_window = known[0] if known else DEFAULT_CONTEXT_WINDOW
    if reasoning is None:
        reasoning = known[1] if known else False
    return ModelInfo(id=model_name, context_window=context_window, reasoning=reasoning)
