"""
agentline_ui.ansi
=================

带 ANSI 样式码的字符串处理：去除样式、计算可见宽度、按宽度截断。

所有函数共用同一个两类 token 的词法器（``style`` / ``char``），
保证宽度计算与截断的行为始终一致。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Literal

RESET = "\x1b[0m"
CLEAR_LINE = "\x1b[K"

_CSI = "\x1b["
_STYLE_PARAMS = "0123456789;"


def cursor_up(lines: int) -> str:
    """Move the cursor up ``lines`` rows and return to column 0."""
    return f"\x1b[{lines}A\r"


@dataclass(frozen=True, slots=True)
class Token:
    kind: Literal["style", "char"]
    text: str


def tokenize(text: str) -> Iterator[Token]:
    """
    将字符串切分为样式序列与可见字符。

    只识别 ``ESC [ <数字/分号> m`` 形式的样式序列；不完整或无法识别的
    转义序列按普通字符处理，不会抛出异常。

    :param text: 待切分的字符串。
    :type text: str
    :returns: 依次产出的 token。
    :rtype: Iterator[Token]
    """

    index = 0
    length = len(text)
    while index < length:
        if text.startswith(_CSI, index):
            end = index + len(_CSI)
            while end < length and text[end] in _STYLE_PARAMS:
                end += 1
            if end < length and text[end] == "m":
                yield Token("style", text[index : end + 1])
                index = end + 1
                continue
        yield Token("char", text[index])
        index += 1


def strip_ansi(text: str) -> str:
    return "".join(token.text for token in tokenize(text) if token.kind == "char")


def visible_width(text: str) -> int:
    return sum(1 for token in tokenize(text) if token.kind == "char")


def truncate_to_width(text: str, max_width: int, ellipsis: str = "...") -> str:
    """
    按可见宽度截断字符串，保留其中的样式序列。

    截断时在省略号前追加 :data:`RESET`，避免样式泄漏到后续输出。
    当 ``max_width`` 放不下省略号时，只返回截断后的省略号本身。

    :param text: 可能包含样式序列的字符串。
    :type text: str
    :param max_width: 允许的最大可见宽度。
    :type max_width: int
    :param ellipsis: 截断后追加的省略号。
    :type ellipsis: str
    :returns: 可见宽度不超过 ``max_width`` 的字符串。
    :rtype: str
    """

    if visible_width(text) <= max_width:
        return text

    target_width = max_width - visible_width(ellipsis)
    if target_width <= 0:
        return ellipsis[: max(max_width, 0)]

    parts: list[str] = []
    copied = 0
    for token in tokenize(text):
        if copied >= target_width:
            break
        parts.append(token.text)
        if token.kind == "char":
            copied += 1
    return f"{''.join(parts)}{RESET}{ellipsis}"
