from __future__ import annotations

import os
from typing import Mapping

from rich.color import ColorSystem
from rich.style import Style
from rich.theme import Theme

DEFAULT_THEME = Theme(
    {
        "accent": "cyan",
        "warning": "yellow",
        "error": "red",
        "dim": "dim",
    },
    inherit=False,
)


class Palette:
    """
    将颜色角色（accent / warning / error / dim）渲染为 ANSI 样式序列。

    :param theme: 角色到样式的映射。
    :type theme: Theme
    :param color_system: 输出使用的颜色体系，为 ``None`` 时不输出任何样式。
    :type color_system: ColorSystem | None
    """

    def __init__(self, theme: Theme = DEFAULT_THEME, color_system: ColorSystem | None = ColorSystem.STANDARD) -> None:
        self.theme = theme
        self.color_system = color_system

    @classmethod
    def plain(cls) -> "Palette":
        return cls(color_system=None)

    @classmethod
    def detect(cls, environ: Mapping[str, str] | None = None) -> "Palette":
        """根据 ``NO_COLOR`` / ``TERM`` 判断是否输出颜色。"""

        env = os.environ if environ is None else environ
        if env.get("NO_COLOR"):
            return cls.plain()
        if env.get("TERM", "").lower() == "dumb":
            return cls.plain()
        return cls()

    @property
    def enabled(self) -> bool:
        return self.color_system is not None

    def style(self, role: str) -> Style | None:
        return self.theme.styles.get(role)

    def fg(self, role: str, text: str) -> str:
        if not self.enabled:
            return text
        style = self.style(role)
        if style is None:
            return text
        return style.render(text, color_system=self.color_system)
