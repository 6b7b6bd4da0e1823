"""
agentline.utils.config
======================

读取 ``agentline.config.toml`` 并整理为只读的 :class:`Settings`。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from tomlkit import parse
from tomlkit.exceptions import TOMLKitError

from agentline_ui import THINKING_LEVELS
from agentline_ui.widgets import SPINNER_INTERVAL_MS

DEFAULT_CONFIG_PATH = "agentline.config.toml"
DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_LOG_PATH = ".agentline/agentline.log"


class ConfigError(ValueError):
    """Raised when the configuration file holds an invalid value."""


def load_config(config_path: str | Path):
    """使用 tomlkit 读取配置文件，保留注释与格式。"""
    with open(config_path, "r", encoding="utf-8") as file:
        return parse(file.read())


@dataclass(frozen=True)
class ModelSettings:
    model_name: str = DEFAULT_MODEL
    context_window: Optional[int] = None
    reasoning: Optional[bool] = None
    thinking_level: str = "off"
    base_url: str = ""
    api_key: str = ""


@dataclass(frozen=True)
class AgentSettings:
    cwd: str = "."
    permission_mode: str = "acceptEdits"
    system_prompt_path: str = ""
    max_retries: int = 3
    retry_base_delay: float = 2.0


@dataclass(frozen=True)
class DisplaySettings:
    spinner_interval_ms: int = SPINNER_INTERVAL_MS
    color: bool = True


@dataclass(frozen=True)
class Settings:
    model: ModelSettings = field(default_factory=ModelSettings)
    agent: AgentSettings = field(default_factory=AgentSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    log_path: str = DEFAULT_LOG_PATH


def _section(doc: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = doc.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"[{key}] must be a table")
    return value


def _optional_int(section: Mapping[str, Any], key: str) -> Optional[int]:
    value = section.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as error:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from error


def _optional_bool(section: Mapping[str, Any], key: str) -> Optional[bool]:
    value = section.get(key)
    return None if value is None else bool(value)


def settings_from_document(doc: Mapping[str, Any]) -> Settings:
    """
    将 TOML 文档转换为 :class:`Settings`，并校验关键字段。

    :param doc: 解析后的配置文档。
    :type doc: Mapping[str, Any]
    :returns: 配置对象。
    :rtype: Settings
    :raises ConfigError: 字段取值非法时抛出。
    """

    model = _section(doc, "model")
    agent = _section(doc, "agent")
    display = _section(doc, "display")
    log = _section(doc, "log")

    thinking_level = str(model.get("thinking_level", "off"))
    if thinking_level not in THINKING_LEVELS:
        raise ConfigError(
            f"thinking_level must be one of {', '.join(THINKING_LEVELS)}, got {thinking_level!r}"
        )

    context_window = _optional_int(model, "context_window")
    if context_window is not None and context_window < 0:
        raise ConfigError("context_window must not be negative")

    max_retries = _optional_int(agent, "max_retries")
    if max_retries is not None and max_retries < 0:
        raise ConfigError("max_retries must not be negative")

    interval = _optional_int(display, "spinner_interval_ms")
    if interval is not None and interval <= 0:
        raise ConfigError("spinner_interval_ms must be positive")

    return Settings(
        model=ModelSettings(
            model_name=str(model.get("model_name") or DEFAULT_MODEL),
            context_window=context_window,
            reasoning=_optional_bool(model, "reasoning"),
            thinking_level=thinking_level,
            base_url=str(model.get("base_url", "")),
            api_key=str(model.get("api_key", "")),
        ),
        agent=AgentSettings(
            cwd=str(agent.get("cwd", ".")),
            permission_mode=str(agent.get("permission_mode", "acceptEdits")),
            system_prompt_path=str(agent.get("system_prompt_path", "")),
            max_retries=3 if max_retries is None else max_retries,
            retry_base_delay=float(agent.get("retry_base_delay", 2.0)),
        ),
        display=DisplaySettings(
            spinner_interval_ms=SPINNER_INTERVAL_MS if interval is None else interval,
            color=bool(display.get("color", True)),
        ),
        log_path=str(log.get("path") or DEFAULT_LOG_PATH),
    )


def load_settings(config_path: str | Path, required: bool = True) -> Settings:
    """
    读取配置文件并生成 :class:`Settings`。

    :param config_path: 配置文件路径。
    :type config_path: str | Path
    :param required: 为 ``False`` 时，文件不存在则使用默认配置。
    :type required: bool
    :returns: 配置对象。
    :rtype: Settings
    :raises FileNotFoundError: 文件不存在且 ``required`` 为 ``True`` 时抛出。
    :raises ConfigError: 文件无法解析或字段非法时抛出。
    """

    path = Path(config_path)
    if not path.exists():
        if required:
            raise FileNotFoundError(f"配置文件不存在: {path}")
        return Settings()
    try:
        doc = load_config(path)
    except TOMLKitError as error:
        raise ConfigError(f"failed to parse {path}: {error}") from error
    return settings_from_document(doc)
