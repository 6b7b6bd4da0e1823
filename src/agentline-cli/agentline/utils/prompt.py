"""
agentline.utils.prompt
======================

会话系统提示词：从配置指定的 jinja2 模板渲染，可用变量见 :data:`PROMPT_VARIABLES`。
"""

import platform
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Mapping, Optional

from jinja2 import Environment, StrictUndefined, TemplateError
from loguru import logger

from .config import ConfigError, Settings

PROMPT_VARIABLES = ("ENV_CWD", "ENV_PLATFORM", "ENV_DATETIME", "MODEL_NAME", "THINKING_LEVEL")

_environment = Environment(undefined=StrictUndefined, keep_trailing_newline=True, autoescape=False)


def prompt_variables(settings: Settings, cwd: Path) -> Dict[str, str]:
    return {
        "ENV_CWD": str(cwd),
        "ENV_PLATFORM": platform.platform(),
        "ENV_DATETIME": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S %Z"),
        "MODEL_NAME": settings.model.model_name,
        "THINKING_LEVEL": settings.model.thinking_level,
    }


def render_system_prompt(template_path: Path, variables: Mapping[str, str]) -> str:
    """
    渲染系统提示词模板。

    模板语法错误或引用了未知变量时记录警告，并原样使用模板文本，
    会话不会因为提示词而无法启动。

    :param template_path: 模板文件路径。
    :type template_path: pathlib.Path
    :param variables: 模板变量。
    :type variables: Mapping[str, str]
    :returns: 发送给模型的系统提示词。
    :rtype: str
    :raises ConfigError: 模板文件不存在时抛出。
    """
    if not template_path.is_file():
        raise ConfigError(f"system prompt template not found: {template_path}")
    source = template_path.read_text(encoding="utf-8")
    try:
        return _environment.from_string(source).render(**variables)
    except TemplateError as error:
        logger.warning("system prompt used as plain text path=[{}] error=[{}]", template_path, error)
        return source


def build_system_prompt(settings: Settings, cwd: Path) -> Optional[str]:
    """按 ``agent.system_prompt_path`` 生成系统提示词，未配置时返回 ``None``。"""
    if not settings.agent.system_prompt_path:
        return None
    template_path = (cwd / settings.agent.system_prompt_path).resolve()
    logger.debug("rendering system prompt path=[{}]", template_path)
    return render_system_prompt(template_path, prompt_variables(settings, cwd))
