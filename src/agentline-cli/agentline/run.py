"""agentline 命令行入口：以打印模式运行一次对话。"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

import click

from agentline_ui import THINKING_LEVELS

from .app import PrintModeApp
from .utils.config import DEFAULT_CONFIG_PATH, ConfigError, Settings, load_settings


def split_file_args(args: Sequence[str]) -> tuple[list[str], list[str]]:
    """
    将以 ``@`` 开头的参数识别为文件，其余为提示。

    :param args: 命令行位置参数。
    :type args: Sequence[str]
    :returns: ``(文件路径列表, 提示列表)``。
    :rtype: tuple[list[str], list[str]]
    """

    files = [arg[1:] for arg in args if arg.startswith("@") and len(arg) > 1]
    messages = [arg for arg in args if not (arg.startswith("@") and len(arg) > 1)]
    return files, messages


def build_initial_message(file_args: Sequence[str], messages: Sequence[str]) -> tuple[Optional[str], list[str]]:
    """
    把文件内容拼接到第一条提示之前。

    :param file_args: 文件路径列表。
    :type file_args: Sequence[str]
    :param messages: 提示列表。
    :type messages: Sequence[str]
    :returns: ``(首条提示, 剩余提示)``；没有文件时首条提示为 ``None``。
    :rtype: tuple[str | None, list[str]]
    :raises click.ClickException: 文件不存在或无法读取时抛出。
    """

    if not file_args:
        return None, list(messages)

    parts: list[str] = []
    for raw_path in file_args:
        path = Path(raw_path).expanduser()
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as error:
            raise click.ClickException(f"无法读取文件 {raw_path}: {error}") from error
        parts.append(f'<file name="{path}">\n{content}\n</file>\n')

    remaining = list(messages)
    if remaining:
        parts.append(remaining.pop(0))
    return "".join(parts), remaining


def _apply_overrides(settings: Settings, model: Optional[str], thinking: Optional[str]) -> Settings:
    model_settings = settings.model
    if model:
        # context window / reasoning come from the model table for an overridden model
        model_settings = replace(model_settings, model_name=model, context_window=None, reasoning=None)
    if thinking:
        model_settings = replace(model_settings, thinking_level=thinking)
    return replace(settings, model=model_settings)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("args", nargs=-1)
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="配置文件路径",
)
@click.option(
    "--mode",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="输出模式：text 只输出最终回复，json 输出全部事件",
)
@click.option("-q", "--quiet", is_flag=True, help="不显示进度（即使 stderr 是终端）")
@click.option("--model", default=None, help="覆盖配置中的模型名称")
@click.option("--thinking", type=click.Choice(THINKING_LEVELS), default=None, help="覆盖配置中的推理强度")
@click.pass_context
def cli(
    ctx: click.Context,
    args: Sequence[str],
    config_path: str,
    mode: str,
    quiet: bool,
    model: Optional[str],
    thinking: Optional[str],
) -> None:
    """
    以打印模式运行 agentline：发送提示，输出结果后退出。

    以 @ 开头的参数视为文件，其内容会附加到第一条提示之前。
    """

    explicit_config = ctx.get_parameter_source("config_path") != click.core.ParameterSource.DEFAULT
    try:
        settings = load_settings(config_path, required=explicit_config)
    except (FileNotFoundError, ConfigError) as error:
        raise click.ClickException(str(error)) from error
    settings = _apply_overrides(settings, model, thinking)

    file_args, messages = split_file_args(args)
    initial_message, messages = build_initial_message(file_args, messages)
    if initial_message is None and not messages:
        raise click.UsageError("至少需要提供一条提示")

    app = PrintModeApp(settings, mode=mode, quiet=quiet)  # type: ignore[arg-type]
    try:
        exit_code = asyncio.run(app.run(messages, initial_message))
    except ConfigError as error:
        raise click.ClickException(str(error)) from error
    sys.stdout.flush()
    ctx.exit(exit_code)


if __name__ == "__main__":
    cli()
