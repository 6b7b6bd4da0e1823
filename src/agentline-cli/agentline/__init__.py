"""
agentline
=========

:mod:`agentline` 以打印模式运行一次 Claude Agent 对话，并在终端上显示实时进度。
"""

from .app import PrintModeApp, run_print_mode, should_show_progress
from .session import AgentSession, translate_sdk_message

__all__ = [
    "AgentSession",
    "PrintModeApp",
    "run_print_mode",
    "should_show_progress",
    "translate_sdk_message",
]
