"""
agentline_ui.state
==================

状态显示的不可变快照及其纯函数 reducer。

:class:`~agentline_ui.display.StatusDisplay` 只持有一个可变引用，
每个事件或时钟节拍都通过这里的函数产生新的快照。
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from .activity import COMPACTING, STARTING, WORKING, ActivityState, activity_from_message, retrying_text
from .models import (
    AutoCompactionStart,
    AutoRetryStart,
    Event,
    MessageEnd,
    MessageStart,
    MessageUpdate,
    ModelInfo,
    Usage,
)
from .usage import UsageSnapshot, apply_usage


@dataclass(frozen=True, slots=True)
class DisplayState:
    activity: ActivityState = field(default_factory=lambda: ActivityState.system(STARTING))
    usage: UsageSnapshot = field(default_factory=UsageSnapshot)
    spinner_frame: int = 0
    has_painted: bool = False
    is_active: bool = False
    started_at: float = 0.0
    model: Optional[ModelInfo] = None
    thinking_level: str = "off"


def initial_state(model: Optional[ModelInfo], thinking_level: str, started_at: float) -> DisplayState:
    window = model.context_window if model is not None else 0
    return DisplayState(
        activity=ActivityState.system(STARTING),
        usage=UsageSnapshot.fresh(window or 0),
        is_active=True,
        started_at=started_at,
        model=model,
        thinking_level=thinking_level,
    )


def reduce_event(state: DisplayState, event: Event) -> DisplayState:
    """
    根据事件类型更新活动或用量。

    只有 ``assistant`` 角色的消息会改变状态；未知事件原样返回。

    :param state: 当前快照。
    :type state: DisplayState
    :param event: 会话事件。
    :type event: Event
    :returns: 新快照。
    :rtype: DisplayState
    """

    if isinstance(event, MessageStart):
        if event.message.role == "assistant":
            return replace(state, activity=ActivityState.system(WORKING))
    elif isinstance(event, MessageUpdate):
        if event.message.role == "assistant":
            return replace(state, activity=activity_from_message(state.activity, event.message))
    elif isinstance(event, MessageEnd):
        if event.message.role == "assistant":
            usage = event.message.usage or Usage()
            return replace(state, usage=apply_usage(state.usage, usage))
    elif isinstance(event, AutoCompactionStart):
        return replace(state, activity=ActivityState.system(COMPACTING))
    elif isinstance(event, AutoRetryStart):
        return replace(state, activity=ActivityState.system(retrying_text(event.attempt, event.max_attempts)))
    return state


def advance_spinner(state: DisplayState, frame_count: int) -> DisplayState:
    return replace(state, spinner_frame=(state.spinner_frame + 1) % frame_count)


def mark_painted(state: DisplayState) -> DisplayState:
    return state if state.has_painted else replace(state, has_painted=True)


def deactivate(state: DisplayState) -> DisplayState:
    return replace(state, is_active=False)
