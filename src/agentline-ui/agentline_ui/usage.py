from __future__ import annotations

from dataclasses import dataclass, field

from .models import Usage


def _non_negative(value: int | float) -> int | float:
    return value if value > 0 else 0


@dataclass(frozen=True, slots=True)
class UsageTotals:
    """Cumulative token counts and cost for one display session. Only ever grows."""

    input: int = 0
    output: int = 0
    cache_read: int = 0
    cache_write: int = 0
    cost: float = 0.0

    def add(self, usage: Usage) -> "UsageTotals":
        return UsageTotals(
            input=self.input + _non_negative(usage.input),
            output=self.output + _non_negative(usage.output),
            cache_read=self.cache_read + _non_negative(usage.cache_read),
            cache_write=self.cache_write + _non_negative(usage.cache_write),
            cost=self.cost + _non_negative(usage.cost_total),
        )


@dataclass(frozen=True, slots=True)
class ContextOccupancy:
    """Token footprint of the most recent message against the model's context window."""

    tokens: int = 0
    window: int = 0

    @property
    def percent(self) -> float | None:
        if self.window <= 0:
            return None
        return self.tokens / self.window * 100


@dataclass(frozen=True, slots=True)
class UsageSnapshot:
    totals: UsageTotals = field(default_factory=UsageTotals)
    context: ContextOccupancy = field(default_factory=ContextOccupancy)
    has_stats: bool = False

    @classmethod
    def fresh(cls, window: int = 0) -> "UsageSnapshot":
        return cls(context=ContextOccupancy(window=max(window, 0)))


def apply_usage(snapshot: UsageSnapshot, usage: Usage) -> UsageSnapshot:
    """
    累加一条已完成消息的用量，并用该消息的 token 总数替换上下文占用。

    只携带费用、不含 token 的增量（查询结束时补记的费用）不改变上下文占用。

    :param snapshot: 当前用量快照。
    :type snapshot: UsageSnapshot
    :param usage: 消息的用量。
    :type usage: Usage
    :returns: 新的用量快照。
    :rtype: UsageSnapshot
    """

    tokens = int(
        sum(_non_negative(value) for value in (usage.input, usage.output, usage.cache_read, usage.cache_write))
    )
    context = snapshot.context
    if tokens or usage.cost_total <= 0:
        context = ContextOccupancy(tokens=tokens, window=context.window)
    return UsageSnapshot(
        totals=snapshot.totals.add(usage),
        context=context,
        has_stats=True,
    )
