"""Tests for the activity and stats line builders."""

import pytest

from agentline_ui.activity import ActivityState, retrying_text
from agentline_ui.ansi import strip_ansi
from agentline_ui.models import ModelInfo, Usage
from agentline_ui.theme import Palette
from agentline_ui.usage import UsageSnapshot, apply_usage
from agentline_ui.widgets import SPINNER_FRAMES, ActivityLine, StatsLine, format_elapsed, format_tokens

YELLOW = "\x1b[33m"
RED = "\x1b[31m"


class TestFormatTokens:
    @pytest.mark.parametrize(
        "count, expected",
        [
            (0, "0"),
            (999, "999"),
            (1000, "1.0k"),
            (2000, "2.0k"),
            (9999, "10.0k"),
            (10_000, "10k"),
            (100_000, "100k"),
            (200_000, "200k"),
            (999_499, "999k"),
            (1_000_000, "1.0M"),
            (1_500_000, "1.5M"),
            (10_000_000, "10M"),
            (12_500_000, "13M"),
        ],
    )
    def test_format(self, count, expected):
        assert format_tokens(count) == expected


class TestFormatElapsed:
    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "0s"), (5, "5s"), (5.9, "5s"), (59, "59s"), (60, "1m 0s"), (125, "2m 5s"), (3725, "62m 5s")],
    )
    def test_format(self, seconds, expected):
        assert format_elapsed(seconds) == expected


class TestActivityLine:
    def setup_method(self):
        self.line = ActivityLine(Palette.plain())

    def test_tool(self):
        assert self.line.render(ActivityState.tool("bash", "npm test"), 0) == f"{SPINNER_FRAMES[0]} [bash] npm test"

    def test_thinking_with_and_without_detail(self):
        assert self.line.render(ActivityState.thinking("hmm"), 1) == f"{SPINNER_FRAMES[1]} [thinking] hmm"
        assert self.line.render(ActivityState.thinking(""), 1) == f"{SPINNER_FRAMES[1]} [thinking]"

    def test_text_has_no_label(self):
        assert self.line.render(ActivityState.text("Hello"), 2) == f"{SPINNER_FRAMES[2]} Hello"

    def test_system(self):
        assert self.line.render(ActivityState.system("Working..."), 0) == f"{SPINNER_FRAMES[0]} Working..."

    def test_frame_wraps(self):
        assert self.line.render(ActivityState.text("x"), len(SPINNER_FRAMES)).startswith(SPINNER_FRAMES[0])

    def test_retry_uses_warning_color(self):
        line = ActivityLine(Palette())
        rendered = line.render(ActivityState.system(retrying_text(2, 3)), 0)
        assert rendered.startswith(YELLOW)
        assert strip_ansi(rendered) == f"{SPINNER_FRAMES[0]} Retrying (2/3)..."


class TestStatsLine:
    def setup_method(self):
        self.line = StatsLine(Palette.plain())
        self.model = ModelInfo("test-model", context_window=200_000)

    def test_placeholders_before_stats(self):
        rendered = self.line.render(UsageSnapshot.fresh(200_000), self.model, "off", 3)
        assert rendered == "↑--- | ↓--- | R--- | W--- | $--- | ---/200k | test-model | 3s"

    def test_actual_stats(self):
        usage = apply_usage(UsageSnapshot.fresh(200_000), Usage(1000, 500, 2000, 100, 0.05))
        rendered = self.line.render(usage, self.model, "off", 0)
        for part in ("↑1.0k", "↓500", "R2.0k", "W100", "$0.050", "1.8%/200k"):
            assert part in rendered

    def test_no_context_segment_for_unknown_window(self):
        usage = apply_usage(UsageSnapshot.fresh(0), Usage(1000, 500, 0, 0, 0.01))
        rendered = self.line.render(usage, ModelInfo("m", context_window=0), "off", 0)
        assert "%/" not in rendered
        assert "---/" not in self.line.render(UsageSnapshot.fresh(0), None, "off", 0)

    def test_model_with_reasoning_level(self):
        model = ModelInfo("reasoning-model", 200_000, reasoning=True)
        assert "reasoning-model:high" in self.line.render(UsageSnapshot.fresh(0), model, "high", 0)
        off = self.line.render(UsageSnapshot.fresh(0), model, "off", 0)
        assert "reasoning-model" in off and "reasoning-model:" not in off

    def test_level_hidden_for_non_reasoning_model(self):
        assert "test-model:" not in self.line.render(UsageSnapshot.fresh(0), self.model, "high", 0)

    def test_no_model(self):
        assert self.line.render(UsageSnapshot.fresh(0), None, "off", 65) == "↑--- | ↓--- | R--- | W--- | $--- | 1m 5s"

    @pytest.mark.parametrize(
        "tokens, color",
        [(95_000, RED), (75_000, YELLOW), (70_000, None), (10_000, None)],
    )
    def test_context_threshold_colors(self, tokens, color):
        line = StatsLine(Palette())
        usage = apply_usage(UsageSnapshot.fresh(100_000), Usage(input=tokens))
        rendered = line.render(usage, None, "off", 0)
        percent = f"{tokens / 1000:.1f}%/100k"
        if color is None:
            assert f"{RED}{percent}" not in rendered and f"{YELLOW}{percent}" not in rendered
        else:
            assert f"{color}{percent}" in rendered

    def test_whole_line_is_dim(self):
        rendered = StatsLine(Palette()).render(UsageSnapshot.fresh(0), None, "off", 0)
        assert rendered.startswith("\x1b[2m")
