"""Tests for configuration loading, model resolution and the prompt template."""

import pytest

from agentline.utils.config import (
    DEFAULT_MODEL,
    AgentSettings,
    ConfigError,
    ModelSettings,
    Settings,
    load_settings,
)
from agentline.utils.model_catalog import DEFAULT_CONTEXT_WINDOW, THINKING_BUDGETS, resolve_model
from agentline.utils.prompt import PROMPT_VARIABLES, build_system_prompt, prompt_variables, render_system_prompt
from agentline_ui import THINKING_LEVELS


def write_config(tmp_path, text):
    path = tmp_path / "agentline.config.toml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadSettings:
    def test_missing_optional_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "missing.toml", required=False)
        assert settings == Settings()
        assert settings.model.model_name == DEFAULT_MODEL

    def test_missing_required_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.toml")

    def test_full_document(self, tmp_path):
        path = write_config(
            tmp_path,
            """
[model]
model_name = "deepseek-reasoner"
context_window = 64000
reasoning = true
thinking_level = "high"
base_url = "https://example.com"
api_key = "secret"

[agent]
cwd = "/work"
permission_mode = "bypassPermissions"
system_prompt_path = "prompt.md"
max_retries = 5
retry_base_delay = 0.5

[display]
spinner_interval_ms = 100
color = false

[log]
path = "logs/run.log"
""",
        )
        settings = load_settings(path)
        assert settings.model.model_name == "deepseek-reasoner"
        assert settings.model.context_window == 64000
        assert settings.model.reasoning is True
        assert settings.model.thinking_level == "high"
        assert settings.model.base_url == "https://example.com"
        assert settings.agent.cwd == "/work"
        assert settings.agent.permission_mode == "bypassPermissions"
        assert settings.agent.max_retries == 5
        assert settings.agent.retry_base_delay == 0.5
        assert settings.display.spinner_interval_ms == 100
        assert settings.display.color is False
        assert settings.log_path == "logs/run.log"

    def test_partial_document_keeps_defaults(self, tmp_path):
        settings = load_settings(write_config(tmp_path, '[model]\nmodel_name = "opus"\n'))
        assert settings.model.model_name == "opus"
        assert settings.model.context_window is None
        assert settings.agent.max_retries == 3
        assert settings.display.spinner_interval_ms == 80

    @pytest.mark.parametrize(
        "text",
        [
            '[model]\nthinking_level = "extreme"\n',
            "[model]\ncontext_window = -1\n",
            '[model]\ncontext_window = "big"\n',
            "[agent]\nmax_retries = -2\n",
            "[display]\nspinner_interval_ms = 0\n",
            'model = "not a table"\n',
            "[model\n",
        ],
    )
    def test_invalid_values(self, tmp_path, text):
        with pytest.raises(ConfigError):
            load_settings(write_config(tmp_path, text))


class TestResolveModel:
    def test_known_model_prefix(self):
        model = resolve_model("claude-sonnet-4-5-20250929")
        assert model.id == "claude-sonnet-4-5-20250929"
        assert model.context_window == 200_000
        assert model.reasoning is True

    def test_longest_prefix_wins(self):
        assert resolve_model("claude-3-5-sonnet-latest").reasoning is False
        assert resolve_model("deepseek-reasoner").context_window == 128_000

    def test_unknown_model(self):
        model = resolve_model("local-llm")
        assert model.context_window == DEFAULT_CONTEXT_WINDOW
        assert model.reasoning is False

    def test_explicit_values_win(self):
        model = resolve_model("claude-opus-4", context_window=0, reasoning=False)
        assert model.context_window == 0
        assert model.reasoning is False

    def test_every_thinking_level_has_a_budget_entry(self):
        assert set(THINKING_BUDGETS) == set(THINKING_LEVELS)
        assert THINKING_BUDGETS["off"] is None


class TestSystemPrompt:
    def test_render_template(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text("cwd is {{ ENV_CWD }}\n", encoding="utf-8")
        assert render_system_prompt(path, {"ENV_CWD": "/work"}) == "cwd is /work\n"

    def test_broken_template_falls_back_to_raw_text(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text("{% if %}", encoding="utf-8")
        assert render_system_prompt(path, {"ENV_CWD": "/work"}) == "{% if %}"

    def test_unknown_variable_falls_back_to_raw_text(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text("{{ ENV_CWD }} {{ PROJECT }}", encoding="utf-8")
        assert render_system_prompt(path, {"ENV_CWD": "/work"}) == "{{ ENV_CWD }} {{ PROJECT }}"

    def test_missing_template(self, tmp_path):
        with pytest.raises(ConfigError):
            render_system_prompt(tmp_path / "missing.md", {})

    def test_variables_describe_session(self, tmp_path):
        settings = Settings(model=ModelSettings(model_name="claude-opus-4", thinking_level="high"))
        variables = prompt_variables(settings, tmp_path)
        assert tuple(variables) == PROMPT_VARIABLES
        assert variables["ENV_CWD"] == str(tmp_path)
        assert variables["MODEL_NAME"] == "claude-opus-4"
        assert variables["THINKING_LEVEL"] == "high"

    def test_build_from_settings(self, tmp_path):
        (tmp_path / "prompt.md").write_text("{{ MODEL_NAME }}:{{ THINKING_LEVEL }}", encoding="utf-8")
        settings = Settings(
            model=ModelSettings(model_name="haiku"),
            agent=AgentSettings(system_prompt_path="prompt.md"),
        )
        assert build_system_prompt(settings, tmp_path) == "haiku:off"

    def test_not_configured(self, tmp_path):
        assert build_system_prompt(Settings(), tmp_path) is None
