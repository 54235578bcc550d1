"""Unit tests for configuration loading"""

import pytest

from src.config.config_loader import (
    env_overrides,
    find_config_file,
    load_story_extractor_config,
    load_ui_server_config,
    merge_config,
)
from src.models.configs import StoryExtractorConfig
from src.models.errors import ConfigError

EXTRACTOR_YAML = """
maildir: /mail/from-file
storydir: /stories/from-file
limit: 5
llm:
  model: gpt-4o
  api_key: file-key
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "story-extractor.yaml"
    path.write_text(EXTRACTOR_YAML, encoding="utf-8")
    return path


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Run from an empty working directory with an empty home directory"""
    work = tmp_path / "work"
    home = tmp_path / "home"
    work.mkdir()
    home.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setenv("HOME", str(home))
    return work, home


class TestConfigLoader:
    """Test suite for configuration loading"""

    @pytest.mark.unit
    def test_defaults(self, isolated_dirs):
        """Test that defaults apply when nothing is configured"""
        config = load_story_extractor_config(environ={})

        assert config.limit == 0
        assert config.verbose is False
        assert config.llm.provider == "openai"
        assert config.llm.model == "gpt-4o-mini"
        assert config.llm.base_url == "https://api.openai.com/v1"
        assert config.llm.api_key == ""

    @pytest.mark.unit
    def test_load_from_file(self, config_file):
        """Test loading values from an explicit YAML file"""
        config = load_story_extractor_config(config_file, environ={})

        assert config.maildir == "/mail/from-file"
        assert config.storydir == "/stories/from-file"
        assert config.limit == 5
        assert config.llm.model == "gpt-4o"
        assert config.llm.api_key == "file-key"
        # Unset nested values keep their defaults
        assert config.llm.provider == "openai"

    @pytest.mark.unit
    def test_precedence(self, config_file):
        """Test defaults < file < environment < overrides"""
        environ = {
            "STORY_EXTRACTOR_MAILDIR": "/mail/from-env",
            "STORY_EXTRACTOR_LIMIT": "7",
            "STORY_EXTRACTOR_LLM_API_KEY": "env-key",
        }
        overrides = {"maildir": "/mail/from-flag", "limit": None, "verbose": True}

        config = load_story_extractor_config(config_file, overrides, environ=environ)

        assert config.maildir == "/mail/from-flag"
        assert config.storydir == "/stories/from-file"
        assert config.limit == 7
        assert config.verbose is True
        assert config.llm.api_key == "env-key"
        assert config.llm.model == "gpt-4o"

    @pytest.mark.unit
    def test_default_file_in_working_directory(self, isolated_dirs):
        """Test that ./story-extractor.yaml is found without --config"""
        work, _ = isolated_dirs
        (work / "story-extractor.yaml").write_text("maildir: /from/cwd\n", encoding="utf-8")

        config = load_story_extractor_config(environ={})

        assert config.maildir == "/from/cwd"

    @pytest.mark.unit
    def test_default_file_in_home_directory(self, isolated_dirs):
        """Test the home directory fallback"""
        _, home = isolated_dirs
        (home / "ui-server.yml").write_text("storydir: /from/home\nport: 9000\n", encoding="utf-8")

        config = load_ui_server_config(environ={})

        assert config.storydir == "/from/home"
        assert config.port == 9000

    @pytest.mark.unit
    def test_missing_explicit_file(self, tmp_path):
        """Test that an explicit missing file is an error"""
        with pytest.raises(FileNotFoundError):
            load_story_extractor_config(tmp_path / "missing.yaml", environ={})

    @pytest.mark.unit
    def test_invalid_yaml(self, tmp_path):
        """Test that broken YAML is a config error"""
        path = tmp_path / "bad.yaml"
        path.write_text("maildir: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_story_extractor_config(path, environ={})

    @pytest.mark.unit
    def test_non_mapping_yaml(self, tmp_path):
        """Test that a YAML list is rejected"""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_story_extractor_config(path, environ={})

    @pytest.mark.unit
    def test_invalid_value(self, isolated_dirs):
        """Test that values failing validation are config errors"""
        with pytest.raises(ConfigError):
            load_story_extractor_config(environ={"STORY_EXTRACTOR_LIMIT": "-1"})

        with pytest.raises(ConfigError):
            load_ui_server_config(environ={"UI_SERVER_PORT": "not-a-port"})

    @pytest.mark.unit
    def test_ui_server_env(self, isolated_dirs):
        """Test UI server environment variables"""
        config = load_ui_server_config(
            environ={"UI_SERVER_STORYDIR": "/s", "UI_SERVER_SAVEDIR": "/saved", "UI_SERVER_VERBOSE": "true"}
        )

        assert config.storydir == "/s"
        assert config.savedir == "/saved"
        assert config.verbose is True
        assert config.port == 8080


class TestConfigHelpers:
    """Test suite for the config helper functions"""

    @pytest.mark.unit
    def test_env_overrides_nested(self):
        """Test that nested model fields map to prefixed variables"""
        data = env_overrides(
            StoryExtractorConfig,
            "STORY_EXTRACTOR_",
            {"STORY_EXTRACTOR_LLM_MODEL": "m", "STORY_EXTRACTOR_STORYDIR": "/s", "OTHER": "x"},
        )

        assert data == {"llm": {"model": "m"}, "storydir": "/s"}

    @pytest.mark.unit
    def test_merge_config(self):
        """Test recursive merge ignoring None values"""
        merged = merge_config(
            {"a": 1, "llm": {"model": "x", "api_key": "k"}},
            {"a": None, "llm": {"model": "y"}, "b": 2},
        )

        assert merged == {"a": 1, "llm": {"model": "y", "api_key": "k"}, "b": 2}

    @pytest.mark.unit
    def test_find_config_file_none(self, isolated_dirs):
        """Test that no default file yields None"""
        assert find_config_file(None, "story-extractor") is None
