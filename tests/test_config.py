"""Tests for environment-backed configuration."""

import pytest
from liblinker.config import Config, get_config, reset_config


ENV_NAMES = (
    "LIBLINKER_MANIFEST",
    "LIBLINKER_DEPENDENCY_FIELDS",
    "LIBLINKER_MATCH_SUBPATHS",
    "LIBLINKER_HIGHLIGHT_STYLE",
    "LIBLINKER_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from the real environment and any .env in the working tree.

    Setting then deleting registers each name with monkeypatch, so values
    that load_dotenv writes into os.environ are removed on teardown.
    """
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


class TestDefaults:
    """Values used when nothing is configured."""

    def test_defaults(self):
        config = Config()

        assert config.manifest_name == "package.json"
        assert config.dependency_fields == ("dependencies",)
        assert config.match_subpaths is False
        assert config.highlight_style == "on grey27"
        assert config.debug is False


class TestOverrides:
    """Environment variables and .env files."""

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LIBLINKER_MANIFEST", "manifest.json")
        monkeypatch.setenv("LIBLINKER_DEPENDENCY_FIELDS", "dependencies, peerDependencies ,")
        monkeypatch.setenv("LIBLINKER_MATCH_SUBPATHS", "Yes")
        monkeypatch.setenv("LIBLINKER_DEBUG", "1")
        config = Config()

        assert config.manifest_name == "manifest.json"
        assert config.dependency_fields == ("dependencies", "peerDependencies")
        assert config.match_subpaths is True
        assert config.debug is True

    def test_dotenv_in_working_directory(self, tmp_path):
        (tmp_path / ".env").write_text(
            "LIBLINKER_MANIFEST=deps.json\nLIBLINKER_MATCH_SUBPATHS=true\n", encoding="utf-8",
        )
        config = Config()

        assert config.manifest_name == "deps.json"
        assert config.match_subpaths is True

    def test_explicit_env_file(self, tmp_path):
        env_file = tmp_path / "liblinker.env"
        env_file.write_text("LIBLINKER_HIGHLIGHT_STYLE=bold yellow\n", encoding="utf-8")

        assert Config(env_file=env_file).highlight_style == "bold yellow"

    def test_environment_wins_over_dotenv(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("LIBLINKER_MANIFEST=deps.json\n", encoding="utf-8")
        monkeypatch.setenv("LIBLINKER_MANIFEST", "real.json")

        assert Config().manifest_name == "real.json"


class TestValidation:
    """Invalid settings fail at load time."""

    def test_empty_dependency_fields(self, monkeypatch):
        monkeypatch.setenv("LIBLINKER_DEPENDENCY_FIELDS", " , ,")
        with pytest.raises(ValueError, match="LIBLINKER_DEPENDENCY_FIELDS"):
            Config()

    def test_invalid_highlight_style(self, monkeypatch):
        monkeypatch.setenv("LIBLINKER_HIGHLIGHT_STYLE", "on not-a-colour")
        with pytest.raises(ValueError, match="LIBLINKER_HIGHLIGHT_STYLE"):
            Config()


class TestSingleton:
    """get_config() caching."""

    def test_same_instance_until_reset(self, monkeypatch):
        first = get_config()
        assert get_config() is first

        monkeypatch.setenv("LIBLINKER_MANIFEST", "other.json")
        assert get_config().manifest_name == "other.json"

        reset_config()
        assert get_config() is not first
