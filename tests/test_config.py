import pytest

from leaderhud.config import MEMORY_DB, ConfigError, Settings, load_leaderboard_config


def test_settings_requires_db_path():
    with pytest.raises(ConfigError) as exc:
        Settings.from_env({})
    assert "LEADERBOARD_DB_PATH" in str(exc.value)


def test_settings_from_env(tmp_path):
    env = {
        "LEADERBOARD_DB_PATH": str(tmp_path / "lb.db"),
        "LEADERBOARD_DATA_PATH": str(tmp_path / "data"),
        "LEADERBOARD_LOOKBACK_DAYS": "14",
        "LEADERBOARD_CONFIG": str(tmp_path / "leaderboard.yaml"),
        "LEADERBOARD_LOG_LEVEL": "debug",
    }
    s = Settings.from_env(env)
    assert s.db_path == str(tmp_path / "lb.db")
    assert s.data_path == str(tmp_path / "data")
    assert s.lookback_days == 14
    assert s.config_path == str(tmp_path / "leaderboard.yaml")
    assert s.log_level == "DEBUG"
    assert not s.is_memory
    assert s.resolved_db_path() == str((tmp_path / "lb.db").resolve())


def test_settings_defaults_and_bad_ints(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    s = Settings.from_env({"LEADERBOARD_DB_PATH": MEMORY_DB, "LEADERBOARD_LOOKBACK_DAYS": "soon"})
    assert s.is_memory
    assert s.resolved_db_path() == MEMORY_DB
    assert s.lookback_days == 7
    assert s.data_path == str(tmp_path)
    assert s.config_path == "config.yaml"


def test_settings_reads_process_env(monkeypatch):
    monkeypatch.setenv("LEADERBOARD_DB_PATH", MEMORY_DB)
    assert Settings.from_env().is_memory


def test_missing_config_file_is_empty(tmp_path):
    cfg = load_leaderboard_config(tmp_path / "nope.yaml")
    assert cfg.roles == {}
    assert cfg.top_contributors == []
    assert cfg.hidden_roles == []


def test_config_roles_and_top_contributors(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text(
        """
org:
  name: Example
leaderboard:
  roles:
    core:
      name: Core Team
    intern:
      name: Intern
    bot:
      name: Bot
      hidden: true
  top_contributors:
    - pr_merged
    - pr_reviewed
""",
        encoding="utf-8",
    )
    cfg = load_leaderboard_config(p)
    assert cfg.hidden_roles == ["bot"]
    assert cfg.visible_roles == ["core", "intern"]
    assert cfg.roles["core"].name == "Core Team"
    assert cfg.top_contributors == ["pr_merged", "pr_reviewed"]


def test_config_without_leaderboard_section(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text("org:\n  name: Example\n", encoding="utf-8")
    assert load_leaderboard_config(p).hidden_roles == []


@pytest.mark.parametrize(
    "content",
    [
        "leaderboard: [unclosed\n",
        "- just\n- a list\n",
        "leaderboard:\n  top_contributors: 12\n",
    ],
)
def test_invalid_config_raises(tmp_path, content):
    p = tmp_path / "config.yaml"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_leaderboard_config(p)


def test_settings_log_level():
    assert Settings.from_env({"LEADERBOARD_DB_PATH": MEMORY_DB, "LEADERBOARD_LOG_LEVEL": "warning"}).log_level == "WARNING"
    with pytest.raises(ConfigError) as exc:
        Settings.from_env({"LEADERBOARD_DB_PATH": MEMORY_DB, "LEADERBOARD_LOG_LEVEL": "verbose"})
    assert "LEADERBOARD_LOG_LEVEL" in str(exc.value)
    assert "VERBOSE" in str(exc.value)
