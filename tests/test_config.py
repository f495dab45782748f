import pytest

from insights_engine.config import load_config
from insights_engine.errors import ConfigurationError
from insights_engine.schema import CanonicalAttributeKey

ENV_NAMES = ("INSIGHTS_TOP_N", "INSIGHTS_DIMENSION", "INSIGHTS_LOG_LEVEL", "INSIGHTS_LOG_FILE")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults():
    config = load_config()
    assert config.top_n == 5
    assert config.dimension is CanonicalAttributeKey.TYPE
    assert config.log_level == "INFO"


def test_yaml_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("insights:\n  top_n: 3\n  dimension: bedrooms\n  log_level: debug\n", encoding="utf-8")
    config = load_config(path)
    assert config.top_n == 3
    assert config.dimension is CanonicalAttributeKey.BEDROOMS
    assert config.log_level == "DEBUG"


def test_environment_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("top_n: 3\n", encoding="utf-8")
    monkeypatch.setenv("INSIGHTS_TOP_N", "8")
    monkeypatch.setenv("INSIGHTS_DIMENSION", "NEIGHBORHOOD")
    config = load_config(path)
    assert config.top_n == 8
    assert config.dimension is CanonicalAttributeKey.NEIGHBORHOOD


def test_dotenv_file(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text("INSIGHTS_TOP_N=7\n", encoding="utf-8")
    assert load_config(env_path=env_path).top_n == 7


def test_invalid_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("dimension: colour\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.yaml")
