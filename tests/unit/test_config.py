import os

import pytest

from impactsim.config import NOMINATIM_REVERSE_URL, Settings
from impactsim.errors import InvalidInput

ENV_VARS = (
    "POPULATION_CSV_PATH", "GEOCODER_ENABLED", "GEOCODER_URL", "GEOCODER_USER_AGENT",
    "GEOCODER_TIMEOUT_S", "CACHE_TTL_S", "CACHE_MAX_ENTRIES", "CACHE_COORD_PRECISION",
    "CORS_ORIGINS", "LOG_LEVEL", "API_HOST", "API_PORT",
)


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # keep a developer .env out of the way
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings.from_env()
    assert s.population_csv_path is None
    assert s.geocoder_enabled is True
    assert s.geocoder_url == NOMINATIM_REVERSE_URL
    assert s.cache_ttl_s == 3600.0
    assert s.cors_origins == ("*",)
    assert s.api_port == 8000


def test_reads_environment(clean_env):
    clean_env.setenv("POPULATION_CSV_PATH", "/data/pop.csv")
    clean_env.setenv("GEOCODER_ENABLED", "off")
    clean_env.setenv("CACHE_TTL_S", "60")
    clean_env.setenv("CACHE_MAX_ENTRIES", "10")
    clean_env.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    clean_env.setenv("LOG_LEVEL", "debug")
    s = Settings.from_env()
    assert s.population_csv_path == "/data/pop.csv"
    assert s.geocoder_enabled is False
    assert s.cache_ttl_s == 60.0
    assert s.cache_max_entries == 10
    assert s.cors_origins == ("http://a.test", "http://b.test")
    assert s.log_level == "DEBUG"


def test_reads_dotenv_file(clean_env, tmp_path):
    env_file = tmp_path / "impactsim.env"
    env_file.write_text("CACHE_COORD_PRECISION=3\n")
    try:
        assert Settings.from_env(str(env_file)).cache_coord_precision == 3
    finally:
        os.environ.pop("CACHE_COORD_PRECISION", None)


def test_environment_wins_over_dotenv_file(clean_env, tmp_path):
    env_file = tmp_path / "impactsim.env"
    env_file.write_text("API_PORT=9000\n")
    clean_env.setenv("API_PORT", "8080")
    assert Settings.from_env(str(env_file)).api_port == 8080


@pytest.mark.parametrize("name,value", [
    ("CACHE_MAX_ENTRIES", "lots"),
    ("GEOCODER_TIMEOUT_S", "soon"),
    ("GEOCODER_ENABLED", "maybe"),
    ("CACHE_TTL_S", "0"),
    ("CACHE_MAX_ENTRIES", "0"),
    ("GEOCODER_TIMEOUT_S", "-1"),
])
def test_malformed_values_name_the_variable(clean_env, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(InvalidInput) as exc:
        Settings.from_env()
    assert exc.value.field == name


def test_entry_point_serves_the_app_factory(clean_env, monkeypatch):
    import impactsim.__main__ as entry

    calls = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda target, **kw: calls.append((target, kw)))
    entry.main()
    target, kw = calls[0]
    assert target == "impactsim.app:create_app"
    assert kw["factory"] is True
    assert kw["port"] == 8000
