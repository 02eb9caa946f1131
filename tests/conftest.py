# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest
from geopy.exc import GeocoderServiceError

from zone_import.logging.init import reset_logging
from zone_import.models.config_models import GeocodingConfig
from zone_import.services.geocoding import GeocodingClient


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
        yield p


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """canvas:
  width: 1000
  height: 800
geocoding:
  user_agent: zone-import-tests
  min_interval_seconds: 1
error_log_dir: ./logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


class FakeGeocoder:
    """Stands in for geopy's Nominatim: ``geocode(query, exactly_one=True)``.

    ``answers`` maps an address to (lat, lng), None (no match) or an exception
    instance to raise. Unknown addresses return None.
    """

    def __init__(self, answers: dict[str, object] | None = None) -> None:
        self.answers = dict(answers or {})
        self.queries: list[str] = []

    def geocode(self, query: str, exactly_one: bool = True):
        self.queries.append(query)
        answer = self.answers.get(query)
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return None
        lat, lng = answer  # type: ignore[misc]
        return SimpleNamespace(latitude=lat, longitude=lng, address=f"{query} (resolved)")


class FakeClock:
    """Monotonic clock whose sleep advances time instead of blocking."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def fake_geocoder() -> FakeGeocoder:
    return FakeGeocoder(
        {
            "1 Main St, Springfield": (40.0, -75.0),
            "2 Oak Ave, Springfield": (40.5, -74.5),
            "3 Pine Rd, Springfield": (40.2, -74.8),
            "Broken Address": GeocoderServiceError("service unavailable"),
        }
    )


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def geocoding_client(fake_geocoder: FakeGeocoder, fake_clock: FakeClock) -> GeocodingClient:
    return GeocodingClient(
        GeocodingConfig(user_agent="zone-import-tests"),
        geocoder=fake_geocoder,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


@pytest.fixture()
def make_client():
    """Build a GeocodingClient over a FakeGeocoder with the given answers."""
    def _make(answers: dict[str, object] | None = None) -> GeocodingClient:
        clock = FakeClock()
        return GeocodingClient(
            GeocodingConfig(user_agent="zone-import-tests"),
            geocoder=FakeGeocoder(answers),
            clock=clock,
            sleep=clock.sleep,
        )
    return _make
