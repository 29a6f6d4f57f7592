import pytest
from fastapi.testclient import TestClient

from impactsim.app import create_app
from impactsim.config import Settings

from .fakes import FakeGeocoder, FakeGrid


@pytest.fixture()
def make_client():
    clients = []

    def _make(grid=None, geocoder=None, **settings):
        settings.setdefault("log_level", "WARNING")
        app = create_app(Settings(**settings), population_grid=grid,
                         geocoder=geocoder or FakeGeocoder())
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.close()


@pytest.fixture()
def client(make_client):
    return make_client(grid=FakeGrid())
