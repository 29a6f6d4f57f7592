import pandas as pd
import pytest

from impactsim.cache import TTLCache
from impactsim.errors import UpstreamUnavailable
from impactsim.population import MAX_NEIGHBOURS, PopulationGrid, density_or_none


@pytest.fixture()
def csv_path(tmp_path):
    path = tmp_path / "world_population.csv"
    path.write_text(
        "lat,lng,pop\n"
        "10.0,10.0,100\n"
        "10.5,10.0,200\n"
        "50.0,50.0,1000\n"
        "bad,row,here\n"
    )
    return path


def test_loads_csv_and_skips_unparseable_rows(csv_path):
    grid = PopulationGrid.from_csv(str(csv_path))
    assert len(grid) == 3


def test_inverse_distance_weighting(csv_path):
    grid = PopulationGrid.from_csv(str(csv_path))
    w_near, w_far = 1 / 0.01, 1 / 0.51
    expected = (w_near * 100 + w_far * 200) / (w_near + w_far)
    assert grid.lookup_density(10.0, 10.0) == pytest.approx(expected)


def test_no_sample_within_two_degrees_means_ocean(csv_path):
    grid = PopulationGrid.from_csv(str(csv_path))
    assert grid.lookup_density(0.0, -100.0) == 0.0


def test_only_nearest_neighbours_are_used():
    # far samples first so file order would pick the wrong ones
    far = [(1.5, 0.0, 1000.0)] * 10
    near = [(0.1, 0.0, 10.0)] * MAX_NEIGHBOURS
    df = pd.DataFrame(far + near, columns=["lat", "lng", "pop"])
    grid = PopulationGrid.from_frame(df)
    assert grid.lookup_density(0.0, 0.0) == pytest.approx(10.0)


def test_empty_grid_has_no_answer():
    grid = PopulationGrid([], [], [])
    assert grid.lookup_density(0.0, 0.0) is None


def test_missing_file_is_upstream_failure(tmp_path):
    with pytest.raises(UpstreamUnavailable):
        PopulationGrid.from_csv(str(tmp_path / "nope.csv"))


def test_missing_columns_is_upstream_failure(tmp_path):
    path = tmp_path / "pop.csv"
    path.write_text("latitude,longitude,people\n1,2,3\n")
    with pytest.raises(UpstreamUnavailable):
        PopulationGrid.from_csv(str(path))


class CountingProvider:
    def __init__(self, value=42.0, error=None):
        self.value = value
        self.error = error
        self.calls = []

    def lookup_density(self, lat, lon):
        self.calls.append((lat, lon))
        if self.error:
            raise self.error
        return self.value


def test_density_or_none_without_provider():
    assert density_or_none(None, 10, 10) is None


def test_density_or_none_uses_rounded_cell_and_cache():
    provider = CountingProvider()
    cache = TTLCache(ttl_seconds=60)
    assert density_or_none(provider, 10.001, 20.004, cache=cache) == 42.0
    assert density_or_none(provider, 10.002, 19.996, cache=cache) == 42.0
    assert provider.calls == [(10.0, 20.0)]


def test_density_or_none_falls_back_on_upstream_failure():
    provider = CountingProvider(error=UpstreamUnavailable("grid offline"))
    assert density_or_none(provider, 10, 10, cache=TTLCache(ttl_seconds=60)) is None
