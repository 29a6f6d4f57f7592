from impactsim.errors import UpstreamUnavailable


class FakeGrid:
    def __init__(self, density=150.0):
        self.density = density
        self.calls = 0

    def lookup_density(self, lat, lon):
        self.calls += 1
        return self.density


class FakeGeocoder:
    def __init__(self, name="New York, United States", fail=False):
        self.name = name
        self.fail = fail
        self.closed = False

    def lookup_place_name(self, lat, lon):
        if self.fail:
            raise UpstreamUnavailable("nominatim timed out")
        return self.name

    def close(self):
        self.closed = True
