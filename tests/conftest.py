import pytest

from dashboard_engine.cache import data_cache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_shared_cache():
    # The module-level cache is shared by every test that touches the API.
    data_cache.clear()
    data_cache.hits = 0
    data_cache.misses = 0
    yield
    data_cache.clear()


@pytest.fixture()
def products():
    return [
        {"id": 1, "name": "Espresso Beans", "price": 18.5, "stock": 40, "brand": {"name": "Acme", "tier": "gold"}},
        {"id": 2, "name": "Filter Papers", "price": 4.0, "stock": 0, "brand": {"name": "Paperly", "tier": "silver"}},
        {"id": 3, "name": "Milk Frother", "price": 32.0, "stock": 7, "brand": {"name": "Acme", "tier": "gold"}},
        {"id": 4, "name": "espresso cups", "price": 12.0, "stock": 15, "brand": {"name": "Cupco"}},
        {"id": 5, "name": "Descaler", "price": "n/a", "stock": 3, "brand": {"name": "Paperly", "tier": "silver"}},
    ]
