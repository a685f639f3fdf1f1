from modules.grid import GridPoint
from modules.performance import PerformanceCache, PerformanceRecord


def make(x, y, cc=0.5):
    return PerformanceRecord.from_metrics(GridPoint(x, y), {'cc': cc})


def test_store_and_lookup_per_fidelity():
    cache = PerformanceCache()
    cache.store(2, make(1, 1))

    assert cache.contains(2, GridPoint(1, 1))
    assert not cache.contains(10, GridPoint(1, 1))
    assert cache.lookup(10, GridPoint(1, 1)) is None
    assert len(cache) == 1


def test_lookup_tolerates_arithmetic_noise():
    cache = PerformanceCache()
    cache.store(2, make(0.1 + 0.2, -0.7))
    assert cache.lookup(2, GridPoint(0.3, -0.7)).cc == 0.5


def test_lookup_falls_back_to_tolerance_scan():
    cache = PerformanceCache()
    stored = make(1.0000004, 0.0)
    cache.store(2, stored)
    # lands in a different quantization bucket but is within tolerance
    assert cache.lookup(2, GridPoint(1.0000006, 0.0)) is stored


def test_missing_point():
    cache = PerformanceCache()
    cache.store(2, make(0, 0))
    assert cache.lookup(2, GridPoint(0, 1)) is None
