from typing import Dict, Hashable, Optional, Tuple

from modules.grid import GridPoint
from modules.performance.performance import PerformanceRecord


class PerformanceCache:
    """
    Memoizes scored points per fidelity (e.g. fold count plus data sample).

    Append-only for the lifetime of one search. Only the controller thread
    writes to it; workers hand their records back through the pool.
    """

    def __init__(self):
        self._buckets: Dict[Hashable, Dict[Tuple[int, int], PerformanceRecord]] = {}

    def lookup(self, fidelity: Hashable, point: GridPoint) -> Optional[PerformanceRecord]:
        bucket = self._buckets.get(fidelity)
        if not bucket:
            return None
        record = bucket.get(point.quantized())
        if record is not None:
            return record
        # quantization boundary: fall back to a tolerance scan
        for candidate in bucket.values():
            if candidate.point == point:
                return candidate
        return None

    def contains(self, fidelity: Hashable, point: GridPoint) -> bool:
        return self.lookup(fidelity, point) is not None

    def store(self, fidelity: Hashable, record: PerformanceRecord) -> None:
        self._buckets.setdefault(fidelity, {})[record.point.quantized()] = record

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __repr__(self) -> str:
        sizes = {fidelity: len(bucket) for fidelity, bucket in self._buckets.items()}
        return f"PerformanceCache({sizes})"
