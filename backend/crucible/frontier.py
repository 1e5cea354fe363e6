"""
Bucket-Queue Frontier

Priority structure for Dijkstra over small integer edge costs:
- Each distinct cost owns a bucket of states sharing that cost
- A min-heap of bucket costs gives the global minimum
- Decrease-key relocates a state from its old bucket to a cheaper one

Unlike a plain heapq open set, no stale duplicate entries are ever
returned: a state lives in exactly one bucket at a time.
"""

import heapq
from typing import Dict, Hashable, List, Optional, Set, Tuple, TypeVar


S = TypeVar('S', bound=Hashable)


class BucketFrontier:
    """
    Discovered-but-not-finalized states keyed by best known cost.

    Buckets are insertion-ordered dicts, so extraction within one cost is
    LIFO and repeatable across runs.
    """

    def __init__(self):
        self._buckets: Dict[int, Dict[S, None]] = {}
        self._best: Dict[S, int] = {}
        # Costs currently on the heap. A cost may outlive its bucket; such
        # entries are dropped lazily in extract_min.
        self._heap: List[int] = []
        self._on_heap: Set[int] = set()

    def __len__(self) -> int:
        return len(self._best)

    def __bool__(self) -> bool:
        return bool(self._best)

    def __contains__(self, state: S) -> bool:
        return state in self._best

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)

    def cost_of(self, state: S) -> Optional[int]:
        """Best known cost of `state`, or None if it is not queued."""
        return self._best.get(state)

    def costs(self) -> List[int]:
        """Distinct costs currently holding at least one state, ascending."""
        return sorted(self._buckets)

    def insert_or_improve(self, state: S, cost: int) -> bool:
        """
        Queue `state` at `cost`, or move it to a cheaper bucket.

        Never worsens a known cost. Returns True when membership changed.
        """
        old_cost = self._best.get(state)
        if old_cost is not None:
            if cost >= old_cost:
                return False
            self._discard(state, old_cost)

        bucket = self._buckets.get(cost)
        if bucket is None:
            bucket = self._buckets[cost] = {}
            if cost not in self._on_heap:
                heapq.heappush(self._heap, cost)
                self._on_heap.add(cost)
        bucket[state] = None
        self._best[state] = cost
        return True

    def extract_min(self) -> Optional[Tuple[S, int]]:
        """Remove and return one (state, cost) at the lowest cost, or None."""
        while self._heap:
            cost = self._heap[0]
            bucket = self._buckets.get(cost)
            if bucket is None:
                heapq.heappop(self._heap)
                self._on_heap.discard(cost)
                continue

            state, _ = bucket.popitem()
            if not bucket:
                del self._buckets[cost]
                heapq.heappop(self._heap)
                self._on_heap.discard(cost)
            del self._best[state]
            return state, cost

        return None

    def _discard(self, state: S, cost: int) -> None:
        bucket = self._buckets[cost]
        del bucket[state]
        if not bucket:
            # heap entry goes stale and is skipped on the next extract
            del self._buckets[cost]
        del self._best[state]
