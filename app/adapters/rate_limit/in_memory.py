"""In-memory fixed-window admission controller.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- One lock per partition; the table lock only guards lookup/insert/evict.
- Windows are anchored at the first request of the window, so a caller can
  burst up to twice its limit across a window boundary.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractAdmissionController,
    AdmissionResult,
    RateLimitProfile,
)

logger = logging.getLogger(__name__)


@dataclass
class _Partition:
    window_start: float
    count: int
    limit: int
    window_seconds: int
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class InMemoryFixedWindowRateLimiter(AbstractAdmissionController):
    """Admission controller keeping one fixed-window counter per identity.

    Partitions are created lazily on the first request of an identity and
    live until evicted. With ``max_partitions`` set, the least recently used
    partition is dropped once the table grows past the bound; without it the
    table grows with every distinct identity seen.
    """

    def __init__(
        self,
        *,
        max_partitions: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the admission controller.

        Args:
            max_partitions: Upper bound on tracked identities (None for unbounded).
            clock: Time source returning seconds; only differences are used.

        Raises:
            ValueError: If max_partitions is invalid.
        """
        if max_partitions is not None and max_partitions < 1:
            raise ValueError("max_partitions must be >= 1")

        self._max_partitions = max_partitions
        self._clock = clock
        self._table_lock = threading.Lock()
        self._partitions: OrderedDict[str, _Partition] = OrderedDict()
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._partitions)

    @property
    def evictions(self) -> int:
        return self._evictions

    def _get_or_create_partition(self, key: str, profile: RateLimitProfile, now: float) -> _Partition:
        with self._table_lock:
            partition = self._partitions.get(key)
            if partition is None:
                partition = _Partition(
                    window_start=now,
                    count=0,
                    limit=profile.permit_limit,
                    window_seconds=profile.window_seconds,
                )
                self._partitions[key] = partition
                self._evict_if_over_capacity_locked()
            else:
                self._partitions.move_to_end(key)
            return partition

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_partitions is None:
            return

        while len(self._partitions) > self._max_partitions:
            # popitem(last=False) removes the least recently used partition
            self._partitions.popitem(last=False)
            self._evictions += 1
            logger.debug(
                "rate_limit.partition_evicted",
                extra={"partitions": len(self._partitions), "evictions": self._evictions},
            )

    def admit(self, key: str, profile: RateLimitProfile) -> AdmissionResult:
        """Check and consume one permit from the identity's current window.

        The check and the increment happen under the partition lock, so
        concurrent callers for the same key can never push the count past
        the limit. A window that has elapsed is restarted at ``now`` and picks
        up the limit and window length of ``profile``.

        Args:
            key: Identity key ("" for anonymous callers).
            profile: Quota resolved for this identity.

        Returns:
            AdmissionResult with the decision and window metadata.
        """
        partition = self._get_or_create_partition(key, profile, self._clock())

        with partition.lock:
            now = self._clock()
            if now - partition.window_start >= partition.window_seconds:
                partition.window_start = now
                partition.count = 0
                partition.limit = profile.permit_limit
                partition.window_seconds = profile.window_seconds

            reset_after = max(0.0, partition.window_start + partition.window_seconds - now)

            if partition.count < partition.limit:
                partition.count += 1
                return AdmissionResult(
                    allowed=True,
                    limit=partition.limit,
                    remaining=partition.limit - partition.count,
                    reset_after_seconds=int(math.ceil(reset_after)),
                    retry_after_seconds=None,
                )

            return AdmissionResult(
                allowed=False,
                limit=partition.limit,
                remaining=0,
                reset_after_seconds=int(math.ceil(reset_after)),
                retry_after_seconds=max(1, int(math.ceil(reset_after))),
            )

    def reset(self, key: str | None = None) -> None:
        """Drop partitions; the next request for a key starts a fresh window."""
        with self._table_lock:
            if key is None:
                self._partitions.clear()
            else:
                self._partitions.pop(key, None)
