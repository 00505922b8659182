# snipvault/services/ratelimit.py
import math
import threading
import time
import uuid
from collections import OrderedDict, deque
from typing import Callable, Deque, Optional

import redis


class SlidingWindowLimiter:
    """
    In-process sliding-window limiter keyed by caller identity.

    Memory stays bounded two ways: at most ``max_keys`` identities are
    tracked (least recently seen is evicted first), and every
    ``sweep_every`` checks the identities whose window has emptied are dropped.
    Advisory only; it blunts request floods, it does not guard correctness.
    """

    def __init__(self, max_requests: int = 100, window_sec: float = 60.0,
                 max_keys: int = 10_000, sweep_every: int = 1_000,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_sec = window_sec
        self.max_keys = max_keys
        self.sweep_every = sweep_every
        self._clock = clock
        self._hits: "OrderedDict[str, Deque[float]]" = OrderedDict()
        self._checks = 0
        # HTTP tool calls run in a threadpool and share one limiter
        self._lock = threading.Lock()

    def allow(self, identity: str) -> bool:
        with self._lock:
            now = self._clock()
            self._checks += 1
            if self.sweep_every and self._checks % self.sweep_every == 0:
                self._sweep(now)
            return self._allow(identity, now)

    def _allow(self, identity: str, now: float) -> bool:
        hits = self._hits.get(identity)
        if hits is None:
            hits = deque()
            self._hits[identity] = hits
            while len(self._hits) > self.max_keys:
                self._hits.popitem(last=False)
        else:
            self._hits.move_to_end(identity)

        window_start = now - self.window_sec
        while hits and hits[0] <= window_start:
            hits.popleft()
        if len(hits) >= self.max_requests:
            return False
        hits.append(now)
        return True

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop identities with no hits inside the window. Returns how many were dropped."""
        with self._lock:
            return self._sweep(self._clock() if now is None else now)

    def _sweep(self, now: float) -> int:
        window_start = now - self.window_sec
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for k in stale:
            del self._hits[k]
        return len(stale)

    def tracked(self) -> int:
        with self._lock:
            return len(self._hits)


class RedisSlidingWindowLimiter:
    """
    Same policy backed by a Redis sorted set per identity.
    Keys expire after one window, so idle identities are evicted by Redis itself.
    """

    def __init__(self, url: str, max_requests: int = 100, window_sec: float = 60.0,
                 prefix: str = "snipvault:ratelimit:", client=None,
                 clock: Callable[[], float] = time.time):
        self._client = client if client is not None else redis.from_url(url, decode_responses=True)
        self.max_requests = max_requests
        self.window_sec = window_sec
        self.prefix = prefix
        self._clock = clock

    def allow(self, identity: str) -> bool:
        now = self._clock()
        key = self.prefix + identity
        member = f"{now:.6f}:{uuid.uuid4().hex[:8]}"
        pipe = self._client.pipeline()
        pipe.zremrangebyscore(key, 0, now - self.window_sec)
        pipe.zadd(key, {member: now})
        pipe.zcard(key)
        pipe.expire(key, max(1, math.ceil(self.window_sec)))
        _, _, count, _ = pipe.execute()
        if count > self.max_requests:
            self._client.zrem(key, member)
            return False
        return True
