"""Bounded, single-flight memo of assembled meshes keyed by quantised parameters."""
from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from .config import get_settings
from .log import get_logger
from .mesh import Mesh
from .params import DistortionParams

logger = get_logger(__name__)

ADAPTIVE_TOPOLOGY = "adaptive"


class CacheKey(NamedTuple):
    topology: str
    width: float
    height: float
    corner_radius: float
    distortion_strength: float
    center_x: float
    center_y: float
    corner_segments: int
    backdrop_scale: float
    distortion_padding: float
    distortion_multiplier: float
    distortion_exponent: float
    grid_size: int


def quantize(value: float, digits: int) -> float:
    """Round half-to-even to *digits* fractional digits, folding ``-0.0`` into ``0.0``."""
    return round(value, digits) + 0.0


def make_cache_key(params: DistortionParams, digits: int = 6, topology: str = ADAPTIVE_TOPOLOGY) -> CacheKey:
    def q(value: float) -> float:
        return quantize(value, digits)

    return CacheKey(
        topology=topology,
        width=q(params.width),
        height=q(params.height),
        corner_radius=q(params.corner_radius),
        distortion_strength=q(params.distortion_strength),
        center_x=q(params.center_x),
        center_y=q(params.center_y),
        corner_segments=params.corner_segments,
        backdrop_scale=q(params.backdrop_scale),
        distortion_padding=q(params.distortion_padding),
        distortion_multiplier=q(params.distortion_multiplier),
        distortion_exponent=q(params.distortion_exponent),
        grid_size=params.grid_size,
    )


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    mesh: Mesh
    last_used_tick: int


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_entries: int
    hits: int
    misses: int
    builds: int
    evictions: int


class _Flight:
    """A build in progress; waiters park on ``done``."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.mesh: Optional[Mesh] = None
        self.error: Optional[BaseException] = None


class MeshCache:
    """LRU map from :class:`CacheKey` to :class:`Mesh` with at most one build per key.

    The entry map, LRU order and in-flight table share one lock. Builds run
    outside it, so other keys stay available while a mesh is assembled.
    """

    def __init__(self, max_entries: int = 32, key_digits: int = 6) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._key_digits = key_digits
        self._lock = threading.Lock()
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._inflight: Dict[CacheKey, _Flight] = {}
        self._tick = 0
        self._hits = 0
        self._misses = 0
        self._builds = 0
        self._evictions = 0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def key_for(self, params: DistortionParams, topology: str = ADAPTIVE_TOPOLOGY) -> CacheKey:
        return make_cache_key(params, self._key_digits, topology)

    def get_or_build(self, key: CacheKey, build: Callable[[], Mesh]) -> Mesh:
        """Return the cached mesh for *key*, building it at most once.

        A caller that arrives while another is building the same key waits
        for that build and receives the same mesh, or the same exception.
        Failed builds leave nothing behind.
        """

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._hits += 1
                self._tick += 1
                self._entries[key] = replace(entry, last_used_tick=self._tick)
                self._entries.move_to_end(key)
                return entry.mesh
            self._misses += 1
            flight = self._inflight.get(key)
            leader = flight is None
            if leader:
                flight = _Flight()
                self._inflight[key] = flight

        if not leader:
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.mesh

        try:
            mesh = build()
        except BaseException as exc:
            with self._lock:
                del self._inflight[key]
            flight.error = exc
            flight.done.set()
            raise

        with self._lock:
            self._builds += 1
            self._tick += 1
            self._entries[key] = CacheEntry(key=key, mesh=mesh, last_used_tick=self._tick)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Evicted mesh %s", evicted)
            del self._inflight[key]
        logger.debug("Built mesh with %d vertices, %d faces", mesh.vertex_count, mesh.face_count)
        flight.mesh = mesh
        flight.done.set()
        return mesh

    def entry(self, key: CacheKey) -> Optional[CacheEntry]:
        """Peek at an entry without refreshing it."""
        with self._lock:
            return self._entries.get(key)

    def keys(self) -> Tuple[CacheKey, ...]:
        """Keys from least to most recently used."""
        with self._lock:
            return tuple(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                max_entries=self._max_entries,
                hits=self._hits,
                misses=self._misses,
                builds=self._builds,
                evictions=self._evictions,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


_shared_lock = threading.Lock()
_shared_cache: Optional[MeshCache] = None


def get_mesh_cache() -> MeshCache:
    """Process-wide cache, created on first use from the current settings."""

    global _shared_cache
    with _shared_lock:
        if _shared_cache is None:
            settings = get_settings()
            _shared_cache = MeshCache(
                max_entries=settings.mesh_cache_size,
                key_digits=settings.cache_key_digits,
            )
        return _shared_cache


def release_mesh_cache() -> None:
    """Drop the process-wide cache; the next :func:`get_mesh_cache` starts empty."""

    global _shared_cache
    with _shared_lock:
        if _shared_cache is not None:
            _shared_cache.clear()
        _shared_cache = None


__all__ = [
    "ADAPTIVE_TOPOLOGY",
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "MeshCache",
    "get_mesh_cache",
    "make_cache_key",
    "quantize",
    "release_mesh_cache",
]
