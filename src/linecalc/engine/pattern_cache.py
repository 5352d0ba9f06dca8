#!/usr/bin/env python3
"""
Compiled-pattern cache for the evaluator's regex builders.

Pattern builders decorated with @cached_pattern compile once per distinct
argument set. The cache is a thread-safe LRU so several documents evaluated
on different threads share compiled patterns.

Usage:
    from .pattern_cache import cached_pattern

    @cached_pattern
    def build_phrase_pattern(word: str) -> re.Pattern[str]:
        return re.compile(rf"\\s+{word}\\s+", re.IGNORECASE)
"""
from __future__ import annotations

import functools
import threading
from collections import OrderedDict
from typing import Callable, Pattern, TypeVar

F = TypeVar("F", bound=Callable[..., Pattern[str]])

_CACHE_SIZE = 128
_pattern_cache: OrderedDict[str, Pattern[str]] = OrderedDict()
_cache_lock = threading.Lock()
_cache_stats = {"hits": 0, "misses": 0, "evictions": 0}


def _cache_key(func_name: str, args: tuple, kwargs: dict) -> str:
    parts = [func_name, *(str(arg) for arg in args)]
    parts.extend(f"{k}={v}" for k, v in sorted(kwargs.items()))
    return "|".join(parts)


def cached_pattern(func: F) -> F:
    """Cache the compiled pattern returned by a builder, keyed by its arguments"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Pattern[str]:
        key = _cache_key(func.__name__, args, kwargs)

        with _cache_lock:
            pattern = _pattern_cache.get(key)
            if pattern is not None:
                _pattern_cache.move_to_end(key)
                _cache_stats["hits"] += 1
                return pattern

        # Compile outside the lock
        pattern = func(*args, **kwargs)

        with _cache_lock:
            if key in _pattern_cache:
                # Another thread compiled it first
                _cache_stats["hits"] += 1
                return _pattern_cache[key]
            _pattern_cache[key] = pattern
            _cache_stats["misses"] += 1
            while len(_pattern_cache) > _CACHE_SIZE:
                _pattern_cache.popitem(last=False)
                _cache_stats["evictions"] += 1

        return pattern

    return wrapper  # type: ignore


def get_cache_stats() -> dict[str, float]:
    with _cache_lock:
        stats: dict[str, float] = dict(_cache_stats)
        stats["size"] = len(_pattern_cache)
        total = stats["hits"] + stats["misses"]
        stats["hit_ratio"] = stats["hits"] / total if total else 0.0
        return stats


def clear_cache() -> None:
    """Drop all cached patterns and reset statistics (used by tests)"""
    with _cache_lock:
        _pattern_cache.clear()
        _cache_stats.update({"hits": 0, "misses": 0, "evictions": 0})
