"""
Timing markers for the reconciliation hot path.

Usage:
    from planeseam.profiling import profile, perf_marker, enable_profiling, get_profile_results

    @profile("solve_pair")
    def solve_pair(...):
        ...

    with perf_marker("apply_segments"):
        ...

    enable_profiling(True)
    tracker.reconcile(planes)
    get_profile_results()
    # {'reconcile': {'count': 1, 'total_ms': 1.2, 'avg_ms': 1.2, 'min_ms': 1.2,
    #                'max_ms': 1.2, 'parents': {'run': 1}}, ...}

Nothing is recorded until enable_profiling(True). Setting PLANESEAM_NO_PROFILING=1
or running under python -O compiles the markers out at import time: decorated
functions are returned unwrapped and perf_marker hands back a shared no-op.
"""

import os
import time
import functools
from contextlib import nullcontext
from typing import Any, Callable, Dict, List, Tuple, Union

COMPILED_OUT = (
    os.environ.get('PLANESEAM_NO_PROFILING', '').lower() in ('1', 'true', 'yes')
    or not __debug__
)

_perf = time.perf_counter
_NULL_MARKER = nullcontext()


class _Recorder:
    """Aggregates marker timings as markers close, keyed by marker name."""

    def __init__(self):
        self.enabled = False
        self.stats: Dict[str, Dict[str, Any]] = {}
        self._stack: List[Tuple[str, float]] = []

    def clear(self) -> None:
        self.stats.clear()
        self._stack.clear()

    def start(self, name: str) -> None:
        self._stack.append((name, _perf()))

    def stop(self) -> None:
        end = _perf()
        name, begin = self._stack.pop()
        elapsed_ms = (end - begin) * 1000.0

        entry = self.stats.get(name)
        if entry is None:
            entry = self.stats[name] = {
                'count': 0, 'total_ms': 0.0, 'min_ms': elapsed_ms, 'max_ms': elapsed_ms, 'parents': {}
            }
        entry['count'] += 1
        entry['total_ms'] += elapsed_ms
        entry['min_ms'] = min(entry['min_ms'], elapsed_ms)
        entry['max_ms'] = max(entry['max_ms'], elapsed_ms)
        if self._stack:
            parent = self._stack[-1][0]
            entry['parents'][parent] = entry['parents'].get(parent, 0) + 1


class _Marker:
    __slots__ = ('_name',)

    def __init__(self, name: str):
        self._name = name

    def __enter__(self):
        _recorder.start(self._name)
        return self

    def __exit__(self, *args):
        _recorder.stop()
        return False


_recorder = _Recorder()


def enable_profiling(enabled: bool = True) -> None:
    """Start or stop recording. Has no effect when profiling is compiled out."""
    if not COMPILED_OUT:
        _recorder.enabled = bool(enabled)


def reset_profile() -> None:
    _recorder.clear()


def get_profile_results() -> Dict[str, Dict[str, Any]]:
    """
    Per-marker statistics recorded since the last reset.

    Returns:
        {name: {'count', 'total_ms', 'avg_ms', 'min_ms', 'max_ms', 'parents'}}
        with times rounded to microseconds and parents counting the enclosing
        marker of each call.
    """
    results = {}
    for name, entry in _recorder.stats.items():
        results[name] = {
            'count': entry['count'],
            'total_ms': round(entry['total_ms'], 3),
            'avg_ms': round(entry['total_ms'] / entry['count'], 3),
            'min_ms': round(entry['min_ms'], 3),
            'max_ms': round(entry['max_ms'], 3),
            'parents': dict(entry['parents']),
        }
    return results


def perf_marker(name: str):
    """Context manager timing a block under name while profiling is enabled."""
    if COMPILED_OUT or not _recorder.enabled:
        return _NULL_MARKER
    return _Marker(name)


def profile(name_or_func: Union[str, Callable, None] = None) -> Callable:
    """
    Decorator timing each call of a function.

    Usage:
        @profile
        def reconcile(...): ...

        @profile("solve_pair")
        def solve_pair(...): ...
    """
    def decorator(func: Callable) -> Callable:
        if COMPILED_OUT:
            return func
        marker_name = name_or_func if isinstance(name_or_func, str) else func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _recorder.enabled:
                return func(*args, **kwargs)
            _recorder.start(marker_name)
            try:
                return func(*args, **kwargs)
            finally:
                _recorder.stop()

        return wrapper

    if callable(name_or_func):
        return decorator(name_or_func)
    return decorator
