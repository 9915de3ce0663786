"""Timing markers for the solver and tracker (see profile.py)."""

from .profile import (
    COMPILED_OUT,
    enable_profiling,
    get_profile_results,
    perf_marker,
    profile,
    reset_profile,
)

__all__ = [
    'COMPILED_OUT',
    'enable_profiling',
    'get_profile_results',
    'perf_marker',
    'profile',
    'reset_profile',
]
