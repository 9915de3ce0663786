"""Plane snapshots and the solvers that operate on them."""
