"""Tuple-based 3D vector math, plane frames and the SeamLine type."""
