"""
Dictionary Render Context for PlaneSeam.

This render context keeps one entry per active seam line, keyed by PairKey,
and mirrors the tracker's events into it. It is the geometry-only stand-in for
a scene that maps each key to a line object.
"""

from planeseam.render_engines.base_render_context import BaseRenderContext


def _to_point_list(p):
    return [float(p[0]), float(p[1]), float(p[2])]


class DictRenderContext(BaseRenderContext):
    """
    Render context that collects seam lines into a dictionary.

    Output format:
        {
            'lines': [
                {
                    'key': [first_id, second_id],
                    'points': [[x, y, z], [x, y, z]],
                }
            ],
            'stats': {
                'line_count': int,
                'created': int,
                'updated': int,
                'destroyed': int,
            }
        }
    """

    def __init__(self):
        self._lines = {}  # PairKey -> [[x, y, z], [x, y, z]]
        self._created = 0
        self._updated = 0
        self._destroyed = 0

    @property
    def lines(self):
        return self._lines

    def create_line(self, key, points):
        if key in self._lines:
            raise KeyError(f"Line {key!r} already exists")
        self._lines[key] = [_to_point_list(p) for p in points]
        self._created += 1

    def update_line(self, key, points):
        if key not in self._lines:
            raise KeyError(f"Line {key!r} does not exist")
        self._lines[key] = [_to_point_list(p) for p in points]
        self._updated += 1

    def destroy_line(self, key):
        if self._lines.pop(key, None) is not None:
            self._destroyed += 1

    def clear(self):
        self._destroyed += len(self._lines)
        self._lines.clear()

    def get_output(self) -> dict:
        """Get the current lines as a dictionary, sorted by key."""
        return {
            'lines': [
                {'key': list(key), 'points': points}
                for key, points in sorted(self._lines.items())
            ],
            'stats': {
                'line_count': len(self._lines),
                'created': self._created,
                'updated': self._updated,
                'destroyed': self._destroyed,
            }
        }
