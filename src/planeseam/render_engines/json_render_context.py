"""
JSON Render Context for PlaneSeam.

This render context keeps the current seam lines in a JSON-serializable form,
suitable for web viewers and other JSON-based consumers.
"""

import json

from planeseam.render_engines.dict_render_context import DictRenderContext


class JSONRenderContext(DictRenderContext):
    """
    Render context that outputs seam lines as JSON.

    Output format (via get_output()):
        {
            'lines': [
                {
                    'id': 'first-second',
                    'key': [first_id, second_id],
                    'start': [x, y, z],
                    'end': [x, y, z],
                    'length': float,
                },
                ...
            ],
        }

    The 'id' string is for display only; consumers should match lines on 'key'.
    """

    def get_output(self) -> dict:
        lines = []
        for key, (start, end) in sorted(self.lines.items()):
            dx, dy, dz = end[0] - start[0], end[1] - start[1], end[2] - start[2]
            lines.append({
                'id': f"{key[0]}-{key[1]}",
                'key': [key[0], key[1]],
                'start': start,
                'end': end,
                'length': (dx * dx + dy * dy + dz * dz) ** 0.5,
            })
        return {'lines': lines}

    def to_json(self, **kwargs) -> str:
        """Serialize get_output() with json.dumps (kwargs are passed through)."""
        return json.dumps(self.get_output(), **kwargs)
