"""Presentation-side consumers of segment events. Geometry only, no visuals."""

from .base_render_context import BaseRenderContext
from .dict_render_context import DictRenderContext
from .json_render_context import JSONRenderContext

__all__ = ['BaseRenderContext', 'DictRenderContext', 'JSONRenderContext']
