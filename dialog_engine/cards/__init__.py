from .renderer import render_attachment
from .templates import Template

__all__ = ["Template", "render_attachment"]
