"""Reading surfaces and the excerpt helpers they share."""

from epubspoon.surfaces.excerpts import context_text, find_excerpt, label_excerpt
from epubspoon.surfaces.surface import Surface, SurfaceKind

__all__ = ["Surface", "SurfaceKind", "context_text", "find_excerpt", "label_excerpt"]
