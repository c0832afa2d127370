"""Preview module for looking at the converging image.

Components:
    display: Display pipeline (tone mapping, gamma) and Matplotlib preview
    interactive: Taichi GGUI fly-through window

The renderer's output is linear, unclamped radiance; the display pipeline
turns it into something a standard monitor can show.

Example:
    >>> from src.pathtrace.preview import show_preview
    >>> from src.pathtrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(512, 512)
    >>> renderer.render(100)
    >>> show_preview(renderer, tone_map="reinhard")

For the interactive GGUI preview:
    >>> from src.pathtrace.preview import InteractivePreview
    >>> InteractivePreview(800, 600).run()
"""

from src.pathtrace.preview.display import (
    ToneMapMethod,
    apply_gamma,
    count_invalid_pixels,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from src.pathtrace.preview.interactive import InteractivePreview

__all__ = [
    # Interactive preview
    "InteractivePreview",
    # Display functions
    "show_preview",
    # Display pipeline
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "count_invalid_pixels",
    "ToneMapMethod",
]
