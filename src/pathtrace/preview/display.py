"""Matplotlib-based display of the converging image.

The Present pass produces linear, unclamped radiance. Before it can be
shown it goes through a small display pipeline:

1. Invalid pixels (NaN or infinite) are reported and zeroed
2. Optional tone mapping (Reinhard or exposure)
3. Gamma encoding and a final clamp to [0, 1]

Example:
    >>> from src.pathtrace.preview.display import show_preview
    >>> from src.pathtrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(512, 512)
    >>> renderer.render(100)
    >>> show_preview(renderer, tone_map="reinhard")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from src.pathtrace.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)

# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]


def _check_rgb(image: npt.NDArray[np.float32]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def count_invalid_pixels(image: npt.NDArray[np.float32]) -> int:
    """Count pixels holding a NaN or infinite channel.

    Args:
        image: Image array of shape (H, W, 3).

    Returns:
        Number of pixels with at least one non-finite channel.
    """
    _check_rgb(image)
    return int(np.count_nonzero(~np.isfinite(image).all(axis=2)))


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Apply Reinhard tone mapping: L / (1 + L)."""
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Apply exposure tone mapping: 1 - exp(-L * exposure).

    Args:
        image: Linear radiance of shape (H, W, 3).
        exposure: Higher values brighten the image.

    Returns:
        Tone mapped image in [0, 1].
    """
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode linear values with a power-law gamma.

    Values are clamped to [0, 1] first. A gamma of 1.0 returns the input
    unchanged.
    """
    if gamma == 1.0:
        return image

    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")

    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Run the display pipeline on a linear radiance image.

    Args:
        image: Linear radiance of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma encoding value (2.2 approximates sRGB).
        exposure: Exposure for the "exposure" tone map.

    Returns:
        Display-ready image in [0, 1].

    Raises:
        ValueError: If the image is not RGB or the tone map is unknown.
    """
    _check_rgb(image)

    invalid = count_invalid_pixels(image)
    if invalid:
        logger.warning("Image has %d non-finite pixels; displaying them as black", invalid)
    result = np.where(np.isfinite(image).all(axis=2, keepdims=True), image, 0.0)

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Show the renderer's current running mean in a Matplotlib figure.

    The default title reports the accumulated frame and sample counts.

    Args:
        renderer: The ProgressiveRenderer to display.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma encoding value.
        exposure: Exposure for the "exposure" tone map.
        title: Custom figure title.
        figsize: Figure size in inches (width, height).
        block: Whether to block until the figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(
        renderer.get_image_numpy(gamma=1.0),
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"{renderer.frame_count} frames / {renderer.sample_count} SPP"
        if tone_map != "none":
            title += f" ({tone_map})"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
