#!/usr/bin/env python3
"""Render the default scene progressively and show the converged image.

Frames are accumulated into the running mean with progress printed after
each batch. The result is displayed in a Matplotlib window.

Usage:
    python -m examples.render_preview [options]

Options:
    --width WIDTH       Image width in pixels (default: 512)
    --height HEIGHT     Image height in pixels (default: 384)
    --frames FRAMES     Number of frames to accumulate (default: 64)
    --batch-size SIZE   Frames per progress update (default: 8)
    --tone-map METHOD   none, reinhard or exposure (default: reinhard)
    --quiet             Suppress progress output

Example:
    python -m examples.render_preview --width 256 --height 192 --frames 128
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the default scene progressively.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=512,
        help="Image width in pixels (default: 512)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=384,
        help="Image height in pixels (default: 384)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=64,
        help="Number of frames to accumulate (default: 64)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=8,
        help="Frames per progress update (default: 8)",
    )
    parser.add_argument(
        "--tone-map",
        choices=("none", "reinhard", "exposure"),
        default="reinhard",
        help="Tone mapping applied before display (default: reinhard)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_preview(
    width: int = 512,
    height: int = 384,
    num_frames: int = 64,
    batch_size: int = 8,
    tone_map: str = "reinhard",
    quiet: bool = False,
) -> None:
    """Accumulate frames of the default scene and display the result.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_frames: Number of frames to accumulate.
        batch_size: Frames rendered between progress updates.
        tone_map: Tone mapping method for display.
        quiet: If True, suppress progress output.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtrace.core.progressive import ProgressiveRenderer
    from src.pathtrace.preview.display import show_preview
    from src.pathtrace.scene.default_scene import create_default_camera, load_default_scene

    if not quiet:
        print(f"Loading default scene ({width}x{height})...")

    load_default_scene()
    renderer = ProgressiveRenderer(width, height)
    renderer.set_camera(create_default_camera(width, height))

    if not quiet:
        print(f"Accumulating {num_frames} frames...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            frames_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} frames "
                f"({progress_pct:.1f}%) - {frames_per_sec:.1f} frames/s",
                end="",
                flush=True,
            )

    renderer.render(num_frames, batch_size=batch_size, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress
        print(f"Total time: {time.time() - start_time:.2f}s")

    show_preview(renderer, tone_map=tone_map, gamma=2.2)


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_preview(
            width=args.width,
            height=args.height,
            num_frames=args.frames,
            batch_size=args.batch_size,
            tone_map=args.tone_map,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
