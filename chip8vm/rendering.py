"""CHIP-8 rendering utilities for visualization."""

from typing import Tuple

import numpy as np
from PIL import Image

from chip8vm.constants import SCREEN_HEIGHT, SCREEN_SIZE, SCREEN_WIDTH

# (on_color, off_color) per scheme name
COLOR_SCHEMES = {
    "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
    "amber": ((255, 176, 0), (0, 0, 0)),  # Amber on black
    "white": ((255, 255, 255), (0, 0, 0)),  # White on black
    "paper": ((0, 0, 0), (255, 255, 255)),  # Black on white
    "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
    "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
}


def chip8_display_to_rgb(
    display: np.ndarray,
    scale: int = 8,
    on_color: Tuple[int, int, int] = (0, 255, 0),
    off_color: Tuple[int, int, int] = (0, 0, 0),
    grid_color: Tuple[int, int, int] = None,
) -> np.ndarray:
    """Convert a CHIP-8 framebuffer to an RGB array with optional upscaling.

    Args:
        display: Flat row-major array of 2048 cells (any truthy value is lit),
            or an already shaped (32, 64) array
        scale: Upscaling factor for better visibility (default: 8x)
        on_color: RGB color for "on" pixels (default: green)
        off_color: RGB color for "off" pixels (default: black)
        grid_color: If given, outline every CHIP-8 pixel in this color.
            Needs a scale of at least 2.

    Returns:
        RGB array of shape (height*scale, width*scale, 3) with uint8 values
    """
    pixels = np.asarray(display).astype(np.bool_)
    if pixels.size != SCREEN_SIZE:
        raise ValueError(f"Expected {SCREEN_SIZE} display cells, got {pixels.size}")
    pixels = pixels.reshape(SCREEN_HEIGHT, SCREEN_WIDTH)

    rgb_frame = np.zeros((SCREEN_HEIGHT, SCREEN_WIDTH, 3), dtype=np.uint8)

    rgb_frame[pixels] = on_color
    rgb_frame[~pixels] = off_color

    # Apply upscaling using nearest neighbor interpolation
    if scale > 1:
        rgb_frame = np.repeat(np.repeat(rgb_frame, scale, axis=0), scale, axis=1)

        if grid_color is not None:
            rgb_frame[::scale, :] = grid_color
            rgb_frame[:, ::scale] = grid_color

    return rgb_frame


def create_color_scheme(
    scheme: str = "classic",
) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
    """Get predefined color schemes for CHIP-8 rendering.

    Args:
        scheme: Color scheme name ("classic", "amber", "white", "paper", "blue", "retro")

    Returns:
        Tuple of (on_color, off_color) as RGB tuples
    """
    if scheme not in COLOR_SCHEMES:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES.keys())}"
        )

    return COLOR_SCHEMES[scheme]


def save_screenshot(
    display: np.ndarray,
    filename: str,
    scale: int = 8,
    color_scheme: str = "classic",
    grid: bool = False,
) -> Image.Image:
    """Render a framebuffer and save it as an image file.

    The format follows the file extension (PNG recommended).
    """
    on_color, off_color = create_color_scheme(color_scheme)
    rgb = chip8_display_to_rgb(
        display,
        scale=scale,
        on_color=on_color,
        off_color=off_color,
        grid_color=(128, 128, 128) if grid else None,
    )
    image = Image.fromarray(rgb)
    image.save(filename)
    return image
