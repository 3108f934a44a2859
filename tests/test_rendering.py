"""Tests for framebuffer rendering and screenshots."""

import numpy as np
import pytest
from PIL import Image
from chip8vm import chip8_display_to_rgb, create_color_scheme, save_screenshot


def frame_with_pixel(x, y):
    display = np.zeros(64 * 32, dtype=np.uint8)
    display[y * 64 + x] = 1
    return display


class TestDisplayToRGB:

    def test_shape_and_colors(self):
        rgb = chip8_display_to_rgb(frame_with_pixel(3, 2), scale=1)

        assert rgb.shape == (32, 64, 3)
        assert rgb.dtype == np.uint8
        assert tuple(rgb[2, 3]) == (0, 255, 0)
        assert tuple(rgb[0, 0]) == (0, 0, 0)

    def test_scale(self):
        rgb = chip8_display_to_rgb(frame_with_pixel(1, 1), scale=4)

        assert rgb.shape == (128, 256, 3)
        assert (rgb[4:8, 4:8] == (0, 255, 0)).all()
        assert (rgb[0:4, 0:4] == 0).all()

    def test_accepts_shaped_array(self):
        display = frame_with_pixel(5, 6).reshape(32, 64).astype(bool)
        rgb = chip8_display_to_rgb(display, scale=1)
        assert tuple(rgb[6, 5]) == (0, 255, 0)

    def test_grid(self):
        rgb = chip8_display_to_rgb(np.zeros(2048), scale=4, grid_color=(128, 128, 128))
        assert tuple(rgb[0, 1]) == (128, 128, 128)
        assert tuple(rgb[1, 1]) == (0, 0, 0)

    def test_wrong_size(self):
        with pytest.raises(ValueError):
            chip8_display_to_rgb(np.zeros(100))


class TestColorSchemes:

    @pytest.mark.parametrize("name", ["classic", "amber", "white", "paper", "blue", "retro"])
    def test_known(self, name):
        on_color, off_color = create_color_scheme(name)
        assert on_color != off_color

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_color_scheme("neon")


def test_save_screenshot(tmp_path):
    path = tmp_path / "frame.png"

    save_screenshot(frame_with_pixel(0, 0), str(path), scale=2, color_scheme="paper")

    with Image.open(path) as image:
        assert image.size == (128, 64)
        assert image.convert("RGB").getpixel((0, 0)) == (0, 0, 0)
        assert image.convert("RGB").getpixel((5, 5)) == (255, 255, 255)
