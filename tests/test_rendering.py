"""Tests for rendering helpers."""

import cv2
import numpy as np
import pytest
from PIL import Image
from vipax import chip8_display_to_rgb, create_color_scheme, batch_render, create_state
from vipax.rendering import save_frame, create_video


def display_with_pixel(x, y):
    display = np.zeros((64, 32), dtype=bool)
    display[x, y] = True
    return display


class TestRendering:
    def test_rgb_orientation(self):
        rgb = chip8_display_to_rgb(display_with_pixel(10, 3), scale=1)
        assert rgb.shape == (32, 64, 3)
        assert tuple(rgb[3, 10]) == (0, 255, 0)
        assert tuple(rgb[10, 3]) == (0, 0, 0)

    def test_rgb_scale(self):
        rgb = chip8_display_to_rgb(display_with_pixel(0, 0), scale=4)
        assert rgb.shape == (128, 256, 3)
        assert (rgb[:4, :4, 1] == 255).all()
        assert not rgb[4:, 4:].any()

    def test_color_schemes(self):
        on, off = create_color_scheme("amber")
        assert on == (255, 176, 0)
        assert off == (0, 0, 0)

    def test_unknown_color_scheme(self):
        with pytest.raises(ValueError):
            create_color_scheme("plaid")

    def test_batch_render(self):
        displays = [create_state().display] * 3
        grid = batch_render(displays, scale=1)
        # 2x2 grid with 5 pixel padding
        assert grid.shape == (32 * 2 + 5, 64 * 2 + 5, 4)
        assert grid[-1, -1, 3] == 0  # Empty slot is transparent

    def test_save_frame(self, tmp_path):
        filename = tmp_path / "frame.png"
        save_frame(display_with_pixel(1, 1), str(filename), scale=2, color_scheme="white")
        with Image.open(filename) as image:
            assert image.size == (128, 64)
            assert image.getpixel((2, 2)) == (255, 255, 255)

    def test_create_video_bad_shape(self, tmp_path):
        with pytest.raises(ValueError):
            create_video(np.zeros((2, 32, 64), dtype=bool), filename=str(tmp_path / "out.mp4"))

    def test_create_video_without_frames(self, tmp_path, machine):
        """An empty recording writes nothing and does not fail."""
        filename = tmp_path / "empty.mp4"
        create_video(machine.run(0, record=True), filename=str(filename))
        assert not filename.exists()

    def test_create_video_writes_mp4(self, tmp_path):
        frames = np.stack([display_with_pixel(i, i) for i in range(8)])
        filename = tmp_path / "out.mp4"

        create_video(frames, filename=str(filename), fps=30, scale=2)

        assert filename.stat().st_size > 0
        capture = cv2.VideoCapture(str(filename))
        try:
            ok, frame = capture.read()
            assert ok
            assert frame.shape == (64, 128, 3)
        finally:
            capture.release()
