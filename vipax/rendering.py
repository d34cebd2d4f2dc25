"""CHIP-8 rendering utilities: RGB conversion, image grids, screenshots and video."""
import time
from typing import Iterator, Sequence, Tuple, Union

import cv2
import jax.numpy as jnp
import numpy as np
from PIL import Image

from vipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT

Color = Tuple[int, int, int]

COLOR_SCHEMES = {
    "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
    "vip": ((255, 255, 255), (24, 24, 24)),  # COSMAC VIP monitor
    "amber": ((255, 176, 0), (0, 0, 0)),
    "white": ((255, 255, 255), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
    "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
}

GRID_PADDING = 5
PHOSPHOR_DECAY = 0.8


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Return ``(on_color, off_color)`` for a named scheme."""
    if scheme not in COLOR_SCHEMES:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES.keys())}"
        )
    return COLOR_SCHEMES[scheme]


def _upscale(image: np.ndarray, scale: int) -> np.ndarray:
    if scale <= 1:
        return image
    return image.repeat(scale, axis=0).repeat(scale, axis=1)


def _shade(intensity: np.ndarray, on_color: Color, off_color: Color) -> np.ndarray:
    """Blend between the two colors; ``intensity`` is (height, width) in [0, 1]."""
    on = np.asarray(on_color, dtype=np.float32)
    off = np.asarray(off_color, dtype=np.float32)
    rgb = off + intensity[..., None] * (on - off)
    return np.rint(rgb).astype(np.uint8)


def chip8_display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Color = (0, 255, 0),
    off_color: Color = (0, 0, 0),
) -> np.ndarray:
    """Convert a CHIP-8 display to an upscaled RGB image.

    Args:
        display: Boolean array of shape (64, 32), indexed ``[x, y]``
        scale: Nearest-neighbour upscaling factor
        on_color: RGB color for lit pixels
        off_color: RGB color for dark pixels

    Returns:
        uint8 array of shape (32*scale, 64*scale, 3)
    """
    intensity = np.asarray(display, dtype=np.float32).T
    return _upscale(_shade(intensity, on_color, off_color), scale)


def batch_render(
    displays: Union[jnp.ndarray, Sequence[jnp.ndarray]], scale: int = 4, color_scheme: str = "classic"
) -> np.ndarray:
    """Lay several displays out in a near-square RGBA grid.

    Useful to compare independent machines side by side, e.g. the same program
    run under different quirk sets. Gaps and unused cells are transparent.
    """
    on_color, off_color = create_color_scheme(color_scheme)
    count = len(displays)
    cols = int(np.ceil(np.sqrt(count)))
    rows = int(np.ceil(count / cols))

    cell_height, cell_width = SCREEN_HEIGHT * scale, SCREEN_WIDTH * scale
    grid = np.zeros(
        (rows * (cell_height + GRID_PADDING) - GRID_PADDING,
         cols * (cell_width + GRID_PADDING) - GRID_PADDING,
         4),
        dtype=np.uint8,
    )
    for i, display in enumerate(displays):
        row, col = divmod(i, cols)
        top = row * (cell_height + GRID_PADDING)
        left = col * (cell_width + GRID_PADDING)
        cell = grid[top:top + cell_height, left:left + cell_width]
        cell[..., :3] = chip8_display_to_rgb(display, scale, on_color, off_color)
        cell[..., 3] = 255
    return grid


def save_frame(
    display: jnp.ndarray,
    filename: str,
    scale: int = 8,
    color_scheme: str = "classic",
) -> Image.Image:
    """Save one display as an image file (format picked from the extension)."""
    on_color, off_color = create_color_scheme(color_scheme)
    image = Image.fromarray(chip8_display_to_rgb(display, scale, on_color, off_color))
    image.save(filename)
    return image


def phosphor_frames(displays: np.ndarray, persistence: bool = True) -> Iterator[np.ndarray]:
    """Yield (32, 64) intensities, with lit pixels fading out over a few frames."""
    glow = np.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=np.float32)
    for display in displays:
        lit = display.T.astype(np.float32)
        if persistence:
            glow = np.minimum(glow * PHOSPHOR_DECAY + lit, 1.0)
            yield glow
        else:
            yield lit


def create_video(
        displays: Union[jnp.ndarray, Sequence[jnp.ndarray]],
        filename: str = None,
        fps: float = 60.0,
        scale: int = 8,
        color_scheme: str = "classic",
        persistence: bool = True,
        display: bool = False
) -> None:
    """Write and/or show a sequence of displays as video.

    Args:
        displays: Displays of shape (N, 64, 32), e.g. from ``Machine.run(record=True)``
        filename: If provided, save video to this MP4 file
        fps: Video frame rate
        scale: Upscaling factor
        color_scheme: Color scheme for rendering
        persistence: Simulate phosphor afterglow
        display: If True, show video in window (press 'q' to quit, space to pause)
    """
    if filename is None and not display:
        return
    displays = np.asarray(displays, dtype=np.bool_)
    if displays.size == 0:
        return
    if displays.ndim != 3 or displays.shape[1:] != (SCREEN_WIDTH, SCREEN_HEIGHT):
        raise ValueError(
            f"Expected display shape (N, {SCREEN_WIDTH}, {SCREEN_HEIGHT}), got {displays.shape}"
        )

    on_color, off_color = create_color_scheme(color_scheme)
    writer = None
    if filename:
        size = (SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale)
        writer = cv2.VideoWriter(filename, cv2.VideoWriter_fourcc(*'mp4v'), fps, size)
    window_name = "vipax (q=quit, space=pause)"
    if display:
        cv2.namedWindow(window_name, cv2.WINDOW_AUTOSIZE)

    try:
        for i, intensity in enumerate(phosphor_frames(displays, persistence)):
            started = time.time()
            frame = cv2.cvtColor(_upscale(_shade(intensity, on_color, off_color), scale), cv2.COLOR_RGB2BGR)
            if writer:
                writer.write(frame)
            if not display:
                continue

            cv2.putText(frame, f"Frame {i + 1}/{len(displays)}",
                        (10, 25), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
            cv2.imshow(window_name, frame)
            if not _handle_preview_keys(cv2.waitKey(1) & 0xFF):
                break
            time.sleep(max(0.0, 1.0 / fps - (time.time() - started)))
    finally:
        if writer:
            writer.release()
        if display:
            cv2.destroyAllWindows()


def _handle_preview_keys(key: int) -> bool:
    """Process preview window keys; False means stop playback."""
    if key in (ord('q'), 27):  # 'q' or ESC
        return False
    if key == ord(' '):
        while True:
            key = cv2.waitKey(30) & 0xFF
            if key == ord(' '):
                return True
            if key in (ord('q'), 27):
                return False
    return True
