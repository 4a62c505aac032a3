"""PNG and GIF renderings of the grid, one pixel per cell coloured by category."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger
import numpy as np
from PIL import Image

from myco.exceptions import ExportError
from myco.vm.instructions import Category, category_of

if TYPE_CHECKING:
    from myco.engine.core import Simulation

GIF_MAX_SIDE = 65535

# byte -> palette index, and palette index -> RGB
_CATEGORY_LUT = np.array(
    [category_of(value).palette_index for value in range(256)], dtype=np.uint8
)
_PALETTE = np.array([category.rgb for category in Category], dtype=np.uint8)


def category_indices(cells: np.ndarray) -> np.ndarray:
    """Map a uint8 cell array to palette indices of the same shape."""
    return _CATEGORY_LUT[cells]


def render_rgb(cells: np.ndarray, pixel_scale: int = 1) -> np.ndarray:
    """``(h * scale, w * scale, 3)`` RGB image of a cell array."""
    rgb = _PALETTE[category_indices(cells)]
    if pixel_scale > 1:
        rgb = rgb.repeat(pixel_scale, axis=0).repeat(pixel_scale, axis=1)
    return rgb


def _check_target(path: Path) -> None:
    if path.exists():
        raise ExportError(f"Refusing to overwrite existing file {path}")


def export_png(simulation: Simulation, path: str | Path, pixel_scale: int = 1) -> Path:
    path = Path(path)
    _check_target(path)
    if pixel_scale <= 0:
        raise ExportError(f"pixel_scale must be positive, got {pixel_scale}")

    rgb = render_rgb(simulation.grid.snapshot(), pixel_scale)
    height, width = rgb.shape[:2]
    image = Image.frombytes("RGB", (width, height), np.ascontiguousarray(rgb).tobytes())
    try:
        image.save(path, format="PNG")
    except OSError as exc:
        raise ExportError(f"Failed to write {path}: {exc}") from exc

    logger.info("[Export] PNG {}x{} written to {}", width, height, path)
    return path


def export_gif(
    simulation: Simulation,
    path: str | Path,
    num_frames: int = 100,
    step: int = 4,
    frame_duration_ms: int = 100,
) -> Path:
    """Record an animation of the running world.

    The first frame is the current grid; every later frame is taken after
    ``step`` more cycles, so the export advances the simulation by
    ``(num_frames - 1) * step`` cycles.
    """
    path = Path(path)
    _check_target(path)
    if num_frames <= 0:
        raise ExportError("A GIF needs at least one frame")
    if step <= 0:
        raise ExportError("The frame step must be at least one cycle")
    grid = simulation.grid
    if grid.width > GIF_MAX_SIDE or grid.height > GIF_MAX_SIDE:
        raise ExportError(f"{grid!r} is too big for a GIF")

    palette = _PALETTE.ravel().tolist()
    frames: list[Image.Image] = []
    for i in range(num_frames):
        if i:
            simulation.run_cycles(step)
        indices = np.ascontiguousarray(category_indices(grid.data))
        frame = Image.frombytes("P", (grid.width, grid.height), indices.tobytes())
        frame.putpalette(palette)
        frames.append(frame)

    try:
        frames[0].save(
            path,
            format="GIF",
            save_all=True,
            append_images=frames[1:],
            loop=0,
            duration=frame_duration_ms,
            optimize=False,
        )
    except OSError as exc:
        raise ExportError(f"Failed to write {path}: {exc}") from exc

    logger.info(
        "[Export] GIF with {} frame(s), step {} written to {}", num_frames, step, path
    )
    return path
