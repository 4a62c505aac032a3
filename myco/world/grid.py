from __future__ import annotations

from enum import Enum
from typing import NamedTuple

import numpy as np

from myco.exceptions import GridError

__all__ = ["Direction", "Grid", "Point", "ORIGIN", "square_side"]


class Direction(str, Enum):
    LEFT = "<"
    RIGHT = ">"
    UP = "^"
    DOWN = "v"

    @property
    def delta(self) -> tuple[int, int]:
        return _DELTAS[self]

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LEFT, Direction.RIGHT)

    def reverse(self) -> Direction:
        """Reflect as in '#'."""
        return _REVERSE[self]

    def reflect_x(self) -> Direction:
        """Reflect as in '|': only horizontal travel is turned around."""
        return self.reverse() if self.is_horizontal else self

    def reflect_y(self) -> Direction:
        """Reflect as in '-': only vertical travel is turned around."""
        return self if self.is_horizontal else self.reverse()

    def reflect_fwd(self) -> Direction:
        """Reflect as in '/'."""
        return _REFLECT_FWD[self]

    def reflect_bwd(self) -> Direction:
        """Reflect as in '\\'."""
        return _REFLECT_BWD[self]


_DELTAS = {
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
}

_REVERSE = {
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
}

_REFLECT_FWD = {
    Direction.LEFT: Direction.DOWN,
    Direction.RIGHT: Direction.UP,
    Direction.UP: Direction.RIGHT,
    Direction.DOWN: Direction.LEFT,
}

_REFLECT_BWD = {
    Direction.LEFT: Direction.UP,
    Direction.RIGHT: Direction.DOWN,
    Direction.UP: Direction.LEFT,
    Direction.DOWN: Direction.RIGHT,
}


class Point(NamedTuple):
    x: int
    y: int

    def step(self, direction: Direction, n: int, width: int, height: int) -> Point:
        """Move ``n`` cells in ``direction`` on a ``width`` x ``height`` torus."""
        dx, dy = direction.delta
        return Point((self.x + dx * n) % width, (self.y + dy * n) % height)


ORIGIN = Point(0, 0)


class Grid:
    """Toroidal byte grid.

    Cells are stored row-major in a ``(height, width)`` uint8 array. Every
    coordinate handed to the public methods is wrapped first, so no address
    is ever out of bounds.
    """

    def __init__(self, width: int, height: int, fill: int = 0):
        if width <= 0:
            raise GridError("Width cannot be 0.")
        if height <= 0:
            raise GridError("Height cannot be 0.")
        self.width = width
        self.height = height
        self.data = np.full((height, width), fill & 0xFF, dtype=np.uint8)

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height})"

    @property
    def shape(self) -> tuple[int, int]:
        return self.width, self.height

    def normalize(self, pos: tuple[int, int]) -> Point:
        return Point(pos[0] % self.width, pos[1] % self.height)

    def read(self, pos: tuple[int, int]) -> int:
        p = self.normalize(pos)
        return int(self.data[p.y, p.x])

    def write(self, pos: tuple[int, int], value: int) -> None:
        p = self.normalize(pos)
        self.data[p.y, p.x] = value & 0xFF

    def step(self, pos: Point, direction: Direction, n: int = 1) -> Point:
        return pos.step(direction, n, self.width, self.height)

    def _square_index(self, center: tuple[int, int], radius: int):
        offsets = np.arange(-radius, radius + 1)
        rows = (center[1] + offsets) % self.height
        cols = (center[0] + offsets) % self.width
        return np.ix_(rows, cols)

    def square_points(self, center: tuple[int, int], radius: int) -> list[Point]:
        """Wrapped points of the (2r+1)^2 square, row-major from the top-left."""
        return [
            Point((center[0] + dx) % self.width, (center[1] + dy) % self.height)
            for dy in range(-radius, radius + 1)
            for dx in range(-radius, radius + 1)
        ]

    def read_square(self, center: tuple[int, int], radius: int) -> bytes:
        return self.data[self._square_index(center, radius)].tobytes()

    def write_square(self, center: tuple[int, int], buffer: bytes) -> None:
        side = square_side(len(buffer))
        block = np.frombuffer(buffer, dtype=np.uint8).reshape(side, side)
        # Sequential assignment so a square larger than the grid wraps onto
        # itself with the last write winning, like cell-by-cell writes would.
        for point, value in zip(self.square_points(center, side // 2), block.ravel()):
            self.data[point.y, point.x] = value

    def view(self, start: tuple[int, int], width: int, height: int) -> np.ndarray:
        """A wrapped ``height`` x ``width`` window whose top-left is ``start``."""
        rows = (start[1] + np.arange(height)) % self.height
        cols = (start[0] + np.arange(width)) % self.width
        return self.data[np.ix_(rows, cols)].copy()

    def snapshot(self) -> np.ndarray:
        return self.data.copy()

    def fill(self, value: int) -> None:
        self.data.fill(value & 0xFF)


def square_side(length: int) -> int:
    """Side of an odd square buffer in [1, 21]; raises on anything else."""
    side = int(round(length**0.5))
    if side * side != length or side % 2 == 0 or not 1 <= side <= 21:
        raise ValueError(f"{length} is not the size of an odd square buffer in [1, 21]")
    return side
