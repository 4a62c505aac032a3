"""Seeded corruption of the grid: write errors and cosmic rays.

Both models draw from the single generator owned by the simulation. The draw
order is part of the reproducibility contract:

* a write of ``k`` cells under the ``per_write`` scope draws ``k`` trials and
  then one random byte per triggered cell, in cell order;
* under ``per_instruction`` it draws one trial, then (on trigger) ``k`` bytes;
* cosmic rays draw the strike count (a Bernoulli trial for the fractional part
  of the rate, or one Poisson sample), then ``x``, ``y`` and the byte for each
  strike.

A disabled model consumes nothing.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger
import numpy as np

from myco.world.grid import Grid, Point

if TYPE_CHECKING:
    from myco.engine.config import RunConfig


class WriteErrorScope(str, Enum):
    PER_WRITE = "per_write"
    PER_INSTRUCTION = "per_instruction"


class CosmicRayMode(str, Enum):
    EXPECTED = "expected"
    POISSON = "poisson"


class NoiseInjector:
    def __init__(self, rng: np.random.Generator, config: RunConfig):
        self.rng = rng
        self.config = config
        self.write_errors = 0
        self.cosmic_ray_strikes = 0

    # -------------------------- write errors --------------------------

    def _write_error_probability(self) -> float:
        chance = self.config.write_error_chance
        if not chance:
            return 0.0
        return 1.0 / chance

    def corrupt(self, values: bytes) -> bytes:
        """Return ``values`` as they will actually land on the grid."""
        p = self._write_error_probability()
        if p == 0.0 or not values:
            return values

        if self.config.write_error_scope == WriteErrorScope.PER_INSTRUCTION:
            if self.rng.random() >= p:
                return values
            hit = np.ones(len(values), dtype=bool)
        else:
            hit = self.rng.random(len(values)) < p

        count = int(hit.sum())
        if count == 0:
            return values

        out = np.frombuffer(values, dtype=np.uint8).copy()
        out[hit] = self.rng.integers(0, 256, size=count, dtype=np.uint8)
        self.write_errors += count
        logger.trace("[Noise] {} write error(s)", count)
        return out.tobytes()

    def write(self, grid: Grid, pos: Point, value: int) -> None:
        """Organism-initiated single-cell write."""
        grid.write(pos, self.corrupt(bytes([value & 0xFF]))[0])

    def write_square(self, grid: Grid, center: Point, buffer: bytes) -> None:
        """Organism-initiated square write (clipboard paste)."""
        grid.write_square(center, self.corrupt(buffer))

    # -------------------------- cosmic rays ---------------------------

    def strike_count(self) -> int:
        rate = self.config.cosmic_ray_rate
        if rate <= 0:
            return 0
        if self.config.cosmic_ray_mode == CosmicRayMode.POISSON:
            return int(self.rng.poisson(rate))
        whole = int(rate)
        frac = rate - whole
        if frac > 0 and self.rng.random() < frac:
            whole += 1
        return whole

    def cosmic_rays(self, grid: Grid) -> int:
        """Apply one cycle's worth of strikes; returns how many landed."""
        strikes = self.strike_count()
        for _ in range(strikes):
            x = int(self.rng.integers(0, grid.width))
            y = int(self.rng.integers(0, grid.height))
            value = int(self.rng.integers(0, 256))
            grid.write(Point(x, y), value)
        if strikes:
            logger.trace("[Noise] {} cosmic ray strike(s)", strikes)
        self.cosmic_ray_strikes += strikes
        return strikes
