import numpy as np
import pytest

from myco.engine.config import RunConfig, WorldConfig
from myco.engine.core import Simulation
from myco.vm.instructions import Instruction
from myco.world.grid import Grid
from myco.world.noise import NoiseInjector

NOP = int(Instruction.NOP)


@pytest.fixture
def grid() -> Grid:
    return Grid(8, 8, fill=NOP)


@pytest.fixture
def noise() -> NoiseInjector:
    return NoiseInjector(np.random.default_rng(0), RunConfig())


@pytest.fixture
def make_sim():
    def factory(width: int = 16, height: int = 16, seed: int = 1, **run) -> Simulation:
        world = WorldConfig(width=width, height=height, seed=seed, fill=NOP)
        return Simulation(world, RunConfig(**run))

    return factory
