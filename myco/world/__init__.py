from myco.world.grid import ORIGIN, Direction, Grid, Point
from myco.world.noise import CosmicRayMode, NoiseInjector, WriteErrorScope

__all__ = [
    "ORIGIN",
    "CosmicRayMode",
    "Direction",
    "Grid",
    "NoiseInjector",
    "Point",
    "WriteErrorScope",
]
