from myco.engine import RunConfig, RunReport, Simulation, SimulationMetrics, WorldConfig
from myco.population import OrganismView, SlotId
from myco.world import Direction, Point

__version__ = "0.1.0"

__all__ = [
    "Direction",
    "OrganismView",
    "Point",
    "RunConfig",
    "RunReport",
    "Simulation",
    "SimulationMetrics",
    "SlotId",
    "WorldConfig",
]
