from __future__ import annotations

from myco.engine.config import RunConfig, WorldConfig
from myco.engine.core import RunReport, Simulation
from myco.engine.metrics import SimulationMetrics
