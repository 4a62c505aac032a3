from myco.population.manager import OrganismView, Population, RemovalCause, SlotId
from myco.population.removers import OldestRemover, OrganismRemover, RandomRemover

__all__ = [
    "OldestRemover",
    "OrganismRemover",
    "OrganismView",
    "Population",
    "RandomRemover",
    "RemovalCause",
    "SlotId",
]
