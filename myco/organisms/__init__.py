from myco.organisms.organism import EMPTY_CLIPBOARD, MAX_RADIUS, Organism
from myco.organisms.organism_state import OrganismState

__all__ = ["EMPTY_CLIPBOARD", "MAX_RADIUS", "Organism", "OrganismState"]
