from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from myco.population.manager import SlotId


class OrganismRemover(ABC):
    """Base class for population cap policies."""

    @abstractmethod
    def __call__(self, slots: list[SlotId], max_size_to_keep: int) -> list[SlotId]:
        """Return the slots to remove, in removal order.

        ``slots`` is the population in creation order.
        """


class RandomRemover(OrganismRemover):
    """Removes uniformly random organisms, one generator draw per removal.

    Each draw indexes the population as it stands after the previous removal,
    so the result matches removing organisms one at a time.
    """

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

    def __call__(self, slots: list[SlotId], max_size_to_keep: int) -> list[SlotId]:
        remaining = list(slots)
        removed: list[SlotId] = []
        while len(remaining) > max_size_to_keep:
            index = int(self.rng.integers(len(remaining)))
            removed.append(remaining.pop(index))
        return removed


class OldestRemover(OrganismRemover):
    """Removes the earliest-created organisms first. Draws nothing."""

    def __call__(self, slots: list[SlotId], max_size_to_keep: int) -> list[SlotId]:
        num_to_remove = max(0, len(slots) - max_size_to_keep)
        return list(slots[:num_to_remove])
