from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator, NamedTuple

from loguru import logger

from myco.exceptions import PopulationError
from myco.organisms.organism import Organism
from myco.organisms.organism_state import OrganismState
from myco.population.removers import OrganismRemover
from myco.world.grid import Direction, Point

if TYPE_CHECKING:
    from myco.engine.config import RunConfig

__all__ = ["OrganismView", "Population", "RemovalCause", "SlotId"]


class SlotId(NamedTuple):
    """Stable handle of a live organism.

    Indices are reused after removal; the generation tells a stale handle
    apart from the organism that took its place.
    """

    index: int
    generation: int

    def __str__(self) -> str:
        return f"{self.index}:{self.generation}"


class RemovalCause(str, Enum):
    HALT = "halt"
    KILL = "kill"
    EXPIRED = "expired"
    CULLED = "culled"
    DEDUP = "dedup"


@dataclass(frozen=True)
class OrganismView:
    """Read-only snapshot of one organism for listings.

    ``ordinal`` is the position in the listing it came from and is only
    meaningful until the population changes; ``slot`` is the stable handle.
    """

    ordinal: int
    slot: SlotId
    focused: bool
    ip: Point
    direction: Direction
    ax: int
    bx: int
    flag: bool
    cursor: Point
    radius: int
    clipboard: bytes
    lifespan: int | None
    children: int | None
    delay: int
    state: OrganismState

    @classmethod
    def of(cls, ordinal: int, slot: SlotId, focused: bool, org: Organism) -> OrganismView:
        return cls(
            ordinal=ordinal,
            slot=slot,
            focused=focused,
            ip=org.ip,
            direction=org.direction,
            ax=org.ax,
            bx=org.bx,
            flag=org.flag,
            cursor=org.cursor,
            radius=org.radius,
            clipboard=org.clipboard,
            lifespan=org.lifespan,
            children=org.children,
            delay=org.delay,
            state=org.state,
        )


RemovalListener = Callable[[SlotId, Organism, RemovalCause], None]


class Population:
    """Live organisms in creation order, plus the focus and the size policies."""

    def __init__(
        self,
        config: RunConfig,
        remover: OrganismRemover,
        on_remove: RemovalListener | None = None,
    ):
        self.config = config
        self.remover = remover
        self.on_remove = on_remove

        self._organisms: dict[SlotId, Organism] = {}
        self._generations: list[int] = []
        self._free: list[int] = []
        self._focus: SlotId | None = None

    def __len__(self) -> int:
        return len(self._organisms)

    def __contains__(self, slot: object) -> bool:
        return slot in self._organisms

    def __iter__(self) -> Iterator[tuple[SlotId, Organism]]:
        return iter(list(self._organisms.items()))

    def slots(self) -> list[SlotId]:
        return list(self._organisms)

    def get(self, slot: SlotId) -> Organism | None:
        return self._organisms.get(slot)

    # ------------------------------ creation ------------------------------

    def _allocate(self) -> SlotId:
        if self._free:
            index = self._free.pop()
        else:
            index = len(self._generations)
            self._generations.append(0)
        return SlotId(index, self._generations[index])

    def insert(self, organism: Organism) -> SlotId:
        """Add ``organism`` as it is; it runs from the next cycle on."""
        if not organism.is_alive:
            raise PopulationError("Cannot insert a dead organism")
        slot = self._allocate()
        self._organisms[slot] = organism
        return slot

    def insert_child(self, child: Organism) -> SlotId:
        """Add a newborn, giving it the currently configured limits."""
        child.lifespan = self.config.lifespan
        child.children = self.config.max_children
        return self.insert(child)

    def spawn(self, ip: Point, direction: Direction = Direction.RIGHT) -> SlotId:
        organism = Organism(
            ip=ip,
            direction=direction,
            lifespan=self.config.lifespan,
            children=self.config.max_children,
        )
        slot = self.insert(organism)
        logger.debug("[Population] Spawned {} at {} facing {}", slot, ip, direction.value)
        return slot

    # ------------------------------ removal -------------------------------

    def remove(self, slot: SlotId, cause: RemovalCause) -> Organism:
        organism = self._organisms.pop(slot, None)
        if organism is None:
            raise PopulationError(f"No live organism in slot {slot}")
        organism.kill()
        self._generations[slot.index] += 1
        self._free.append(slot.index)
        if self._focus == slot:
            self._focus = None
        logger.debug("[Population] Removed {} ({})", slot, cause.value)
        if self.on_remove is not None:
            self.on_remove(slot, organism, cause)
        return organism

    def enforce_max(self) -> int:
        """Cull down to ``max_population``; returns how many were removed."""
        limit = self.config.max_population
        if limit is None or len(self) <= limit:
            return 0
        victims = self.remover(self.slots(), limit)
        for slot in victims:
            self.remove(slot, RemovalCause.CULLED)
        if victims:
            logger.debug(
                "[Population] Culled {} organism(s) (max={})", len(victims), limit
            )
        return len(victims)

    def charge_lifespan(self, slots: list[SlotId]) -> int:
        """Charge one cycle to each still-live slot; removes the expired."""
        expired = 0
        for slot in slots:
            organism = self._organisms.get(slot)
            if organism is None:
                continue
            if organism.tick_lifespan():
                self.remove(slot, RemovalCause.EXPIRED)
                expired += 1
        return expired

    def dedup(self) -> int:
        """Remove organisms whose state duplicates an earlier-created one."""
        seen: set[tuple] = set()
        duplicates: list[SlotId] = []
        for slot, organism in self._organisms.items():
            key = organism.state_key()
            if key in seen:
                duplicates.append(slot)
            else:
                seen.add(key)
        for slot in duplicates:
            self.remove(slot, RemovalCause.DEDUP)
        if duplicates:
            logger.debug("[Population] Deduplicated {} organism(s)", len(duplicates))
        return len(duplicates)

    # ------------------------------- focus --------------------------------

    @property
    def focus(self) -> SlotId | None:
        return self._focus

    def set_focus(self, slot: SlotId | None) -> bool:
        if slot is None:
            self._focus = None
            return True
        if slot not in self._organisms:
            return False
        self._focus = slot
        return True

    def focused(self) -> Organism | None:
        if self._focus is None:
            return None
        return self._organisms.get(self._focus)

    def kill_focused(self) -> bool:
        if self._focus is None:
            return False
        self.remove(self._focus, RemovalCause.KILL)
        return True

    # ------------------------------ listing -------------------------------

    def list_organisms(self) -> list[OrganismView]:
        return [
            OrganismView.of(i, slot, slot == self._focus, organism)
            for i, (slot, organism) in enumerate(self._organisms.items())
        ]

    def slot_for_ordinal(self, ordinal: int) -> SlotId | None:
        if not 0 <= ordinal < len(self._organisms):
            return None
        return self.slots()[ordinal]
