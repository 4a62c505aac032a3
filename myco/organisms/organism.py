from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from myco.organisms.organism_state import OrganismState, validate_transition
from myco.vm.instructions import WALL_BYTE
from myco.world.grid import Direction, Point, square_side

if TYPE_CHECKING:
    from myco.world.grid import Grid

MAX_RADIUS = 10
EMPTY_CLIPBOARD = b"\x00"


@dataclass
class Organism:
    """Execution context of one organism.

    ``lifespan`` and ``children`` are ``None`` when unlimited; otherwise they
    count the cycles / births the organism has left. Both are fixed from the
    run configuration at creation time, so changing the limits later never
    affects organisms that already exist.
    """

    ip: Point
    direction: Direction = Direction.RIGHT
    ax: int = 0
    bx: int = 0
    flag: bool = False
    cursor: Point | None = None
    radius: int = 0
    clipboard: bytes = EMPTY_CLIPBOARD
    lifespan: int | None = None
    children: int | None = None
    delay: int = 0
    state: OrganismState = field(default=OrganismState.READY, compare=False)

    def __post_init__(self) -> None:
        if self.cursor is None:
            self.cursor = self.ip
        if not 0 <= self.radius <= MAX_RADIUS:
            raise ValueError(f"radius {self.radius} outside [0, {MAX_RADIUS}]")
        square_side(len(self.clipboard))

    def __str__(self) -> str:
        return (
            f"{self.direction.value}({self.ip.x}, {self.ip.y})\t"
            f"ax={self.ax} bx={self.bx}"
        )

    # -------------------------- derived --------------------------

    @property
    def clipboard_side(self) -> int:
        return square_side(len(self.clipboard))

    @property
    def is_alive(self) -> bool:
        return self.state != OrganismState.DEAD

    @property
    def is_delaying(self) -> bool:
        return self.state == OrganismState.DELAYING

    def state_key(self) -> tuple:
        """Everything the interpreter's future behaviour depends on."""
        return (
            self.ip,
            self.direction,
            self.ax,
            self.bx,
            self.flag,
            self.radius,
            self.cursor,
            self.clipboard,
            self.lifespan,
            self.children,
            self.delay,
        )

    def copy(self) -> Organism:
        return replace(self)

    # -------------------------- mutation --------------------------

    def set_state(self, new: OrganismState) -> None:
        validate_transition(self.state, new)
        self.state = new

    def advance(self, grid: Grid) -> None:
        self.ip = grid.step(self.ip, self.direction)

    def set_radius(self, value: int) -> None:
        """Out-of-range values are ignored."""
        if 0 <= value <= MAX_RADIUS:
            self.radius = value

    def try_move_cursor(self, target: Point, grid: Grid) -> bool:
        if grid.read(target) == WALL_BYTE:
            return False
        self.cursor = target
        return True

    def begin_delay(self, cycles: int) -> None:
        if cycles <= 0:
            return
        self.delay = cycles
        self.set_state(OrganismState.DELAYING)

    def tick_delay(self, grid: Grid) -> bool:
        """Count down one delayed cycle; True once the organism is ready again."""
        if self.delay > 0:
            self.delay -= 1
        if self.delay == 0:
            self.advance(grid)
            self.set_state(OrganismState.READY)
            return True
        return False

    def tick_lifespan(self) -> bool:
        """Charge one cycle of life; True when the organism has expired."""
        if self.lifespan is None:
            return False
        self.lifespan = max(0, self.lifespan - 1)
        return self.lifespan == 0

    def take_child(self) -> bool:
        """Consume one unit of the child budget; False when exhausted."""
        if self.children is None:
            return True
        if self.children == 0:
            return False
        self.children -= 1
        return True

    def kill(self) -> None:
        if self.is_alive:
            self.set_state(OrganismState.DEAD)
