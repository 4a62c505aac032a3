"""Organism instruction interpreter.

``execute`` decodes the byte under an organism's IP and runs it. Handlers are
registered per opcode; a byte without a handler (unmapped bytes, ``..`` and
``##``) is a no-op. After a non-halting instruction the IP moves one cell in
the current direction, unless the instruction started a delay. In that case
the IP moves when the delay runs out (see ``Organism.tick_delay``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from loguru import logger

from myco.organisms.organism import Organism
from myco.vm.instructions import Instruction
from myco.world.grid import Direction, Grid
from myco.world.noise import NoiseInjector

__all__ = ["Effect", "EffectKind", "ExecutionContext", "execute", "run_instruction"]


class EffectKind(str, Enum):
    CONTINUE = "continue"
    SPAWN = "spawn"
    HALT = "halt"


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    child: Organism | None = None

    @property
    def is_halt(self) -> bool:
        return self.kind == EffectKind.HALT


CONTINUE = Effect(EffectKind.CONTINUE)
HALT = Effect(EffectKind.HALT)


@dataclass
class ExecutionContext:
    grid: Grid
    noise: NoiseInjector
    instruction_costs: bool = False


class _Fork(Enum):
    FLAG = "flag"
    CURSOR = "cursor"


_Outcome = Effect | _Fork | None
Handler = Callable[[Organism, ExecutionContext], _Outcome]

_HANDLERS: dict[Instruction, Handler] = {}


def handles(*instructions: Instruction) -> Callable[[Handler], Handler]:
    def decorator(fn: Handler) -> Handler:
        for ins in instructions:
            _HANDLERS[ins] = fn
        return fn

    return decorator


def _register(ins: Instruction, fn: Handler) -> None:
    _HANDLERS[ins] = fn


# ------------------------------- public -------------------------------


def execute(
    organism: Organism,
    grid: Grid,
    noise: NoiseInjector,
    *,
    instruction_costs: bool = False,
) -> Effect:
    """Run the instruction under ``organism.ip``."""
    ins = Instruction.from_byte(grid.read(organism.ip))
    return run_instruction(
        organism, ins, ExecutionContext(grid, noise, instruction_costs)
    )


def run_instruction(
    organism: Organism,
    ins: Instruction | None,
    ctx: ExecutionContext,
    *,
    advance: bool = True,
) -> Effect:
    """Run ``ins`` on ``organism``; ``advance=False`` leaves the IP alone."""
    handler = _HANDLERS.get(ins) if ins is not None else None
    outcome = handler(organism, ctx) if handler is not None else None

    if outcome is HALT:
        return HALT
    if advance and not organism.is_delaying:
        organism.advance(ctx.grid)
    if isinstance(outcome, _Fork):
        return _fork(organism, outcome)
    return CONTINUE


def _fork(parent: Organism, kind: _Fork) -> Effect:
    if kind == _Fork.FLAG:
        parent.flag = True
    if not parent.take_child():
        logger.trace("[VM] fork at {} suppressed: child budget exhausted", parent.ip)
        return CONTINUE
    child = parent.copy()
    if kind == _Fork.FLAG:
        child.flag = False
    else:
        child.ip = parent.cursor
    return Effect(EffectKind.SPAWN, child)


# ------------------------------ special -------------------------------


@handles(Instruction.HALT)
def _halt(org: Organism, ctx: ExecutionContext) -> _Outcome:
    return HALT


@handles(Instruction.FLAG_FORK)
def _flag_fork(org: Organism, ctx: ExecutionContext) -> _Outcome:
    return _Fork.FLAG


@handles(Instruction.CURSOR_FORK)
def _cursor_fork(org: Organism, ctx: ExecutionContext) -> _Outcome:
    return _Fork.CURSOR


# ---------------------------- calculation -----------------------------


def _assign(register: str, fn: Callable[[int, int], int]) -> Handler:
    """Handler writing ``fn(ax, bx)`` (pre-mutation values) into ``register``."""

    def handler(org: Organism, ctx: ExecutionContext) -> _Outcome:
        setattr(org, register, int(fn(org.ax, org.bx)) & 0xFF)
        return None

    return handler


for _ins, _register_name, _fn in [
    (Instruction.ZERO_A, "ax", lambda a, b: 0),
    (Instruction.ZERO_B, "bx", lambda a, b: 0),
    (Instruction.COPY_A, "bx", lambda a, b: a),
    (Instruction.COPY_B, "ax", lambda a, b: b),
    (Instruction.SUM_A, "ax", lambda a, b: a + b),
    (Instruction.SUM_B, "bx", lambda a, b: a + b),
    (Instruction.NEGATE_A, "ax", lambda a, b: -a),
    (Instruction.NEGATE_B, "bx", lambda a, b: -b),
    (Instruction.INC_A, "ax", lambda a, b: a + 1),
    (Instruction.INC_B, "bx", lambda a, b: b + 1),
    (Instruction.DEC_A, "ax", lambda a, b: a - 1),
    (Instruction.DEC_B, "bx", lambda a, b: b - 1),
    (Instruction.MUL_A, "ax", lambda a, b: a * b),
    (Instruction.MUL_B, "bx", lambda a, b: a * b),
    (Instruction.DOUBLE_A, "ax", lambda a, b: a * 2),
    (Instruction.DOUBLE_B, "bx", lambda a, b: b * 2),
    (Instruction.HALVE_A, "ax", lambda a, b: a // 2),
    (Instruction.HALVE_B, "bx", lambda a, b: b // 2),
    (Instruction.MOD2_A, "ax", lambda a, b: a % 2),
    (Instruction.MOD2_B, "bx", lambda a, b: b % 2),
    (Instruction.AND_A, "ax", lambda a, b: a & b),
    (Instruction.AND_B, "bx", lambda a, b: a & b),
    (Instruction.OR_A, "ax", lambda a, b: a | b),
    (Instruction.OR_B, "bx", lambda a, b: a | b),
    (Instruction.XOR_A, "ax", lambda a, b: a ^ b),
    (Instruction.XOR_B, "bx", lambda a, b: a ^ b),
    (Instruction.EQ_A, "ax", lambda a, b: a == b),
    (Instruction.EQ_B, "bx", lambda a, b: a == b),
    (Instruction.NEQ_A, "ax", lambda a, b: a != b),
    (Instruction.NEQ_B, "bx", lambda a, b: a != b),
    (Instruction.NONZERO_A, "ax", lambda a, b: a != 0),
    (Instruction.NONZERO_B, "bx", lambda a, b: b != 0),
    (Instruction.IS_ZERO_A, "ax", lambda a, b: a == 0),
    (Instruction.IS_ZERO_B, "bx", lambda a, b: b == 0),
]:
    _register(_ins, _assign(_register_name, _fn))


@handles(Instruction.SWAP_AB)
def _swap(org: Organism, ctx: ExecutionContext) -> _Outcome:
    tmp = org.ax
    org.ax = org.bx
    org.bx = tmp
    return None


# ------------------------------ control -------------------------------


@handles(Instruction.WAIT_A)
def _wait_a(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.begin_delay(org.ax)
    return None


@handles(Instruction.WAIT_B)
def _wait_b(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.begin_delay(org.bx)
    return None


def _set_direction(direction: Direction, conditional: bool) -> Handler:
    def handler(org: Organism, ctx: ExecutionContext) -> _Outcome:
        if org.flag or not conditional:
            org.direction = direction
        return None

    return handler


for _ins, _direction in [
    (Instruction.MOVE_L, Direction.LEFT),
    (Instruction.MOVE_R, Direction.RIGHT),
    (Instruction.MOVE_U, Direction.UP),
    (Instruction.MOVE_D, Direction.DOWN),
]:
    _register(_ins, _set_direction(_direction, conditional=False))

for _ins, _direction in [
    (Instruction.COND_MOVE_L, Direction.LEFT),
    (Instruction.COND_MOVE_R, Direction.RIGHT),
    (Instruction.COND_MOVE_U, Direction.UP),
    (Instruction.COND_MOVE_D, Direction.DOWN),
]:
    _register(_ins, _set_direction(_direction, conditional=True))


@handles(Instruction.COND_HALT)
def _cond_halt(org: Organism, ctx: ExecutionContext) -> _Outcome:
    return HALT if org.flag else None


def _reflect(method: Callable[[Direction], Direction]) -> Handler:
    def handler(org: Organism, ctx: ExecutionContext) -> _Outcome:
        org.direction = method(org.direction)
        return None

    return handler


_register(Instruction.REFLECT_ALL, _reflect(Direction.reverse))
_register(Instruction.REFLECT_X, _reflect(Direction.reflect_x))
_register(Instruction.REFLECT_Y, _reflect(Direction.reflect_y))
_register(Instruction.REFLECT_FWD, _reflect(Direction.reflect_fwd))
_register(Instruction.REFLECT_BWD, _reflect(Direction.reflect_bwd))


def _set_flag(fn: Callable[[Organism], bool]) -> Handler:
    def handler(org: Organism, ctx: ExecutionContext) -> _Outcome:
        org.flag = bool(fn(org))
        return None

    return handler


_register(Instruction.SET_FLAG, _set_flag(lambda o: True))
_register(Instruction.CLEAR_FLAG, _set_flag(lambda o: False))
_register(Instruction.FLAG_ZERO_A, _set_flag(lambda o: o.ax == 0))
_register(Instruction.FLAG_NONZERO_A, _set_flag(lambda o: o.ax != 0))
_register(Instruction.FLAG_ZERO_B, _set_flag(lambda o: o.bx == 0))
_register(Instruction.FLAG_NONZERO_B, _set_flag(lambda o: o.bx != 0))
_register(Instruction.FLAG_EQ, _set_flag(lambda o: o.ax == o.bx))
_register(Instruction.FLAG_NEQ, _set_flag(lambda o: o.ax != o.bx))
_register(Instruction.FLAG_NOT, _set_flag(lambda o: not o.flag))


@handles(Instruction.FLAG_TO_A)
def _flag_to_a(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.ax = int(org.flag)
    return None


@handles(Instruction.FLAG_TO_B)
def _flag_to_b(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.bx = int(org.flag)
    return None


# ------------------------------- cursor -------------------------------


def _cursor_step(direction: Direction) -> Handler:
    def handler(org: Organism, ctx: ExecutionContext) -> _Outcome:
        org.try_move_cursor(ctx.grid.step(org.cursor, direction), ctx.grid)
        return None

    return handler


def _cursor_repeat(direction: Direction, register: str) -> Handler:
    def handler(org: Organism, ctx: ExecutionContext) -> _Outcome:
        taken = move_cursor(org, direction, getattr(org, register), ctx.grid)
        if ctx.instruction_costs:
            org.begin_delay(taken)
        return None

    return handler


def move_cursor(org: Organism, direction: Direction, steps: int, grid: Grid) -> int:
    """Step the cursor up to ``steps`` times, stopping at the first wall.

    Returns the number of steps actually taken.
    """
    taken = 0
    while taken < steps:
        if not org.try_move_cursor(grid.step(org.cursor, direction), grid):
            break
        taken += 1
    return taken


for _ins, _direction in [
    (Instruction.CURSOR_L, Direction.LEFT),
    (Instruction.CURSOR_R, Direction.RIGHT),
    (Instruction.CURSOR_U, Direction.UP),
    (Instruction.CURSOR_D, Direction.DOWN),
]:
    _register(_ins, _cursor_step(_direction))

for _ins, _direction, _register_name in [
    (Instruction.CURSOR_L_TIMES_A, Direction.LEFT, "ax"),
    (Instruction.CURSOR_R_TIMES_A, Direction.RIGHT, "ax"),
    (Instruction.CURSOR_U_TIMES_A, Direction.UP, "ax"),
    (Instruction.CURSOR_D_TIMES_A, Direction.DOWN, "ax"),
    (Instruction.CURSOR_L_TIMES_B, Direction.LEFT, "bx"),
    (Instruction.CURSOR_R_TIMES_B, Direction.RIGHT, "bx"),
    (Instruction.CURSOR_U_TIMES_B, Direction.UP, "bx"),
    (Instruction.CURSOR_D_TIMES_B, Direction.DOWN, "bx"),
]:
    _register(_ins, _cursor_repeat(_direction, _register_name))


@handles(Instruction.CURSOR_HOME)
def _cursor_home(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.try_move_cursor(org.ip, ctx.grid)
    return None


# ------------------------------ selection -----------------------------


@handles(Instruction.RADIUS_A)
def _radius_a(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.set_radius(org.ax)
    return None


@handles(Instruction.RADIUS_B)
def _radius_b(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.set_radius(org.bx)
    return None


@handles(Instruction.RADIUS_RESET)
def _radius_reset(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.radius = 0
    return None


@handles(Instruction.RADIUS_TO_A)
def _radius_to_a(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.ax = org.radius
    return None


@handles(Instruction.RADIUS_TO_B)
def _radius_to_b(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.bx = org.radius
    return None


@handles(Instruction.INC_RADIUS)
def _inc_radius(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.set_radius(org.radius + 1)
    return None


@handles(Instruction.DEC_RADIUS)
def _dec_radius(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.set_radius(max(0, org.radius - 1))
    return None


@handles(Instruction.CURSOR_WRITE_A)
def _cursor_write_a(org: Organism, ctx: ExecutionContext) -> _Outcome:
    ctx.noise.write(ctx.grid, org.cursor, org.ax)
    return None


@handles(Instruction.CURSOR_WRITE_B)
def _cursor_write_b(org: Organism, ctx: ExecutionContext) -> _Outcome:
    ctx.noise.write(ctx.grid, org.cursor, org.bx)
    return None


@handles(Instruction.CURSOR_READ_A)
def _cursor_read_a(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.ax = ctx.grid.read(org.cursor)
    return None


@handles(Instruction.CURSOR_READ_B)
def _cursor_read_b(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.bx = ctx.grid.read(org.cursor)
    return None


@handles(Instruction.COPY)
def _copy(org: Organism, ctx: ExecutionContext) -> _Outcome:
    org.clipboard = ctx.grid.read_square(org.cursor, org.radius)
    return None


@handles(Instruction.PASTE)
def _paste(org: Organism, ctx: ExecutionContext) -> _Outcome:
    ctx.noise.write_square(ctx.grid, org.cursor, org.clipboard)
    if ctx.instruction_costs:
        org.begin_delay(org.clipboard_side)
    return None
