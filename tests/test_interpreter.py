from dataclasses import replace

import numpy as np
import pytest

from myco.engine.config import RunConfig
from myco.organisms.organism import Organism
from myco.organisms.organism_state import OrganismState
from myco.vm.instructions import WALL_BYTE, Instruction
from myco.vm.interpreter import (
    EffectKind,
    ExecutionContext,
    execute,
    run_instruction,
)
from myco.world.grid import Direction, Point
from myco.world.noise import NoiseInjector

START = Point(2, 2)


def run(grid, noise, mnemonic, **fields):
    organism = Organism(ip=START, **fields)
    grid.write(START, Instruction.from_mnemonic(mnemonic))
    effect = execute(organism, grid, noise)
    return organism, effect


@pytest.mark.parametrize(
    "mnemonic, ax, bx, expected_ax, expected_bx",
    [
        ("0a", 9, 9, 0, 9),
        ("0b", 9, 9, 9, 0),
        ("ba", 7, 1, 7, 7),
        ("ab", 7, 1, 1, 1),
        ("::", 3, 4, 4, 3),
        ("a+", 200, 100, 44, 100),
        ("b+", 1, 2, 1, 3),
        ("a-", 3, 0, 253, 0),
        ("b-", 0, 0, 0, 0),
        ("+a", 255, 0, 0, 0),
        ("+b", 0, 255, 0, 0),
        ("-a", 0, 0, 255, 0),
        ("-b", 0, 5, 0, 4),
        ("a*", 16, 16, 0, 16),
        ("b*", 3, 5, 3, 15),
        ("aa", 200, 0, 144, 0),
        ("bb", 0, 3, 0, 6),
        ("a/", 5, 0, 2, 0),
        ("b/", 0, 9, 0, 4),
        ("a%", 5, 0, 1, 0),
        ("b%", 0, 4, 0, 0),
        ("a&", 12, 10, 8, 10),
        ("b|", 12, 10, 12, 14),
        ("a#", 12, 10, 6, 10),
        ("a=", 4, 4, 1, 4),
        ("b=", 4, 5, 4, 0),
        ("a!", 4, 5, 1, 5),
        ("b!", 4, 4, 4, 0),
        ("a1", 9, 0, 1, 0),
        ("b1", 0, 0, 0, 0),
        ("a0", 0, 3, 1, 3),
        ("b0", 0, 3, 0, 0),
    ],
)
def test_calculation(grid, noise, mnemonic, ax, bx, expected_ax, expected_bx):
    organism, effect = run(grid, noise, mnemonic, ax=ax, bx=bx)
    assert effect.kind == EffectKind.CONTINUE
    assert (organism.ax, organism.bx) == (expected_ax, expected_bx)
    assert organism.ip == Point(3, 2)


@pytest.mark.parametrize("value", [int(Instruction.NOP), WALL_BYTE, 93, 255])
def test_noops_only_advance(grid, noise, value):
    organism = Organism(ip=START, ax=1, bx=2)
    before = organism.copy()
    grid.write(START, value)
    effect = execute(organism, grid, noise)
    assert effect.kind == EffectKind.CONTINUE
    assert replace(organism, ip=START) == before
    assert organism.ip == Point(3, 2)


def test_ip_wraps_at_edge(grid, noise):
    organism = Organism(ip=Point(7, 0))
    execute(organism, grid, noise)
    assert organism.ip == Point(0, 0)


def test_halt(grid, noise):
    organism, effect = run(grid, noise, "@@")
    assert effect.is_halt
    assert organism.ip == START


@pytest.mark.parametrize("flag, halts", [(True, True), (False, False)])
def test_conditional_halt(grid, noise, flag, halts):
    _, effect = run(grid, noise, "?@", flag=flag)
    assert effect.is_halt is halts


def test_direction_change_moves_in_new_direction(grid, noise):
    organism, _ = run(grid, noise, "!v")
    assert organism.direction == Direction.DOWN
    assert organism.ip == Point(2, 3)


@pytest.mark.parametrize("flag, expected", [(True, Direction.LEFT), (False, Direction.RIGHT)])
def test_conditional_direction(grid, noise, flag, expected):
    organism, _ = run(grid, noise, "?<", flag=flag)
    assert organism.direction == expected


@pytest.mark.parametrize(
    "mnemonic, direction, expected",
    [
        ("!#", Direction.RIGHT, Direction.LEFT),
        ("!|", Direction.UP, Direction.UP),
        ("!|", Direction.RIGHT, Direction.LEFT),
        ("!-", Direction.UP, Direction.DOWN),
        ("!-", Direction.LEFT, Direction.LEFT),
        ("!/", Direction.RIGHT, Direction.UP),
        ("!\\", Direction.RIGHT, Direction.DOWN),
    ],
)
def test_reflections(grid, noise, mnemonic, direction, expected):
    organism, _ = run(grid, noise, mnemonic, direction=direction)
    assert organism.direction == expected


@pytest.mark.parametrize(
    "mnemonic, fields, expected",
    [
        ("((", {}, True),
        ("))", {"flag": True}, False),
        ("(a", {"ax": 0}, True),
        (")a", {"ax": 0}, False),
        ("(b", {"bx": 1}, False),
        (")b", {"bx": 1}, True),
        ("(=", {"ax": 3, "bx": 3}, True),
        ("(!", {"ax": 3, "bx": 3}, False),
        (")(", {"flag": False}, True),
    ],
)
def test_flag_ops(grid, noise, mnemonic, fields, expected):
    organism, _ = run(grid, noise, mnemonic, **fields)
    assert organism.flag is expected


def test_flag_to_registers(grid, noise):
    organism, _ = run(grid, noise, "a(", flag=True, ax=9)
    assert organism.ax == 1
    organism, _ = run(grid, noise, "b(", flag=False, bx=9)
    assert organism.bx == 0


def test_wait_delays_without_advancing(grid, noise):
    organism, effect = run(grid, noise, ".a", ax=3)
    assert effect.kind == EffectKind.CONTINUE
    assert organism.state == OrganismState.DELAYING
    assert organism.delay == 3
    assert organism.ip == START


def test_wait_zero_is_a_noop(grid, noise):
    organism, _ = run(grid, noise, ".b", bx=0)
    assert organism.state == OrganismState.READY
    assert organism.ip == Point(3, 2)


def test_clone_differs_only_in_flag(grid, noise):
    organism, effect = run(grid, noise, "-=", ax=5, cursor=Point(6, 6))
    assert effect.kind == EffectKind.SPAWN
    child = effect.child
    assert organism.flag is True
    assert child.flag is False
    assert child.ip == organism.ip == Point(3, 2)
    assert replace(child, flag=True) == organism


def test_move_birth_starts_at_cursor(grid, noise):
    organism, effect = run(grid, noise, "m=", cursor=Point(6, 5))
    assert effect.kind == EffectKind.SPAWN
    assert effect.child.ip == Point(6, 5)
    assert organism.ip == Point(3, 2)
    assert replace(effect.child, ip=organism.ip) == organism


def test_exhausted_child_budget_suppresses_fork(grid, noise):
    organism, effect = run(grid, noise, "-=", children=0)
    assert effect.kind == EffectKind.CONTINUE
    assert organism.flag is True
    assert organism.ip == Point(3, 2)


def test_fork_consumes_child_budget(grid, noise):
    organism, effect = run(grid, noise, "m=", children=2)
    assert effect.kind == EffectKind.SPAWN
    assert organism.children == 1


def test_cursor_single_step(grid, noise):
    organism, _ = run(grid, noise, "#^")
    assert organism.cursor == Point(2, 1)


def test_cursor_blocked_by_wall(grid, noise):
    grid.write((3, 2), WALL_BYTE)
    organism, _ = run(grid, noise, "#>")
    assert organism.cursor == START


def test_cursor_repeat_stops_at_first_wall(grid, noise):
    grid.write((5, 2), WALL_BYTE)
    organism, _ = run(grid, noise, "a>", ax=6)
    assert organism.cursor == Point(4, 2)
    assert organism.state == OrganismState.READY


def test_cursor_repeat_wraps(grid, noise):
    organism, _ = run(grid, noise, "bv", bx=7)
    assert organism.cursor == Point(2, 1)


def test_cursor_home_returns_to_ip(grid, noise):
    organism, _ = run(grid, noise, "#0", cursor=Point(6, 6))
    assert organism.cursor == START


@pytest.mark.parametrize(
    "mnemonic, fields, expected",
    [
        ("ra", {"ax": 4}, 4),
        ("ra", {"ax": 11}, 2),
        ("rb", {"bx": 10}, 10),
        ("r0", {}, 0),
        ("r+", {}, 3),
        ("r-", {}, 1),
    ],
)
def test_radius(grid, noise, mnemonic, fields, expected):
    organism, _ = run(grid, noise, mnemonic, radius=2, **fields)
    assert organism.radius == expected


def test_radius_saturates(grid, noise):
    organism, _ = run(grid, noise, "r+", radius=10)
    assert organism.radius == 10
    organism, _ = run(grid, noise, "r-", radius=0)
    assert organism.radius == 0


def test_radius_to_registers(grid, noise):
    organism, _ = run(grid, noise, "ar", radius=6)
    assert organism.ax == 6
    organism, _ = run(grid, noise, "br", radius=6)
    assert organism.bx == 6


def test_cursor_write_and_read(grid, noise):
    organism, _ = run(grid, noise, "mb", bx=42, cursor=Point(0, 7))
    assert grid.read((0, 7)) == 42
    organism, _ = run(grid, noise, "am", cursor=Point(0, 7))
    assert organism.ax == 42


def test_copy_then_paste_leaves_region_unchanged(grid, noise):
    grid.data[:] = np.arange(64, dtype=np.uint8).reshape(8, 8)
    organism = Organism(ip=Point(6, 6), cursor=Point(1, 1), radius=1)
    ctx = ExecutionContext(grid, noise)
    before = grid.snapshot()
    run_instruction(organism, Instruction.COPY, ctx)
    assert organism.clipboard_side == 3
    run_instruction(organism, Instruction.PASTE, ctx)
    assert (grid.data == before).all()


def test_paste_writes_clipboard_at_cursor(grid, noise):
    organism = Organism(ip=START, cursor=Point(5, 5), clipboard=bytes(range(9)))
    run_instruction(organism, Instruction.PASTE, ExecutionContext(grid, noise))
    assert grid.read_square((5, 5), 1) == bytes(range(9))


def test_instruction_costs(grid, noise):
    ctx = ExecutionContext(grid, noise, instruction_costs=True)
    organism = Organism(ip=START, ax=3)
    run_instruction(organism, Instruction.CURSOR_D_TIMES_A, ctx)
    assert organism.cursor == Point(2, 5)
    assert organism.delay == 3
    assert organism.ip == START

    organism = Organism(ip=START, clipboard=bytes(25))
    run_instruction(organism, Instruction.PASTE, ctx)
    assert organism.delay == 5


def test_run_instruction_without_advance(grid, noise):
    organism = Organism(ip=START)
    run_instruction(organism, Instruction.INC_A, ExecutionContext(grid, noise), advance=False)
    assert organism.ax == 1
    assert organism.ip == START


def test_organism_writes_go_through_noise(grid):
    noisy = NoiseInjector(np.random.default_rng(3), RunConfig(write_error_chance=1))
    run(grid, noisy, "ma", ax=42, cursor=Point(0, 0))
    assert noisy.write_errors == 1
