import asyncio

import numpy as np
from pydantic import ValidationError
import pytest

from myco.engine.config import U64_MAX, RunConfig, WorldConfig
from myco.engine.core import Simulation
from myco.exceptions import UnknownMnemonicError
from myco.organisms.organism_state import OrganismState
from myco.vm.instructions import WALL_BYTE, Instruction
from myco.world.grid import Direction, Point


def focused_sim(make_sim, pos=(4, 4), **run):
    sim = make_sim(**run)
    slot = sim.spawn(pos)
    assert sim.set_focus(slot)
    return sim


def test_default_world_shape():
    sim = Simulation(WorldConfig(seed=3))
    assert sim.grid.shape == (500, 500)
    assert sim.grid.read((0, 0)) == int(Instruction.NOP)


def test_seed_is_reported(make_sim):
    assert make_sim(seed=1234).get_seed() == 1234


def test_missing_seed_is_drawn():
    sim = Simulation(WorldConfig(width=4, height=4))
    assert 0 <= sim.get_seed() <= U64_MAX


def test_seed_must_fit_in_64_bits():
    with pytest.raises(ValidationError):
        WorldConfig(seed=2**64)


def test_spawn_normalizes_position(make_sim):
    sim = make_sim(width=10, height=10)
    sim.spawn((-1, 12), Direction.LEFT)
    (view,) = sim.list_organisms()
    assert view.ip == view.cursor == Point(9, 2)
    assert view.direction == Direction.LEFT
    assert sim.metrics.spawned == 1


def test_user_writes_bypass_write_errors(make_sim):
    sim = make_sim(write_error_chance=1)
    sim.write_instruction((0, 0), "##")
    sim.write_byte((1, 0), 77)
    assert sim.grid.read((0, 0)) == WALL_BYTE
    assert sim.grid.read((1, 0)) == 77
    assert sim.noise.write_errors == 0


def test_write_byte_range(make_sim):
    with pytest.raises(ValueError):
        make_sim().write_byte((0, 0), 256)


def test_write_instruction_unknown(make_sim):
    with pytest.raises(UnknownMnemonicError):
        make_sim().write_instruction((0, 0), "??")


def test_write_instructions_row_wraps(make_sim):
    sim = make_sim(width=4, height=4)
    sim.write_instructions((3, 1), ["+a", "+b", "@@"])
    assert [sim.grid.read((x, 1)) for x in (3, 0, 1)] == [14, 15, 0]


def test_write_instructions_is_all_or_nothing(make_sim):
    sim = make_sim()
    with pytest.raises(UnknownMnemonicError):
        sim.write_instructions((0, 0), ["+a", "xx"])
    assert sim.grid.read((0, 0)) == int(Instruction.NOP)


def test_move_cursor_respects_walls(make_sim):
    sim = focused_sim(make_sim)
    sim.write_instruction((6, 4), "##")
    assert sim.move_cursor(Direction.RIGHT, 5) == 1
    assert sim.population.focused().cursor == Point(5, 4)


def test_move_cursor_without_focus(make_sim):
    assert make_sim().move_cursor(Direction.UP) is None


def test_move_ip(make_sim):
    sim = focused_sim(make_sim, pos=(1, 1))
    assert sim.move_ip(Direction.UP, 3)
    assert sim.population.focused().ip == Point(1, 14)
    sim.set_focus(None)
    assert sim.move_ip(Direction.UP) is False


def test_run_instructions_without_focus(make_sim):
    assert make_sim().run_instructions_on_focused(["+a"]) is None


def test_run_instructions_keeps_ip(make_sim):
    sim = focused_sim(make_sim)
    report = sim.run_instructions_on_focused(["+a", "+a", "ba", "!v"])
    organism = sim.population.focused()
    assert report.executed == 4
    assert (organism.ax, organism.bx) == (2, 2)
    assert organism.direction == Direction.DOWN
    assert organism.ip == Point(4, 4)


def test_run_instructions_resolves_before_running(make_sim):
    sim = focused_sim(make_sim)
    with pytest.raises(UnknownMnemonicError):
        sim.run_instructions_on_focused(["+a", "zz"])
    assert sim.population.focused().ax == 0


def test_run_instructions_inserts_children(make_sim):
    sim = focused_sim(make_sim)
    report = sim.run_instructions_on_focused(["-=", "m="])
    assert len(report.spawned) == 2
    assert len(sim.population) == 3
    assert sim.population.focused().flag is True
    assert all(slot in sim.population for slot in report.spawned)


def test_run_instructions_ignores_halt(make_sim):
    sim = focused_sim(make_sim)
    report = sim.run_instructions_on_focused(["@@", "+a"])
    assert report.halt_requested
    assert sim.population.focused().ax == 1
    assert len(sim.population) == 1


def test_run_instructions_discards_delay(make_sim):
    sim = focused_sim(make_sim)
    sim.run_instructions_on_focused(["+a", "+a", ".a"])
    organism = sim.population.focused()
    assert organism.state == OrganismState.READY
    assert organism.delay == 0


def test_run_instructions_writes_are_noisy(make_sim):
    sim = focused_sim(make_sim, write_error_chance=1)
    report = sim.run_instructions_on_focused(["ma"])
    assert report.write_errors == 1
    assert sim.metrics.write_errors == 1


def test_kill_focused(make_sim):
    sim = focused_sim(make_sim)
    assert sim.kill_focused()
    assert sim.focus is None
    assert sim.kill_focused() is False


def test_focus_by_ordinal(make_sim):
    sim = make_sim()
    sim.spawn((0, 0))
    second = sim.spawn((1, 0))
    assert sim.slot_for_ordinal(1) == second
    assert sim.set_focus(sim.slot_for_ordinal(1))
    assert [v.focused for v in sim.list_organisms()] == [False, True]


@pytest.mark.parametrize(
    "setter, value",
    [
        ("set_max", -1),
        ("set_lifespan", 0),
        ("set_max_children", -2),
        ("set_write_error_chance", -1),
        ("set_cosmic_ray_rate", -0.5),
        ("set_speed", 0),
    ],
)
def test_invalid_settings_are_rejected(make_sim, setter, value):
    with pytest.raises(ValidationError):
        getattr(make_sim(), setter)(value)


def test_settings_update_config(make_sim):
    sim = make_sim()
    sim.set_max(10)
    sim.set_lifespan(None)
    sim.set_max_children(3)
    sim.set_write_error_chance(50)
    sim.set_cosmic_ray_rate(0.25)
    sim.set_auto_dedup_rate(5)
    sim.set_speed(20)
    config = sim.config
    assert (config.max_population, config.lifespan, config.max_children) == (10, None, 3)
    assert (config.write_error_chance, config.cosmic_ray_rate) == (50, 0.25)
    assert (config.auto_dedup_period, config.cycle_speed_ms) == (5, 20)


def test_status(make_sim):
    sim = make_sim()
    sim.spawn((0, 0))
    sim.run_cycles(2)
    status = sim.status()
    assert status["population"] == 1
    assert status["cycles"] == 2
    assert status["running"] is False


def test_negative_cycle_count(make_sim):
    with pytest.raises(ValueError):
        make_sim().run_cycles(-1)


def test_run_loop_honours_max_cycles(make_sim):
    sim = make_sim(max_cycles=3, cycle_speed_ms=1, log_interval=1)
    sim.spawn((0, 0))
    asyncio.run(sim.run())
    assert sim.cycle == 3
    assert not sim.is_running()


def test_run_loop_matches_run_cycles(make_sim):
    run = dict(seed=9, cosmic_ray_rate=2.5, max_cycles=5, cycle_speed_ms=1)
    looped, stepped = make_sim(**run), make_sim(**run)
    asyncio.run(looped.run())
    stepped.run_cycles(5)
    assert np.array_equal(looped.grid.data, stepped.grid.data)


def test_pause_resume_stop(make_sim):
    sim = make_sim(cycle_speed_ms=1)

    async def scenario():
        task = asyncio.create_task(sim.run())
        await asyncio.sleep(0.05)
        sim.pause()
        await asyncio.sleep(0.01)
        paused_at = sim.cycle
        await asyncio.sleep(0.05)
        assert sim.cycle == paused_at
        sim.resume()
        await asyncio.sleep(0.05)
        assert sim.cycle > paused_at
        sim.stop()
        await asyncio.wait_for(task, timeout=1)

    asyncio.run(scenario())
    assert not sim.is_running()


def test_config_objects_are_shared():
    config = RunConfig()
    sim = Simulation(WorldConfig(width=4, height=4, seed=0), config)
    sim.set_max(1)
    assert config.max_population == 1
