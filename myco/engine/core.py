from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone

from loguru import logger
import numpy as np

from myco.engine.config import U64_MAX, RunConfig, WorldConfig
from myco.engine.metrics import SimulationMetrics
from myco.exceptions import SimulationError
from myco.organisms.organism import Organism
from myco.population.manager import (
    OrganismView,
    Population,
    RemovalCause,
    SlotId,
)
from myco.population.removers import OrganismRemover, RandomRemover
from myco.vm import interpreter
from myco.vm.instructions import Instruction
from myco.world.grid import Direction, Grid
from myco.world.noise import NoiseInjector

__all__ = ["RunReport", "Simulation"]


@dataclass(frozen=True)
class RunReport:
    """Outcome of running instructions directly on the focused organism."""

    executed: int
    spawned: list[SlotId] = field(default_factory=list)
    halt_requested: bool = False
    write_errors: int = 0


class Simulation:
    """
    Deterministic world of organisms:
    - One generator, seeded once, feeds every random decision.
    - Everything outside the run loop mutates state only between cycles.
    """

    def __init__(
        self,
        world: WorldConfig | None = None,
        config: RunConfig | None = None,
        remover: OrganismRemover | None = None,
    ):
        self.world = world or WorldConfig()
        self.config = config or RunConfig()

        self.seed = self.world.seed
        if self.seed is None:
            self.seed = int(np.random.SeedSequence().entropy) & U64_MAX
        self.rng = np.random.default_rng(self.seed)

        self.grid = Grid(self.world.width, self.world.height, self.world.fill)
        self.noise = NoiseInjector(self.rng, self.config)
        self.population = Population(
            self.config,
            remover if remover is not None else RandomRemover(self.rng),
            on_remove=self._on_remove,
        )
        self.metrics = SimulationMetrics()
        self.cycle = 0

        self._running = False
        self._paused = False

        logger.info(
            "[Simulation] Init | grid={}x{}, seed={}, remover={}",
            self.grid.width,
            self.grid.height,
            self.seed,
            type(self.population.remover).__name__,
        )

    # ------------------------------ scheduler -----------------------------

    def step_cycle(self) -> None:
        """Advance the world by exactly one cycle."""
        ready: list[SlotId] = []
        delaying: list[SlotId] = []
        for slot, organism in self.population:
            (delaying if organism.is_delaying else ready).append(slot)

        for slot in ready:
            organism = self.population.get(slot)
            if organism is None:
                continue
            effect = interpreter.execute(
                organism,
                self.grid,
                self.noise,
                instruction_costs=self.config.instruction_costs,
            )
            if effect.kind == interpreter.EffectKind.SPAWN:
                self._adopt(effect.child)
            elif effect.is_halt:
                self.population.remove(slot, RemovalCause.HALT)

        for slot in delaying:
            organism = self.population.get(slot)
            if organism is not None:
                organism.tick_delay(self.grid)

        self.noise.cosmic_rays(self.grid)
        self.population.enforce_max()
        self.population.charge_lifespan(ready)

        self.cycle += 1
        if self._every(self.cycle, self.config.auto_dedup_period):
            self.population.dedup()

        self._sync_metrics()

    def run_cycles(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"Cannot run a negative number of cycles: {n}")
        for _ in range(n):
            self.step_cycle()
        logger.debug("[Simulation] Ran {} cycle(s), now at cycle {}", n, self.cycle)

    def _adopt(self, child: Organism) -> SlotId:
        slot = self.population.insert_child(child)
        self.metrics.births += 1
        return slot

    def _on_remove(self, slot: SlotId, organism: Organism, cause: RemovalCause) -> None:
        self.metrics.record_removal(cause)

    def _sync_metrics(self) -> None:
        self.metrics.cycles = self.cycle
        self.metrics.write_errors = self.noise.write_errors
        self.metrics.cosmic_ray_strikes = self.noise.cosmic_ray_strikes

    @staticmethod
    def _every(i: int, n: int) -> bool:
        return n > 0 and i % n == 0

    # ------------------------------- world --------------------------------

    def spawn(self, pos: tuple[int, int], direction: Direction = Direction.RIGHT) -> SlotId:
        slot = self.population.spawn(self.grid.normalize(pos), direction)
        self.metrics.spawned += 1
        return slot

    def write_byte(self, pos: tuple[int, int], value: int) -> None:
        if not 0 <= value <= 255:
            raise ValueError(f"Byte out of range: {value}")
        self.grid.write(pos, value)

    def write_instruction(self, pos: tuple[int, int], mnemonic: str) -> None:
        self.grid.write(pos, Instruction.from_mnemonic(mnemonic))

    def write_instructions(self, pos: tuple[int, int], mnemonics: list[str]) -> None:
        """Write a row of instructions rightwards from ``pos``, wrapping."""
        program = [Instruction.from_mnemonic(m) for m in mnemonics]
        cursor = self.grid.normalize(pos)
        for ins in program:
            self.grid.write(cursor, ins)
            cursor = self.grid.step(cursor, Direction.RIGHT)

    def get_seed(self) -> int:
        return self.seed

    # ------------------------------- focus --------------------------------

    @property
    def focus(self) -> SlotId | None:
        return self.population.focus

    def set_focus(self, slot: SlotId | None) -> bool:
        return self.population.set_focus(slot)

    def kill_focused(self) -> bool:
        return self.population.kill_focused()

    def move_cursor(self, direction: Direction, steps: int = 1) -> int | None:
        """Move the focused organism's cursor; returns the steps actually taken."""
        organism = self.population.focused()
        if organism is None:
            return None
        return interpreter.move_cursor(organism, direction, steps, self.grid)

    def move_ip(self, direction: Direction, steps: int = 1) -> bool:
        organism = self.population.focused()
        if organism is None:
            return False
        organism.ip = self.grid.step(organism.ip, direction, steps)
        return True

    def run_instructions_on_focused(self, mnemonics: list[str]) -> RunReport | None:
        """Execute instructions on the focused organism outside the cycle.

        The IP stays put, delays are dropped, halts are only reported and
        children join the population once every instruction has run.
        """
        program = [Instruction.from_mnemonic(m) for m in mnemonics]
        organism = self.population.focused()
        if organism is None:
            return None

        ctx = interpreter.ExecutionContext(
            self.grid, self.noise, self.config.instruction_costs
        )
        errors_before = self.noise.write_errors
        halt_requested = False
        children: list[Organism] = []
        for ins in program:
            delay, state = organism.delay, organism.state
            effect = interpreter.run_instruction(organism, ins, ctx, advance=False)
            organism.delay, organism.state = delay, state
            if effect.kind == interpreter.EffectKind.SPAWN:
                children.append(effect.child)
            elif effect.is_halt:
                halt_requested = True

        spawned = [self._adopt(child) for child in children]
        self._sync_metrics()
        if halt_requested:
            logger.info("[Simulation] Halt ignored for focused organism; use kill_focused")
        return RunReport(
            executed=len(program),
            spawned=spawned,
            halt_requested=halt_requested,
            write_errors=self.noise.write_errors - errors_before,
        )

    # ----------------------------- population -----------------------------

    def dedup(self) -> int:
        return self.population.dedup()

    def list_organisms(self) -> list[OrganismView]:
        return self.population.list_organisms()

    def slot_for_ordinal(self, ordinal: int) -> SlotId | None:
        return self.population.slot_for_ordinal(ordinal)

    # ------------------------------ settings ------------------------------

    def set_max(self, limit: int | None) -> None:
        self.config.max_population = limit
        logger.info("[Simulation] Organism limit: {}", limit)

    def set_lifespan(self, limit: int | None) -> None:
        self.config.lifespan = limit
        logger.info("[Simulation] Lifespan of new organisms: {}", limit)

    def set_max_children(self, limit: int | None) -> None:
        self.config.max_children = limit
        logger.info("[Simulation] Child limit of new organisms: {}", limit)

    def set_write_error_chance(self, chance: int | None) -> None:
        self.config.write_error_chance = chance
        logger.info("[Simulation] Write error chance: 1/{}", chance)

    def set_cosmic_ray_rate(self, rate: float) -> None:
        self.config.cosmic_ray_rate = rate
        logger.info("[Simulation] Cosmic ray rate: {}", rate)

    def set_auto_dedup_rate(self, period: int | None) -> None:
        self.config.auto_dedup_period = period or 0
        logger.info("[Simulation] Auto dedup period: {}", self.config.auto_dedup_period)

    def set_speed(self, ms: int) -> None:
        self.config.cycle_speed_ms = ms

    # ------------------------------ run loop ------------------------------

    async def run(self) -> None:
        """Step cycles every ``cycle_speed_ms`` until stopped or capped."""
        logger.info("[Simulation] Start")
        self._running = True

        try:
            while self._running:
                if self._paused:
                    await asyncio.sleep(self.config.cycle_speed_ms / 1000)
                    continue

                if self._reached_cycle_cap():
                    logger.info("[Simulation] Stop: max_cycles={}", self.config.max_cycles)
                    break

                try:
                    self.step_cycle()
                except Exception as exc:
                    raise SimulationError(f"Cycle {self.cycle} failed: {exc}") from exc
                self.metrics.last_cycle_time = datetime.now(timezone.utc)

                if self._every(self.cycle, self.config.log_interval):
                    self._log_metrics()

                await asyncio.sleep(self.config.cycle_speed_ms / 1000)
        finally:
            self._running = False
            logger.info("[Simulation] Stopped at cycle {}", self.cycle)

    def _reached_cycle_cap(self) -> bool:
        cap = self.config.max_cycles
        return cap is not None and self.cycle >= cap

    def _log_metrics(self) -> None:
        m = self.status()
        metrics_str = " | ".join(f"{k}={v}" for k, v in m.items())
        logger.info("[Simulation] {}", metrics_str)

    def stop(self) -> None:
        """Request the run loop to exit after the current cycle."""
        self._running = False

    def pause(self) -> None:
        """Stop stepping; the run loop keeps idling."""
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_running(self) -> bool:
        return self._running

    def status(self) -> dict[str, object]:
        """Light status snapshot for UIs and logs."""
        return {
            "running": self._running,
            "paused": self._paused,
            "population": len(self.population),
            "focus": str(self.focus) if self.focus is not None else None,
            **self.metrics.to_dict(),
        }
