from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from myco.vm.instructions import Instruction
from myco.world.noise import CosmicRayMode, WriteErrorScope

U64_MAX = 2**64 - 1


class WorldConfig(BaseModel):
    """Shape, initial contents and seed of a simulated world."""

    width: int = Field(default=500, gt=0, description="Grid width in cells")
    height: int = Field(default=500, gt=0, description="Grid height in cells")
    fill: int = Field(
        default=int(Instruction.NOP),
        ge=0,
        le=255,
        description="Byte every cell starts with",
    )
    seed: Optional[int] = Field(
        default=None,
        ge=0,
        le=U64_MAX,
        description="64-bit RNG seed (None = draw one from OS entropy)",
    )


class RunConfig(BaseModel):
    """Runtime knobs of the simulation; every field may change between cycles."""

    cycle_speed_ms: int = Field(
        default=100, gt=0, description="Delay between cycles of the run loop"
    )
    write_error_chance: Optional[int] = Field(
        default=None,
        ge=0,
        description="Each organism write is corrupted with probability 1/n (None or 0 = off)",
    )
    write_error_scope: WriteErrorScope = WriteErrorScope.PER_WRITE
    cosmic_ray_rate: float = Field(
        default=0.0, ge=0, description="Expected random cell writes per cycle"
    )
    cosmic_ray_mode: CosmicRayMode = CosmicRayMode.EXPECTED
    max_population: Optional[int] = Field(
        default=None, ge=0, description="Population cap (None = unlimited)"
    )
    lifespan: Optional[int] = Field(
        default=None,
        ge=1,
        description="Cycles a newly created organism may run (None = unlimited)",
    )
    max_children: Optional[int] = Field(
        default=None,
        ge=0,
        description="Children a newly created organism may have (None = unlimited)",
    )
    auto_dedup_period: int = Field(
        default=0, ge=0, description="Deduplicate every n cycles (0 = never)"
    )
    instruction_costs: bool = Field(
        default=False,
        description="Charge delay cycles for long cursor moves and pastes",
    )
    log_interval: int = Field(default=100, gt=0)
    max_cycles: Optional[int] = Field(
        default=None,
        gt=0,
        description="Maximum number of cycles the run loop executes (None = unlimited)",
    )

    model_config = ConfigDict(validate_assignment=True)
