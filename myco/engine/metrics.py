from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from myco.population.manager import RemovalCause


class SimulationMetrics(BaseModel):
    """Running counters of one simulation."""

    cycles: int = Field(default=0, description="Completed cycles")
    births: int = Field(default=0, description="Organisms created by -= and m=")
    spawned: int = Field(default=0, description="Organisms placed by the user")
    halts: int = Field(default=0, description="Organisms removed by @@ or ?@")
    kills: int = Field(default=0, description="Organisms removed by the user")
    expired: int = Field(default=0, description="Organisms removed at end of lifespan")
    culled: int = Field(default=0, description="Organisms removed by the population cap")
    deduped: int = Field(default=0, description="Duplicate organisms removed")
    write_errors: int = Field(default=0, description="Corrupted organism writes")
    cosmic_ray_strikes: int = Field(default=0, description="Random cell writes")
    last_cycle_time: datetime | None = Field(
        default=None, description="Timestamp of the last cycle run by the loop"
    )

    @computed_field
    @property
    def removals(self) -> int:
        return self.halts + self.kills + self.expired + self.culled + self.deduped

    def record_removal(self, cause: RemovalCause, count: int = 1) -> None:
        field = _REMOVAL_FIELDS[cause]
        setattr(self, field, getattr(self, field) + count)

    def to_dict(self) -> dict[str, int | float | str | None]:
        return {
            "cycles": self.cycles,
            "births": self.births,
            "spawned": self.spawned,
            "halts": self.halts,
            "kills": self.kills,
            "expired": self.expired,
            "culled": self.culled,
            "deduped": self.deduped,
            "removals": self.removals,
            "write_errors": self.write_errors,
            "cosmic_ray_strikes": self.cosmic_ray_strikes,
        }


_REMOVAL_FIELDS = {
    RemovalCause.HALT: "halts",
    RemovalCause.KILL: "kills",
    RemovalCause.EXPIRED: "expired",
    RemovalCause.CULLED: "culled",
    RemovalCause.DEDUP: "deduped",
}
