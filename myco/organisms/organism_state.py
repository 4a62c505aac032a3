from enum import Enum


class OrganismState(str, Enum):
    READY = "ready"
    DELAYING = "delaying"
    DEAD = "dead"


TERMINAL_STATES = {
    OrganismState.DEAD,
}

VALID_TRANSITIONS: dict[OrganismState, set[OrganismState]] = {
    OrganismState.READY: {
        OrganismState.DELAYING,
        OrganismState.DEAD,
    },
    OrganismState.DELAYING: {
        OrganismState.READY,
        OrganismState.DEAD,
    },
    OrganismState.DEAD: set(),
}


def is_valid_transition(current: OrganismState, new: OrganismState) -> bool:
    if current == new:
        return current not in TERMINAL_STATES
    return new in VALID_TRANSITIONS.get(current, set())


def validate_transition(current: OrganismState, new: OrganismState) -> None:
    if not is_valid_transition(current, new):
        valid_next = VALID_TRANSITIONS.get(current, set())
        raise ValueError(
            f"Invalid state transition: {current.value} -> {new.value}. "
            f"Valid transitions from {current.value}: {[s.value for s in valid_next]}"
        )


def is_terminal(state: OrganismState) -> bool:
    return state in TERMINAL_STATES
