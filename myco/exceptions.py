class MycoError(Exception):
    """Base for all myco exceptions."""

    pass


# High-level families
class ConfigurationError(MycoError):
    """Invalid run or world configuration."""

    pass


class GridError(MycoError):
    """Grid construction or addressing failures."""

    pass


class InstructionError(MycoError):
    """Instruction table lookup failures."""

    pass


class PopulationError(MycoError):
    """Population bookkeeping failures."""

    pass


class SimulationError(MycoError):
    """Scheduler / run-loop failures."""

    pass


class ExportError(MycoError):
    """Image export failures."""

    pass


# Instruction subtypes
class UnknownMnemonicError(InstructionError):
    """Raised when a two-character mnemonic has no opcode."""

    def __init__(self, mnemonic: str):
        super().__init__(f"Unknown instruction mnemonic: {mnemonic!r}")
        self.mnemonic = mnemonic
