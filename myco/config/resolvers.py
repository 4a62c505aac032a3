from omegaconf import OmegaConf

from myco.vm.instructions import Instruction


def _opcode_resolver(mnemonic: str) -> int:
    """``${opcode:##}`` -> the byte of that instruction."""
    return int(Instruction.from_mnemonic(str(mnemonic)))


def register_resolvers() -> None:
    OmegaConf.register_new_resolver("opcode", _opcode_resolver, replace=True)
    OmegaConf.register_new_resolver("len", lambda arr: len(arr), replace=True)
