# CHIP-8 OPCODE TABLE
# http://devernay.free.fr/hacks/chip8/C8TECH10.HTM#3.1
#
# every instruction is one 16 bit big-endian word, operands sit at fixed bit positions:
#   nnn/addr  lowest 12 bits
#   x         lower 4 bits of the high byte
#   y         upper 4 bits of the low byte
#   kk        lowest 8 bits
#   n         lowest 4 bits

from dataclasses import asdict, dataclass

from chip8_errors import UnknownOpcodeError


# ******************** INSTRUCTIONS SECTION
@dataclass(frozen=True)
class ClearScreen:
    pass

@dataclass(frozen=True)
class Return:
    pass

@dataclass(frozen=True)
class Jump:
    addr: int

@dataclass(frozen=True)
class Call:
    addr: int

@dataclass(frozen=True)
class SkipEqualByte:
    x: int
    kk: int

@dataclass(frozen=True)
class SkipNotEqualByte:
    x: int
    kk: int

@dataclass(frozen=True)
class SkipEqual:
    x: int
    y: int

@dataclass(frozen=True)
class SkipNotEqual:
    x: int
    y: int

@dataclass(frozen=True)
class LoadByte:
    x: int
    kk: int

@dataclass(frozen=True)
class AddByte:
    x: int
    kk: int

@dataclass(frozen=True)
class Load:
    x: int
    y: int

@dataclass(frozen=True)
class Or:
    x: int
    y: int

@dataclass(frozen=True)
class And:
    x: int
    y: int

@dataclass(frozen=True)
class Xor:
    x: int
    y: int

@dataclass(frozen=True)
class Add:
    x: int
    y: int

@dataclass(frozen=True)
class Sub:
    x: int
    y: int

@dataclass(frozen=True)
class Shr:
    x: int
    y: int

@dataclass(frozen=True)
class Shl:
    x: int
    y: int

@dataclass(frozen=True)
class Subn:
    x: int
    y: int

@dataclass(frozen=True)
class LoadI:
    addr: int

@dataclass(frozen=True)
class JumpV0:
    addr: int

@dataclass(frozen=True)
class Random:
    x: int
    kk: int

@dataclass(frozen=True)
class Draw:
    x: int
    y: int
    n: int

@dataclass(frozen=True)
class SkipKeyPressed:
    x: int

@dataclass(frozen=True)
class SkipKeyNotPressed:
    x: int

@dataclass(frozen=True)
class LoadDelayTimer:
    x: int

@dataclass(frozen=True)
class WaitKeyPressed:
    x: int

@dataclass(frozen=True)
class LoadToDelayTimer:
    x: int

@dataclass(frozen=True)
class LoadToSoundTimer:
    x: int

@dataclass(frozen=True)
class AddI:
    x: int

@dataclass(frozen=True)
class LoadSprite:
    x: int

@dataclass(frozen=True)
class LoadBCD:
    x: int

@dataclass(frozen=True)
class SaveRegisters:
    x: int

@dataclass(frozen=True)
class LoadRegisters:
    x: int


# ********** ASSEMBLER-STYLE MNEMONICS, ONE TEMPLATE PER INSTRUCTION
MNEMONICS = {
    ClearScreen:        "CLS",
    Return:             "RET",
    Jump:               "JP 0x{addr:03X}",
    Call:               "CALL 0x{addr:03X}",
    SkipEqualByte:      "SE V{x:X}, 0x{kk:02X}",
    SkipNotEqualByte:   "SNE V{x:X}, 0x{kk:02X}",
    SkipEqual:          "SE V{x:X}, V{y:X}",
    SkipNotEqual:       "SNE V{x:X}, V{y:X}",
    LoadByte:           "LD V{x:X}, 0x{kk:02X}",
    AddByte:            "ADD V{x:X}, 0x{kk:02X}",
    Load:               "LD V{x:X}, V{y:X}",
    Or:                 "OR V{x:X}, V{y:X}",
    And:                "AND V{x:X}, V{y:X}",
    Xor:                "XOR V{x:X}, V{y:X}",
    Add:                "ADD V{x:X}, V{y:X}",
    Sub:                "SUB V{x:X}, V{y:X}",
    Shr:                "SHR V{x:X}, V{y:X}",
    Shl:                "SHL V{x:X}, V{y:X}",
    Subn:               "SUBN V{x:X}, V{y:X}",
    LoadI:              "LD I, 0x{addr:03X}",
    JumpV0:             "JP V0, 0x{addr:03X}",
    Random:             "RND V{x:X}, 0x{kk:02X}",
    Draw:               "DRW V{x:X}, V{y:X}, {n}",
    SkipKeyPressed:     "SKP V{x:X}",
    SkipKeyNotPressed:  "SKNP V{x:X}",
    LoadDelayTimer:     "LD V{x:X}, DT",
    WaitKeyPressed:     "LD V{x:X}, K",
    LoadToDelayTimer:   "LD DT, V{x:X}",
    LoadToSoundTimer:   "LD ST, V{x:X}",
    AddI:               "ADD I, V{x:X}",
    LoadSprite:         "LD F, V{x:X}",
    LoadBCD:            "LD B, V{x:X}",
    SaveRegisters:      "LD [I], V{x:X}",
    LoadRegisters:      "LD V{x:X}, [I]",
}

INSTRUCTIONS = frozenset(MNEMONICS)

# second level tables for the opcode families sharing the same top nibble
ARITHMETIC_OPS = {
    0x0: Load,
    0x1: Or,
    0x2: And,
    0x3: Xor,
    0x4: Add,
    0x5: Sub,
    0x6: Shr,
    0x7: Subn,
    0xE: Shl,
}

KEY_OPS = {
    0x9E: SkipKeyPressed,
    0xA1: SkipKeyNotPressed,
}

MISC_OPS = {
    0x07: LoadDelayTimer,
    0x0A: WaitKeyPressed,
    0x15: LoadToDelayTimer,
    0x18: LoadToSoundTimer,
    0x1E: AddI,
    0x29: LoadSprite,
    0x33: LoadBCD,
    0x55: SaveRegisters,
    0x65: LoadRegisters,
}


# ******************** DECODING SECTION
def decode(opcode: int):
    """map a 16 bit word to its instruction, raise UnknownOpcodeError if no instruction matches"""
    if not 0 <= opcode <= 0xFFFF:
        raise ValueError(f"Opcodes are 16 bit words, got {opcode:#x}")

    addr = opcode & 0x0FFF
    x = (opcode & 0x0F00) >> 8
    y = (opcode & 0x00F0) >> 4
    kk = opcode & 0x00FF
    n = opcode & 0x000F

    family = opcode >> 12
    if family == 0x0:
        if kk == 0xE0:
            return ClearScreen()
        if kk == 0xEE:
            return Return()
        return Jump(addr)      # 0nnn SYS addr, treated as a plain jump
    elif family == 0x1:
        return Jump(addr)
    elif family == 0x2:
        return Call(addr)
    elif family == 0x3:
        return SkipEqualByte(x, kk)
    elif family == 0x4:
        return SkipNotEqualByte(x, kk)
    elif family == 0x5:
        return SkipEqual(x, y)
    elif family == 0x6:
        return LoadByte(x, kk)
    elif family == 0x7:
        return AddByte(x, kk)
    elif family == 0x8:
        if n in ARITHMETIC_OPS:
            return ARITHMETIC_OPS[n](x, y)
    elif family == 0x9:
        return SkipNotEqual(x, y)
    elif family == 0xA:
        return LoadI(addr)
    elif family == 0xB:
        return JumpV0(addr)
    elif family == 0xC:
        return Random(x, kk)
    elif family == 0xD:
        return Draw(x, y, n)
    elif family == 0xE:
        if kk in KEY_OPS:
            return KEY_OPS[kk](x)
    elif family == 0xF:
        if kk in MISC_OPS:
            return MISC_OPS[kk](x)
    raise UnknownOpcodeError(opcode)


def format_instruction(instruction) -> str:
    """render an instruction as its assembler mnemonic, e.g. DRW V0, V1, 5"""
    return MNEMONICS[type(instruction)].format(**asdict(instruction))
