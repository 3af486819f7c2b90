class Chip8Error(Exception):
    """base class for every fault raised while running a CHIP-8 program"""


class UnknownOpcodeError(Chip8Error):
    def __init__(self, opcode):
        self.opcode = opcode
        super().__init__(f"Unknown opcode 0x{opcode:04X}")


class UnknownKeyError(Chip8Error, ValueError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown key number 0x{value:02X}, keys go from 0x0 to 0xF")


class StackOverflowError(Chip8Error):
    pass


class StackUnderflowError(Chip8Error):
    pass


class MemoryAccessError(Chip8Error, IndexError):
    def __init__(self, address):
        self.address = address
        super().__init__(f"Memory address 0x{address:04X} is outside the 4KB address space")


class RomTooLargeError(Chip8Error):
    def __init__(self, size, limit):
        self.size = size
        super().__init__(f"The ROM is {size} bytes long but at most {limit} bytes fit in memory")
