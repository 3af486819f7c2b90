# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# https://chip-8.github.io/links/
#
# COMPATIBILITY QUIRKS TABLE
# https://games.gulrak.net/cadmium/chip8-opcode-table.html#quirk6
#
# MASTERING CHIP-8
# https://github.com/mattmikolay/chip-8/wiki/Mastering-CHIP%E2%80%908


import logging
import random

import chip8_opcodes as opcodes
from chip8_devices import Key
from chip8_errors import MemoryAccessError, RomTooLargeError, StackOverflowError, StackUnderflowError
from chip8_opcodes import decode, format_instruction
from chip8_vscreen import VirtualScreen


logger = logging.getLogger(__name__)


# ******************** STATIC SECTION
C8_FONTS = (0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
            0x20, 0x60, 0x20, 0x20, 0x70,  # 1
            0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
            0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
            0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
            0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
            0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
            0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
            0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
            0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
            0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
            0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
            0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
            0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
            0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
            0xF0, 0x80, 0xF0, 0x80, 0x80)  # F

FONT_START_ADDRESS = 0x000
FONT_SPRITE_HEIGHT = 5
ROM_START_ADDRESS = 0x200
MEMORY_SIZE = 4096
MAX_ROM_SIZE = MEMORY_SIZE - ROM_START_ADDRESS
STACK_SIZE = 16
DEFAULT_SEED = 0x649BBA8A048482FD


# ******************** MEMORY SECTION
# ********** WRAPS A LIST TO REPRESENT A STACK WITH A LIMITED SIZE OF 16 ADDRESSES
class Stack:
    def __init__(self):
        self.addr_list = [0] * STACK_SIZE
        self.size = 0       # stack pointer, index of the next free slot

    def __len__(self):
        return self.size

    def __str__(self):
        return str([f"0x{address:04x}" for address in self.addr_list[:self.size]])

    def append(self, address):
        if self.size >= STACK_SIZE:
            raise StackOverflowError(f"The CHIP-8 stack can contain at most {STACK_SIZE} addresses. Limit exceeded")
        self.addr_list[self.size] = address
        self.size += 1

    def pop(self):
        if self.size == 0:
            raise StackUnderflowError("Return from a subroutine with an empty stack")
        self.size -= 1
        return self.addr_list[self.size]

# ********** WRAPS A BYTEARRAY TO REPRESENT THE MAIN MEMORY WITH A LIMITED SIZE OF 4KB
class Memory:
    def __init__(self):
        self.inner = bytearray(MEMORY_SIZE)
        self.inner[FONT_START_ADDRESS:FONT_START_ADDRESS+len(C8_FONTS)] = bytes(C8_FONTS)

    @staticmethod
    def _check(key):
        """
        raise MemoryAccessError if an address or a [start:stop] range falls outside the address space
        return the key with a missing start or stop filled in (0 and MEMORY_SIZE)
        """
        if isinstance(key, slice):
            if key.step not in (None, 1):
                raise ValueError("Memory ranges must be contiguous")
            start = 0 if key.start is None else key.start
            stop = MEMORY_SIZE if key.stop is None else key.stop
            if start < 0:
                raise MemoryAccessError(start)
            if stop > MEMORY_SIZE:
                raise MemoryAccessError(max(start, MEMORY_SIZE))
            return slice(start, max(start, stop))
        if not 0 <= key < MEMORY_SIZE:
            raise MemoryAccessError(key)
        return key

    def __getitem__(self, key):
        key = self._check(key)
        if isinstance(key, slice):
            return bytes(self.inner[key])
        return self.inner[key]

    def __setitem__(self, key, value):
        key = self._check(key)
        if isinstance(key, slice) and len(value) != key.stop - key.start:
            raise ValueError("Memory ranges cannot be resized")
        self.inner[key] = value

    def load_rom(self, rom):
        """copy the program image verbatim at ROM_START_ADDRESS"""
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLargeError(len(rom), MAX_ROM_SIZE)
        self.inner[ROM_START_ADDRESS:ROM_START_ADDRESS+len(rom)] = rom
        logger.info("The ROM has been loaded successfully (%d bytes)", len(rom))


# ******************** CPU SECTION
class Chip8:
    def __init__(self, display, keypad, seed=DEFAULT_SEED, strict_carry=False):
        self.mem = Memory()
        self.stack = Stack()
        self.v_regs = bytearray(16)
        self.pc = ROM_START_ADDRESS
        self.idx = 0    # specify where the sprites reside in memory
        self.dt = 0     # delay timer, active when non-zero
        self.st = 0     # sound timer, active when non-zero
        self.screen = VirtualScreen()
        self.rng = random.Random(seed)
        # ADD Vx, Vy leaves VF untouched when there is no carry unless strict_carry is set
        self.strict_carry = strict_carry
        self.waiting_register = None    # register of a pending LD Vx, K
        self.instructions = {
            opcodes.ClearScreen: self._clear_screen,
            opcodes.Return: self._return,
            opcodes.Jump: self._jump,
            opcodes.Call: self._call_addr,
            opcodes.SkipEqualByte: self._skip_if_eq,
            opcodes.SkipNotEqualByte: self._skip_if_not_eq,
            opcodes.SkipEqual: self._skip_if_eq_regs,
            opcodes.SkipNotEqual: self._skip_if_not_eq_regs,
            opcodes.LoadByte: self._set_vk,
            opcodes.AddByte: self._add_to_vk,
            opcodes.Load: self._set_vx_to_vy,
            opcodes.Or: self._set_vx_or_vy,
            opcodes.And: self._set_vx_and_vy,
            opcodes.Xor: self._set_vx_xor_vy,
            opcodes.Add: self._add_vx_vy,
            opcodes.Sub: self._sub_vx_vy,
            opcodes.Shr: self._shr,
            opcodes.Subn: self._subn_vx_vy,
            opcodes.Shl: self._shl,
            opcodes.LoadI: self._set_idx,
            opcodes.JumpV0: self._jump_plus,
            opcodes.Random: self._random_byte_and,
            opcodes.Draw: self._to_screen,
            opcodes.SkipKeyPressed: self._skip_if_pressed,
            opcodes.SkipKeyNotPressed: self._skip_if_not_pressed,
            opcodes.LoadDelayTimer: self._set_vx_dt,
            opcodes.WaitKeyPressed: self._wait_keypress,
            opcodes.LoadToDelayTimer: self._set_dt_vx,
            opcodes.LoadToSoundTimer: self._set_st,
            opcodes.AddI: self._add_to_idx,
            opcodes.LoadSprite: self._select_char,
            opcodes.LoadBCD: self._bcd_repr,
            opcodes.SaveRegisters: self._store_vregs,
            opcodes.LoadRegisters: self._load_vregs,
        }
        missing = opcodes.INSTRUCTIONS.difference(self.instructions)
        if missing:
            self.not_implemented(missing)
        self.display_sink = display
        self.keypad = keypad

    def __str__(self):
        devices = f"SCREEN:{self.display_sink} | KEYPAD:{self.keypad}"
        registers = (f"PC_REGISTER:0x{self.pc:04x} | IDX_REGISTER:0x{self.idx:04x} | "
                     f"VARIABLE_REGISTERS:{list(self.v_regs)}")
        timers = f"DELAY_TIMER:{self.dt} | SOUND_TIMER:{self.st}"
        stack = f"STACK:{self.stack}"
        flags = f"DRAW:{self.screen.need_update} | WAITING_KEY:{self.waiting_register is not None}"
        return f"{devices}\n{registers}\n{timers}\n{stack}\n{flags}"

    def load_rom(self, rom):
        self.mem.load_rom(rom)

    # ********** FLOW CONTROL
    # handlers return the address of the next instruction, None means the following one (pc + 2)
    def _goto_next_instruction(self):
        return self.pc + 0x2

    def _skip_next_instruction(self):
        return self.pc + 0x4

    def _skip_if(self, condition):
        return self._skip_next_instruction() if condition else None

    def _clear_screen(self, ins):
        self.screen.clear()

    def _return(self, ins):
        """return from a subroutine"""
        return self.stack.pop()

    def _jump(self, ins):
        return ins.addr

    def _call_addr(self, ins):
        self.stack.append(self._goto_next_instruction())
        return ins.addr

    def _jump_plus(self, ins):
        return ins.addr + self.v_regs[0x0]

    def _skip_if_eq(self, ins):
        return self._skip_if(self.v_regs[ins.x] == ins.kk)

    def _skip_if_not_eq(self, ins):
        return self._skip_if(self.v_regs[ins.x] != ins.kk)

    def _skip_if_eq_regs(self, ins):
        return self._skip_if(self.v_regs[ins.x] == self.v_regs[ins.y])

    def _skip_if_not_eq_regs(self, ins):
        return self._skip_if(self.v_regs[ins.x] != self.v_regs[ins.y])

    # ********** REGISTERS
    def _set_vk(self, ins):
        """set the value of one of the 16 variable registers, Vx"""
        self.v_regs[ins.x] = ins.kk

    def _add_to_vk(self, ins):
        """add to the value already present in one of the variable registers, VF is not affected"""
        self.v_regs[ins.x] = (self.v_regs[ins.x] + ins.kk) & 0xFF

    def _set_vx_to_vy(self, ins):
        self.v_regs[ins.x] = self.v_regs[ins.y]

    def _set_vx_or_vy(self, ins):
        self.v_regs[ins.x] |= self.v_regs[ins.y]

    def _set_vx_and_vy(self, ins):
        self.v_regs[ins.x] &= self.v_regs[ins.y]

    def _set_vx_xor_vy(self, ins):
        self.v_regs[ins.x] ^= self.v_regs[ins.y]

    def _add_vx_vy(self, ins):
        """set the value of Vx to Vx + Vy, VF = 1 on carry"""
        total = self.v_regs[ins.x] + self.v_regs[ins.y]
        self.v_regs[ins.x] = total & 0xFF     # keep only the lowest 8 bits from the result and store them in Vx
        if total > 0xFF:
            self.v_regs[0xF] = 1
        elif self.strict_carry:
            self.v_regs[0xF] = 0

    def _sub_vx_vy(self, ins):
        """set the value of Vx to Vx - Vy, VF = NOT borrow"""
        vx, vy = self.v_regs[ins.x], self.v_regs[ins.y]
        self.v_regs[0xF] = 1 if vx > vy else 0
        self.v_regs[ins.x] = (vx - vy) & 0xFF

    def _subn_vx_vy(self, ins):
        """set the value of Vx to Vy - Vx, VF = NOT borrow"""
        vx, vy = self.v_regs[ins.x], self.v_regs[ins.y]
        self.v_regs[0xF] = 1 if vy > vx else 0
        self.v_regs[ins.x] = (vy - vx) & 0xFF

    def _shr(self, ins):
        """set Vx equal to Vx SHR 1, VF = the bit shifted out (Vy is ignored)"""
        vx = self.v_regs[ins.x]
        self.v_regs[0xF] = vx & 0x1
        self.v_regs[ins.x] = vx >> 1

    def _shl(self, ins):
        """set Vx equal to Vx SHL 1, VF = the bit shifted out (Vy is ignored)"""
        vx = self.v_regs[ins.x]
        self.v_regs[0xF] = (vx & 0x80) >> 7
        self.v_regs[ins.x] = (vx << 1) & 0xFF

    def _random_byte_and(self, ins):
        self.v_regs[ins.x] = self.rng.randint(0, 255) & ins.kk

    # ********** INDEX REGISTER AND MEMORY
    def _set_idx(self, ins):
        self.idx = ins.addr

    def _add_to_idx(self, ins):
        """set I = I + Vx, VF is not affected"""
        self.idx = (self.idx + self.v_regs[ins.x]) & 0xFFFF

    def _select_char(self, ins):
        """set I to location of sprite for digit Vx"""
        self.idx = FONT_START_ADDRESS + self.v_regs[ins.x] * FONT_SPRITE_HEIGHT

    def _bcd_repr(self, ins):
        """store the hundreds digit of Vx in memory at I, the tens digit at I+1, the ones digit at I+2"""
        value = self.v_regs[ins.x]
        self.mem[self.idx:self.idx+3] = bytes((value // 100, value // 10 % 10, value % 10))

    def _store_vregs(self, ins):
        """store registers V0 through Vx (included) in memory starting at location I"""
        self.mem[self.idx:self.idx+ins.x+1] = self.v_regs[:ins.x+1]

    def _load_vregs(self, ins):
        """read registers V0 through Vx (included) from memory starting at location I"""
        self.v_regs[:ins.x+1] = self.mem[self.idx:self.idx+ins.x+1]

    def _to_screen(self, ins):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        sprite = self.mem[self.idx:self.idx+ins.n]
        self.v_regs[0xF] = self.screen.display_sprite(sprite, self.v_regs[ins.x], self.v_regs[ins.y])

    # ********** TIMERS
    def _set_vx_dt(self, ins):
        self.v_regs[ins.x] = self.dt

    def _set_dt_vx(self, ins):
        self.dt = self.v_regs[ins.x]

    def _set_st(self, ins):
        self.st = self.v_regs[ins.x]

    def _tick_timers(self):
        if self.dt > 0:
            self.dt -= 1
        if self.st > 0:
            self.st -= 1

    # ********** KEYPAD
    def _skip_if_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is pressed"""
        return self._skip_if(self.keypad.is_key_down(Key.from_byte(self.v_regs[ins.x])))

    def _skip_if_not_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is NOT pressed"""
        return self._skip_if(not self.keypad.is_key_down(Key.from_byte(self.v_regs[ins.x])))

    def _wait_keypress(self, ins):
        """wait for a key press and store its value in Vx"""
        # a key source with a key ready ends the wait in this same cycle and pc moves on right away
        key = self.keypad.wait_key_down()
        if key is None:
            self.waiting_register = ins.x
            return self.pc      # stay on the same instruction until a key is pressed
        self.v_regs[ins.x] = Key.from_byte(key)

    def _resume_wait(self):
        """poll the keypad again for a pending LD Vx, K without fetching it a second time"""
        key = self.keypad.wait_key_down()
        if key is None:
            return None
        x, self.waiting_register = self.waiting_register, None
        self.v_regs[x] = Key.from_byte(key)
        self.pc = self._goto_next_instruction()
        return opcodes.WaitKeyPressed(x)

    def not_implemented(self, instructions):
        names = ", ".join(sorted(ins.__name__ for ins in instructions))
        raise NotImplementedError(f"No handler registered for the instructions: {names}")

    # ********** EMULATION LOOP
    def fetch(self):
        """read the big-endian instruction word at pc (each instruction is two bytes long)"""
        return self.mem[self.pc] << 8 | self.mem[self.pc + 1]

    def cycle(self):
        """
        emulate one machine cycle: fetch opcode, decode opcode, execute opcode, update timers
        return the instruction executed, None while still waiting for a key press
        """
        if self.waiting_register is not None:
            instruction = self._resume_wait()
        else:
            opcode = self.fetch()
            instruction = decode(opcode)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("mem_addr: 0x%04x    opcode: 0x%04x    instruction: %s",
                             self.pc, opcode, format_instruction(instruction))
            next_pc = self.instructions[type(instruction)](instruction)
            self.pc = self._goto_next_instruction() if next_pc is None else next_pc
            if self.waiting_register is not None:
                instruction = None
        self._tick_timers()
        return instruction

    def display(self):
        self.display_sink.present_frame(self.screen.buffer)
        self.screen.need_update = False

    def run(self, max_cycles=None):
        """cycle and present frames until the display stops running, return the number of cycles emulated"""
        cycles = 0
        while self.display_sink.is_running():
            if max_cycles is not None and cycles >= max_cycles:
                break
            self.cycle()
            self.display()
            cycles += 1
        return cycles
