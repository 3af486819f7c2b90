from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Optional

from chip8_errors import UnknownKeyError


class Key(IntEnum):
    """the 16 keys of the CHIP-8 hex keypad"""
    KEY_0 = 0x0
    KEY_1 = 0x1
    KEY_2 = 0x2
    KEY_3 = 0x3
    KEY_4 = 0x4
    KEY_5 = 0x5
    KEY_6 = 0x6
    KEY_7 = 0x7
    KEY_8 = 0x8
    KEY_9 = 0x9
    KEY_A = 0xA
    KEY_B = 0xB
    KEY_C = 0xC
    KEY_D = 0xD
    KEY_E = 0xE
    KEY_F = 0xF

    @classmethod
    def from_byte(cls, value):
        """convert a register value into a key, raise UnknownKeyError outside 0x0..0xF"""
        if not 0x0 <= value <= 0xF:
            raise UnknownKeyError(value)
        return cls(value)


# ******************** CAPABILITIES SECTION
class KeySource(ABC):
    @abstractmethod
    def is_key_down(self, key: Key) -> bool:
        """non blocking poll of a single key"""

    @abstractmethod
    def wait_key_down(self) -> Optional[Key]:
        """
        return a key pressed after the wait began, or None if no key is available yet
        the machine stays suspended on its key wait instruction until a key is returned
        """


class DisplaySink(ABC):
    @abstractmethod
    def present_frame(self, buffer) -> None:
        """show a WIDTH x HEIGHT frame, one byte per pixel (0 or 1), stored row by row"""

    @abstractmethod
    def is_running(self) -> bool:
        """polled once per cycle, the machine stops as soon as it returns False"""


# ******************** KEYPAD SECTION
class Keypad(KeySource):
    """
    key state fed by the host: press/release as events come in
    held keys answer is_key_down, presses are queued for wait_key_down only while a wait is pending
    """
    def __init__(self):
        self.held_keys = set()
        self.pressed_keys = []
        self.waiting = False

    def __str__(self):
        held = ", ".join(f"{int(key):X}" for key in sorted(self.held_keys))
        return f"HELD:[{held}]"

    def press(self, key):
        key = Key.from_byte(key)
        self.held_keys.add(key)
        if self.waiting:
            self.pressed_keys.append(key)

    def release(self, key):
        self.held_keys.discard(Key.from_byte(key))

    def is_key_down(self, key):
        return key in self.held_keys

    def untouched(self):
        return len(self.pressed_keys) == 0

    def wait_key_down(self):
        """get the first button pressed since the wait began, None until one comes in"""
        if not self.waiting:
            self.waiting = True
            self.pressed_keys.clear()
        if self.untouched():
            return None
        key = self.pressed_keys.pop(0)
        self.waiting = False
        self.pressed_keys.clear()
        return key
