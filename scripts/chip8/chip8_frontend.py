import argparse
import logging
import os
import sys
from pathlib import Path

os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame
from pygame.locals import (
    K_0, K_1, K_2, K_3,
    K_4, K_5, K_6, K_7,
    K_8, K_9, K_a, K_b,
    K_c, K_d, K_e, K_f,
)

from chip8 import DEFAULT_SEED, Chip8
from chip8_devices import DisplaySink, Keypad
from chip8_errors import Chip8Error
from chip8_vscreen import HEIGHT, WIDTH


logger = logging.getLogger(__name__)


# ******************** STATIC SECTION
KEY_MAPPINGS = {
    K_0: 0x0,
    K_1: 0x1,
    K_2: 0x2,
    K_3: 0x3,
    K_4: 0x4,
    K_5: 0x5,
    K_6: 0x6,
    K_7: 0x7,
    K_8: 0x8,
    K_9: 0x9,
    K_a: 0xA,
    K_b: 0xB,
    K_c: 0xC,
    K_d: 0xD,
    K_e: 0xE,
    K_f: 0xF,
}

DEBUG = True if int(os.getenv('DEBUG', 0)) >= 1 else False
SCALE = 15
SPEED = 300     # cycles per second
BLUE = pygame.Color(80,69,155,255)
LIGHT_BLUE = pygame.Color(136,126,203,255)


# ******************** UTILITIES SECTION
def get_args(argv=None):
    parser = argparse.ArgumentParser(description="CHIP-8 interpreter")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    parser.add_argument("--scale", type=int, default=SCALE, help="size in pixels of a CHIP-8 pixel")
    parser.add_argument("--speed", type=int, default=SPEED, help="cycles emulated per second")
    parser.add_argument("--seed", type=lambda s: int(s, 0), default=DEFAULT_SEED,
                        help="seed of the random number generator used by RND")
    parser.add_argument("--strict-carry", action="store_true",
                        help="ADD Vx, Vy clears VF when there is no carry")
    return parser.parse_args(argv)

def load_rom_file(path):
    """read a ROM file, the file content is the program image"""
    return Path(path).read_bytes()


# ******************** I/O SECTION
class Screen(DisplaySink):
    """
    pygame window showing the frames produced by the machine
    it's also where the pygame event queue gets pumped, keys are forwarded to the keypad
    """
    def __init__(self, keypad, s=SCALE, speed=SPEED, bg_color=BLUE, fg_color=LIGHT_BLUE):
        self.keypad = keypad
        self.scale = s
        self.speed = speed
        self.background = bg_color
        self.foreground = fg_color
        self.running = True
        self.last_frame = None
        self.clock = pygame.time.Clock()
        self.surface = pygame.display.set_mode((WIDTH * self.scale, HEIGHT * self.scale))
        self.surface.fill(self.background)

    def __str__(self):
        return f"{WIDTH}x{HEIGHT}@{self.scale}"

    def write_pixel(self, x, y, color):
        pygame.draw.rect(
            self.surface,
            self.background if color==0 else self.foreground,
            (x * self.scale, y * self.scale, self.scale, self.scale)
        )

    def present_frame(self, buffer):
        frame = bytes(buffer)
        if frame != self.last_frame:
            for i, color in enumerate(frame):
                self.write_pixel(i % WIDTH, i // WIDTH, color)
            pygame.display.flip()
            self.last_frame = frame
        self.clock.tick(self.speed)

    def handle_event(self, event):
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self.running = False
            elif event.key in KEY_MAPPINGS:
                self.keypad.press(KEY_MAPPINGS[event.key])     # register keypress
        elif event.type == pygame.KEYUP:
            if event.key in KEY_MAPPINGS:
                self.keypad.release(KEY_MAPPINGS[event.key])
        elif event.type == pygame.QUIT:
            self.running = False

    def is_running(self):
        for event in pygame.event.get():
            self.handle_event(event)
        return self.running


# ******************** ENTRY POINT SECTION
def main(argv=None):
    args = get_args(argv)
    logging.basicConfig(level=logging.DEBUG if DEBUG else logging.INFO,
                        format="[%(levelname)s] %(name)s: %(message)s", stream=sys.stdout)
    # pygame initialization
    pygame.init()
    pygame.display.set_caption(Path(args.file).name)
    try:
        # IO
        k = Keypad()
        s = Screen(k, s=args.scale, speed=args.speed)
        # CPU
        chip = Chip8(s, k, seed=args.seed, strict_carry=args.strict_carry)
        try:
            chip.load_rom(load_rom_file(args.file))
            chip.run()      # emulate machine cycles until the window gets closed
        except Chip8Error as err:
            logger.error("%s", err)
            sys.exit(f"********** THE EMULATOR CRASHED WITH THE FOLLOWING STATE\n{chip}")
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
