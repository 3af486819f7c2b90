WIDTH = 64
HEIGHT = 32
SPRITE_WIDTH = 8


class VirtualScreen:
    """monochrome 64x32 frame buffer, one byte per pixel (0 = OFF, 1 = ON), stored row by row"""

    def __init__(self, w=WIDTH, h=HEIGHT):
        self.w, self.h = w, h
        self.buffer = bytearray(w * h)
        self.need_update = True

    def pixel(self, x, y):
        """return 1 if pixel is ON, return 0 if pixel is OFF"""
        return self.buffer[y * self.w + x]

    def clear(self):
        self.buffer[:] = bytes(self.w * self.h)
        self.need_update = True

    def display_sprite(self, sprite, x, y):
        """
        XOR an 8 pixels wide sprite onto the buffer with its top left corner at (x, y)
        rows and columns falling off an edge wrap around to the opposite one
        return 1 if any pixel that was ON got turned OFF (collision), 0 otherwise
        """
        self.need_update = True
        collision = 0
        for row, sprite_byte in enumerate(sprite):
            y_coordinate = (y + row) % self.h
            for col in range(SPRITE_WIDTH):
                if not sprite_byte & (0x80 >> col):
                    continue
                index = y_coordinate * self.w + (x + col) % self.w
                # the only case when a pixel gets erased is when it was ON and is turned ON again
                if self.buffer[index] == 1:
                    collision = 1
                self.buffer[index] ^= 1
        return collision
