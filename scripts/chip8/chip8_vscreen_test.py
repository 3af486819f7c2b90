import unittest

from chip8_vscreen import HEIGHT, WIDTH, VirtualScreen


class TestSprites(unittest.TestCase):
    def setUp(self):
        self.screen = VirtualScreen()

    def lit(self):
        return sum(self.screen.buffer)

    def test_new_screen_is_blank(self):
        self.assertEqual(len(self.screen.buffer),
                         WIDTH * HEIGHT)
        self.assertEqual(self.lit(),
                         0)

    def test_draw_on_empty_screen(self):
        self.assertEqual(self.screen.display_sprite(b"\xff", 0, 0),
                         0)
        self.assertEqual([self.screen.pixel(x, 0) for x in range(8)],
                         [1] * 8)
        self.assertEqual(self.lit(),
                         8)

    def test_draw_twice_erases_and_collides(self):
        self.screen.display_sprite(b"\xff", 0, 0)
        self.assertEqual(self.screen.display_sprite(b"\xff", 0, 0),
                         1)
        self.assertEqual(self.lit(),
                         0)

    def test_flag_resets_every_call(self):
        self.screen.display_sprite(b"\x80", 0, 0)
        self.assertEqual(self.screen.display_sprite(b"\x80", 0, 0),
                         1)
        self.assertEqual(self.screen.display_sprite(b"\x80", 10, 10),
                         0)

    def test_bits_are_read_msb_first(self):
        self.screen.display_sprite(b"\xa0", 4, 2)
        self.assertEqual([self.screen.pixel(x, 2) for x in range(4, 8)],
                         [1, 0, 1, 0])

    def test_partial_overlap(self):
        self.screen.display_sprite(b"\xf0", 0, 0)
        self.assertEqual(self.screen.display_sprite(b"\x18", 0, 0),
                         1)
        self.assertEqual([self.screen.pixel(x, 0) for x in range(8)],
                         [1, 1, 1, 0, 1, 0, 0, 0])

    def test_wraps_horizontally(self):
        self.screen.display_sprite(b"\xc0", WIDTH - 1, 0)
        self.assertEqual(self.screen.pixel(WIDTH - 1, 0),
                         1)
        self.assertEqual(self.screen.pixel(0, 0),
                         1)
        self.assertEqual(self.lit(),
                         2)

    def test_wraps_vertically(self):
        self.screen.display_sprite(b"\x80\x80\x80", 5, HEIGHT - 1)
        self.assertEqual([self.screen.pixel(5, y) for y in (HEIGHT - 1, 0, 1)],
                         [1, 1, 1])

    def test_coordinates_beyond_the_screen_wrap(self):
        self.screen.display_sprite(b"\x80", WIDTH + 3, HEIGHT + 2)
        self.assertEqual(self.screen.pixel(3, 2),
                         1)

    def test_empty_sprite(self):
        self.screen.need_update = False
        self.assertEqual(self.screen.display_sprite(b"", 0, 0),
                         0)
        self.assertTrue(self.screen.need_update)

    def test_clear(self):
        self.screen.display_sprite(b"\xff\xff", 30, 10)
        self.screen.need_update = False
        self.screen.clear()
        self.assertEqual(self.lit(),
                         0)
        self.assertTrue(self.screen.need_update)


if __name__ == "__main__":
    unittest.main()
