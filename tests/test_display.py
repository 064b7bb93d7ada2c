"""
Framebuffer: XOR sprite blits, clipping and collision.
"""

from chip8vm.periph.display import Framebuffer, SCREEN_WIDTH, SCREEN_HEIGHT


class TestFramebuffer:

    def test_starts_blank(self):
        fb = Framebuffer()
        assert fb.width == SCREEN_WIDTH == 64
        assert fb.height == SCREEN_HEIGHT == 32
        assert fb.lit_count() == 0

    def test_byte_roundtrip(self):
        fb = Framebuffer()
        fb.set_byte(10, 3, 0xA5)
        assert fb.get_byte(10, 3) == 0xA5
        assert fb.get_pixel(10, 3)
        assert not fb.get_pixel(11, 3)

    def test_double_draw_restores_and_collides(self):
        fb = Framebuffer()
        fb.set_pixel(0, 0, True)
        before = fb.snapshot()
        assert fb.draw_sprite(4, 4, [0xFF]) is False
        assert fb.draw_sprite(4, 4, [0xFF]) is True
        assert fb.snapshot() == before

    def test_partial_overlap_collision(self):
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0x80])
        assert fb.draw_sprite(0, 0, [0xC0]) is True
        assert not fb.get_pixel(0, 0)
        assert fb.get_pixel(1, 0)

    def test_disjoint_bits_do_not_collide(self):
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0xF0])
        assert fb.draw_sprite(0, 0, [0x0F]) is False
        assert fb.get_byte(0, 0) == 0xFF

    def test_right_edge_clips(self):
        fb = Framebuffer()
        fb.draw_sprite(60, 0, [0xFF])
        assert [fb.get_pixel(x, 0) for x in range(60, 64)] == [True] * 4
        assert not any(fb.get_pixel(x, 0) for x in range(4))
        assert not any(fb.get_pixel(x, 1) for x in range(4))
        assert fb.lit_count() == 4

    def test_get_byte_past_edge_reads_zero(self):
        fb = Framebuffer()
        fb.set_byte(62, 0, 0xFF)
        assert fb.get_byte(62, 0) == 0xC0

    def test_bottom_edge_clips(self):
        fb = Framebuffer()
        collided = fb.draw_sprite(0, 30, [0x80, 0x80, 0x80, 0x80])
        assert collided is False
        assert fb.get_pixel(0, 30) and fb.get_pixel(0, 31)
        assert not fb.get_pixel(0, 0)
        assert fb.lit_count() == 2

    def test_collision_from_any_row(self):
        fb = Framebuffer()
        fb.draw_sprite(0, 2, [0x01])
        assert fb.draw_sprite(0, 0, [0x00, 0x00, 0x01]) is True

    def test_clear(self):
        fb = Framebuffer()
        fb.draw_sprite(8, 8, [0xFF] * 8)
        fb.clear()
        assert all(not fb.get_pixel(x, y) for y in range(32) for x in range(64))

    def test_render(self):
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0xF0])
        lines = fb.render().split('\n')
        assert len(lines) == 32
        assert all(len(line) == 64 for line in lines)
        assert lines[0].startswith('####.')
        assert set(lines[1]) == {'.'}

    def test_rows(self):
        fb = Framebuffer(width=8, height=2)
        fb.set_byte(0, 1, 0x81)
        rows = fb.rows()
        assert rows[0] == (False,) * 8
        assert rows[1] == (True,) + (False,) * 6 + (True,)
