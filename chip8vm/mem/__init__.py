# Memory map: 4K address space, font glyphs, program region.
