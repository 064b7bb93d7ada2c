# Peripherals: framebuffer, keypad, clock and countdown timers.
