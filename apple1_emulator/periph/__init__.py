"""Apple-1 peripherals: keyboard/display PIA, display port, clocks."""
