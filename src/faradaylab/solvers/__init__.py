"""Time stepping: the fixed-rate clock and the scenes it drives."""
