"""Electromagnetic induction simulation engine (magnets, coils, compasses)."""
