"""Physics: magnetic fields, coils, induction, charges, compasses, instruments."""
