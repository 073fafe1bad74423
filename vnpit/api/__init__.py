"""HTTP surface for the tax engine."""
