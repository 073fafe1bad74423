"""Calculators for one-off and special-status income outside the monthly salary flow."""
