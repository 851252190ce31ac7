"""Lookup tools

These classes evaluate pre-tabulated constants and pre-fitted formulas as a
function of jet pt, on numbers, numpy arrays and awkward arrays alike.
"""

from .binned_lookup import binned_lookup
from .csv_converters import read_calibration_csv
from .formula_lookup import formula_lookup

__all__ = [
    "binned_lookup",
    "formula_lookup",
    "read_calibration_csv",
]
