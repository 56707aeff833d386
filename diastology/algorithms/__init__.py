"""
Built-in algorithm definitions.
"""

from diastology.algorithms.ase2016 import ASE2016
from diastology.algorithms.bse2024 import BSE2024
from diastology.algorithms.mayo2025 import MAYO2025

# Registration order is the listing order
DEFAULT_ALGORITHMS = (ASE2016, BSE2024, MAYO2025)

__all__ = ["ASE2016", "BSE2024", "MAYO2025", "DEFAULT_ALGORITHMS"]
