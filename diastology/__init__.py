"""
Diastology Backend

Guided echocardiographic assessment of left ventricular diastolic function
based on published ASE/EACVI, BSE and Mayo Clinic decision algorithms.
"""

__version__ = "0.2.2"
