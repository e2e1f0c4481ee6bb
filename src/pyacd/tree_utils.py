"""
Tree utility functions for PyACD.

Provides common calculations used across multiple modules to avoid duplication
and ensure consistency.
"""
import math

__all__ = [
    'BASAL_AREA_FACTOR',
    'FEET_TO_METERS',
    'INCHES_TO_CM',
    'HECTARES_PER_ACRE_FACTOR',
    'calculate_tree_basal_area',
    'calculate_crown_area',
    'logistic',
]


# Basal area constant: pi / 40000 (converts DBH in cm to BA in square meters)
# Formula: BA = pi * (DBH/200)^2 = 0.00007854 * DBH^2
BASAL_AREA_FACTOR = 0.00007854

# Imperial to metric conversions used by the tabular entry points
FEET_TO_METERS = 0.3048
INCHES_TO_CM = 2.54
HECTARES_PER_ACRE_FACTOR = 2.47105  # per-acre -> per-hectare multiplier


def calculate_tree_basal_area(dbh: float, tph: float = 1.0) -> float:
    """Calculate basal area for a tree record.

    Args:
        dbh: Diameter at breast height in cm
        tph: Trees per hectare represented by the record

    Returns:
        Basal area in square meters per hectare
    """
    return dbh * dbh * BASAL_AREA_FACTOR * tph


def calculate_crown_area(mcw: float, tph: float) -> float:
    """Maximum crown area of a tree record as percent of a hectare.

    Args:
        mcw: Maximum crown width in m
        tph: Trees per hectare

    Returns:
        Crown area contribution to crown competition factor
    """
    return 100.0 * (math.pi * mcw * mcw / 4.0) / 10000.0 * tph


def logistic(x: float) -> float:
    """Numerically stable logistic function exp(x) / (1 + exp(x))."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)
