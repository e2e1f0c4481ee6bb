"""
Crown dimensions used for crown competition factor.

    mcw = a1 * dbh^a2                  maximum (open-grown) crown width, m
    lcw = mcw / (a1' * dbh^a2')        largest crown width, m
    mca = 100 * (pi * mcw^2 / 4) / 10000 * tph
"""
import math

from .species import SpeciesParameters
from .tree_utils import calculate_crown_area


def max_crown_width(params: SpeciesParameters, dbh: float) -> float:
    a1, a2 = params.mcw
    return a1 * math.pow(dbh, a2)


def largest_crown_width(params: SpeciesParameters, dbh: float, mcw: float) -> float:
    a1, a2 = params.lcw
    return mcw / (a1 * math.pow(dbh, a2))


def max_crown_area(mcw: float, tph: float) -> float:
    """Crown area contribution of a record to CCF."""
    return calculate_crown_area(mcw, tph)
