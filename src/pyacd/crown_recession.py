"""
Acadian Variant crown recession (annual change in height to crown base).

    dhcb = p0 * (hcb/p5)^p2 * ((ht - hcb) + dht^p1) * (1 - exp(-p3*(ccf + 1)))^p4

A thinning modifier for balsam fir and red spruce slows recession after a
thinning; its magnitude is capped at 1.
"""
import math
from typing import Optional, TYPE_CHECKING

from .growth_parameters import StandConditions, ThinningEvent
from .species import BALSAM_FIR, RED_SPRUCE

if TYPE_CHECKING:
    from .tree import Tree

# y0, y1, y2, y3
THIN_COEFFICIENTS = {
    BALSAM_FIR: (-0.4208, -17.0998, 0.7986, 0.0521),
    RED_SPRUCE: (-1.0778, -14.7694, 0.7758, 1.1164),
}


def base_recession(tree: 'Tree', dht: float, ccf: float) -> float:
    p = tree.params.dhcb
    return (p[0] * math.pow(tree.hcb / p[5], p[2])
            * ((tree.height - tree.hcb) + math.pow(dht, p[1]))
            * math.pow(1.0 - math.exp(-p[3] * (ccf + 1.0)), p[4]))


def thinning_modifier(species: int, thinning: Optional[ThinningEvent], year: int) -> float:
    """Crown recession response to a past thinning, |modifier| capped at 1."""
    coeffs = THIN_COEFFICIENTS.get(species)
    if coeffs is None or thinning is None or not thinning.occurred_by(year):
        return 1.0

    y0, y1, y2, y3 = coeffs
    t = thinning.years_since(year)
    modifier = 1.0 - (math.exp(y0 + y1 / ((100.0 * thinning.percent_ba_removed * thinning.qmd_ratio) + 0.01))
                      * math.pow(y2, t) * math.pow(t, y3))
    return min(abs(modifier), 1.0)


def crown_recession(tree: 'Tree', dht: float, conditions: StandConditions) -> float:
    """Annual rise of the crown base (m/yr) given this year's height increment."""
    dhcb = base_recession(tree, dht, conditions.ccf)
    return dhcb * thinning_modifier(tree.species, conditions.active_thinning(), conditions.year)
