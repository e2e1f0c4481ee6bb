"""
Acadian Variant annual height increment.

Base equation (G. Johnson, 2024):
    dht = p0*p1*p2 * cr^p5 * (csi/30)^p5 * exp(-p1*ht - p4*ccfl/100)
          * (1 - exp(-p1*ht))^(p2 - 1)

Modifiers:
    - Thinning (Kuehne et al. 2016): balsam fir and red spruce during the
      first five years after a thinning, bounded to [0.75, 1.25]
    - Spruce budworm defoliation (Chen et al. 2017): budworm hosts when
      cumulative defoliation is supplied
"""
import math
from typing import Optional, TYPE_CHECKING

from .growth_parameters import StandConditions, ThinningEvent
from .species import BALSAM_FIR, RED_SPRUCE, WHITE_SPRUCE, BLACK_SPRUCE, SBW_HOST_SPECIES

if TYPE_CHECKING:
    from .tree import Tree

THIN_RESPONSE_YEARS = 5
THIN_MODIFIER_BOUNDS = (0.75, 1.25)

# y0, y1, y2, y3
THIN_COEFFICIENTS = {
    BALSAM_FIR: (-1.8443, 5.2969, 1.0532, 0.0),
    RED_SPRUCE: (-1.8426, 6.2781, 1.1596, 0.0),
}

# b2, b3, b4 shared by all hosts
SBW_SHARED = (-0.0011, 0.0316, 2.4512)
# species -> (b1, b5, b6)
SBW_SPECIES = {
    BALSAM_FIR: (0.0013, 0.3676, -0.0017),
    RED_SPRUCE: (0.0009, 0.2881, -0.0014),
    BLACK_SPRUCE: (0.0009, 0.2881, -0.0014),
    WHITE_SPRUCE: (0.0005, 0.6800, 0.0001),
}


def base_increment(tree: 'Tree', csi: float) -> float:
    """Unmodified annual height increment (m/yr)."""
    p = tree.params.dht
    ht = tree.height
    # p5 scales both the crown ratio and the site terms
    return (p[0] * p[1] * p[2]
            * math.pow(tree.crown_ratio, p[5])
            * math.pow(csi / 30.0, p[5])
            * math.exp(-p[1] * ht - p[4] * (tree.ccfl / 100.0))
            * math.pow(1.0 - math.exp(-p[1] * ht), p[2] - 1.0))


def thinning_modifier(species: int, thinning: Optional[ThinningEvent], year: int) -> float:
    """Height growth response in the first years after a thinning.

    Only applied when the stand enables thinning modifiers.
    """
    coeffs = THIN_COEFFICIENTS.get(species)
    if coeffs is None or thinning is None or not thinning.occurred_by(year):
        return 1.0
    t = thinning.years_since(year)
    if t >= THIN_RESPONSE_YEARS:
        return 1.0

    y0, y1, y2, y3 = coeffs
    modifier = 1.0 - (math.exp(y0 + y1 / ((100.0 * thinning.percent_ba_removed) + 0.01))
                      * math.pow(y2, t) * math.pow(t, y3))
    low, high = THIN_MODIFIER_BOUNDS
    return max(low, min(modifier, high))


def sbw_modifier(tree: 'Tree', average_dbh_sw: float, topht: float, cdef: float) -> float:
    """Ratio of budworm-defoliated to undefoliated height increment.

    Only applied when the stand enables budworm modifiers and a defoliation
    value is supplied.
    """
    if tree.species not in SBW_HOST_SPECIES or cdef < 0.0 or average_dbh_sw <= 0.0:
        return 1.0

    b2, b3, b4 = SBW_SHARED
    b1, b5, b6 = SBW_SPECIES[tree.species]
    dbh = tree.dbh

    x = b2 * dbh * dbh + b3 * topht + b4 * tree.crown_ratio + b5 * (dbh / average_dbh_sw)
    undefoliated = b1 * dbh * math.exp(x)
    defoliated = b1 * dbh * math.exp(x + b6 * cdef)
    if undefoliated == 0.0:
        return 1.0
    return defoliated / undefoliated


def height_increment(tree: 'Tree', conditions: StandConditions) -> float:
    """Annual height increment with all enabled modifiers applied (m/yr).

    The thinning and budworm modifiers are gated by use_thin_mod and
    use_sbw_mod; a thinning year or defoliation value alone has no effect.
    """
    dht = base_increment(tree, conditions.csi)
    thin = thinning_modifier(tree.species, conditions.active_thinning(), conditions.year)
    sbw = 1.0
    if conditions.sbw_active:
        sbw = sbw_modifier(tree, conditions.average_dbh_10_sw, conditions.topht, conditions.cdef)
    return dht * thin * sbw
