"""
Acadian Variant annual diameter increment.

Base equation (G. Johnson, 2024 revision):
    ddbh = exp(p0 + p1*ln(tdbh + 1) + p2*tdbh + p3*ln(cr)
               + p4*bal/ln(tdbh + 1) + p5*ln(csi))

where tdbh = max(dbh, 1) and the p coefficients are species-specific.

The base increment is scaled by three modifiers:
    - Thinning (Kuehne et al. 2016): balsam fir and red spruce, bounded to [0.75, 1.25]
    - Spruce budworm defoliation (Chen et al. 2017): budworm hosts when
      cumulative defoliation is supplied
    - Hardwood form and risk (Castle et al. 2017): RO, YB, RM, PB and QA with
      valid NHRI form and risk codes
"""
import math
from typing import Optional, TYPE_CHECKING

from .growth_parameters import StandConditions, ThinningEvent
from .species import BALSAM_FIR, RED_SPRUCE, WHITE_SPRUCE, BLACK_SPRUCE, SBW_HOST_SPECIES, FORM_RISK_SPECIES
from .form_risk import decode_form_and_risk, has_valid_form_and_risk

if TYPE_CHECKING:
    from .tree import Tree

# Crown ratio floor inside ln(cr)
CROWN_RATIO_FLOOR = 0.01

THIN_MODIFIER_BOUNDS = (0.75, 1.25)

# y0, y1, y2, y3
THIN_COEFFICIENTS = {
    BALSAM_FIR: (-0.2566, -22.7609, 0.7745, 1.0511),
    RED_SPRUCE: (-0.5010, -20.1147, 0.8067, 1.1905),
}

# Region -> (b2, b3, b4, b5) shared by all hosts, and species -> (b1, b6, b7)
SBW_SHARED = {
    'ME': (0.0019, -0.0327, -0.0412, 0.3950),
    'NB': (-0.0190, -0.0277, -0.0027, 0.0000),
}
SBW_SPECIES = {
    'ME': {
        BALSAM_FIR: (0.1187, -1.2813, -0.0016),
        RED_SPRUCE: (0.0675, -0.9477, -0.0006),
        BLACK_SPRUCE: (0.0675, -0.9477, -0.0006),
        WHITE_SPRUCE: (0.0321, -0.3715, -0.0183),
    },
    'NB': {
        BALSAM_FIR: (0.0701, -0.8200, -0.0018),
        RED_SPRUCE: (0.0320, -0.6861, -0.0012),
        BLACK_SPRUCE: (0.0320, -0.6861, -0.0012),
        WHITE_SPRUCE: (0.0487, -0.7839, -0.0006),
    },
}

# Hardwood form/risk: b0..b3 fixed, b4 and b5 by species
HW_FIXED = (-2.9487, -0.1090, 1.2111, -0.0430)
HW_SPECIES = {
    746: (-0.1059, 0.0476),  # QA
    316: (-0.6377, 0.0477),  # RM
    833: (-0.3453, 0.0511),  # RO
    371: (-0.2494, 0.0251),  # YB
    375: (0.0000, 0.0000),   # PB
}
HW_B6_LOW_RISK = 0.2176
HW_B6_FORM_B = -0.0250


def base_increment(tree: 'Tree', csi: float) -> float:
    """Unmodified annual diameter increment (cm/yr)."""
    p = tree.params.ddbh
    tdbh = max(tree.dbh, 1.0)
    log_dbh = math.log(tdbh + 1.0)
    return math.exp(p[0]
                    + p[1] * log_dbh
                    + p[2] * tdbh
                    + p[3] * math.log(max(tree.crown_ratio, CROWN_RATIO_FLOOR))
                    + p[4] * tree.bal / log_dbh
                    + p[5] * math.log(csi))


def thinning_modifier(species: int, thinning: Optional[ThinningEvent], year: int) -> float:
    """Diameter growth response to a past thinning, bounded to [0.75, 1.25].

    Only applied when the stand enables thinning modifiers; the thinning
    record alone does not switch it on.
    """
    coeffs = THIN_COEFFICIENTS.get(species)
    if coeffs is None or thinning is None or not thinning.is_active(year):
        return 1.0

    y0, y1, y2, y3 = coeffs
    t = thinning.years_since(year)
    modifier = 1.0 + (math.exp(y0 + y1 / ((100.0 * thinning.percent_ba_removed * thinning.qmd_ratio) + 0.01))
                      * math.pow(y2, t) * math.pow(t, y3))
    low, high = THIN_MODIFIER_BOUNDS
    return max(low, min(modifier, high))


def sbw_modifier(tree: 'Tree', region: str, average_dbh_sw: float, topht: float, cdef: float) -> float:
    """Ratio of budworm-defoliated to undefoliated diameter increment.

    ``average_dbh_sw`` is the dbh of softwoods >= 10 cm weighted over the
    density of all softwoods. Only applied when the stand enables budworm
    modifiers and a defoliation value is supplied.
    """
    if tree.species not in SBW_HOST_SPECIES or cdef < 0.0 or average_dbh_sw <= 0.0:
        return 1.0

    b2, b3, b4, b5 = SBW_SHARED[region]
    b1, b6, b7 = SBW_SPECIES[region][tree.species]

    x = (b2 * tree.bal_hw + b3 * tree.bal_sw + b4 * topht + b5 * tree.crown_ratio
         + b6 * (tree.dbh / average_dbh_sw))
    undefoliated = b1 * tree.dbh * math.exp(x)
    defoliated = b1 * tree.dbh * math.exp(x + b7 * cdef)
    if undefoliated == 0.0:
        return 1.0
    return defoliated / undefoliated


def form_risk_modifier(tree: 'Tree') -> float:
    """Diameter growth adjustment for hardwood NHRI form and risk classes."""
    if tree.species not in FORM_RISK_SPECIES or not has_valid_form_and_risk(tree.form, tree.risk):
        return 1.0

    form_b, low_risk = decode_form_and_risk(tree.form, tree.risk)
    b0, b1, b2, b3 = HW_FIXED
    b4, b5 = HW_SPECIES[tree.species]
    b6a = HW_B6_LOW_RISK
    b6b = HW_B6_FORM_B * form_b + HW_B6_LOW_RISK * low_risk

    a = b0 + b1 * tree.dbh + b2 * math.log(tree.dbh) + b3 * tree.bal + b4 + b5 * tree.dbh
    return math.exp(a + b6b) / math.exp(a + b6a)


def diameter_increment(tree: 'Tree', conditions: StandConditions) -> float:
    """Annual diameter increment with all enabled modifiers applied (cm/yr).

    Each modifier is switched on by its stand flag (use_thin_mod,
    use_sbw_mod, use_hw_mod) before its data is consulted.
    """
    ddbh = base_increment(tree, conditions.csi)

    thin = thinning_modifier(tree.species, conditions.active_thinning(), conditions.year)
    sbw = 1.0
    if conditions.sbw_active:
        sbw = sbw_modifier(tree, conditions.region, conditions.average_dbh_10_sw,
                           conditions.topht, conditions.cdef)
    hw = form_risk_modifier(tree) if conditions.use_hw_mod else 1.0

    return ddbh * thin * sbw * hw
