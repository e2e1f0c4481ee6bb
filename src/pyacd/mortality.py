"""
Acadian Variant survival and mortality.

Tree-level annual survival (G. Johnson, 2024):
    p = 1 - exp(-exp(-b0 + b1*dbh^b2/(bal + 1)))

Survival is multiplied by three tree-level modifiers, each constrained to <= 1:
    - Spruce budworm defoliation (Chen et al. 2017) for budworm hosts
    - Hardwood form (Castle et al. 2017) for RO, YB, RM, PB and QA
    - Thinning (Kuehne et al. 2016) for balsam fir and red spruce

The resulting density loss is scaled by two stand-level multipliers
(budworm and thinning), each >= 1:
    dtph = tph * (1 - p) * sbw_multiplier * thin_multiplier
"""
import math
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .growth_parameters import StandConditions, ThinningEvent
from .species import BALSAM_FIR, RED_SPRUCE, WHITE_SPRUCE, BLACK_SPRUCE, SBW_HOST_SPECIES, FORM_RISK_SPECIES
from .form_risk import has_valid_form
from .tree_utils import logistic

if TYPE_CHECKING:
    from .tree import Tree


# Tree-level budworm survival: region -> (b1, b2, b4, b6, b7), species -> (b3, b5, b8)
SBW_SHARED = {
    'ME': (-6.5208, -0.4866, 0.0316, -0.0175, 0.0274),
    'NB': (-6.8310, 0.0000, 0.2025, 0.0000, 0.0000),
}
SBW_SPECIES = {
    'ME': {
        BALSAM_FIR: (-0.0355, 1.5087, 0.0040),
        RED_SPRUCE: (-0.1231, 1.5087, 0.0056),
        BLACK_SPRUCE: (-0.1231, 1.5087, 0.0056),
        WHITE_SPRUCE: (-0.1755, 1.5087, 0.0207),
    },
    'NB': {
        BALSAM_FIR: (-0.2285, 2.1703, 0.0029),
        RED_SPRUCE: (-0.2285, 2.0809, 0.0101),
        BLACK_SPRUCE: (-0.2285, 2.0809, 0.0101),
        WHITE_SPRUCE: (-0.2285, 1.5802, 0.0021),
    },
}

# Hardwood form survival
HW_FIXED = (15.1991, -0.1509, -0.1232, -1.4053)
HW_DEFAULT_B4 = 3.3082
HW_FORM_EFFECTS = {1: 3.3082, 2: 2.2518, 5: 0.0, 8: 0.0}  # STM, SWP, MST, other
HW_SPECIES = {
    746: (-2.7907, 0.0791),  # QA
    316: (-3.9809, 0.8343),  # RM
    833: (-0.7937, 0.8944),  # RO
    371: (5.2531, 0.1528),   # YB
}

# Stand-level budworm multiplier: region -> (b1, b2, b3, b4)
STAND_SBW_COEFFICIENTS = {
    'ME': (-2.6380, 0.0114, -0.0076, 0.0074),
    'NB': (-3.0893, 0.0071, -0.0037, 0.0000),
}

STAND_THIN_COEFFICIENTS = (8.3385, -601.3096, 0.5507, 1.5798)


def base_survival(tree: 'Tree') -> float:
    """Annual survival probability before modifiers."""
    b = tree.params.mortality
    return 1.0 - math.exp(-math.exp(-b[0] + b[1] * (math.pow(tree.dbh, b[2]) / (tree.bal + 1.0))))


def sbw_survival_modifier(tree: 'Tree', region: str, average_height_sw: float, cdef: float) -> float:
    """Survival adjustment for budworm defoliation, constrained to <= 1."""
    if tree.species not in SBW_HOST_SPECIES or cdef < 0.0 or average_height_sw <= 0.0:
        return 1.0

    b1, b2, b4, b6, b7 = SBW_SHARED[region]
    b3, b5, b8 = SBW_SPECIES[region][tree.species]

    x = (b1 + b2 * tree.crown_ratio + b3 * tree.dbh + b4 * average_height_sw
         + b5 * (tree.height / average_height_sw) + b6 * tree.bal_sw + b7 * tree.bal_hw)
    mort_a = 1.0 - math.exp(-math.exp(x))
    mort_b = 1.0 - math.exp(-math.exp(x + b8 * cdef))
    modifier = (1.0 - mort_b) / (1.0 - mort_a) if mort_a > 0.0 else 1.0
    return min(modifier, 1.0)


def hardwood_survival_modifier(tree: 'Tree', ba: float) -> float:
    """Survival adjustment for hardwood stem form, constrained to <= 1."""
    if tree.species not in FORM_RISK_SPECIES or not has_valid_form(tree.form):
        return 1.0

    b0, b1, b2, b3 = HW_FIXED
    b5 = HW_FORM_EFFECTS.get(tree.form, 0.0)
    b4, b6 = HW_SPECIES.get(tree.species, (HW_DEFAULT_B4, 0.0))

    x = b0 + b1 * tree.dbh + b2 * tree.bal + b3 * math.sqrt(ba) + b4 + b6 * tree.dbh
    mort_a = logistic(x)
    mort_b = logistic(x + b5)
    modifier = mort_b / mort_a if mort_a != 0.0 else 1.0
    return min(modifier, 1.0)


def thinning_survival_modifier(species: int, thinning: Optional[ThinningEvent], year: int) -> float:
    """Survival adjustment after a thinning, 1/m constrained to <= 1."""
    if thinning is None or not thinning.is_active(year):
        return 1.0

    t = thinning.years_since(year)
    pct = thinning.percent_ba_removed
    if species == BALSAM_FIR:
        y0, y1, y2, y3 = 1.7414, 7.0805, 0.6677, 0.8474
        modifier = 1.0 + (math.exp(y0 + (y1 / (((100.0 * pct + thinning.ba_pre_thin) * thinning.qmd_ratio) + 0.01)))
                          * math.pow(y2, t) * math.pow(t, y3))
    elif species == RED_SPRUCE:
        y0, y1, y2, y3 = 10.5057, -650.8260, 0.6948, 0.6429
        modifier = 1.0 + (math.exp(y0 + (y1 / ((100.0 * pct + thinning.ba_pre_thin) + 0.01)))
                          * math.pow(y2, t) * math.pow(t, y3))
    else:
        return 1.0

    return min(1.0 / modifier, 1.0)


def survival_probability(tree: 'Tree', conditions: StandConditions) -> float:
    """Annual survival probability with all enabled modifiers applied."""
    p = base_survival(tree)

    sbw = 1.0
    if conditions.use_sbw_mod:
        sbw = sbw_survival_modifier(tree, conditions.region, conditions.average_height_sw, conditions.cdef)
    hw = hardwood_survival_modifier(tree, conditions.ba) if conditions.use_hw_mod else 1.0
    thin = thinning_survival_modifier(tree.species, conditions.active_thinning(), conditions.year)

    return p * sbw * hw * thin


def stand_sbw_multiplier(region: str, topht: float, ba: float, bf_ba: float, cdef: float) -> float:
    """Stand-level multiplier (>= 1 for positive defoliation) on density loss."""
    if cdef < 0.0:
        return 1.0
    b1, b2, b3, b4 = STAND_SBW_COEFFICIENTS[region]
    volume = (topht / 2.0) * ba
    aa = logistic(b1) * logistic(b3 * volume)
    bb = logistic(b1) * logistic(b2 * cdef * bf_ba + b3 * volume + b4 * cdef)
    return bb / aa if aa > 0.0 else 1.0


def stand_thinning_multiplier(thinning: Optional[ThinningEvent], year: int) -> float:
    """Stand-level multiplier on density loss after a thinning."""
    if thinning is None or not thinning.is_active(year):
        return 1.0
    y0, y1, y2, y3 = STAND_THIN_COEFFICIENTS
    t = thinning.years_since(year)
    return 1.0 + (math.exp(y0 + (y1 / ((100.0 * thinning.percent_ba_removed + thinning.ba_pre_thin) + 0.01)))
                  * math.pow(y2, t) * math.pow(t, y3))


@dataclass(frozen=True)
class StandMortalityMultipliers:
    """Stand-level scaling of tree density loss for one simulated year."""
    sbw: float = 1.0
    thin: float = 1.0

    @property
    def combined(self) -> float:
        return self.sbw * self.thin


def density_loss(tph: float, p_survival: float, multipliers: StandMortalityMultipliers) -> float:
    """Trees per hectare lost this year before clamping to the record density."""
    return tph * (1.0 - p_survival) * multipliers.combined
