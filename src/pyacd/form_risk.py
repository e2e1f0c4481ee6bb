"""
Hardwood form and risk classification (Castle et al. 2017, CJFR 47: 1457-1467).

NHRI form codes run 1-8 and risk codes 1-4. The growth and survival
modifiers use two binary summaries:
    - form B: any form other than 1, 3, 4 or 7
    - low risk: risk 1 or 2

Invalid combinations decode to form A and low risk.

The classification equations predict, for RM, RO, SM and YB, the
probability of each stem form class and of a tree being high risk. Red
maple is the reference level for the species effects.
"""
from dataclasses import dataclass
from typing import Tuple

from .tree_utils import logistic

FORM_A_CODES = frozenset({1, 3, 4, 7})
LOW_RISK_CODES = frozenset({1, 2})

CLASSIFIED_SPECIES = frozenset({316, 833, 318, 371})

# Intercepts and dbh slopes; MST has no dbh term
FORM_STM = (-0.9491, 0.0174)
FORM_LSW = (-1.1143, -0.0322)
FORM_MST = (-0.4110, 0.0)
FORM_LF = (-4.0677, 0.0322)

# Species effects (STM, LSW, MST, LF) relative to red maple
FORM_SPECIES_EFFECTS = {
    833: (-0.2826, 0.7910, -0.5009, 0.1139),   # red oak
    318: (0.7541, -0.2325, -1.1347, 0.6278),   # sugar maple
    371: (-0.0208, 0.2980, -0.7557, 1.0681),   # yellow birch
}

RISK_FIXED = (-0.6886, -0.0001)
# Species effects (intercept shift, dbh slope shift) relative to red maple
RISK_SPECIES_EFFECTS = {
    833: (-0.0184, -0.0393),
    318: (-0.1513, -0.0164),
    371: (-0.9851, 0.0196),
}


def has_valid_form(form: int) -> bool:
    return 1 <= form <= 8


def has_valid_form_and_risk(form: int, risk: int) -> bool:
    return has_valid_form(form) and 1 <= risk <= 4


def decode_form_and_risk(form: int, risk: int) -> Tuple[bool, bool]:
    """Decode NHRI codes to (form_b, low_risk).

    Args:
        form: NHRI form code (1-8)
        risk: NHRI risk code (1-4)

    Returns:
        Tuple of (form class B, low risk)
    """
    if not has_valid_form_and_risk(form, risk):
        return False, True
    return form not in FORM_A_CODES, risk in LOW_RISK_CODES


@dataclass(frozen=True)
class FormClassProbabilities:
    """Probabilities of the four stem form classes.

    Attributes:
        stm: Single straight stem
        lsw: Extensive sweep and lean
        mst: Multiple stems
        lf: Significant fork within the first 5 m
    """
    stm: float = 0.0
    lsw: float = 0.0
    mst: float = 0.0
    lf: float = 0.0


def form_probability(species: int, dbh: float) -> FormClassProbabilities:
    """Normalised form class probabilities for a classified hardwood.

    Returns all-zero probabilities for species outside RM, RO, SM and YB.
    """
    if species not in CLASSIFIED_SPECIES:
        return FormClassProbabilities()

    e_stm, e_lsw, e_mst, e_lf = FORM_SPECIES_EFFECTS.get(species, (0.0, 0.0, 0.0, 0.0))
    stm = logistic(FORM_STM[0] + FORM_STM[1] * dbh + e_stm)
    lsw = logistic(FORM_LSW[0] + FORM_LSW[1] * dbh + e_lsw)
    mst = logistic(FORM_MST[0] + e_mst)
    lf = logistic(FORM_LF[0] + FORM_LF[1] * dbh + e_lf)

    total = stm + lsw + mst + lf
    return FormClassProbabilities(stm=stm / total, lsw=lsw / total, mst=mst / total, lf=lf / total)


def risk_probability(species: int, dbh: float) -> float:
    """Probability that a classified hardwood is high risk (0 for other species)."""
    if species not in CLASSIFIED_SPECIES:
        return 0.0

    b2, b3 = RISK_SPECIES_EFFECTS.get(species, (0.0, 0.0))
    b0, b1 = RISK_FIXED
    return logistic(b0 + b1 * dbh + b2 + b3 * dbh)
