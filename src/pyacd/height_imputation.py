"""
Height imputation and height-to-crown-base prediction.

Total height for records without a measured height (G. Johnson, 2024):
    ht = 1.37 + (c0 + c1*region) * (1 - exp(-c2*dbh - c4*(bal + 1)))^c3 * ln(ccf)^c5

region is 0 for ME and 1 for NB.

Height to crown base, species as a random effect:
    hcb = ht / (1 + exp((a0 + sp) + a1*dbh + a2*ht + a3*dbh/ht
                        + a4*ln(ccf + 1) + a5*(bal + 1)))
"""
import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tree import Tree

BREAST_HEIGHT = 1.37

# ln(ccf) is raised to a power; below e the log term would fall under 1
MIN_CCF_FOR_IMPUTATION = math.e


def impute_height(tree: 'Tree', ccf: float, region_indicator: int) -> float:
    """Predicted total height (m) for a tree of known dbh."""
    c = tree.params.htpred
    log_ccf = math.log(max(ccf, MIN_CCF_FOR_IMPUTATION))
    return (BREAST_HEIGHT
            + (c[0] + c[1] * region_indicator)
            * math.pow(1.0 - math.exp(-c[2] * tree.dbh - c[4] * (tree.bal + 1.0)), c[3])
            * math.pow(log_ccf, c[5]))


def predict_hcb(tree: 'Tree', ccf: float) -> float:
    """Predicted height to crown base (m). Requires a positive height."""
    a = tree.params.hcb_fixed
    ht = tree.height
    dhr = tree.dbh / ht
    return ht / (1.0 + math.exp((a[0] + tree.params.hcb_species_effect)
                                + a[1] * tree.dbh
                                + a[2] * ht
                                + a[3] * dhr
                                + a[4] * math.log(ccf + 1.0)
                                + a[5] * (tree.bal + 1.0)))
