"""
Ingrowth (recruitment) for the Acadian Variant.

Annual recruitment per hectare follows Li et al. (2011; CJFR 41: 2077-2089):

    link = a0 + a1*BA + a2*(BA_hw/BA) + a3*(TPH/1000) + a4*CSI + a5*MinDBH + a6*QMD
    PI   = 1 / (1 + exp(-link))                 probability of ingrowth
    IPH  = exp(b0 + b1*BA + ... + b6*QMD)       ingrowth when it occurs

With a cut point of 0 the expected value PI * IPH is returned; otherwise IPH
is returned when PI reaches the cut point and 0 when it does not.

Recruits are distributed to species groups by a logistic share model,
within a group to species by basal area share, and within a species to
plots by that species' plot basal area share.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .logging_config import get_logger
from .species import SpeciesParameterResolver
from .tree import Tree
from .tree_utils import logistic

logger = get_logger(__name__)

__all__ = [
    'IngrowthModelType',
    'GENERIC_SOFTWOOD',
    'GENERIC_HARDWOOD',
    'BasalAreaMaps',
    'ingrowth_group',
    'build_ba_maps',
    'estimate_recruits_per_hectare',
    'group_shares',
    'compose_ingrowth',
]

GENERIC_SOFTWOOD = 9991
GENERIC_HARDWOOD = 9990


class IngrowthModelType(str, Enum):
    """Fitting method of the recruitment equations."""
    GNLS = "GNLS"
    NLME = "NLME"


# a: occurrence link, b: log recruitment
RECRUITMENT_COEFFICIENTS = {
    IngrowthModelType.GNLS: (
        (-0.2116, -0.0255, -0.1396, -0.0054, 0.0433, 0.0409, 0.0),
        (3.8982, -0.0257, -0.3668, 0.0002, 0.0216, -0.0514, 0.0),
    ),
    IngrowthModelType.NLME: (
        (-0.08217, 0.1113, -1.2405, -0.2319, 0.03673, -0.7745, -0.1301),
        (2.8466, -0.03114, -0.2891, 0.003350, 0.2248, -0.08223, -0.03548),
    ),
}

# Species -> ingrowth species group
GROUP_CROSSWALK = {
    531: 531,    # AB
    746: 746,    # QA
    318: 318,    # SM
    241: 241,    # WC
    379: 379,    # GB
    375: 379,    # PB
    371: 379,    # YB
    12: 12,      # BF
    316: 316,    # RM
    97: 97,      # RS
    95: 97,      # BS
    94: 97,      # WS
    129: 129,    # WP
    GENERIC_HARDWOOD: GENERIC_HARDWOOD,
    GENERIC_SOFTWOOD: GENERIC_SOFTWOOD,
}

# Share link b0 + b1*BA + b2*group_fraction + b3*CSI + b4*MinDBH
_BIRCH = (-2.5645, 0.0020, 2.6624, -0.0010, -0.0127)
_BALSAM_FIR = (-3.0291, 0.0027, 2.7779, 0.0211, 0.0221)
_RED_MAPLE = (-0.6566, 0.0123, 1.7669, -0.0421, -0.0283)
_SPRUCE = (-1.2500, -0.0132, 2.0470, -0.0514, 0.0351)
_WHITE_PINE = (-5.1074, -0.0117, 3.8817, 0.0501, 0.0726)
_OTHER_HARDWOOD = (-2.9832, -0.0020, 2.4837, 0.0673, -0.0167)
_OTHER_SOFTWOOD = (-4.7182, 0.0070, 3.2269, 0.1000, 0.0188)

GROUP_SHARE_COEFFICIENTS = {
    379: _BIRCH,
    12: _BALSAM_FIR,
    316: _RED_MAPLE,
    97: _SPRUCE,
    129: _WHITE_PINE,
    GENERIC_HARDWOOD: _OTHER_HARDWOOD,
    746: _OTHER_HARDWOOD,
    531: _OTHER_HARDWOOD,
    318: _OTHER_HARDWOOD,
    GENERIC_SOFTWOOD: _OTHER_SOFTWOOD,
}


def ingrowth_group(species: int, softwood: bool) -> int:
    """Ingrowth species code of a tree (the generic code for unlisted species)."""
    if species in GROUP_CROSSWALK:
        return species
    return GENERIC_SOFTWOOD if softwood else GENERIC_HARDWOOD


@dataclass
class BasalAreaMaps:
    """Basal area (m2/ha) by ingrowth species, by group and by plot and species."""
    by_species: Dict[int, float] = field(default_factory=dict)
    by_group: Dict[int, float] = field(default_factory=dict)
    by_plot_species: Dict[int, Dict[int, float]] = field(default_factory=dict)


def build_ba_maps(trees: Sequence[Tree]) -> BasalAreaMaps:
    """Build fresh basal area maps for the current tree list."""
    maps = BasalAreaMaps()
    for t in trees:
        species = ingrowth_group(t.species, t.softwood)
        group = GROUP_CROSSWALK[species]
        maps.by_species[species] = maps.by_species.get(species, 0.0) + t.ba
        maps.by_group[group] = maps.by_group.get(group, 0.0) + t.ba
        plot = maps.by_plot_species.setdefault(t.plot_id, {})
        plot[species] = plot.get(species, 0.0) + t.ba
    return maps


def estimate_recruits_per_hectare(ba: float, ba_hw: float, tph: float, csi: float,
                                  min_dbh: float, qmd: float, cut_point: float = 0.0,
                                  model: IngrowthModelType = IngrowthModelType.GNLS) -> float:
    """Annual ingrowth (trees per hectare) reaching ``min_dbh``.

    Returns 0 for a stand without basal area.
    """
    if ba <= 0.0:
        return 0.0

    a, b = RECRUITMENT_COEFFICIENTS[IngrowthModelType(model)]
    hw_fraction = ba_hw / ba
    density = tph / 1000.0

    link = a[0] + a[1] * ba + a[2] * hw_fraction + a[3] * density + a[4] * csi + a[5] * min_dbh + a[6] * qmd
    eta = b[0] + b[1] * ba + b[2] * hw_fraction + b[3] * density + b[4] * csi + b[5] * min_dbh + b[6] * qmd

    probability = logistic(link)
    recruits = math.exp(eta)

    if cut_point == 0.0:
        return recruits * probability
    return recruits if probability >= cut_point else 0.0


def group_shares(maps: BasalAreaMaps, ba: float, csi: float, min_dbh: float) -> Dict[int, float]:
    """Normalised share of recruitment for every group present in the stand.

    Groups without share coefficients use a zero link (share 0.5 before
    normalisation).
    """
    raw = {}
    for group in sorted(maps.by_group):
        fraction = maps.by_group[group] / ba if ba > 0.0 else 0.0
        b = GROUP_SHARE_COEFFICIENTS.get(group)
        link = 0.0 if b is None else b[0] + b[1] * ba + b[2] * fraction + b[3] * csi + b[4] * min_dbh
        raw[group] = logistic(link)

    total = sum(raw.values())
    if total <= 0.0:
        return {group: 0.0 for group in raw}
    return {group: share / total for group, share in raw.items()}


def compose_ingrowth(trees: Sequence[Tree], recruits: float, ba: float, csi: float,
                     min_dbh: float, max_tree_id: int,
                     resolver: Optional[SpeciesParameterResolver] = None) -> List[Tree]:
    """Create one ingrowth record per (plot, species) with a positive allocation.

    New records get dbh ``min_dbh``, no height, no crown ratio, no form or
    risk code and tree ids following ``max_tree_id``.

    Returns:
        The new records, in plot order within species order
    """
    maps = build_ba_maps(trees)
    shares = group_shares(maps, ba, csi, min_dbh)

    new_trees = []
    next_id = max_tree_id
    for species in sorted(maps.by_species):
        species_ba = maps.by_species[species]
        group = GROUP_CROSSWALK[species]
        group_ba = maps.by_group[group]
        if species_ba <= 0.0 or group_ba <= 0.0:
            continue

        species_recruits = shares[group] * recruits * species_ba / group_ba

        for plot_id in sorted(maps.by_plot_species):
            plot_fraction = maps.by_plot_species[plot_id].get(species, 0.0) / species_ba
            allocation = species_recruits * plot_fraction
            if allocation > 0.0:
                next_id += 1
                new_trees.append(Tree(plot_id, next_id, species, min_dbh,
                                      height=0.0, tph=allocation, crown_ratio=0.0,
                                      form=0, risk=0, resolver=resolver))

    logger.debug(f"Ingrowth of {recruits:.2f} trees/ha allocated to {len(new_trees)} records")
    return new_trees
