"""
Stand metrics calculator for PyACD.

Stand-level statistics and the per-tree ranked competition measures used by
the Acadian Variant equations.

Metrics include:
- Basal area (total, softwood, hardwood, balsam fir, intolerant hardwood)
- Basal area in larger trees (BAL) and crown competition factor in larger
  trees (CCFL), with softwood/hardwood decomposition
- Crown Competition Factor (CCF)
- Quadratic Mean Diameter (QMD)
- Top height (mean height of the largest 100 trees per hectare)
- Density-weighted diameter, height and specific gravity means
- Stand Density Index and relative density (Weiskittel & Kuehne 2019)
"""
import math
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Iterable, List, Sequence, TYPE_CHECKING

from .exceptions import ComputationError
from .species import BALSAM_FIR
from .tree_utils import BASAL_AREA_FACTOR

if TYPE_CHECKING:
    from .tree import Tree

__all__ = [
    'RankedAccumulator',
    'BasalAreaSummary',
    'TreeStatistics',
    'DensitySummary',
    'StandMetricsCalculator',
    'get_metrics_calculator',
]

TOP_HEIGHT_TPH = 100.0
LARGE_TREE_DBH = 10.0
SDI_REFERENCE_DBH = 25.4
SDI_EXPONENT = 1.6
MIN_MEAN_SG = 0.80
INTOLERANT_SHADE = 2.0


class RankedAccumulator:
    """Running total over records visited in descending rank order.

    Records tied on rank all see the total accumulated from strictly larger
    records; the running total still adds every tied record.
    """

    def __init__(self):
        self.total = 0.0
        self._last_rank = math.inf
        self._baseline = 0.0

    def larger_than(self, rank: float) -> float:
        """Total contributed by records with a strictly larger rank.

        Raises:
            ComputationError: If ``rank`` is larger than the last rank added or
                is not a number
        """
        if rank < self._last_rank:
            return self.total
        if rank == self._last_rank:
            return self._baseline
        raise ComputationError(
            f"Ranked accumulation out of order: {rank} after {self._last_rank}"
        )

    def add(self, rank: float, contribution: float) -> float:
        """Add a record and return the total of strictly larger records."""
        larger = self.larger_than(rank)
        if rank < self._last_rank:
            self._baseline = self.total
            self._last_rank = rank
        self.total += contribution
        return larger


def sort_by_dbh(trees: Iterable['Tree']) -> List['Tree']:
    """Stable sort, largest diameter first."""
    return sorted(trees, key=lambda t: t.dbh, reverse=True)


def ranked_fold(trees: Iterable['Tree'], contribution: Callable[['Tree'], float]):
    """Yield (tree, larger, larger_softwood) in descending dbh order.

    ``larger`` sums the contribution of all strictly larger records and
    ``larger_softwood`` that of strictly larger softwood records.
    """
    everything = RankedAccumulator()
    softwood = RankedAccumulator()
    for tree in sort_by_dbh(trees):
        value = contribution(tree)
        larger = everything.add(tree.dbh, value)
        if tree.softwood:
            larger_sw = softwood.add(tree.dbh, value)
        else:
            larger_sw = softwood.larger_than(tree.dbh)
        yield tree, larger, larger_sw


@dataclass
class BasalAreaSummary:
    """Basal area (m2/ha), density (trees/ha) and QMD (cm) of a tree list."""
    ba: float = 0.0
    ba_sw: float = 0.0
    ba_hw: float = 0.0
    bf_ba: float = 0.0
    ithw_ba: float = 0.0
    tph: float = 0.0
    qmd: float = 0.0


@dataclass
class TreeStatistics:
    """Density-weighted summary statistics of a tree list."""
    tph: float = 0.0
    average_dbh: float = 0.0
    average_dbh_10: float = 0.0
    average_dbh_sw: float = 0.0
    average_dbh_hw: float = 0.0
    # trees >= 10 cm, weighted over the density of the whole group
    average_dbh_10_sw: float = 0.0
    average_dbh_10_hw: float = 0.0
    average_height_sw: float = 0.0
    average_height_hw: float = 0.0
    average_sg: float = 0.0
    average_sg_10: float = 0.0
    dbh_sd: float = 0.0
    dbh_10_sd: float = 0.0
    min_dbh: float = 0.0
    max_dbh: float = 0.0
    min_dbh_10: float = 0.0
    sdi: float = 0.0
    sdi_10: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class DensitySummary:
    """Stand density index ceilings and relative densities."""
    sdi: float = 0.0
    sdi_10: float = 0.0
    sdi_max: float = 0.0
    sdi_max_10: float = 0.0
    rd: float = 0.0
    rd_10: float = 0.0


def _weighted_sd(sum_x: float, sum_x2: float, weight: float) -> float:
    """Density-weighted standard deviation; 0 when weight <= 1."""
    if weight <= 1.0:
        return 0.0
    mean = sum_x / weight
    variance = (sum_x2 / weight - mean * mean) * weight / (weight - 1.0)
    return math.sqrt(max(variance, 0.0))


class StandMetricsCalculator:
    """Calculator for stand-level metrics.

    Provides all stand metric calculations in a standalone class that can be
    tested independently of the Stand.
    """

    def calculate_ccf(self, trees: Iterable['Tree']) -> float:
        """Crown competition factor: sum of record crown areas."""
        return sum(t.mca for t in trees)

    def count_species(self, trees: Iterable['Tree']) -> int:
        return len({t.species for t in trees})

    def compute_bal(self, trees: Sequence['Tree']) -> BasalAreaSummary:
        """Write BAL, softwood BAL and hardwood BAL onto every record.

        Returns:
            Basal area and density totals of the list

        Raises:
            ComputationError: If a diameter is not a number
        """
        summary = BasalAreaSummary()
        for tree, larger, larger_sw in ranked_fold(trees, lambda t: t.ba):
            tree.bal = larger
            tree.bal_sw = larger_sw
            tree.bal_hw = larger - larger_sw

            summary.ba += tree.ba
            summary.tph += tree.tph
            if tree.softwood:
                summary.ba_sw += tree.ba
            else:
                summary.ba_hw += tree.ba
                if tree.shade < INTOLERANT_SHADE:
                    summary.ithw_ba += tree.ba
            if tree.species == BALSAM_FIR:
                summary.bf_ba += tree.ba

        summary.qmd = self.calculate_qmd(summary.ba, summary.tph)
        return summary

    def compute_ccfl(self, trees: Sequence['Tree']) -> None:
        """Write CCFL, softwood CCFL and hardwood CCFL onto every record."""
        for tree, larger, larger_sw in ranked_fold(trees, lambda t: t.mca):
            tree.ccfl = larger
            tree.ccfl_sw = larger_sw
            tree.ccfl_hw = larger - larger_sw

    @staticmethod
    def calculate_qmd(ba: float, tph: float) -> float:
        """Quadratic mean diameter (cm) from basal area and density."""
        if tph <= 0.0:
            return 0.0
        return math.sqrt(ba / tph / BASAL_AREA_FACTOR)

    def calculate_top_height(self, trees: Iterable['Tree'], target_tph: float = TOP_HEIGHT_TPH) -> float:
        """Mean height of the tallest ``target_tph`` trees per hectare.

        The record that crosses the target contributes only the remaining
        fraction of its density.
        """
        sum_tph = 0.0
        sum_ht = 0.0
        for tree in sorted(trees, key=lambda t: t.height, reverse=True):
            if sum_tph >= target_tph:
                break
            if sum_tph + tree.tph <= target_tph:
                sum_ht += tree.height * tree.tph
                sum_tph += tree.tph
            else:
                sum_ht += tree.height * (target_tph - sum_tph)
                sum_tph = target_tph
        return sum_ht / sum_tph if sum_tph > 0.0 else 0.0

    def calculate_tree_statistics(self, trees: Iterable['Tree']) -> TreeStatistics:
        """Density-weighted means, spreads and SDI of a tree list."""
        stats = TreeStatistics()
        tph_10 = tph_sw = tph_hw = 0.0
        dbh2 = dbh2_10 = 0.0
        min_dbh = min_dbh_10 = math.inf
        max_dbh = 0.0

        for t in trees:
            sdi_term = math.pow(t.dbh / SDI_REFERENCE_DBH, SDI_EXPONENT) * t.tph
            stats.tph += t.tph
            stats.average_dbh += t.dbh * t.tph
            stats.average_sg += t.sg * t.tph
            stats.sdi += sdi_term
            dbh2 += t.dbh * t.dbh * t.tph

            large = t.dbh >= LARGE_TREE_DBH
            if large:
                tph_10 += t.tph
                stats.average_dbh_10 += t.dbh * t.tph
                stats.average_sg_10 += t.sg * t.tph
                stats.sdi_10 += sdi_term
                dbh2_10 += t.dbh * t.dbh * t.tph
                min_dbh_10 = min(min_dbh_10, t.dbh)

            if t.softwood:
                tph_sw += t.tph
                stats.average_dbh_sw += t.dbh * t.tph
                stats.average_height_sw += t.height * t.tph
                if large:
                    stats.average_dbh_10_sw += t.dbh * t.tph
            else:
                tph_hw += t.tph
                stats.average_dbh_hw += t.dbh * t.tph
                stats.average_height_hw += t.height * t.tph
                if large:
                    stats.average_dbh_10_hw += t.dbh * t.tph

            min_dbh = min(min_dbh, t.dbh)
            max_dbh = max(max_dbh, t.dbh)

        stats.dbh_sd = _weighted_sd(stats.average_dbh, dbh2, stats.tph)
        stats.dbh_10_sd = _weighted_sd(stats.average_dbh_10, dbh2_10, tph_10)

        if stats.tph > 0.0:
            stats.average_dbh /= stats.tph
            stats.average_sg /= stats.tph
        if tph_10 > 0.0:
            stats.average_dbh_10 /= tph_10
            stats.average_sg_10 /= tph_10
        if tph_sw > 0.0:
            stats.average_dbh_sw /= tph_sw
            stats.average_dbh_10_sw /= tph_sw
            stats.average_height_sw /= tph_sw
        if tph_hw > 0.0:
            stats.average_dbh_hw /= tph_hw
            stats.average_dbh_10_hw /= tph_hw
            stats.average_height_hw /= tph_hw

        stats.min_dbh = min_dbh if min_dbh != math.inf else 0.0
        stats.min_dbh_10 = min_dbh_10 if min_dbh_10 != math.inf else 0.0
        stats.max_dbh = max_dbh
        return stats

    def calculate_sdi_rd(self, stats: TreeStatistics, ba: float, ba_hw: float,
                         n_species: int, elevation: float, csi: float) -> DensitySummary:
        """Stand density index ceilings and relative density.

        Maximum SDI follows Weiskittel & Kuehne (2019) with the specific
        gravity fallback 1347.445 - 1003.870 * mean_sg. The all-trees ceiling
        takes the fallback when the regression is not positive; the 10 cm
        ceiling takes the fallback when the regression is positive.
        """
        dbh_range = stats.max_dbh - stats.min_dbh if stats.min_dbh < stats.max_dbh else 0.0
        dbh_10_range = (stats.max_dbh - stats.min_dbh_10
                        if 0.0 < stats.min_dbh_10 < stats.max_dbh else 0.0)
        mean_sg = max(stats.average_sg, MIN_MEAN_SG)
        mean_sg_10 = max(stats.average_sg_10, MIN_MEAN_SG)
        hw_fraction = ba_hw / ba if ba > 0.0 else 0.0

        def ceiling(sg: float, spread: float) -> float:
            return (475.2079 - 1.5908 * hw_fraction - 236.9051 * math.log(sg)
                    + 50.3299 * math.sqrt(spread) + 13.5202 * n_species
                    + 0.0685 * elevation - 2.8537 * math.sqrt(max(elevation, 0.0))
                    + 222.7836 * (1.0 / csi))

        fallback = 1347.445 - 1003.870 * mean_sg

        sdi_max_10 = ceiling(mean_sg_10, dbh_10_range)
        sdi_max_10 = fallback if sdi_max_10 > 0.0 else sdi_max_10

        sdi_max = ceiling(mean_sg, dbh_range)
        sdi_max = sdi_max if sdi_max > 0.0 else fallback

        return DensitySummary(
            sdi=stats.sdi,
            sdi_10=stats.sdi_10,
            sdi_max=sdi_max,
            sdi_max_10=sdi_max_10,
            rd=stats.sdi / sdi_max if sdi_max != 0.0 else 0.0,
            rd_10=stats.sdi_10 / sdi_max_10 if sdi_max_10 != 0.0 else 0.0,
        )


_metrics_calculator = StandMetricsCalculator()


def get_metrics_calculator() -> StandMetricsCalculator:
    """Get the shared metrics calculator."""
    return _metrics_calculator
