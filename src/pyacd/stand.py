"""
Stand class implementing Acadian Variant stand dynamics.

A Stand owns a list of Tree records and advances them one year at a time:

    1. ingrowth (optional): recruits are allocated to species and plots and
       the stand is re-initialised
    2. diameter growth
    3. height growth
    4. crown recession
    5. survival and density loss
    6. apply growth and mortality
    7. recompute CCF, BAL/CCFL, top height, tree statistics and SDI/RD

Records above 50 trees per hectare are expanded before the first year and
collapsed again after the last one.
"""
import copy
from typing import Any, Dict, List, Optional

import pandas as pd

from .config_loader import region_indicator, validate_region
from .exceptions import (ACDError, ComputationError, GrowthModelError, InvalidParameterError,
                         SpeciesResolutionError, validate_positive, validate_proportion)
from .growth_parameters import StandConditions, ThinningEvent
from .ingrowth import IngrowthModelType, compose_ingrowth, estimate_recruits_per_hectare
from .logging_config import get_logger, log_growth_summary
from .mortality import StandMortalityMultipliers, stand_sbw_multiplier, stand_thinning_multiplier
from .species import SpeciesParameterResolver, get_species_resolver
from .stand_metrics import (BasalAreaSummary, DensitySummary, TreeStatistics,
                            get_metrics_calculator)
from .tree import Tree
from .tree_list import (EXPANSION_THRESHOLD, RandomSource, collapse_tree_list,
                        expand_tree_list, find_max_tree_id, make_rng)

__all__ = ['Stand', 'TREE_LIST_COLUMNS']

TREE_LIST_COLUMNS = ['plot_id', 'tree_id', 'species', 'dbh', 'height', 'tph', 'crown_ratio']

DEFAULT_CUT_POINT = 0.5
DEFAULT_MIN_DBH = 3.0  # cm


class Stand:
    """Stand class implementing Acadian Variant stand dynamics.

    Derived aggregates are valid right after initialisation and after every
    simulated year.
    """

    def __init__(self, trees: Optional[List[Tree]] = None, region: str = 'ME', year: int = 0,
                 csi: float = 16.0, elevation: float = 0.0, cdef: float = -1.0,
                 use_sbw_mod: bool = False, use_hw_mod: bool = False,
                 use_thin_mod: bool = False, use_ingrowth: bool = False,
                 cut_point: float = DEFAULT_CUT_POINT, min_dbh: float = DEFAULT_MIN_DBH,
                 thinning: Optional[ThinningEvent] = None,
                 ingrowth_model: IngrowthModelType = IngrowthModelType.GNLS,
                 resolver: Optional[SpeciesParameterResolver] = None,
                 random_state: RandomSource = None):
        """Initialize a stand.

        Args:
            trees: Initial tree records
            region: 'ME' (Maine) or 'NB' (New Brunswick)
            year: Calendar year of the inventory
            csi: Climate site index (m), must be positive
            elevation: Elevation (m)
            cdef: Cumulative spruce budworm defoliation; negative when not supplied
            use_sbw_mod: Apply spruce budworm growth and survival modifiers
            use_hw_mod: Apply hardwood form and risk modifiers
            use_thin_mod: Apply thinning modifiers
            use_ingrowth: Simulate ingrowth
            cut_point: Ingrowth probability threshold (0 returns expected ingrowth)
            min_dbh: Diameter of new ingrowth records (cm)
            thinning: The stand's recorded thinning, if any
            ingrowth_model: Ingrowth equation variant
            resolver: Species parameter resolver; defaults to the bundled tables
            random_state: Seed or numpy Generator for the expansion jitter

        Raises:
            ConfigurationError: If the region is not supported or a numeric
                argument is out of range
        """
        self.region = validate_region(region)
        self.year = int(year)
        self.csi = validate_positive(csi, 'csi')
        self.elevation = float(elevation)
        self.cdef = float(cdef)
        self.use_sbw_mod = bool(use_sbw_mod)
        self.use_hw_mod = bool(use_hw_mod)
        self.use_thin_mod = bool(use_thin_mod)
        self.use_ingrowth = bool(use_ingrowth)
        self.cut_point = validate_proportion(cut_point, 'cut_point')
        self.min_dbh = validate_positive(min_dbh, 'min_dbh')
        if thinning is not None and not isinstance(thinning, ThinningEvent):
            raise InvalidParameterError('thinning', thinning, "must be a ThinningEvent")
        self.thinning = thinning
        self.ingrowth_model = IngrowthModelType(ingrowth_model)

        self.resolver = resolver or get_species_resolver()
        self.rng = make_rng(random_state)
        self.logger = get_logger(__name__)
        self.metrics = get_metrics_calculator()

        self.trees: List[Tree] = list(trees) if trees is not None else []
        self.initialized = False
        self._reset_aggregates()

    def _reset_aggregates(self) -> None:
        self.max_tree_id = 0
        self.n_species = 0
        self.ccf = 0.0
        self.topht = 0.0
        self.ba_summary = BasalAreaSummary()
        self.statistics = TreeStatistics()
        self.density = DensitySummary()

    # =========================================================================
    # Aggregates
    # =========================================================================

    @property
    def ba(self) -> float:
        return self.ba_summary.ba

    @property
    def ba_sw(self) -> float:
        return self.ba_summary.ba_sw

    @property
    def ba_hw(self) -> float:
        return self.ba_summary.ba_hw

    @property
    def bf_ba(self) -> float:
        return self.ba_summary.bf_ba

    @property
    def ithw_ba(self) -> float:
        return self.ba_summary.ithw_ba

    @property
    def tph(self) -> float:
        return self.ba_summary.tph

    @property
    def qmd(self) -> float:
        return self.ba_summary.qmd

    @property
    def sdi(self) -> float:
        return self.density.sdi

    @property
    def rd(self) -> float:
        return self.density.rd

    @property
    def region_indicator(self) -> int:
        return region_indicator(self.region)

    # =========================================================================
    # Tree list
    # =========================================================================

    def add_tree(self, plot_id: int, tree_id: int, species: int, dbh: float,
                 height: float = 0.0, tph: float = 1.0, crown_ratio: float = 0.0,
                 form: int = 0, risk: int = 0) -> Tree:
        """Add an inventory record to the stand.

        Raises:
            SpeciesResolutionError: If the species cannot be resolved
            InvalidParameterError: If a measurement is out of range
        """
        tree = Tree(plot_id, tree_id, species, dbh, height=height, tph=tph,
                    crown_ratio=crown_ratio, form=form, risk=risk, resolver=self.resolver)
        self.trees.append(tree)
        self.initialized = False
        return tree

    def initialize(self) -> None:
        """Prepare the tree list and every derived aggregate for growth."""
        self.trees = expand_tree_list(self.trees, EXPANSION_THRESHOLD, self.rng)
        self.max_tree_id = find_max_tree_id(self.trees)
        self.n_species = self.metrics.count_species(self.trees)

        self.ccf = self.metrics.calculate_ccf(self.trees)
        self.ba_summary = self.metrics.compute_bal(self.trees)
        self.metrics.compute_ccfl(self.trees)

        indicator = self.region_indicator
        for tree in self.trees:
            tree.impute_height(self.ccf, indicator)

        self.topht = self.metrics.calculate_top_height(self.trees)
        for tree in self.trees:
            tree.predict_crown_base(self.ccf)

        self._compute_statistics()
        self.initialized = True

    def _compute_statistics(self) -> None:
        self.statistics = self.metrics.calculate_tree_statistics(self.trees)
        self.density = self.metrics.calculate_sdi_rd(
            self.statistics, self.ba, self.ba_hw, self.n_species, self.elevation, self.csi
        )

    def _recompute_aggregates(self) -> None:
        self.ccf = self.metrics.calculate_ccf(self.trees)
        self.ba_summary = self.metrics.compute_bal(self.trees)
        self.metrics.compute_ccfl(self.trees)
        self.topht = self.metrics.calculate_top_height(self.trees)
        self._compute_statistics()

    def conditions(self) -> StandConditions:
        """Snapshot of the aggregates used by the tree equations this year."""
        return StandConditions(
            region=self.region,
            region_indicator=self.region_indicator,
            year=self.year,
            csi=self.csi,
            cdef=self.cdef,
            ba=self.ba,
            ccf=self.ccf,
            topht=self.topht,
            average_dbh_10_sw=self.statistics.average_dbh_10_sw,
            average_height_sw=self.statistics.average_height_sw,
            thinning=self.thinning,
            use_sbw_mod=self.use_sbw_mod,
            use_hw_mod=self.use_hw_mod,
            use_thin_mod=self.use_thin_mod,
        )

    # =========================================================================
    # Ingrowth
    # =========================================================================

    def estimate_ingrowth(self) -> float:
        """Annual ingrowth (trees per hectare) for the current stand state."""
        return estimate_recruits_per_hectare(
            self.ba, self.ba_hw, self.tph, self.csi, self.min_dbh, self.qmd,
            cut_point=self.cut_point, model=self.ingrowth_model
        )

    def add_ingrowth(self, recruits: float) -> List[Tree]:
        """Allocate ``recruits`` trees per hectare and append the new records.

        Returns:
            The new ingrowth records
        """
        new_trees = compose_ingrowth(self.trees, recruits, self.ba, self.csi, self.min_dbh,
                                     self.max_tree_id, resolver=self.resolver)
        if new_trees:
            self.trees.extend(new_trees)
            self.max_tree_id = max(t.tree_id for t in new_trees)
            self.logger.info(f"Year {self.year}: {recruits:.2f} trees/ha of ingrowth "
                             f"in {len(new_trees)} new records")
        return new_trees

    # =========================================================================
    # Growth
    # =========================================================================

    def grow(self, n_years: int = 1) -> None:
        """Grow the stand for ``n_years`` annual steps.

        The tree list is collapsed to one record per tree afterwards. If any
        step fails the stand, including its random generator, is returned to
        its state before the call.

        Raises:
            InvalidParameterError: If n_years is negative
            ComputationError: If an equation cannot be evaluated
            ACDError: Other model errors are re-raised unchanged after the rollback
        """
        if int(n_years) != n_years or n_years < 0:
            raise InvalidParameterError('n_years', n_years, "must be a non-negative integer")

        snapshot = self._snapshot()
        try:
            if not self.initialized:
                self.initialize()

            for _ in range(int(n_years)):
                self._grow_one_year()

            self.trees = collapse_tree_list(self.trees)
            self.initialized = False
        except (ArithmeticError, ValueError, KeyError, SpeciesResolutionError) as e:
            self._restore(snapshot)
            self.logger.error(f"Growth failed in year {self.year}: {e}")
            raise ComputationError(f"Growth failed in year {self.year}: {e}") from e
        except ACDError as e:
            self._restore(snapshot)
            self.logger.error(f"Growth failed in year {self.year}: {e}")
            raise

    def _grow_one_year(self) -> None:
        if self.use_ingrowth:
            recruits = self.estimate_ingrowth()
            if recruits > 0.0:
                self.add_ingrowth(recruits)
                self.initialize()

        conditions = self.conditions()

        for tree in self.trees:
            tree.grow_diameter(conditions)
        for tree in self.trees:
            tree.grow_height(conditions)
        for tree in self.trees:
            tree.recede_crown(conditions)

        multipliers = self._mortality_multipliers()
        for tree in self.trees:
            tree.compute_survival(conditions, multipliers)

        for tree in self.trees:
            tree.apply_growth_mortality()
            if not tree.check_finite():
                raise GrowthModelError('tree update', f"non-finite state for {tree!r}")

        self._recompute_aggregates()
        self.year += 1
        log_growth_summary(self.logger, self.year, len(self.trees), self.tph, self.ba,
                           self.qmd, self.topht)

    def _mortality_multipliers(self) -> StandMortalityMultipliers:
        sbw = 1.0
        if self.use_sbw_mod:
            sbw = stand_sbw_multiplier(self.region, self.topht, self.ba, self.bf_ba, self.cdef)
        thin = stand_thinning_multiplier(self.thinning, self.year) if self.use_thin_mod else 1.0
        return StandMortalityMultipliers(sbw=sbw, thin=thin)

    def _snapshot(self) -> Dict[str, Any]:
        return {
            'trees': [copy.copy(t) for t in self.trees],
            'year': self.year,
            'initialized': self.initialized,
            'max_tree_id': self.max_tree_id,
            'n_species': self.n_species,
            'ccf': self.ccf,
            'topht': self.topht,
            'ba_summary': copy.copy(self.ba_summary),
            'statistics': copy.copy(self.statistics),
            'density': copy.copy(self.density),
            'rng_state': self.rng.bit_generator.state,
        }

    def _restore(self, snapshot: Dict[str, Any]) -> None:
        snapshot = dict(snapshot)
        self.rng.bit_generator.state = snapshot.pop('rng_state')
        for name, value in snapshot.items():
            setattr(self, name, value)

    # =========================================================================
    # Results
    # =========================================================================

    def get_tree_list(self) -> List[Dict[str, Any]]:
        """Original (non-expansion) records projected to the result columns."""
        return [t.to_record() for t in self.trees if t.expand_id == 0]

    def get_tree_list_dataframe(self) -> pd.DataFrame:
        """Tree list as a pandas DataFrame."""
        records = self.get_tree_list()
        if not records:
            return pd.DataFrame(columns=TREE_LIST_COLUMNS)
        return pd.DataFrame(records, columns=TREE_LIST_COLUMNS)

    def get_metrics(self) -> Dict[str, Any]:
        """Stand-level metrics of the last statistics pass.

        Returns:
            Dictionary with the year, basal area family, density, QMD, CCF,
            top height, species count, tree statistics and SDI/RD.
        """
        metrics = {
            'year': self.year,
            'region': self.region,
            'records': len(self.trees),
            'n_species': self.n_species,
            'ccf': self.ccf,
            'topht': self.topht,
        }
        metrics.update(vars(self.ba_summary))
        metrics.update(self.statistics.as_dict())
        metrics.update(vars(self.density))
        return metrics

    def __repr__(self) -> str:
        return (f"Stand(region='{self.region}', year={self.year}, records={len(self.trees)}, "
                f"csi={self.csi})")
