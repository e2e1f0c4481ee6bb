"""
Tree class representing one record of a stand tree list.

A record stands for ``tph`` trees per hectare of identical species and size.
Stand-level quantities the equations need (CCF, top height, species means)
come in through a StandConditions snapshot; ranked competition (BAL, CCFL)
is written onto the record by the stand statistics engine.
"""
import math
from typing import Any, Dict, Optional

from .crown_recession import crown_recession
from .crown_width import largest_crown_width, max_crown_area, max_crown_width
from .diameter_growth import diameter_increment
from .exceptions import validate_positive, validate_proportion, InvalidParameterError
from .growth_parameters import StandConditions
from .height_growth import height_increment
from .height_imputation import impute_height, predict_hcb
from .mortality import StandMortalityMultipliers, density_loss, survival_probability
from .species import SpeciesParameterResolver, SpeciesParameters, get_species_resolver
from .tree_utils import calculate_tree_basal_area

__all__ = ['Tree']


class Tree:
    def __init__(self, plot_id: int, tree_id: int, species: int, dbh: float,
                 height: float = 0.0, tph: float = 1.0, crown_ratio: float = 0.0,
                 form: int = 0, risk: int = 0, expand_id: int = 0,
                 resolver: Optional[SpeciesParameterResolver] = None,
                 params: Optional[SpeciesParameters] = None):
        """Initialize a tree record.

        Args:
            plot_id: Plot identifier
            tree_id: Tree identifier, unique within a plot
            species: FIA species code
            dbh: Diameter at breast height (cm)
            height: Total height (m); values <= 0 are imputed by the stand
            tph: Trees per hectare represented by the record
            crown_ratio: Live crown ratio; 0 means not measured
            form: NHRI form code (1-8, other values are treated as missing)
            risk: NHRI risk code (1-4, other values are treated as missing)
            expand_id: 0 for an original record, > 0 for an expansion record
            resolver: Species resolver; defaults to the bundled tables
            params: Already-resolved species parameters (skips resolution)

        Raises:
            InvalidParameterError: If dbh, tph or crown ratio are out of range
            SpeciesResolutionError: If the species code cannot be resolved
        """
        validate_positive(dbh, 'dbh')
        if not tph >= 0:
            raise InvalidParameterError('tph', tph, "must not be negative")
        validate_proportion(crown_ratio, 'crown_ratio')

        self.plot_id = int(plot_id)
        self.tree_id = int(tree_id)
        self.expand_id = int(expand_id)
        self.species = int(species)
        self.dbh = float(dbh)
        self.height = float(height)
        self.tph = float(tph)
        self.crown_ratio = float(crown_ratio)
        self.form = int(form)
        self.risk = int(risk)

        if params is None:
            params = (resolver or get_species_resolver()).resolve(self.species)
        self.params = params

        self.hcb = (1.0 - self.crown_ratio) * self.height if self.crown_ratio > 0.0 and self.height > 0.0 else 0.0

        # Ranked competition, written by the statistics engine
        self.bal = 0.0
        self.bal_sw = 0.0
        self.bal_hw = 0.0
        self.ccfl = 0.0
        self.ccfl_sw = 0.0
        self.ccfl_hw = 0.0

        self.compute_attributes()
        self.reset()

    @property
    def softwood(self) -> bool:
        return self.params.softwood

    @property
    def sg(self) -> float:
        return self.params.sg

    @property
    def shade(self) -> float:
        return self.params.shade

    def compute_attributes(self) -> None:
        """Recompute basal area and crown dimensions from dbh and density."""
        self.ba = calculate_tree_basal_area(self.dbh, self.tph)
        self.mcw = max_crown_width(self.params, self.dbh)
        self.lcw = largest_crown_width(self.params, self.dbh, self.mcw)
        self.mca = max_crown_area(self.mcw, self.tph)

    def reset(self) -> None:
        """Clear this year's growth and mortality deltas."""
        self.ddbh = 0.0
        self.dht = 0.0
        self.dhcb = 0.0
        self.dtph = 0.0
        self.p_survival = 1.0

    def impute_height(self, ccf: float, region_indicator: int, override: bool = False) -> None:
        """Predict height for records without one (or all records with override)."""
        if self.height <= 0.0 or override:
            self.height = impute_height(self, ccf, region_indicator)

    def predict_crown_base(self, ccf: float) -> None:
        """Fill in height to crown base for records that lack it.

        Uses the measured crown ratio when there is one, otherwise the crown
        base regression. Crown ratio is recomputed either way.
        """
        if self.hcb != 0.0:
            return
        if self.crown_ratio > 0.0:
            self.hcb = (1.0 - self.crown_ratio) * self.height
        else:
            self.hcb = predict_hcb(self, ccf)
            self.crown_ratio = 1.0 - self.hcb / self.height

    def grow_diameter(self, conditions: StandConditions) -> None:
        self.ddbh = diameter_increment(self, conditions)

    def grow_height(self, conditions: StandConditions) -> None:
        self.dht = height_increment(self, conditions)

    def recede_crown(self, conditions: StandConditions) -> None:
        """Crown recession; needs this year's height increment."""
        self.dhcb = crown_recession(self, self.dht, conditions)

    def compute_survival(self, conditions: StandConditions,
                         multipliers: StandMortalityMultipliers) -> None:
        self.p_survival = survival_probability(self, conditions)
        self.dtph = density_loss(self.tph, self.p_survival, multipliers)

    def apply_growth_mortality(self) -> None:
        """Apply this year's deltas and reset them.

        Crown base never rises above total height and density never drops
        below zero.
        """
        self.dbh += self.ddbh
        self.height += self.dht
        self.hcb += self.dhcb
        if self.hcb > self.height:
            self.hcb = self.height
        self.crown_ratio = (self.height - self.hcb) / self.height
        self.tph -= min(self.dtph, self.tph)

        self.compute_attributes()
        self.reset()

    def check_finite(self) -> bool:
        """True if every state variable is a finite number."""
        return all(math.isfinite(v) for v in (self.dbh, self.height, self.hcb, self.crown_ratio, self.tph))

    def to_record(self) -> Dict[str, Any]:
        """Projection of the record used for results."""
        return {
            'plot_id': self.plot_id,
            'tree_id': self.tree_id,
            'species': self.species,
            'dbh': self.dbh,
            'height': self.height,
            'tph': self.tph,
            'crown_ratio': self.crown_ratio,
        }

    def __repr__(self) -> str:
        return (f"Tree(plot_id={self.plot_id}, tree_id={self.tree_id}, expand_id={self.expand_id}, "
                f"species={self.species}, dbh={self.dbh:.2f}, height={self.height:.2f}, "
                f"tph={self.tph:.2f}, crown_ratio={self.crown_ratio:.3f})")
