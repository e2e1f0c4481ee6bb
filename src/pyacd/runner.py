"""
Tabular entry point for growing a tree list.

``grow_tree_list`` takes a pandas DataFrame of tree records in metric or
imperial units, builds a Stand, grows it and returns the grown tree list in
the same units.
"""
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import InvalidDataError, InvalidParameterError
from .growth_parameters import ThinningEvent
from .ingrowth import IngrowthModelType
from .logging_config import get_logger
from .stand import DEFAULT_CUT_POINT, DEFAULT_MIN_DBH, Stand
from .tree_list import RandomSource
from .tree_utils import FEET_TO_METERS, HECTARES_PER_ACRE_FACTOR, INCHES_TO_CM

logger = get_logger(__name__)

__all__ = ['UNIT_FACTORS', 'REQUIRED_COLUMNS', 'validate_tree_frame', 'build_stand', 'grow_tree_list']

# (length ft->m, diameter in->cm, density per-acre->per-ha)
UNIT_FACTORS: Dict[str, Tuple[float, float, float]] = {
    'metric': (1.0, 1.0, 1.0),
    'imperial': (FEET_TO_METERS, INCHES_TO_CM, HECTARES_PER_ACRE_FACTOR),
}

REQUIRED_COLUMNS = ['plot_id', 'tree_id', 'species', 'dbh', 'tph']
OPTIONAL_COLUMNS = {'height': 0.0, 'crown_ratio': 0.0, 'form': 0, 'risk': 0}


def _unit_factors(units: str) -> Tuple[float, float, float]:
    try:
        return UNIT_FACTORS[units]
    except KeyError:
        raise InvalidParameterError('units', units, f"must be one of {sorted(UNIT_FACTORS)}") from None


def validate_tree_frame(trees: pd.DataFrame) -> pd.DataFrame:
    """Check a tree DataFrame and fill in optional columns.

    Returns:
        A copy with every optional column present

    Raises:
        InvalidDataError: If the frame is empty, lacks a required column or
            has missing values in a required column
    """
    if not isinstance(trees, pd.DataFrame):
        raise InvalidDataError("tree list", "expected a pandas DataFrame")
    if trees.empty:
        raise InvalidDataError("tree list", "no tree records")

    missing = [c for c in REQUIRED_COLUMNS if c not in trees.columns]
    if missing:
        raise InvalidDataError("tree list", f"missing columns {missing}")

    incomplete = [c for c in REQUIRED_COLUMNS if trees[c].isna().any()]
    if incomplete:
        raise InvalidDataError("tree list", f"missing values in columns {incomplete}")

    frame = trees.copy()
    for column, default in OPTIONAL_COLUMNS.items():
        if column not in frame.columns:
            frame[column] = default
        else:
            frame[column] = frame[column].fillna(default)
    return frame


def build_stand(trees: pd.DataFrame, units: str = 'metric', min_dbh: float = DEFAULT_MIN_DBH,
                csi: float = 16.0, elevation: float = 0.0, **stand_kwargs) -> Stand:
    """Build a Stand from a tree DataFrame.

    ``csi``, ``elevation`` and ``min_dbh`` are given in the same units as the
    tree list. Remaining keyword arguments go to the Stand constructor.

    Raises:
        InvalidDataError: If the tree list is malformed or a record is out of range
        SpeciesResolutionError: If a species code cannot be resolved
    """
    ft_m, in_cm, ac_ha = _unit_factors(units)
    frame = validate_tree_frame(trees)

    stand = Stand(csi=csi * ft_m, elevation=elevation * ft_m, min_dbh=min_dbh * in_cm,
                  **stand_kwargs)

    dbh = np.asarray(frame['dbh'], dtype=float) * in_cm
    height = np.asarray(frame['height'], dtype=float) * ft_m
    tph = np.asarray(frame['tph'], dtype=float) * ac_ha

    for i, row in enumerate(frame.itertuples(index=False)):
        try:
            stand.add_tree(row.plot_id, row.tree_id, row.species, dbh[i],
                           height=height[i], tph=tph[i], crown_ratio=float(row.crown_ratio),
                           form=int(row.form), risk=int(row.risk))
        except InvalidParameterError as e:
            raise InvalidDataError(f"tree record {i}", str(e)) from e

    logger.debug(f"Built stand with {len(stand.trees)} records ({units} input)")
    return stand


def grow_tree_list(trees: pd.DataFrame, periods: int, region: str = 'ME', year: int = 0,
                   units: str = 'metric', csi: float = 16.0, elevation: float = 0.0,
                   cdef: float = -1.0, use_sbw_mod: bool = False, use_hw_mod: bool = False,
                   use_thin_mod: bool = False, use_ingrowth: bool = False,
                   cut_point: float = DEFAULT_CUT_POINT, min_dbh: float = DEFAULT_MIN_DBH,
                   thinning: Optional[ThinningEvent] = None,
                   ingrowth_model: IngrowthModelType = IngrowthModelType.GNLS,
                   random_state: RandomSource = None) -> pd.DataFrame:
    """Grow a tree list for ``periods`` years.

    Args:
        trees: Tree records with columns plot_id, tree_id, species, dbh, tph
            and optionally height, crown_ratio, form, risk
        periods: Number of annual steps
        region: 'ME' or 'NB'
        year: Starting year
        units: 'metric' (cm, m, trees/ha) or 'imperial' (in, ft, trees/ac)
        csi: Climate site index (m or ft)
        elevation: Elevation (m or ft)
        cdef: Cumulative budworm defoliation; negative when not supplied
        use_sbw_mod: Apply spruce budworm modifiers
        use_hw_mod: Apply hardwood form and risk modifiers
        use_thin_mod: Apply thinning modifiers
        use_ingrowth: Simulate ingrowth
        cut_point: Ingrowth probability threshold
        min_dbh: Ingrowth diameter (cm or in)
        thinning: Recorded thinning, if any
        ingrowth_model: Ingrowth equation variant
        random_state: Seed or generator for the expansion jitter

    Returns:
        DataFrame with plot_id, tree_id, species, dbh, height, tph and
        crown_ratio in the input units

    Raises:
        InvalidDataError: If the tree list is malformed
        ConfigurationError: If a stand argument is invalid
        ComputationError: If growth fails
    """
    ft_m, in_cm, ac_ha = _unit_factors(units)

    stand = build_stand(trees, units=units, min_dbh=min_dbh, csi=csi, elevation=elevation,
                        region=region, year=year, cdef=cdef, use_sbw_mod=use_sbw_mod,
                        use_hw_mod=use_hw_mod, use_thin_mod=use_thin_mod,
                        use_ingrowth=use_ingrowth, cut_point=cut_point, thinning=thinning,
                        ingrowth_model=ingrowth_model, random_state=random_state)
    stand.grow(periods)

    grown = stand.get_tree_list_dataframe()
    if not grown.empty:
        grown['dbh'] = grown['dbh'].to_numpy(dtype=float) / in_cm
        grown['height'] = grown['height'].to_numpy(dtype=float) / ft_m
        grown['tph'] = grown['tph'].to_numpy(dtype=float) / ac_ha
    return grown
