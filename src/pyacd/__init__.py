"""
PyACD: Acadian Variant growth and yield for Python

An individual-tree, distance-independent growth and yield simulator for the
mixed softwood and hardwood forests of Maine and New Brunswick.

Quick Start:
    >>> from pyacd import Stand
    >>> stand = Stand(region='ME', csi=16.0)
    >>> stand.add_tree(1, 1, 12, dbh=10.0, height=8.0, tph=40.0, crown_ratio=0.6)
    >>> stand.grow(10)
    >>> print(stand.get_metrics())
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__author__ = "PyACD Development Team"

# =============================================================================
# Core Classes - Primary API
# =============================================================================
from .stand import Stand
from .tree import Tree
from .growth_parameters import StandConditions, ThinningEvent

# =============================================================================
# Species
# =============================================================================
from .species import (
    SpeciesParameterResolver,
    SpeciesParameters,
    SpeciesTables,
    get_species_resolver,
)

# =============================================================================
# Configuration Loading
# =============================================================================
from .config_loader import (
    ConfigLoader,
    get_config_loader,
    load_coefficient_file,
    validate_region,
    SUPPORTED_REGIONS,
)

# =============================================================================
# Stand Metrics and Ingrowth
# =============================================================================
from .stand_metrics import StandMetricsCalculator, get_metrics_calculator
from .ingrowth import IngrowthModelType
from .tree_list import expand_tree_list, collapse_tree_list

# =============================================================================
# Tabular Entry Point
# =============================================================================
from .runner import grow_tree_list

# =============================================================================
# Exceptions
# =============================================================================
from .exceptions import (
    ACDError,
    ConfigurationError,
    InvalidParameterError,
    SpeciesResolutionError,
    SpeciesNotFoundError,
    SimulationError,
    ComputationError,
    GrowthModelError,
    DataError,
    InvalidDataError,
)

# =============================================================================
# Logging
# =============================================================================
from .logging_config import setup_logging, get_logger

__all__ = [
    # Metadata
    '__version__',
    # Core
    'Stand',
    'Tree',
    'StandConditions',
    'ThinningEvent',
    # Species
    'SpeciesParameterResolver',
    'SpeciesParameters',
    'SpeciesTables',
    'get_species_resolver',
    # Configuration
    'ConfigLoader',
    'get_config_loader',
    'load_coefficient_file',
    'validate_region',
    'SUPPORTED_REGIONS',
    # Metrics and ingrowth
    'StandMetricsCalculator',
    'get_metrics_calculator',
    'IngrowthModelType',
    'expand_tree_list',
    'collapse_tree_list',
    # Tabular
    'grow_tree_list',
    # Exceptions
    'ACDError',
    'ConfigurationError',
    'InvalidParameterError',
    'SpeciesResolutionError',
    'SpeciesNotFoundError',
    'SimulationError',
    'ComputationError',
    'GrowthModelError',
    'DataError',
    'InvalidDataError',
    # Logging
    'setup_logging',
    'get_logger',
]
