"""
Species parameter resolution for the Acadian Variant.

Maps FIA species codes to species identity, wood and tolerance attributes and
the per-equation coefficient sets used by the tree-level equations.

Resolution rules:
    1. A code present in the species table keeps its own identity. If the
       entry is flagged ``shared_fit`` the crosswalk names the donor whose
       fitted equations it borrows.
    2. A code absent from the species table is replaced by its crosswalk
       substitute (identity and fit).
    3. Each equation's coefficients are looked up by the tree's own code,
       then by the fit code, then by the generic softwood (9991) or
       hardwood (9990) set.

Usage:
    from pyacd.species import get_species_resolver

    params = get_species_resolver().resolve(12)
    print(params.common_name, params.ddbh)
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .config_loader import ConfigLoader, get_config_loader
from .exceptions import ConfigurationError, SpeciesResolutionError
from .logging_config import get_logger

logger = get_logger(__name__)

__all__ = [
    'BALSAM_FIR',
    'RED_SPRUCE',
    'WHITE_SPRUCE',
    'BLACK_SPRUCE',
    'SBW_HOST_SPECIES',
    'FORM_RISK_SPECIES',
    'SpeciesEntry',
    'SpeciesTables',
    'SpeciesParameters',
    'SpeciesParameterResolver',
    'get_species_resolver',
]

# Species referenced directly by the modifier equations
BALSAM_FIR = 12
WHITE_SPRUCE = 94
BLACK_SPRUCE = 95
RED_SPRUCE = 97
QUAKING_ASPEN = 746
RED_MAPLE = 316
SUGAR_MAPLE = 318
YELLOW_BIRCH = 371
PAPER_BIRCH = 375
RED_OAK = 833

# Spruce budworm hosts
SBW_HOST_SPECIES = frozenset({BALSAM_FIR, WHITE_SPRUCE, BLACK_SPRUCE, RED_SPRUCE})

# Hardwoods with Castle et al. (2017) form and risk adjustments
FORM_RISK_SPECIES = frozenset({RED_OAK, YELLOW_BIRCH, RED_MAPLE, PAPER_BIRCH, QUAKING_ASPEN})

# Equation name -> expected number of coefficients
EQUATION_SIZES = {
    'diameter_growth': 6,
    'height_growth': 6,
    'crown_recession': 6,
    'height_imputation': 6,
    'max_crown_width': 2,
    'largest_crown_width': 2,
    'mortality': 5,
}
HCB_FIXED_SIZE = 6

ATTRIBUTE_NAMES = ('sg', 'wd', 'shade', 'drought', 'waterlog')


@dataclass(frozen=True)
class SpeciesEntry:
    """One row of the species table."""
    code: int
    alpha_code: str
    common_name: str
    softwood: bool
    shared_fit: bool = False
    attributes: Optional[Mapping[str, float]] = None


@dataclass(frozen=True)
class SpeciesTables:
    """Immutable species configuration injected into a resolver.

    Attributes:
        species: FIA code -> species table entry
        crosswalk: FIA code -> substitute FIA code
        generic_softwood: Code of the generic softwood coefficient set
        generic_hardwood: Code of the generic hardwood coefficient set
        coefficients: equation name -> FIA code -> coefficient tuple
        hcb_fixed: Fixed effects of the crown base prediction
        hcb_species_effects: FIA code -> species random effect
    """
    species: Mapping[int, SpeciesEntry]
    crosswalk: Mapping[int, int]
    generic_softwood: int
    generic_hardwood: int
    coefficients: Mapping[str, Mapping[int, Tuple[float, ...]]]
    hcb_fixed: Tuple[float, ...]
    hcb_species_effects: Mapping[int, float]

    @classmethod
    def from_config_loader(cls, loader: ConfigLoader) -> 'SpeciesTables':
        """Build tables from the species YAML and coefficient JSON of a loader.

        Raises:
            ConfigurationError: If a section is malformed or a coefficient set
                has the wrong length
        """
        config = loader.species_config
        try:
            species = {}
            for code, entry in config['species'].items():
                attributes = entry.get('attributes')
                species[int(code)] = SpeciesEntry(
                    code=int(code),
                    alpha_code=str(entry['code']),
                    common_name=str(entry['common_name']),
                    softwood=bool(entry['softwood']),
                    shared_fit=bool(entry.get('shared_fit', False)),
                    attributes=(MappingProxyType({k: float(attributes[k]) for k in ATTRIBUTE_NAMES})
                                if attributes else None),
                )
            crosswalk = {int(code): int(entry['mapped_code'])
                         for code, entry in config['crosswalk'].items()}
            generic = config['generic_species']
            generic_softwood = int(generic['softwood'])
            generic_hardwood = int(generic['hardwood'])
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed species configuration: {e}") from e

        data = loader.load_coefficient_file()
        equations = data.get('equations', {})

        coefficients = {}
        for name, size in EQUATION_SIZES.items():
            if name not in equations:
                raise ConfigurationError(f"Coefficient file has no '{name}' equation")
            coefficients[name] = MappingProxyType(
                _parse_species_table(name, equations[name].get('species_coefficients', {}), size)
            )

        hcb = equations.get('hcb_prediction')
        if hcb is None:
            raise ConfigurationError("Coefficient file has no 'hcb_prediction' equation")
        hcb_fixed = tuple(float(v) for v in hcb.get('fixed_effects', ()))
        if len(hcb_fixed) != HCB_FIXED_SIZE:
            raise ConfigurationError(
                f"hcb_prediction fixed effects need {HCB_FIXED_SIZE} values, got {len(hcb_fixed)}"
            )
        hcb_effects = {int(k): float(v) for k, v in hcb.get('species_effects', {}).items()}

        for required in (generic_softwood, generic_hardwood):
            for name, table in coefficients.items():
                if required not in table:
                    raise ConfigurationError(
                        f"Generic species {required} has no '{name}' coefficients"
                    )

        return cls(
            species=MappingProxyType(species),
            crosswalk=MappingProxyType(crosswalk),
            generic_softwood=generic_softwood,
            generic_hardwood=generic_hardwood,
            coefficients=MappingProxyType(coefficients),
            hcb_fixed=hcb_fixed,
            hcb_species_effects=MappingProxyType(hcb_effects),
        )

    @classmethod
    def default(cls) -> 'SpeciesTables':
        """Tables built from the configuration bundled with the package."""
        return cls.from_config_loader(get_config_loader())


def _parse_species_table(name: str, table: Dict[str, Any], size: int) -> Dict[int, Tuple[float, ...]]:
    parsed = {}
    for code, values in table.items():
        coeffs = tuple(float(v) for v in values)
        if len(coeffs) != size:
            raise ConfigurationError(
                f"'{name}' coefficients for species {code} need {size} values, got {len(coeffs)}"
            )
        parsed[int(code)] = coeffs
    return parsed


@dataclass(frozen=True)
class SpeciesParameters:
    """Resolved, read-only parameters for one FIA species code.

    Instances are cached by the resolver and shared by every tree of that
    species.
    """
    species_code: int
    alpha_code: str
    common_name: str
    softwood: bool
    fit_code: int
    sg: float
    wd: float
    shade: float
    drought: float
    waterlog: float
    ddbh: Tuple[float, ...]
    dht: Tuple[float, ...]
    dhcb: Tuple[float, ...]
    htpred: Tuple[float, ...]
    mcw: Tuple[float, ...]
    lcw: Tuple[float, ...]
    mortality: Tuple[float, ...]
    hcb_fixed: Tuple[float, ...]
    hcb_species_effect: float


class SpeciesParameterResolver:
    """Resolves FIA species codes to shared SpeciesParameters objects."""

    def __init__(self, tables: Optional[SpeciesTables] = None):
        self.tables = tables if tables is not None else SpeciesTables.default()
        self._cache: Dict[int, SpeciesParameters] = {}

    def resolve(self, species_code: int) -> SpeciesParameters:
        """Resolve a species code.

        Args:
            species_code: FIA species code

        Returns:
            Cached SpeciesParameters for the code

        Raises:
            SpeciesResolutionError: If the code is neither in the species table
                nor in the crosswalk
        """
        try:
            code = int(species_code)
        except (TypeError, ValueError) as e:
            raise SpeciesResolutionError(species_code, "not an integer FIA code") from e

        cached = self._cache.get(code)
        if cached is not None:
            return cached

        params = self._build(code)
        self._cache[code] = params
        return params

    def is_known(self, species_code: int) -> bool:
        """True if the code can be resolved."""
        try:
            self.resolve(species_code)
        except SpeciesResolutionError:
            return False
        return True

    def _build(self, code: int) -> SpeciesParameters:
        tables = self.tables

        if code in tables.species:
            entry = tables.species[code]
            fit_code = self._fit_code(entry)
        elif code in tables.crosswalk:
            substitute = tables.crosswalk[code]
            if substitute not in tables.species:
                raise SpeciesResolutionError(code, f"crosswalk substitute {substitute} is not in the species table")
            entry = tables.species[substitute]
            fit_code = self._fit_code(entry)
            logger.debug(f"Species {code} resolved through crosswalk to {substitute}")
        else:
            raise SpeciesResolutionError(code)

        generic = tables.generic_softwood if entry.softwood else tables.generic_hardwood
        lookup_order = (code, entry.code, fit_code, generic)

        attributes = entry.attributes
        if attributes is None:
            for candidate in (fit_code, generic):
                candidate_entry = tables.species.get(candidate)
                if candidate_entry is not None and candidate_entry.attributes is not None:
                    attributes = candidate_entry.attributes
                    break
        if attributes is None:
            raise SpeciesResolutionError(code, "no species attributes available")

        def lookup(equation: str) -> Tuple[float, ...]:
            table = tables.coefficients[equation]
            for candidate in lookup_order:
                if candidate in table:
                    return table[candidate]
            raise SpeciesResolutionError(code, f"no '{equation}' coefficients")

        hcb_effect = 0.0
        for candidate in lookup_order:
            if candidate in tables.hcb_species_effects:
                hcb_effect = tables.hcb_species_effects[candidate]
                break

        return SpeciesParameters(
            species_code=code,
            alpha_code=entry.alpha_code,
            common_name=entry.common_name,
            softwood=entry.softwood,
            fit_code=fit_code,
            sg=attributes['sg'],
            wd=attributes['wd'],
            shade=attributes['shade'],
            drought=attributes['drought'],
            waterlog=attributes['waterlog'],
            ddbh=lookup('diameter_growth'),
            dht=lookup('height_growth'),
            dhcb=lookup('crown_recession'),
            htpred=lookup('height_imputation'),
            mcw=lookup('max_crown_width'),
            lcw=lookup('largest_crown_width'),
            mortality=lookup('mortality'),
            hcb_fixed=tables.hcb_fixed,
            hcb_species_effect=hcb_effect,
        )

    def _fit_code(self, entry: SpeciesEntry) -> int:
        if not entry.shared_fit:
            return entry.code
        donor = self.tables.crosswalk.get(entry.code)
        if donor is None:
            raise SpeciesResolutionError(entry.code, "shares a fit but has no crosswalk donor")
        return donor

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(species={len(self.tables.species)}, cached={len(self._cache)})"


_default_resolver: Optional[SpeciesParameterResolver] = None


def get_species_resolver() -> SpeciesParameterResolver:
    """Get the process-wide resolver over the bundled tables."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = SpeciesParameterResolver()
    return _default_resolver
