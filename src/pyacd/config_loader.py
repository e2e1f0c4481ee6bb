"""
Configuration loader for PyACD.
Provides access to the YAML species configuration and JSON coefficient files.

Supports:
- YAML (.yaml, .yml) - species table, crosswalk and species attributes
- JSON (.json) - per-equation coefficient sets keyed by FIA species code

Features:
- Region validation (ME, NB)
- Coefficient file caching
- Alternative table directories for calibrated coefficient sets

Regions:
- ME: Maine and the rest of the northeastern US
- NB: New Brunswick and the Maritime provinces
"""
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union

from .exceptions import ConfigurationError, InvalidDataError

# Supported Acadian Variant regions. `indicator` is the regional dummy used
# by the height imputation equation.
SUPPORTED_REGIONS = {
    'ME': {'name': 'Maine', 'indicator': 0},
    'NB': {'name': 'New Brunswick', 'indicator': 1},
}

DEFAULT_REGION = 'ME'
SPECIES_CONFIG_FILE = 'acd_species_config.yaml'


def validate_region(region: str) -> str:
    """Normalize and validate a region code.

    Args:
        region: Region code (case-insensitive)

    Returns:
        Upper-case region code

    Raises:
        ConfigurationError: If the region is not supported
    """
    code = str(region).strip().upper() if region is not None else ''
    if code not in SUPPORTED_REGIONS:
        raise ConfigurationError(
            f"Unsupported region '{region}'. "
            f"Supported regions: {list(SUPPORTED_REGIONS.keys())}"
        )
    return code


def region_indicator(region: str) -> int:
    """Return the regional dummy variable (ME = 0, NB = 1)."""
    return SUPPORTED_REGIONS[validate_region(region)]['indicator']


class ConfigLoader:
    """Loads and manages Acadian Variant configuration from the cfg/ directory.

    Provides access to:
    - Species configuration (YAML)
    - Coefficient files (JSON) with caching

    Attributes:
        cfg_dir: Path to the configuration directory
        species_config: Loaded species configuration
    """

    def __init__(self, cfg_dir: Optional[Union[str, Path]] = None):
        """Initialize the configuration loader.

        Args:
            cfg_dir: Path to the configuration directory. Defaults to the
                cfg/ directory bundled with the package.
        """
        if cfg_dir is None:
            cfg_dir = Path(__file__).parent / 'cfg'
        self.cfg_dir = Path(cfg_dir)

        # Cache for coefficient files (loaded once, reused)
        self._coefficient_cache: Dict[str, Dict[str, Any]] = {}

        self._load_main_config()

    def _load_config_file(self, file_path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML or JSON file.

        Raises:
            ConfigurationError: If the file is missing or its format is not supported
            InvalidDataError: If the file cannot be parsed or is empty
        """
        if not file_path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        suffix = file_path.suffix.lower()

        try:
            if suffix in ['.yaml', '.yml']:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
            elif suffix == '.json':
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {suffix}. "
                                         f"Supported formats: .yaml, .yml, .json")
        except yaml.YAMLError as e:
            raise InvalidDataError("YAML configuration", f"parsing error: {str(e)}") from e
        except json.JSONDecodeError as e:
            raise InvalidDataError("JSON configuration", f"parsing error: {str(e)}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration from {file_path}: {str(e)}") from e

        if data is None:
            raise InvalidDataError(f"configuration file {file_path.name}",
                                   "file is empty or contains only comments")
        return data

    def _load_main_config(self):
        """Load the species configuration and check its required sections."""
        self.species_config = self._load_config_file(self.cfg_dir / SPECIES_CONFIG_FILE)

        for section in ('species', 'crosswalk', 'generic_species'):
            if section not in self.species_config:
                raise ConfigurationError(
                    f"Species configuration {SPECIES_CONFIG_FILE} is missing the '{section}' section"
                )

    @property
    def coefficient_file(self) -> str:
        """Name of the coefficient file referenced by the species configuration."""
        return self.species_config.get('coefficient_file', 'acd_coefficients.json')

    def load_coefficient_file(self, filename: Optional[str] = None) -> Dict[str, Any]:
        """Load a JSON coefficient file with caching.

        Args:
            filename: Name of the coefficient file. Defaults to the file named
                in the species configuration.

        Returns:
            Dictionary containing coefficient data

        Raises:
            ConfigurationError: If the file doesn't exist
            InvalidDataError: If the file cannot be parsed
        """
        filename = filename or self.coefficient_file
        if filename not in self._coefficient_cache:
            self._coefficient_cache[filename] = self._load_config_file(self.cfg_dir / filename)
        return self._coefficient_cache[filename]

    def get_region_info(self, region: str) -> Dict[str, Any]:
        """Get information about a region.

        Returns:
            Dictionary with region code, name and indicator
        """
        code = validate_region(region)
        info = SUPPORTED_REGIONS[code].copy()
        info['code'] = code
        return info

    def clear_coefficient_cache(self) -> None:
        """Clear the coefficient file cache.

        Useful for testing or when configuration files may have changed.
        """
        self._coefficient_cache.clear()


# Global configuration loader for the bundled tables
_config_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Get the process-wide loader for the bundled configuration."""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_coefficient_file(filename: Optional[str] = None) -> Dict[str, Any]:
    """Convenience function to load a JSON coefficient file with caching.

    Args:
        filename: Name of the coefficient file. Defaults to the bundled
            Acadian Variant coefficient file.

    Returns:
        Dictionary containing coefficient data
    """
    return get_config_loader().load_coefficient_file(filename)
