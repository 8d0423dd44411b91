"""
Graftmask configuration management.

Loads and merges configuration from multiple sources:
1. Package defaults (built-in)
2. User config (~/.graftmask/config.toml)
3. An explicit config file passed by the caller

Later sources override earlier ones.
"""

from pathlib import Path
import copy
import warnings

# Try to import tomllib (Python 3.11+) or tomli as fallback
try:
    import tomllib
    HAS_TOML = True
except ImportError:
    try:
        import tomli as tomllib
        HAS_TOML = True
    except ImportError:
        HAS_TOML = False

# -----------------------------------------------------------------------------
# Package defaults
# -----------------------------------------------------------------------------

SIGMA_DEFAULTS = {
    "std_factor": 2.0,
}
"""Pixels whose activity exceeds mean + std_factor * std are kept."""

ADAPTIVE_DEFAULTS = {
    "block_size": 25,
    "method": "mean",
    "offset": 0.0,
}
"""Local (neighbourhood) threshold parameters, see skimage.filters.threshold_local."""

OTSU_DEFAULTS = {
    "nbins": 256,
}
"""Histogram bins for Otsu's threshold on mean-normalized activity."""

TRIANGLE_DEFAULTS = {
    "nbins": 256,
}
"""Histogram bins for the triangle threshold."""

MASKING_DEFAULTS = {
    "sigma": SIGMA_DEFAULTS,
    "adaptive": ADAPTIVE_DEFAULTS,
    "otsu": OTSU_DEFAULTS,
    "triangle": TRIANGLE_DEFAULTS,
}


# -----------------------------------------------------------------------------
# Config loading
# -----------------------------------------------------------------------------

def _get_user_config_path() -> Path:
    """Get path to user config file (~/.graftmask/config.toml)."""
    return Path.home() / ".graftmask" / "config.toml"


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file, returning empty dict if not found or toml not available."""
    if not HAS_TOML:
        return {}

    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
            return config if config else {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        warnings.warn(f"Failed to load config from {path}: {e}")
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dicts. Values in override take precedence.

    Nested dicts are merged recursively.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path=None) -> dict:
    """
    Load merged configuration from all sources.

    Parameters
    ----------
    config_path : str, Path, or None
        Optional TOML file merged on top of package and user defaults.

    Returns
    -------
    dict
        Merged configuration with structure:
        {
            "masking": {
                "sigma": {...},
                "adaptive": {...},
                "otsu": {...},
                "triangle": {...},
            },
        }
    """
    # Start with package defaults
    config = {
        "masking": copy.deepcopy(MASKING_DEFAULTS),
    }

    # Merge user config
    user_config = _load_toml_file(_get_user_config_path())
    config = _deep_merge(config, user_config)

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        config = _deep_merge(config, _load_toml_file(config_path))

    return config


def get_defaults(section: str, config_path=None) -> dict:
    """
    Get one section of the merged config.

    Parameters
    ----------
    section : str
        Top-level config section, e.g. "masking"
    config_path : str, Path, or None
        Optional TOML file merged on top of package and user defaults.

    Returns
    -------
    dict
        Copy of the requested section (empty if the section is unknown)
    """
    config = load_config(config_path)
    return copy.deepcopy(config.get(section, {}))


def get_masking_defaults(config_path=None) -> dict:
    """
    Get auto-threshold defaults from merged config.

    Returns
    -------
    dict
        Mapping of method name to keyword options:
        - sigma: std_factor
        - adaptive: block_size, method, offset
        - otsu: nbins
        - triangle: nbins
    """
    masking = get_defaults("masking", config_path)
    return masking if masking else copy.deepcopy(MASKING_DEFAULTS)


def create_user_config_template():
    """
    Create a template config file at ~/.graftmask/config.toml.

    Only creates if the file doesn't already exist.
    """
    config_path = _get_user_config_path()

    if config_path.exists():
        print(f"Config file already exists: {config_path}")
        return config_path

    # Create directory if needed
    config_path.parent.mkdir(parents=True, exist_ok=True)

    template = """\
# Graftmask configuration file
# These values override package defaults.
# Delete any lines you don't want to customize.

[masking.sigma]
std_factor = 2.0          # Keep pixels exceeding mean + std_factor * std

[masking.adaptive]
block_size = 25           # Odd neighbourhood size in pixels
method = "mean"           # "mean", "gaussian" or "median"
offset = 0.0              # Subtracted from the local threshold

[masking.otsu]
nbins = 256               # Histogram bins

[masking.triangle]
nbins = 256               # Histogram bins
"""

    with open(config_path, "w") as f:
        f.write(template)

    print(f"Created config template: {config_path}")
    return config_path

if __name__ == "__main__":
    create_user_config_template()
