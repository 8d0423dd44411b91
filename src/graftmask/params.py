"""
Parameter container for mask resolution.

Holds the user supplied ``mask`` option together with the frame extents
(``n_rows``, ``n_cols``) that mask resolution derives from it, and the
auto-threshold defaults loaded from config.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import copy

import numpy as np

# Try to import tomllib (Python 3.11+) or tomli as fallback
try:
    import tomllib
    HAS_TOML_READ = True
except ImportError:
    try:
        import tomli as tomllib
        HAS_TOML_READ = True
    except ImportError:
        HAS_TOML_READ = False

# For writing TOML, we need tomli_w or similar
try:
    import tomli_w
    HAS_TOML_WRITE = True
except ImportError:
    HAS_TOML_WRITE = False


@dataclass
class GraftParams:
    """
    Parameters consumed and updated by ``resolve_mask``.

    Attributes
    ----------
    mask : str, ndarray or None
        User mask option. One of the pre-computed method names
        ("sigma", "adaptive", "otsu", "triangle"), a 2D boolean array,
        or None / empty for no masking. After resolution this holds a
        2D boolean array (or None).
    n_rows : int or None
        Frame row count, set during resolution
    n_cols : int or None
        Frame column count, set during resolution
    mask_method : str or None
        Name of the auto-threshold method that produced ``mask``, if any

    Examples
    --------
    >>> from graftmask.params import GraftParams
    >>> params = GraftParams.from_config()
    >>> params.mask = "otsu"
    >>> params.to_toml()  # Export as TOML string
    """

    mask: Union[str, np.ndarray, list, None] = None
    n_rows: Optional[int] = None
    n_cols: Optional[int] = None
    mask_method: Optional[str] = None

    # Internal: track where defaults came from
    _config_source: str = field(default="package", repr=False)

    # Store defaults for reference
    _defaults: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_config(cls, config_path: Union[str, Path, None] = None, mask=None) -> "GraftParams":
        """
        Create GraftParams with defaults loaded from config.

        Parameters
        ----------
        config_path : str, Path, or None
            Path to a TOML config file to merge with package defaults.
            If None, only package (and user) defaults are used.
        mask : str, ndarray or None
            Initial mask option

        Returns
        -------
        GraftParams
            New instance with defaults loaded from config
        """
        from graftmask.config import get_masking_defaults

        config_source = "custom" if config_path else "package"
        defaults = {
            "masking": get_masking_defaults(config_path),
        }
        return cls(
            mask=mask,
            _config_source=config_source,
            _defaults=defaults,
        )

    def get_defaults(self, step: str) -> dict:
        """
        Get default parameters for a config section.

        Parameters
        ----------
        step : str
            Config section, currently only "masking"

        Returns
        -------
        dict
            Copy of the defaults for that section
        """
        if step not in self._defaults:
            raise ValueError(f"Unknown step: {step}. Must be one of: {list(self._defaults.keys())}")
        return copy.deepcopy(self._defaults[step])

    def threshold_options(self, method: str) -> dict:
        """Keyword options for an auto-threshold method (empty if none configured)."""
        return dict(self._defaults.get("masking", {}).get(method, {}))

    def load_config(self, config_path: Union[str, Path]) -> None:
        """
        Load and merge a config file into current params.

        Only affects the stored defaults, not an already resolved mask.

        Parameters
        ----------
        config_path : str or Path
            Path to a TOML config file to merge with current defaults.
        """
        from graftmask.config import load_config as _load_config, _deep_merge

        new_config = _load_config(config_path)
        self._defaults = _deep_merge(self._defaults, new_config)
        self._config_source = "custom"

    def mark_mask(self, mask: np.ndarray, method: Optional[str] = None) -> None:
        """
        Record a resolved 2D boolean mask and its extents.

        Parameters
        ----------
        mask : ndarray
            2D boolean mask
        method : str, optional
            Auto-threshold method that produced the mask
        """
        self.mask = mask
        self.n_rows, self.n_cols = (int(n) for n in mask.shape)
        self.mask_method = method

    def to_dict(self) -> dict:
        """
        Export all parameters as a nested dictionary.

        Returns
        -------
        dict
            All parameters in a serializable format
        """
        if isinstance(self.mask, np.ndarray):
            mask = self.mask.tolist()
        else:
            mask = self.mask
        return {
            "mask": mask,
            "shape": {
                "n_rows": self.n_rows,
                "n_cols": self.n_cols,
            },
            "mask_method": self.mask_method,
            "defaults": self._defaults,
            "_config_source": self._config_source,
        }

    def to_toml(self) -> str:
        """
        Export parameters as a TOML string.

        Raises
        ------
        ImportError
            If tomli_w is not installed
        """
        if not HAS_TOML_WRITE:
            raise ImportError(
                "tomli_w is required for TOML export. "
                "Install with: pip install tomli-w"
            )

        data = self.to_dict()
        # TOML has no null: drop unset values
        data["shape"] = {k: v for k, v in data["shape"].items() if v is not None}
        data = {k: v for k, v in data.items() if v is not None and v != []}
        return tomli_w.dumps(data)

    @classmethod
    def from_toml(cls, toml_str: str) -> "GraftParams":
        """
        Create GraftParams from a TOML string.

        A mask stored as a nested list is restored as a boolean ndarray.
        """
        if not HAS_TOML_READ:
            raise ImportError(
                "tomllib or tomli is required for TOML import. "
                "Install with: pip install tomli (Python <3.11)"
            )

        data = tomllib.loads(toml_str)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "GraftParams":
        """Create GraftParams from a dictionary."""
        shape = data.get("shape", {})
        mask = data.get("mask")
        if isinstance(mask, list):
            mask = np.asarray(mask, dtype=bool)
        return cls(
            mask=mask,
            n_rows=shape.get("n_rows"),
            n_cols=shape.get("n_cols"),
            mask_method=data.get("mask_method"),
            _config_source=data.get("_config_source", "loaded"),
            _defaults=data.get("defaults", {}),
        )

    def save_toml(self, path: Union[str, Path]) -> Path:
        """Save parameters to a TOML file and return its path."""
        path = Path(path)
        path.write_text(self.to_toml())
        return path

    @classmethod
    def load_toml(cls, path: Union[str, Path]) -> "GraftParams":
        """Load parameters from a TOML file."""
        path = Path(path)
        return cls.from_toml(path.read_text())

    def summary(self) -> str:
        """Short tree-style description of the current mask state."""
        if isinstance(self.mask, np.ndarray):
            mask_desc = f"bool {self.mask.shape}, {int(np.count_nonzero(self.mask))} pixels"
        elif self.mask is None or (isinstance(self.mask, list) and not self.mask):
            mask_desc = "unset"
        else:
            mask_desc = repr(self.mask)
        lines = [
            f"GraftParams (source: {self._config_source})",
            f"├── mask: {mask_desc}",
            f"├── mask_method: {self.mask_method}",
            f"└── frame: {self.n_rows} x {self.n_cols}",
        ]
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.summary()
