"""
Tagged representation of the user supplied ``mask`` option.

The ``mask`` parameter is polymorphic: a pre-computed method name, an explicit
boolean array, or nothing at all. ``parse_mask`` turns the raw value into one
of three small dataclasses so the resolver can dispatch with ``match``.
"""

from dataclasses import dataclass
from typing import Union

import numpy as np


@dataclass(frozen=True)
class NamedMethod:
    """Pre-computed mask requested by name (normalized to lower case)."""

    name: str
    raw: str


@dataclass(frozen=True)
class ExplicitMask:
    """User supplied mask array (not yet validated)."""

    array: np.ndarray


@dataclass(frozen=True)
class Unset:
    """No mask: None, an empty list or a zero-size array."""


MaskSpec = Union[NamedMethod, ExplicitMask, Unset]


def parse_mask(value) -> MaskSpec:
    """
    Classify a raw ``mask`` value.

    Parameters
    ----------
    value : str, bytes, array-like or None
        Raw mask option

    Returns
    -------
    spec : NamedMethod, ExplicitMask or Unset

    Examples
    --------
    >>> parse_mask(" Otsu ")
    NamedMethod(name='otsu', raw=' Otsu ')
    >>> parse_mask([])
    Unset()
    """
    if isinstance(value, (NamedMethod, ExplicitMask, Unset)):
        return value
    if isinstance(value, bytes):
        value = value.decode()
    if isinstance(value, str):
        return NamedMethod(name=value.strip().lower(), raw=value)
    if value is None:
        return Unset()

    array = np.asarray(value)
    if array.size == 0:
        return Unset()
    return ExplicitMask(array=array)
