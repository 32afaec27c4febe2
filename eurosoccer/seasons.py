"""
Season label handling.

Season labels in the match table come in two shapes: a year pair such as
``"2015/2016"`` for leagues that straddle the new year, and a bare year such
as ``"2016"``. Attribute snapshots are dated, so every join between the two
goes through :func:`season_to_year`.
"""

import re
from typing import Dict, Iterable

from .errors import SeasonLabelError


_PAIR_LABEL = re.compile(r"^(\d{4})/(\d{4})$")
_SINGLE_LABEL = re.compile(r"^(\d{4})$")


def season_to_year(label: str) -> int:
    """
    Map a season label to its representative calendar year.

    Args:
        label: ``"YYYY/YYYY"`` with consecutive years, or ``"YYYY"``

    Returns:
        int: the first year of a pair, or the bare year

    Raises:
        SeasonLabelError: for anything else
    """
    if not isinstance(label, str):
        raise SeasonLabelError(label)

    pair = _PAIR_LABEL.match(label)
    if pair:
        start, end = int(pair.group(1)), int(pair.group(2))
        if end != start + 1:
            raise SeasonLabelError(label)
        return start

    single = _SINGLE_LABEL.match(label)
    if single:
        return int(single.group(1))

    raise SeasonLabelError(label)


def map_season_years(labels: Iterable[str]) -> Dict[str, int]:
    """Map each distinct label to its year, failing on the first bad one"""
    return {label: season_to_year(label) for label in sorted(set(labels), key=str)}
