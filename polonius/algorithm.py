"""Choice of analysis variant and comparison of their results."""

from __future__ import annotations

import logging
from enum import Enum
from itertools import chain
from typing import Hashable, List, Mapping, Tuple

logger = logging.getLogger(__name__)

_VALID_VALUES = "valid values: Naive, DatafrogOpt, LocationInsensitive, Compare, Hybrid"


class Algorithm(Enum):
    """The available borrow checking variants."""

    # Simple rules, but slower to execute.
    NAIVE = "Naive"
    # Optimized variant of the rules.
    DATAFROG_OPT = "DatafrogOpt"
    # Fast but imprecise: false positives, no false negatives.
    LOCATION_INSENSITIVE = "LocationInsensitive"
    # Runs Naive and DatafrogOpt and checks they agree.
    COMPARE = "Compare"
    # LocationInsensitive pre-pass followed by DatafrogOpt.
    HYBRID = "Hybrid"

    @classmethod
    def variants(cls) -> Tuple[str, ...]:
        """Names of all the variants, in declaration order."""
        return tuple(member.value for member in cls)

    @classmethod
    def parse(cls, text: str) -> "Algorithm":
        """Parse a variant name, ignoring case."""
        wanted = text.lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        raise ValueError(_VALID_VALUES)

    def __str__(self) -> str:
        return self.value


# Optimized variants that ought to be equivalent to the naive one.
OPTIMIZED: Tuple[Algorithm, ...] = (Algorithm.DATAFROG_OPT,)


def compare_errors(
    all_naive_errors: Mapping[Hashable, List[Hashable]],
    all_opt_errors: Mapping[Hashable, List[Hashable]],
) -> bool:
    """Return True when the two error maps report different errors.

    Each difference is logged.
    """
    differ = False
    for point in chain(all_naive_errors.keys(), all_opt_errors.keys()):
        naive_errors = sorted(all_naive_errors.get(point, []))
        opt_errors = sorted(all_opt_errors.get(point, []))

        for err in naive_errors:
            if err not in opt_errors:
                logger.error("Error %r at %r reported by naive, but not opt.", err, point)
                differ = True

        for err in opt_errors:
            if err not in naive_errors:
                logger.error("Error %r at %r reported by opt, but not naive.", err, point)
                differ = True

    return differ