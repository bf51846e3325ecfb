"""Static inputs shared by the borrow checking variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Hashable, Iterable, List, Optional, Tuple

Relation = Tuple[tuple, ...]


def _relation(facts: Iterable[tuple]) -> Relation:
    """Return the distinct facts, sorted."""
    return tuple(sorted(set(facts)))


@dataclass
class Context:
    """Borrow checking inputs, prepared once and used by every variant.

    Relation fields are normalised to sorted tuples of distinct facts.
    `placeholder_origin` holds bare origins rather than pairs.
    """

    # Relations used as static inputs by all variants.
    origin_live_on_entry: Relation = ()
    loan_invalidated_at: Relation = ()

    # Inputs used as they were given, by all variants.
    subset_base: List[Tuple[Hashable, Hashable, Hashable]] = field(default_factory=list)
    loan_issued_at: List[Tuple[Hashable, Hashable, Hashable]] = field(default_factory=list)

    # Inputs used by the variants other than the location-insensitive one.
    loan_killed_at: Relation = ()
    known_contains: Relation = ()
    placeholder_origin: Tuple[Hashable, ...] = ()
    placeholder_loan: Relation = ()

    # Fully closed over, unlike the relation of the same name in the facts.
    known_placeholder_subset: Relation = ()

    cfg_edge: Relation = ()

    # Partial results a pre-pass may leave for the following variant.
    potential_errors: Optional[FrozenSet[Hashable]] = None
    potential_subset_errors: Optional[Relation] = None

    def __post_init__(self) -> None:
        self.origin_live_on_entry = _relation(self.origin_live_on_entry)
        self.loan_invalidated_at = _relation(self.loan_invalidated_at)
        self.subset_base = list(self.subset_base)
        self.loan_issued_at = list(self.loan_issued_at)
        self.loan_killed_at = _relation(self.loan_killed_at)
        self.known_contains = _relation(self.known_contains)
        self.placeholder_origin = tuple(sorted(set(self.placeholder_origin)))
        self.placeholder_loan = _relation(self.placeholder_loan)
        self.known_placeholder_subset = _relation(self.known_placeholder_subset)
        self.cfg_edge = _relation(self.cfg_edge)
        if self.potential_errors is not None:
            self.potential_errors = frozenset(self.potential_errors)
        if self.potential_subset_errors is not None:
            self.potential_subset_errors = _relation(self.potential_subset_errors)