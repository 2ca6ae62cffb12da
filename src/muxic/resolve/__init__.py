"""Duplicate grouping, survivor policies and deletion."""

from .deleter import DeletionFailure, DeletionReport, delete_duplicates
from .grouping import (
    DEFAULT_STRATEGY,
    SURVIVOR_STRATEGIES,
    DuplicateSet,
    group_duplicates,
    order_paths,
)
from .policy import (
    AutomaticPolicy,
    InteractivePolicy,
    ResolutionOutcome,
    ResolutionPolicy,
    parse_choice,
)

__all__ = [
    "AutomaticPolicy",
    "DEFAULT_STRATEGY",
    "DeletionFailure",
    "DeletionReport",
    "DuplicateSet",
    "InteractivePolicy",
    "ResolutionOutcome",
    "ResolutionPolicy",
    "SURVIVOR_STRATEGIES",
    "delete_duplicates",
    "group_duplicates",
    "order_paths",
    "parse_choice",
]
