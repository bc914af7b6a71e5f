"""Selection predicates and the selection string parser."""

from colmol.selection.predicates import (
    All,
    And,
    AtomTest,
    FunctionPredicate,
    ModelTest,
    Not,
    Or,
    Predicate,
    Selection,
)
from colmol.selection.parser import SelectionError, parse_selection

__all__ = [
    "All",
    "And",
    "AtomTest",
    "FunctionPredicate",
    "ModelTest",
    "Not",
    "Or",
    "Predicate",
    "Selection",
    "SelectionError",
    "parse_selection",
]
