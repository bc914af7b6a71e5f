"""
Selection predicates.

Anything with a ``test(atom_proxy) -> bool`` method is a valid selection
source. A predicate may also expose ``model_only_test(model_proxy)``: when
it returns False the whole model is skipped without testing its atoms.
A predicate with ``model_only = True`` is decided by the model alone.
"""

from typing import Callable, Iterable, Optional, Tuple, Union


def _as_set(value) -> Optional[frozenset]:
    if value is None:
        return None
    if isinstance(value, (str, int)):
        return frozenset([value])
    return frozenset(value)


class Predicate:
    """Base class giving predicates ``&``, ``|`` and ``~``."""

    model_only = False

    def test(self, ap) -> bool:
        raise NotImplementedError

    def __call__(self, ap) -> bool:
        return self.test(ap)

    def __and__(self, other: "Predicate") -> "And":
        return And(self, other)

    def __or__(self, other: "Predicate") -> "Or":
        return Or(self, other)

    def __invert__(self) -> "Not":
        return Not(self)


class AtomTest(Predicate):
    """
    Field filters on an atom, all of which must hold.

    Each filter takes a single value or a collection of accepted values;
    ``resno`` also accepts an inclusive ``(start, end)`` range via
    ``resno_range``. ``flags`` names classification tests such as
    "protein", "backbone" or "helix" (the ``is_<flag>`` proxy methods).

    Example:
        >>> AtomTest(resname="TYR", atomname="OH")
        >>> AtomTest(chainname="A", flags=("protein", "backbone"))
    """

    def __init__(
        self,
        resname=None,
        atomname=None,
        element=None,
        chainname=None,
        resno=None,
        resno_range: Optional[Tuple[int, int]] = None,
        sstruc=None,
        model=None,
        flags: Iterable[str] = (),
    ):
        self.resname = _as_set(resname)
        self.atomname = _as_set(atomname)
        self.element = _as_set(element)
        self.chainname = _as_set(chainname)
        self.resno = _as_set(resno)
        self.resno_range = resno_range
        self.sstruc = _as_set(sstruc)
        self.model = _as_set(model)
        self.flags = tuple(flags)

    def test(self, ap) -> bool:
        if self.atomname is not None and ap.atomname not in self.atomname:
            return False
        if self.resname is not None and ap.resname not in self.resname:
            return False
        if self.element is not None and ap.element not in self.element:
            return False
        if self.chainname is not None and ap.chainname not in self.chainname:
            return False
        if self.resno is not None and ap.resno not in self.resno:
            return False
        if self.resno_range is not None:
            lo, hi = self.resno_range
            if not lo <= ap.resno <= hi:
                return False
        if self.sstruc is not None and ap.sstruc not in self.sstruc:
            return False
        if self.model is not None and ap.model_index not in self.model:
            return False
        for flag in self.flags:
            if not getattr(ap, f"is_{flag}")():
                return False
        return True

    def model_only_test(self, mp) -> bool:
        return self.model is None or mp.index in self.model

    def __repr__(self) -> str:
        fields = {k: v for k, v in vars(self).items() if v not in (None, ())}
        return f"AtomTest({fields})"


class ModelTest(Predicate):
    """Selects whole models by index."""

    model_only = True

    def __init__(self, models):
        self.models = _as_set(models)

    def test(self, ap) -> bool:
        return ap.model_index in self.models

    def model_only_test(self, mp) -> bool:
        return mp.index in self.models


class FunctionPredicate(Predicate):
    """Wrap plain callables as a predicate."""

    def __init__(self, fn: Callable, model_fn: Optional[Callable] = None):
        self.fn = fn
        self.model_fn = model_fn

    def test(self, ap) -> bool:
        return bool(self.fn(ap))

    def model_only_test(self, mp) -> bool:
        return True if self.model_fn is None else bool(self.model_fn(mp))


class All(Predicate):
    """Matches everything."""

    model_only = True

    def test(self, ap) -> bool:
        return True

    def model_only_test(self, mp) -> bool:
        return True


class And(Predicate):
    def __init__(self, *predicates):
        self.predicates = predicates
        self.model_only = all(getattr(p, "model_only", False) for p in predicates)

    def test(self, ap) -> bool:
        return all(p.test(ap) for p in self.predicates)

    def model_only_test(self, mp) -> bool:
        for p in self.predicates:
            mot = getattr(p, "model_only_test", None)
            if mot is not None and not mot(mp):
                return False
        return True


class Or(Predicate):
    def __init__(self, *predicates):
        self.predicates = predicates
        self.model_only = all(getattr(p, "model_only", False) for p in predicates)

    def test(self, ap) -> bool:
        return any(p.test(ap) for p in self.predicates)

    def model_only_test(self, mp) -> bool:
        for p in self.predicates:
            mot = getattr(p, "model_only_test", None)
            if mot is None or mot(mp):
                return True
        return False


class Not(Predicate):
    def __init__(self, predicate):
        self.predicate = predicate
        self.model_only = getattr(predicate, "model_only", False)

    def test(self, ap) -> bool:
        return not self.predicate.test(ap)

    def model_only_test(self, mp) -> bool:
        # a model can only be excluded when the inner test is decided per model
        if self.model_only:
            return not self.predicate.model_only_test(mp)
        return True


class Selection:
    """
    A predicate plus its source string and a version counter.

    Views compare ``version`` with the value seen at their last
    computation to decide whether their bitsets are stale.
    """

    def __init__(self, predicate: Union[Predicate, str, None] = None, string: str = ""):
        self.version = 0
        self.predicate: Predicate = All()
        self.string = ""
        self.set(predicate, string)

    def set(self, predicate: Union[Predicate, str, None], string: str = ""):
        """Replace the predicate; a string is parsed as selection syntax."""
        from colmol.selection.parser import parse_selection

        if predicate is None:
            predicate = All()
        elif isinstance(predicate, str):
            string = predicate
            predicate = parse_selection(predicate)

        self.predicate = predicate
        self.string = string
        self.version += 1

    @property
    def model_only(self) -> bool:
        return getattr(self.predicate, "model_only", False)

    def test(self, ap) -> bool:
        return self.predicate.test(ap)

    def model_only_test(self, mp) -> bool:
        mot = getattr(self.predicate, "model_only_test", None)
        return True if mot is None else mot(mp)

    def is_all(self) -> bool:
        return isinstance(self.predicate, All)

    def __repr__(self) -> str:
        return f"Selection({self.string!r}, version={self.version})"
