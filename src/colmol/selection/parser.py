"""
Parser for a compact selection syntax.

Terms:
    all, *                 everything
    protein, nucleic, rna, dna, water, ion, hetero, polymer,
    backbone, sidechain, helix, sheet, cg, trace
                           classification keywords
    :A                     chain name
    .CA                    atom name
    _C                     element
    /0                     model index
    10, 10-20              residue number or inclusive range
    ALA, [HOH]             residue name

Terms combine with ``and``, ``or``, ``not`` and parentheses; ``and``
binds tighter than ``or``.
"""

import re
from typing import List

from colmol.selection.predicates import All, And, AtomTest, ModelTest, Not, Or, Predicate

KEYWORDS = {
    "protein", "nucleic", "rna", "dna", "water", "ion", "hetero", "polymer",
    "backbone", "sidechain", "helix", "sheet", "cg", "trace",
}

_TOKEN_RE = re.compile(r"\(|\)|[^\s()]+")
_RESNO_RE = re.compile(r"^(-?\d+)(?:-(-?\d+))?$")
_RESNAME_RE = re.compile(r"^\[?([A-Za-z0-9']{1,4})\]?$")


class SelectionError(ValueError):
    """Raised for selection strings that cannot be parsed."""


class _Parser:
    def __init__(self, string: str):
        self.string = string
        self.tokens: List[str] = _TOKEN_RE.findall(string)
        self.pos = 0

    def peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self):
        token = self.peek()
        if token is None:
            raise SelectionError(f"unexpected end of selection: {self.string!r}")
        self.pos += 1
        return token

    def parse(self) -> Predicate:
        if not self.tokens:
            return All()
        predicate = self.parse_or()
        if self.peek() is not None:
            raise SelectionError(f"unexpected token {self.peek()!r} in {self.string!r}")
        return predicate

    def parse_or(self) -> Predicate:
        terms = [self.parse_and()]
        while self.peek() is not None and self.peek().lower() == "or":
            self.next()
            terms.append(self.parse_and())
        return terms[0] if len(terms) == 1 else Or(*terms)

    def parse_and(self) -> Predicate:
        terms = [self.parse_not()]
        while self.peek() is not None and self.peek().lower() == "and":
            self.next()
            terms.append(self.parse_not())
        return terms[0] if len(terms) == 1 else And(*terms)

    def parse_not(self) -> Predicate:
        if self.peek() is not None and self.peek().lower() == "not":
            self.next()
            return Not(self.parse_not())
        return self.parse_term()

    def parse_term(self) -> Predicate:
        token = self.next()

        if token == "(":
            predicate = self.parse_or()
            if self.next() != ")":
                raise SelectionError(f"missing ')' in {self.string!r}")
            return predicate
        if token == ")":
            raise SelectionError(f"unbalanced ')' in {self.string!r}")
        if token.lower() in ("and", "or"):
            raise SelectionError(f"missing operand before {token!r} in {self.string!r}")

        return self.parse_atom_term(token)

    def parse_atom_term(self, token: str) -> Predicate:
        if token in ("*", "all"):
            return All()
        if token in KEYWORDS:
            return AtomTest(flags=(token,))

        prefix, rest = token[0], token[1:]
        if prefix in ":._/" and not rest:
            raise SelectionError(f"empty {prefix!r} term in {self.string!r}")
        if prefix == ":":
            return AtomTest(chainname=rest)
        if prefix == ".":
            return AtomTest(atomname=rest.upper())
        if prefix == "_":
            return AtomTest(element=rest.upper())
        if prefix == "/":
            if not rest.isdigit():
                raise SelectionError(f"bad model index {rest!r} in {self.string!r}")
            return ModelTest(int(rest))

        match = _RESNO_RE.match(token)
        if match:
            start = int(match.group(1))
            if match.group(2) is None:
                return AtomTest(resno=start)
            return AtomTest(resno_range=(start, int(match.group(2))))

        match = _RESNAME_RE.match(token)
        if match:
            return AtomTest(resname=match.group(1).upper())

        raise SelectionError(f"cannot parse {token!r} in {self.string!r}")


def parse_selection(string: str) -> Predicate:
    """
    Parse a selection string into a predicate.

    Raises:
        SelectionError: if the string is malformed
    """
    return _Parser(string).parse()
