from __future__ import annotations

import re
from tokenize import TokenError
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import sympy as sp

from .reaction import Reaction
from .ratelaws import RATE_LAWS
from .scope import ScopedReference


# A single term like "2A" or "2 A" or "A".
_TERM_RE = re.compile(r"^\s*(?:(\d+)\s*)?([A-Za-z_][A-Za-z0-9_]*)\s*$")

# Supported arrow tokens, longest first. We normalize these to either "->" or "<->".
_ARROW_RE = re.compile(r"(<-->|<->|<=>|↔|-->|->|=>|→)")
_REVERSIBLE = {"<-->", "<->", "<=>", "↔"}

_IDENT_RE = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\b(\s*\()?")

# Anything outside plain arithmetic, or attribute access such as 'a.b'.
_RATE_CHARS_RE = re.compile(r"[^\w\s+\-*/().,^]|\b[A-Za-z_]\w*\s*\.|\)\s*\.")

_EMPTY = {"", "0", "∅"}


def _parse_complex(complex_str: str) -> Dict[str, int]:
    """Parse a complex string like '2A + B' into {'A':2, 'B':1}.

    Accepted:
    - '0', '∅' or '' for the empty complex
    - terms separated by '+'
    - coefficients as nonnegative integers (e.g. '2A', '2 A')
    """
    s = complex_str.strip()
    if s in _EMPTY:
        return {}

    parts = [p.strip() for p in s.split("+") if p.strip()]
    coeffs: Dict[str, int] = {}
    for part in parts:
        m = _TERM_RE.match(part)
        if not m:
            raise ValueError(f"Could not parse complex term: '{part}'")
        c_str, name = m.group(1), m.group(2)
        c = int(c_str) if c_str is not None else 1
        coeffs[name] = coeffs.get(name, 0) + c
    return coeffs


def _split_top_level(inside: str) -> List[str]:
    """Split on ',' and ';' that are not nested in parentheses."""
    parts: List[str] = []
    depth = 0
    current = []
    for ch in inside:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced ')' in rate specification: '{inside}'")
        if ch in ",;" and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    if depth != 0:
        raise ValueError(f"Unbalanced '(' in rate specification: '{inside}'")
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def _consume_leading_rate_brackets(s: str) -> Tuple[List[str], str]:
    """Consume leading [ ... ] blocks and return (tokens, remainder).

    Supported forms:
        "[k1] C"
        "[k1][km1] C"
        "[k1, km1] C"
        "[hillr(R, v, K, n)] m"
    """
    tokens: List[str] = []
    rest = s.strip()

    while rest.startswith("["):
        end = rest.find("]")
        if end == -1:
            raise ValueError(f"Unclosed '[' in rate specification: '{s}'")
        inside = rest[1:end].strip()
        if inside:
            tokens.extend(_split_top_level(inside))
        rest = rest[end + 1 :].strip()

    return tokens, rest


@dataclass
class ReactionParser:
    """Parse reaction strings into `Reaction` objects and `ReactionNode`s.

    Supported arrows
    ---------------
    - irreversible: '->', '-->', '=>' or '→'
    - reversible: '<->', '<-->', '<=>' or '↔'

    Rates (optional)
    ----------------
    Rates go in square brackets immediately after the arrow and may be any
    SymPy expression, including the helpers in `crn_composer.ratelaws`:
    - 'A + B ->[k1] C'
    - 's + i ->[0.1/1000] 2i'
    - 'X <->[d][1000] 0'   (forward, reverse)
    - '0 ->[hillr(R, v, K, n)] m'

    Every bare identifier in a rate becomes a plain symbol, so names such as
    'S', 'E' or 'I' never turn into SymPy constants.

    If no rates are provided, the parser auto-generates them as:
    - irreversible:  k1, k2, ...
    - reversible:    k1/km1, k2/km2, ...  (one index per reaction line)
    """

    rate_prefix: str = "k"
    assume_positive_rates: bool = True
    functions: Dict[str, Callable[..., sp.Expr]] = field(default_factory=lambda: dict(RATE_LAWS))

    def parse_node(
        self,
        name: str,
        text: str,
        species: Optional[Sequence] = None,
        parameters: Optional[Sequence] = None,
        scoped: Sequence[ScopedReference] = (),
    ):
        lines = self._split_lines(text)
        if not lines:
            raise ValueError("No reactions found in input")

        scoped_names = {ref.name for ref in scoped}
        reactions: List[Reaction] = []
        species_order: Dict[str, None] = {}
        rate_order: Dict[str, None] = {}
        for idx, ln in enumerate(lines, start=1):
            for r in self.parse_reaction(ln, index=idx, names=rate_order):
                reactions.append(r)
                for sym in r.species:
                    if sym.name not in scoped_names:
                        species_order.setdefault(sym.name, None)

        if species is None:
            species = [sp.Symbol(nm, real=True) for nm in species_order]

        if parameters is None:
            # Rate identifiers in the order they were written, minus species and scoped names.
            excluded = scoped_names | set(species_order) | {str(s) for s in species}
            rate_symbols = {s.name: s for r in reactions for s in r.rate.free_symbols}
            parameters = [
                rate_symbols[nm] for nm in rate_order if nm in rate_symbols and nm not in excluded
            ]

        from .node import ReactionNode  # local import to avoid circular import

        return ReactionNode(
            name=name,
            species=species,
            parameters=parameters,
            reactions=reactions,
            scoped=scoped,
        )

    def parse_reaction(
        self, line: str, index: int = 1, names: Optional[Dict[str, None]] = None
    ) -> List[Reaction]:
        """Parse one reaction line; reversible lines give two reactions (forward first).

        If `names` is given, every rate identifier is added to it in the order
        it is written (auto-generated rates included).
        """
        lhs_str, arrow, rhs_str, rate_tokens = self._split_reaction_line(line)
        lhs = self._complex(lhs_str)
        rhs = self._complex(rhs_str)

        def auto(nm: str) -> sp.Symbol:
            if names is not None:
                names.setdefault(nm, None)
            return self._make_rate_symbol(nm)

        if arrow == "<->":
            # Rate token handling:
            #  - []:      auto k{i}, km{i}
            #  - [kf]:    forward fixed, reverse auto km{i}
            #  - [kf][kr] or [kf,kr]: both fixed
            if len(rate_tokens) == 0:
                kf = auto(f"{self.rate_prefix}{index}")
                kr = auto(f"{self.rate_prefix}m{index}")
            elif len(rate_tokens) == 1:
                kf = self.parse_rate(rate_tokens[0], names)
                kr = auto(f"{self.rate_prefix}m{index}")
            elif len(rate_tokens) == 2:
                kf = self.parse_rate(rate_tokens[0], names)
                kr = self.parse_rate(rate_tokens[1], names)
            else:
                raise ValueError(
                    f"Too many rate tokens for reversible reaction '{line}'. "
                    "Use at most two (forward, reverse)."
                )
            return [Reaction(kf, lhs, rhs), Reaction(kr, rhs, lhs)]

        if len(rate_tokens) == 0:
            kf = auto(f"{self.rate_prefix}{index}")
        elif len(rate_tokens) == 1:
            kf = self.parse_rate(rate_tokens[0], names)
        else:
            raise ValueError(
                f"Too many rate tokens for irreversible reaction '{line}'. "
                "Use at most one."
            )
        return [Reaction(kf, lhs, rhs)]

    def parse_rate(self, token: str, names: Optional[Dict[str, None]] = None) -> sp.Expr:
        """Parse a rate expression, mapping every bare identifier to a symbol.

        Only arithmetic is accepted: identifiers, numbers, operators and calls.
        Identifiers are recorded in `names` (if given) in order of appearance.
        """
        bad = _RATE_CHARS_RE.search(token)
        if bad:
            raise ValueError(f"Could not parse rate expression '{token}': unexpected '{bad.group(0)}'")
        local: Dict[str, object] = {}
        for m in _IDENT_RE.finditer(token):
            ident, is_call = m.group(1), m.group(2)
            if is_call:
                if ident in self.functions:
                    local[ident] = self.functions[ident]
                continue
            local.setdefault(ident, self._make_rate_symbol(ident))
            if names is not None:
                names.setdefault(ident, None)
        try:
            return sp.parse_expr(token, local_dict=local)
        except (SyntaxError, TokenError, TypeError, AttributeError, NameError, sp.SympifyError) as exc:
            raise ValueError(f"Could not parse rate expression '{token}': {exc}") from exc

    def _make_rate_symbol(self, name: str) -> sp.Symbol:
        """Create a SymPy symbol for a rate constant."""
        if self.assume_positive_rates:
            return sp.Symbol(name, positive=True)
        return sp.Symbol(name)

    @staticmethod
    def _complex(complex_str: str) -> Tuple[Tuple[sp.Symbol, int], ...]:
        return tuple((sp.Symbol(nm, real=True), c) for nm, c in _parse_complex(complex_str).items())

    @staticmethod
    def _split_lines(text: str) -> List[str]:
        # Split lines (semicolon or newline); semicolons inside rate brackets are kept.
        raw_lines: List[str] = []
        for ln in text.splitlines():
            raw_lines.extend(_split_outside_brackets(ln))
        return [ln.strip() for ln in raw_lines if ln.strip() and not ln.strip().startswith("#")]

    @staticmethod
    def _split_reaction_line(line: str) -> Tuple[str, str, str, List[str]]:
        """Split a reaction line into (lhs, arrow, rhs, rate_tokens)."""
        ln = line.strip()
        m = _ARROW_RE.search(ln)
        if not m:
            raise ValueError(f"No supported arrow found in line: '{line}'")

        arrow = "<->" if m.group(1) in _REVERSIBLE else "->"

        lhs = ln[: m.start()].strip()
        rest = ln[m.end() :].strip()

        rate_tokens, rhs = _consume_leading_rate_brackets(rest)
        rhs = rhs.strip()
        if rhs == "":
            raise ValueError(f"Missing RHS complex in line: '{line}'")

        return lhs, arrow, rhs, rate_tokens


def _split_outside_brackets(line: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(line):
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == ";" and depth == 0:
            parts.append(line[start:i])
            start = i + 1
    parts.append(line[start:])
    return parts
