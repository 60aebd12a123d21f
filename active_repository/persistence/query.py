"""
Turns query criteria into a predicate over records. Two forms of criteria are understood:

- A mapping of field name to value, e.g. ``{"name": "Peter", "age": 30}``. Every clause must match. A list, tuple or
  set value matches when the record's value is one of its members.
- A minimal SQL-like string of equality clauses joined by ``AND``, e.g. ``"name = 'Peter' AND age = 30"``. Values may
  be quoted strings, integers, floats, ``true``/``false``, ``null``, or a ``?`` placeholder bound positionally to the
  extra arguments passed alongside the string.
"""
import re
import typing as t

from active_repository.errors import QueryError
from active_repository.types.record import normalize_key


_CLAUSE = re.compile(
    r"\s*(?P<field>[A-Za-z_][A-Za-z0-9_]*)\s*(?:==|=)\s*"
    r"""(?P<value>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|[^\s'"]+)""",
    re.DOTALL,
)
_AND = re.compile(r"\s+AND\s+", re.IGNORECASE)
_INTEGER = re.compile(r"^[-+]?\d+$")
_FLOAT = re.compile(r"^[-+]?(\d+\.\d*|\.\d+)([eE][-+]?\d+)?$")
_KEYWORDS = {"true": True, "false": False, "null": None, "nil": None}

Getter = t.Callable[[t.Any, str], t.Any]


def _get_attribute(record: t.Any, field: str) -> t.Any:
    return getattr(record, field, None)


class Query:
    """
    A parsed set of equality clauses, all of which must hold for a record to match.

    Parameters
    ----------
    clauses : list of (str, object) tuples
        The field name and expected value of each clause.
    """

    def __init__(self, clauses: t.List[t.Tuple[str, t.Any]]):
        self.clauses = clauses

    @classmethod
    def parse(cls, criteria: t.Union[str, t.Mapping[str, t.Any], "Query"], *params) -> "Query":
        if isinstance(criteria, Query):
            return criteria
        if isinstance(criteria, str):
            return cls._parse_string(criteria, list(params))
        if isinstance(criteria, t.Mapping):
            if params:
                raise QueryError("positional parameters are only supported with string criteria")
            return cls([(normalize_key(field), value) for field, value in criteria.items()])
        raise QueryError(f"unsupported criteria type {type(criteria).__name__}")

    @classmethod
    def _parse_string(cls, criteria: str, params: list) -> "Query":
        text = criteria.strip()
        if not text:
            raise QueryError("query string is empty")
        clauses = []
        position = 0
        while True:
            # Clauses are consumed whole, so an `and` inside a quoted value is never taken for a separator.
            match = _CLAUSE.match(text, position)
            if match is None:
                raise QueryError(f"unsupported query clause {text[position:]!r} in {criteria!r}")
            position = match.end()
            raw_value = match.group("value")
            if raw_value == "?":
                if not params:
                    raise QueryError(f"not enough parameters bound for {criteria!r}")
                value = params.pop(0)
            else:
                value = cls._parse_literal(raw_value)
            clauses.append((normalize_key(match.group("field")), value))
            if position == len(text):
                break
            separator = _AND.match(text, position)
            if separator is None:
                raise QueryError(f"expected AND before {text[position:]!r} in {criteria!r}")
            position = separator.end()
        if params:
            raise QueryError(f"{len(params)} unused parameter(s) for {criteria!r}")
        return cls(clauses)

    @staticmethod
    def _parse_literal(raw: str) -> t.Any:
        if raw[0] in "'\"":
            # Drop the quotes and resolve backslash escapes.
            return re.sub(r"\\(.)", r"\1", raw[1:-1])
        if _INTEGER.match(raw):
            return int(raw)
        if _FLOAT.match(raw):
            return float(raw)
        if raw.lower() in _KEYWORDS:
            return _KEYWORDS[raw.lower()]
        raise QueryError(f"unsupported query value {raw!r}")

    def matches(self, record: t.Any, getter: Getter = _get_attribute) -> bool:
        return all(self._clause_matches(getter(record, field), field, value) for field, value in self.clauses)

    def filter(self, records: t.Iterable[t.Any], getter: Getter = _get_attribute) -> t.Iterator[t.Any]:
        """Lazily yields the members of ``records`` that match, in their original order."""
        for record in records:
            if self.matches(record, getter):
                yield record

    @staticmethod
    def _clause_matches(actual: t.Any, field: str, expected: t.Any) -> bool:
        candidates = expected if isinstance(expected, (list, tuple, set, frozenset)) else [expected]
        for candidate in candidates:
            if actual == candidate:
                return True
            # Ids are indexed by their string form, so `1` and `"1"` name the same record.
            if field == "id" and actual is not None and candidate is not None and str(actual) == str(candidate):
                return True
        return False

    def __repr__(self):
        return f"Query({self.clauses!r})"
