"""
Route specifier compilation.

Turns a route declaration such as ``/user/:id?`` or ``/files/*`` into an
anchored regular expression plus the ordered list of parameters its capture
groups stand for, and extracts decoded parameters from a matching fragment.
"""
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Pattern, Sequence, Tuple, Union
from urllib.parse import unquote

from .exceptions import PatternError

# Placed in front of each capture group while the expression is rewritten,
# so the schedule can be read back in group order. Stripped before compiling.
_NAMED_MARK = "\x00"
_UNNAMED_MARK = "\x01"

_PLACEHOLDER = re.compile(r"(/)?(\.)?:(\w+)(?:(\(.*?\)))?(\?)?")
_LITERAL = re.compile(r"([/.])")
_MARKS = re.compile(f"[{_NAMED_MARK}{_UNNAMED_MARK}]")

RouteSpec = Union[str, Sequence[str], Pattern]


class Parameter(NamedTuple):
    """One capture group of a compiled route. ``name`` is None for positional groups."""
    name: Optional[str]
    optional: bool = False


class Params(dict):
    """
    Parameters extracted from a matched fragment.

    Named placeholders are stored under their (string) names and unnamed
    groups such as wildcards under consecutive integer indices, so both
    coexist without colliding:

        params["id"]      # "42"
        params[0]         # "a/b/c"
        params.positional # ["a/b/c"]

    A placeholder whose optional segment was not present maps to None.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._size = 0
        while self._size in self:
            self._size += 1

    def append(self, value: Optional[str]) -> None:
        """Store ``value`` under the next free positional index."""
        self[self._size] = value
        self._size += 1

    @property
    def positional(self) -> List[Optional[str]]:
        return [self[index] for index in range(self._size)]

    @property
    def named(self) -> Dict[str, Optional[str]]:
        return {key: value for key, value in self.items() if isinstance(key, str)}


class RoutePattern:
    """Compiled form of a route specifier. Immutable once created."""

    def __init__(self, source: RouteSpec, schedule: Iterable[Parameter], matcher: Pattern):
        self._source = source
        self._schedule = tuple(schedule)
        self._matcher = matcher

    @property
    def source(self) -> RouteSpec:
        return self._source

    @property
    def schedule(self) -> Tuple[Parameter, ...]:
        return self._schedule

    @property
    def matcher(self) -> Pattern:
        return self._matcher

    def match(self, path: str) -> Optional[Params]:
        """
        Test ``path`` against the pattern.

        Returns the percent-decoded parameters on a structural match, or None.
        When a name occurs more than once the first non-None value is kept.
        """
        found = self._matcher.search(path)
        if found is None:
            return None

        params = Params()
        for parameter, value in zip(self._schedule, found.groups()):
            if value is not None:
                value = unquote(value)

            if parameter.name is None:
                params.append(value)
            elif params.get(parameter.name) is None:
                params[parameter.name] = value
        return params

    def __repr__(self):
        return f"RoutePattern({self._source!r}, {self._matcher.pattern!r})"


def _opens_capture(expression: str, index: int) -> bool:
    return not expression.startswith("?", index + 1) or expression.startswith("?P<", index + 1)


def _mark_bare_groups(expression: str) -> str:
    """Put an unnamed mark in front of every capturing group that has no mark yet."""
    marked = []
    escaped = in_class = False
    for index, char in enumerate(expression):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif in_class:
            in_class = char != "]"
        elif char == "[":
            in_class = True
        elif char == "(" and _opens_capture(expression, index):
            if not marked or marked[-1] not in (_NAMED_MARK, _UNNAMED_MARK):
                marked.append(_UNNAMED_MARK)
        marked.append(char)
    return "".join(marked)


def _rewrite_placeholder(match: re.Match, names: List[Parameter]) -> str:
    slash, format_prefix, name, capture, optional = match.groups()

    slash = slash or ""
    format_prefix = format_prefix or ""
    if not capture:
        capture = "([^/.]+?)" if format_prefix else "([^/]+?)"

    # A non-capturing custom expression has no group to bind the name to.
    mark = ""
    if _opens_capture(capture, 0):
        names.append(Parameter(name, bool(optional)))
        mark = _NAMED_MARK

    # An optional segment swallows its leading slash so "/user/:id?" matches "/user".
    return "".join([
        "" if optional else slash,
        "(?:",
        slash if optional else "",
        format_prefix,
        mark,
        capture,
        ")",
        optional or "",
    ])


def compile_pattern(spec: RouteSpec, sensitive: bool = False, strict: bool = False) -> RoutePattern:
    """
    Compile a route specifier into a RoutePattern.

    Args:
        spec: A path such as ``/user/:id``, a list of literal alternatives,
              or an already compiled regular expression (used as-is).
        sensitive: Match case-sensitively.
        strict: Do not allow a trailing slash.

    Raises:
        PatternError: If the specifier does not produce a valid expression.
        TypeError: If ``spec`` is of an unsupported type.
    """
    if isinstance(spec, re.Pattern):
        group_names = {index: name for name, index in spec.groupindex.items()}
        schedule = [Parameter(group_names.get(index)) for index in range(1, spec.groups + 1)]
        return RoutePattern(spec, schedule, spec)

    names: List[Parameter] = []
    if isinstance(spec, (list, tuple)):
        expression = _UNNAMED_MARK + "(" + "|".join(spec) + ")"
        scan_placeholders = False
    elif isinstance(spec, str):
        expression = spec
        scan_placeholders = True
    else:
        raise TypeError(f"Route specifier must be a str, list of str or compiled pattern, not {type(spec).__name__}")

    expression += "" if strict else "/?"
    expression = expression.replace("/(", "(?:/")
    if scan_placeholders:
        expression = _PLACEHOLDER.sub(lambda m: _rewrite_placeholder(m, names), expression)
    expression = _LITERAL.sub(r"\\\1", expression)
    expression = expression.replace("*", _UNNAMED_MARK + "(.*)")
    expression = _mark_bare_groups(expression)

    pending = iter(names)
    schedule = [
        next(pending) if mark == _NAMED_MARK else Parameter(None)
        for mark in _MARKS.findall(expression)
    ]
    expression = _MARKS.sub("", expression)

    try:
        matcher = re.compile(f"^{expression}\\Z", 0 if sensitive else re.IGNORECASE)
    except re.error as e:
        raise PatternError(spec, str(e)) from e

    return RoutePattern(spec, schedule, matcher)
