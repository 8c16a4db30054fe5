"""Runtime values and value helpers for RetroScript.

Script values are plain Python objects: ``None`` is ``null``, ``bool``,
``int``/``float`` numbers, ``str``, ``list`` arrays and ``dict`` objects.
The only extra values are the ``UNDEFINED`` sentinel (what an unbound
variable or a missing key reads as) and ``FunctionValue`` for user-defined
functions.

The helpers in this module implement the language's value rules: truthiness,
strict type-sensitive equality, numeric coercion for arithmetic, ordering and
stringification for output.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Tuple

from .errors import ScriptTypeError

if TYPE_CHECKING:
    from .ast import Statement
    from .environment import Environment


class Undefined:
    """Marker for the script ``undefined`` value."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return 'undefined'


UNDEFINED = Undefined()


@dataclass(eq=False)
class FunctionValue:
    """A user-defined function closing over its definition environment."""
    name: str
    params: Tuple[str, ...]
    body: Tuple['Statement', ...]
    closure: 'Environment'

    def __repr__(self) -> str:
        return f"<function {self.name}>"


def type_name(value: Any) -> str:
    """Return the script-level type name of a runtime value."""
    if value is None:
        return 'null'
    if value is UNDEFINED:
        return 'undefined'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, (list, tuple)):
        return 'array'
    if isinstance(value, FunctionValue) or callable(value):
        return 'function'
    return 'object'


def is_truthy(value: Any) -> bool:
    if value is None or value is UNDEFINED:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    # objects, including the empty one, are truthy
    return True


MAX_SAFE_INTEGER = 2 ** 53


def normalize_number(value: Any) -> Any:
    """Collapse integral floats to ints so ``10 / 2`` behaves like ``5``.

    Integers beyond the exactly representable range become floats, which
    overflow to infinity the way double arithmetic does.
    """
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and abs(value) < MAX_SAFE_INTEGER:
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_INTEGER:
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    return value


def parse_number(text: str) -> Any:
    """Parse a numeric string, returning ``None`` when it is not a number."""
    text = text.strip()
    if text == '':
        return 0
    try:
        return normalize_number(int(text))
    except ValueError:
        pass
    try:
        result = float(text)
    except ValueError:
        return None
    if not math.isfinite(result):
        return None
    return normalize_number(result)


def to_number(value: Any, operator: str = '') -> Any:
    """Coerce an arithmetic operand to a number or raise a ScriptTypeError."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return normalize_number(value)
    if value is None:
        return 0
    if isinstance(value, str):
        number = parse_number(value)
        if number is not None:
            return number
    where = f" for '{operator}'" if operator else ''
    raise ScriptTypeError(f"Expected a number{where}, got {type_name(value)} {to_string(value)!r}")


def strict_equals(a: Any, b: Any) -> bool:
    """Type-sensitive equality; arrays and objects compare structurally."""
    kind = type_name(a)
    if kind != type_name(b):
        return False
    if kind == 'number':
        return a == b
    if kind == 'array':
        if len(a) != len(b):
            return False
        return all(strict_equals(x, y) for x, y in zip(a, b))
    if kind == 'object':
        if isinstance(a, dict) and isinstance(b, dict):
            if a.keys() != b.keys():
                return False
            return all(strict_equals(a[k], b[k]) for k in a)
        return a is b
    if kind == 'function':
        return a is b
    return a == b


def compare(op: str, a: Any, b: Any) -> bool:
    """Ordering comparison for ``< > <= >=``."""
    if isinstance(a, str) and isinstance(b, str):
        left, right = a, b
    elif type_name(a) == 'number' and type_name(b) == 'number':
        left, right = a, b
    else:
        try:
            left, right = to_number(a, op), to_number(b, op)
        except ScriptTypeError:
            raise ScriptTypeError(f"Cannot compare {type_name(a)} and {type_name(b)} with '{op}'") from None
    if op == '<':
        return left < right
    if op == '>':
        return left > right
    if op == '<=':
        return left <= right
    if op == '>=':
        return left >= right
    raise ScriptTypeError(f"Unknown comparison operator {op}")


def to_plain(value: Any) -> Any:
    """Convert a script value into something ``json`` can encode."""
    if value is UNDEFINED:
        return None
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items() if not callable(v)}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, FunctionValue):
        return repr(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def format_number(value: Any) -> str:
    value = normalize_number(value)
    if isinstance(value, float):
        if math.isnan(value):
            return 'NaN'
        if math.isinf(value):
            return 'Infinity' if value > 0 else '-Infinity'
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


def to_string(value: Any) -> str:
    """Convert a value to its output text (``print``, concatenation, interpolation)."""
    if value is None:
        return 'null'
    if value is UNDEFINED:
        return 'undefined'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(to_plain(value), separators=(',', ':'), ensure_ascii=False)
    return str(value)


def get_member(value: Any, name: str) -> Any:
    """Read `value.name`; missing fields read as undefined."""
    if isinstance(value, dict):
        return value.get(name, UNDEFINED)
    if isinstance(value, (list, tuple, str)) and name == 'length':
        return len(value)
    return UNDEFINED


def get_index(value: Any, index: Any) -> Any:
    """Read `value[index]`; out-of-range indices and missing keys read as undefined."""
    if isinstance(value, dict):
        key = index if isinstance(index, str) else to_string(index)
        return value.get(key, UNDEFINED)
    if isinstance(value, (list, tuple, str)):
        if isinstance(index, str):
            return get_member(value, index)
        if isinstance(index, bool) or not isinstance(index, (int, float)):
            return UNDEFINED
        index = normalize_number(index)
        if isinstance(index, int) and 0 <= index < len(value):
            return value[index]
    return UNDEFINED
