"""
Value Comparison

Two explicit equality modes used by ``CacheManager.check``.

Strict mode requires the same type at every level and equal values. Loose
mode coerces between types following this table:

==========================  ==================================================
left / right                rule
==========================  ==================================================
None vs None                equal
None vs x                   equal iff x is falsy (False, 0, 0.0, "", [], {})
bool vs x                   a == bool(x)
number vs number            numeric equality
number vs numeric string    numeric equality; a numeric string is optional
                            surrounding whitespace around a decimal literal
                            with optional sign, fraction and exponent
                            ("10", "-1.5", ".5", "2e3"); "1_0", "inf" and
                            "nan" are not numeric
number vs other string      not equal
str vs str                  exact equality
list/tuple vs list/tuple    same length, element-wise loose equality
dict vs dict                same keys (compared as strings), values loose
anything else               a == b
==========================  ==================================================
"""

import re
from typing import Any, Optional


NUMERIC_STRING = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_number(text: str) -> Optional[float]:
    text = text.strip()
    if not NUMERIC_STRING.fullmatch(text):
        return None
    return float(text)


def strict_equals(a: Any, b: Any) -> bool:
    """Same type and same value, recursively."""
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        if a.keys() != b.keys():
            return False
        return all(strict_equals(a[key], b[key]) for key in a)
    if isinstance(a, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(strict_equals(x, y) for x, y in zip(a, b))
    return a == b


def loose_equals(a: Any, b: Any) -> bool:
    """Equality with the type coercions listed in the module docstring."""
    if a is None or b is None:
        other = b if a is None else a
        return other is None or not other

    if isinstance(a, bool) or isinstance(b, bool):
        if isinstance(a, bool):
            return a == bool(b)
        return b == bool(a)

    if _is_number(a) and _is_number(b):
        return a == b

    if _is_number(a) and isinstance(b, str):
        parsed = _as_number(b)
        return parsed is not None and a == parsed
    if isinstance(a, str) and _is_number(b):
        parsed = _as_number(a)
        return parsed is not None and parsed == b

    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(loose_equals(x, y) for x, y in zip(a, b))

    if isinstance(a, dict) and isinstance(b, dict):
        left = {str(key): value for key, value in a.items()}
        right = {str(key): value for key, value in b.items()}
        if left.keys() != right.keys():
            return False
        return all(loose_equals(left[key], right[key]) for key in left)

    return a == b
