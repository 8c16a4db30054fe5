import math
from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.errors import ScriptRuntimeError, ScriptTypeError
from retroscript.types import UNDEFINED, normalize_number, strict_equals, to_number, type_name

# ceiling on range() so a single call cannot exhaust memory
MAX_RANGE_LENGTH = 100000

SORT_ORDER = {'null': 0, 'boolean': 1, 'number': 2, 'string': 3, 'array': 4, 'object': 5}


def array_of(value: Any, name: str) -> list:
    if not isinstance(value, list):
        raise ScriptTypeError(f"{name}() expects an array, got {type_name(value)}")
    return value


def sort_key(value: Any):
    kind = type_name(value)
    if kind in ('null', 'undefined'):
        return (0, 0)
    if kind in ('boolean', 'number', 'string'):
        return (SORT_ORDER[kind], value)
    return (SORT_ORDER.get(kind, 6), 0)


def populate_array_functions() -> List[BuiltinFunction]:

    def std_count(args: List[Any]) -> Any:
        value = args[0]
        return len(value) if isinstance(value, (list, dict, str)) else 0

    def std_push(args: List[Any]) -> Any:
        items = array_of(args[0], 'push')
        items.extend(args[1:])
        return items

    def std_pop(args: List[Any]) -> Any:
        items = array_of(args[0], 'pop')
        return items.pop() if items else UNDEFINED

    def std_shift(args: List[Any]) -> Any:
        items = array_of(args[0], 'shift')
        return items.pop(0) if items else UNDEFINED

    def std_unshift(args: List[Any]) -> Any:
        items = array_of(args[0], 'unshift')
        items[:0] = args[1:]
        return items

    def std_slice(args: List[Any]) -> Any:
        value = args[0]
        if not isinstance(value, (list, str)):
            raise ScriptTypeError(f"slice() expects an array or string, got {type_name(value)}")
        start = int(to_number(args[1], 'slice')) if len(args) > 1 else 0
        end = int(to_number(args[2], 'slice')) if len(args) > 2 and args[2] is not UNDEFINED else None
        return value[start:end]

    def std_reverse(args: List[Any]) -> Any:
        value = args[0]
        if isinstance(value, str):
            return value[::-1]
        return list(reversed(array_of(value, 'reverse')))

    def std_sort(args: List[Any]) -> Any:
        items = array_of(args[0], 'sort')
        if len(args) > 1:
            field = args[1]
            return sorted(items, key=lambda item: sort_key(item.get(field) if isinstance(item, dict) else None))
        return sorted(items, key=sort_key)

    def std_unique(args: List[Any]) -> Any:
        result: List[Any] = []
        for item in array_of(args[0], 'unique'):
            if not any(strict_equals(item, seen) for seen in result):
                result.append(item)
        return result

    def std_range(args: List[Any]) -> Any:
        bounds = [normalize_number(to_number(a, 'range')) for a in args[:3]]
        if len(bounds) == 1:
            start, end, step = 0, bounds[0], 1
        else:
            start, end = bounds[0], bounds[1]
            step = bounds[2] if len(bounds) > 2 else 1
        if step == 0:
            raise ScriptTypeError("range() step must not be zero")
        length = max(0, math.ceil((end - start) / step))
        if length > MAX_RANGE_LENGTH:
            raise ScriptRuntimeError(f"range() would produce more than {MAX_RANGE_LENGTH} items")
        return [normalize_number(start + i * step) for i in range(length)]

    def std_first(args: List[Any]) -> Any:
        items = array_of(args[0], 'first')
        return items[0] if items else UNDEFINED

    def std_last(args: List[Any]) -> Any:
        items = array_of(args[0], 'last')
        return items[-1] if items else UNDEFINED

    def std_includes(args: List[Any]) -> Any:
        value = args[0]
        if isinstance(value, str):
            return isinstance(args[1], str) and args[1] in value
        return any(strict_equals(item, args[1]) for item in array_of(value, 'includes'))

    return [
        BuiltinFunction('count', 1, std_count, 'collection'),
        BuiltinFunction('push', 1, std_push, 'collection'),
        BuiltinFunction('pop', 1, std_pop, 'collection'),
        BuiltinFunction('shift', 1, std_shift, 'collection'),
        BuiltinFunction('unshift', 1, std_unshift, 'collection'),
        BuiltinFunction('slice', 1, std_slice, 'collection'),
        BuiltinFunction('reverse', 1, std_reverse, 'collection'),
        BuiltinFunction('sort', 1, std_sort, 'collection'),
        BuiltinFunction('unique', 1, std_unique, 'collection'),
        BuiltinFunction('range', 1, std_range, 'collection'),
        BuiltinFunction('first', 1, std_first, 'collection'),
        BuiltinFunction('last', 1, std_last, 'collection'),
        BuiltinFunction('includes', 2, std_includes, 'collection'),
    ]
