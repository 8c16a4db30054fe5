from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.errors import ScriptTypeError
from retroscript.types import UNDEFINED, get_index, type_name


def populate_object_functions() -> List[BuiltinFunction]:

    def std_keys(args: List[Any]) -> Any:
        value = args[0]
        if isinstance(value, dict):
            return list(value.keys())
        if isinstance(value, list):
            return list(range(len(value)))
        return []

    def std_values(args: List[Any]) -> Any:
        value = args[0]
        if isinstance(value, dict):
            return list(value.values())
        if isinstance(value, list):
            return list(value)
        return []

    def std_has(args: List[Any]) -> Any:
        value, key = args[0], args[1]
        if isinstance(value, dict):
            return isinstance(key, str) and key in value
        if isinstance(value, list):
            return get_index(value, key) is not UNDEFINED
        return False

    def std_get(args: List[Any]) -> Any:
        # get($obj, "a.b.c", default) walks a dotted path
        value, key = args[0], args[1]
        default = args[2] if len(args) > 2 else UNDEFINED
        parts = key.split('.') if isinstance(key, str) else [key]
        for part in parts:
            value = get_index(value, part)
            if value is UNDEFINED:
                return default
        return value

    def std_merge(args: List[Any]) -> Any:
        result = {}
        for value in args:
            if not isinstance(value, dict):
                raise ScriptTypeError(f"merge() expects objects, got {type_name(value)}")
            result.update(value)
        return result

    def std_entries(args: List[Any]) -> Any:
        value = args[0]
        if isinstance(value, dict):
            return [[k, v] for k, v in value.items()]
        if isinstance(value, list):
            return [[i, v] for i, v in enumerate(value)]
        return []

    return [
        BuiltinFunction('keys', 1, std_keys, 'object'),
        BuiltinFunction('values', 1, std_values, 'object'),
        BuiltinFunction('has', 2, std_has, 'object'),
        BuiltinFunction('get', 2, std_get, 'object'),
        BuiltinFunction('merge', None, std_merge, 'object'),
        BuiltinFunction('entries', 1, std_entries, 'object'),
    ]
