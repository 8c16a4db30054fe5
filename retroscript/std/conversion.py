import math
from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.types import UNDEFINED, is_truthy, parse_number, to_string, type_name


def populate_conversion_functions() -> List[BuiltinFunction]:

    def std_typeof(args: List[Any]) -> Any:
        return type_name(args[0])

    def std_is_number(args: List[Any]) -> Any:
        return type_name(args[0]) == 'number'

    def std_is_string(args: List[Any]) -> Any:
        return isinstance(args[0], str)

    def std_is_array(args: List[Any]) -> Any:
        return isinstance(args[0], list)

    def std_is_object(args: List[Any]) -> Any:
        return isinstance(args[0], dict)

    def std_is_null(args: List[Any]) -> Any:
        return args[0] is None or args[0] is UNDEFINED

    def to_number_or_nan(value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return value
        if value is None:
            return 0
        if isinstance(value, str):
            number = parse_number(value)
            if number is not None:
                return number
        return math.nan

    def std_to_number(args: List[Any]) -> Any:
        return to_number_or_nan(args[0])

    def std_to_int(args: List[Any]) -> Any:
        number = to_number_or_nan(args[0])
        if not math.isfinite(number):
            return 0
        return math.trunc(number)

    def std_to_string(args: List[Any]) -> Any:
        return to_string(args[0])

    def std_to_boolean(args: List[Any]) -> Any:
        return is_truthy(args[0])

    return [
        BuiltinFunction('typeof', 1, std_typeof, 'type'),
        BuiltinFunction('isNumber', 1, std_is_number, 'type'),
        BuiltinFunction('isString', 1, std_is_string, 'type'),
        BuiltinFunction('isArray', 1, std_is_array, 'type'),
        BuiltinFunction('isObject', 1, std_is_object, 'type'),
        BuiltinFunction('isNull', 1, std_is_null, 'type'),
        BuiltinFunction('toNumber', 1, std_to_number, 'type'),
        BuiltinFunction('toInt', 1, std_to_int, 'type'),
        BuiltinFunction('toString', 1, std_to_string, 'type'),
        BuiltinFunction('toBoolean', 1, std_to_boolean, 'type'),
    ]
