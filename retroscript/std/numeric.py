import math
import random
from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.errors import ScriptTypeError
from retroscript.types import normalize_number, to_number


def numbers_of(args: List[Any], name: str) -> List[Any]:
    # min(1, 2, 3) and min([1, 2, 3]) are both accepted
    values = args[0] if len(args) == 1 and isinstance(args[0], list) else args
    return [to_number(v, name) for v in values]


def populate_numeric_functions() -> List[BuiltinFunction]:

    def std_abs(args: List[Any]) -> Any:
        return abs(to_number(args[0], 'abs'))

    def std_round(args: List[Any]) -> Any:
        x = to_number(args[0], 'round')
        if not math.isfinite(x):
            return x
        digits = int(to_number(args[1], 'round')) if len(args) > 1 else 0
        factor = 10 ** digits
        # halves round up, not to even
        return normalize_number(math.floor(x * factor + 0.5) / factor)

    def std_floor(args: List[Any]) -> Any:
        x = to_number(args[0], 'floor')
        return math.floor(x) if math.isfinite(x) else x

    def std_ceil(args: List[Any]) -> Any:
        x = to_number(args[0], 'ceil')
        return math.ceil(x) if math.isfinite(x) else x

    def std_min(args: List[Any]) -> Any:
        values = numbers_of(args, 'min')
        return min(values) if values else None

    def std_max(args: List[Any]) -> Any:
        values = numbers_of(args, 'max')
        return max(values) if values else None

    def std_pow(args: List[Any]) -> Any:
        base = to_number(args[0], 'pow')
        exponent = to_number(args[1], 'pow')
        try:
            return normalize_number(math.pow(base, exponent))
        except OverflowError:
            return math.inf
        except ValueError:
            return math.nan

    def std_sqrt(args: List[Any]) -> Any:
        x = to_number(args[0], 'sqrt')
        if x < 0:
            return math.nan
        return normalize_number(math.sqrt(x))

    def std_random(args: List[Any]) -> Any:
        return random.random()

    def std_random_int(args: List[Any]) -> Any:
        low = math.ceil(to_number(args[0], 'randomInt'))
        high = math.floor(to_number(args[1], 'randomInt'))
        if low > high:
            low, high = high, low
        return random.randint(low, high)

    def std_clamp(args: List[Any]) -> Any:
        x, low, high = (to_number(a, 'clamp') for a in args[:3])
        if low > high:
            raise ScriptTypeError("clamp() lower bound is greater than the upper bound")
        return min(max(x, low), high)

    def std_sum(args: List[Any]) -> Any:
        return normalize_number(sum(numbers_of(args, 'sum')))

    return [
        BuiltinFunction('abs', 1, std_abs, 'numeric'),
        BuiltinFunction('round', 1, std_round, 'numeric'),
        BuiltinFunction('floor', 1, std_floor, 'numeric'),
        BuiltinFunction('ceil', 1, std_ceil, 'numeric'),
        BuiltinFunction('min', None, std_min, 'numeric'),
        BuiltinFunction('max', None, std_max, 'numeric'),
        BuiltinFunction('pow', 2, std_pow, 'numeric'),
        BuiltinFunction('sqrt', 1, std_sqrt, 'numeric'),
        BuiltinFunction('random', None, std_random, 'numeric'),
        BuiltinFunction('randomInt', 2, std_random_int, 'numeric'),
        BuiltinFunction('clamp', 3, std_clamp, 'numeric'),
        BuiltinFunction('sum', None, std_sum, 'numeric'),
    ]
