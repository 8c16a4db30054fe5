import json
from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.types import normalize_number, to_number, to_plain


def populate_encoding_functions() -> List[BuiltinFunction]:

    def std_to_json(args: List[Any]) -> Any:
        value = to_plain(args[0])
        if len(args) > 1 and args[1]:
            return json.dumps(value, ensure_ascii=False, indent=int(to_number(args[1], 'toJSON')))
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'))

    def std_from_json(args: List[Any]) -> Any:
        return json.loads(args[0], parse_float=lambda text: normalize_number(float(text)))

    return [
        BuiltinFunction('toJSON', 1, std_to_json, 'json'),
        BuiltinFunction('fromJSON', 1, std_from_json, 'json'),
    ]
