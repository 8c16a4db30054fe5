from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.errors import ScriptTypeError
from retroscript.types import UNDEFINED, normalize_number, strict_equals, to_number, to_string


def text_of(value: Any) -> str:
    if value is None or value is UNDEFINED:
        return ''
    return to_string(value)


def position(value: Any, name: str) -> int:
    number = normalize_number(to_number(value, name))
    return int(number)


def populate_string_functions() -> List[BuiltinFunction]:

    def std_upper(args: List[Any]) -> Any:
        return text_of(args[0]).upper()

    def std_lower(args: List[Any]) -> Any:
        return text_of(args[0]).lower()

    def std_trim(args: List[Any]) -> Any:
        return text_of(args[0]).strip()

    def std_length(args: List[Any]) -> Any:
        value = args[0]
        if isinstance(value, (str, list, dict)):
            return len(value)
        return 0

    def std_split(args: List[Any]) -> Any:
        text = text_of(args[0])
        separator = text_of(args[1]) if len(args) > 1 else ''
        if separator == '':
            return list(text)
        return text.split(separator)

    def std_join(args: List[Any]) -> Any:
        items = args[0]
        if not isinstance(items, list):
            raise ScriptTypeError("join() expects an array")
        separator = text_of(args[1]) if len(args) > 1 else ','
        return separator.join(text_of(item) for item in items)

    def std_replace(args: List[Any]) -> Any:
        # every occurrence is replaced
        return text_of(args[0]).replace(text_of(args[1]), text_of(args[2]))

    def std_substring(args: List[Any]) -> Any:
        text = text_of(args[0])
        start = min(max(position(args[1], 'substring'), 0), len(text))
        end = len(text)
        if len(args) > 2 and args[2] is not UNDEFINED:
            end = min(max(position(args[2], 'substring'), 0), len(text))
        if start > end:
            start, end = end, start
        return text[start:end]

    def std_contains(args: List[Any]) -> Any:
        if isinstance(args[0], list):
            return any(strict_equals(item, args[1]) for item in args[0])
        return text_of(args[1]) in text_of(args[0])

    def std_starts_with(args: List[Any]) -> Any:
        return text_of(args[0]).startswith(text_of(args[1]))

    def std_ends_with(args: List[Any]) -> Any:
        return text_of(args[0]).endswith(text_of(args[1]))

    def std_index_of(args: List[Any]) -> Any:
        if isinstance(args[0], list):
            for i, item in enumerate(args[0]):
                if strict_equals(item, args[1]):
                    return i
            return -1
        return text_of(args[0]).find(text_of(args[1]))

    def std_repeat(args: List[Any]) -> Any:
        count = position(args[1], 'repeat')
        if count < 0:
            raise ScriptTypeError("repeat() count must not be negative")
        return text_of(args[0]) * count

    def pad(args: List[Any], name: str, left: bool) -> str:
        text = text_of(args[0])
        width = position(args[1], name)
        fill = text_of(args[2]) if len(args) > 2 else ' '
        missing = width - len(text)
        if missing <= 0 or fill == '':
            return text
        padding = (fill * (missing // len(fill) + 1))[:missing]
        return padding + text if left else text + padding

    def std_pad_start(args: List[Any]) -> Any:
        return pad(args, 'padStart', True)

    def std_pad_end(args: List[Any]) -> Any:
        return pad(args, 'padEnd', False)

    return [
        BuiltinFunction('upper', 1, std_upper, 'string'),
        BuiltinFunction('lower', 1, std_lower, 'string'),
        BuiltinFunction('trim', 1, std_trim, 'string'),
        BuiltinFunction('length', 1, std_length, 'string'),
        BuiltinFunction('split', 1, std_split, 'string'),
        BuiltinFunction('join', 1, std_join, 'string'),
        BuiltinFunction('replace', 3, std_replace, 'string'),
        BuiltinFunction('substring', 2, std_substring, 'string'),
        BuiltinFunction('contains', 2, std_contains, 'string'),
        BuiltinFunction('startsWith', 2, std_starts_with, 'string'),
        BuiltinFunction('endsWith', 2, std_ends_with, 'string'),
        BuiltinFunction('indexOf', 2, std_index_of, 'string'),
        BuiltinFunction('repeat', 2, std_repeat, 'string'),
        BuiltinFunction('padStart', 2, std_pad_start, 'string'),
        BuiltinFunction('padEnd', 2, std_pad_end, 'string'),
    ]
