import json
from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.errors import ScriptRuntimeError
from retroscript.types import is_truthy, to_plain, to_string, type_name


def populate_diagnostic_functions() -> List[BuiltinFunction]:

    def std_inspect(args: List[Any]) -> Any:
        value = args[0]
        kind = type_name(value)
        if kind in ('array', 'object'):
            return f"{kind} {json.dumps(to_plain(value), ensure_ascii=False, indent=2)}"
        if kind == 'string':
            return f"string {json.dumps(value, ensure_ascii=False)}"
        return f"{kind} {to_string(value)}"

    def std_assert(args: List[Any]) -> Any:
        if not is_truthy(args[0]):
            message = to_string(args[1]) if len(args) > 1 else 'Assertion failed'
            raise ScriptRuntimeError(message)
        return True

    return [
        BuiltinFunction('inspect', 1, std_inspect, 'diagnostics'),
        BuiltinFunction('assert', 1, std_assert, 'diagnostics'),
    ]


def bind_diagnostic_functions(interpreter) -> List[BuiltinFunction]:
    """Diagnostics that write to the run's debug log."""

    def std_debug(args: List[Any]) -> Any:
        message = ' '.join(to_string(a) for a in args)
        interpreter.log(f"[run {interpreter.run_id}] debug: {message}")
        return message

    return [BuiltinFunction('debug', None, std_debug, 'diagnostics')]
