from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.errors import ScriptHostError, ScriptRuntimeError
from retroscript.types import to_string


def populate_system_functions(interpreter) -> List[BuiltinFunction]:
    context = interpreter.context

    def require_commands():
        if context.commands is None:
            raise ScriptHostError("Command capability not available", hint="The host did not provide a command bus")
        return context.commands

    async def std_query(args: List[Any]) -> Any:
        commands = require_commands()
        name = to_string(args[0])
        payload = args[1] if len(args) > 1 else {}
        return await interpreter.host_call(f"query '{name}'", commands.request, name, payload)

    async def std_exec_command(args: List[Any]) -> Any:
        # always answers with a result object, never raises for host failures
        name = to_string(args[0])
        payload = args[1] if len(args) > 1 else {}
        try:
            commands = require_commands()
            result = await interpreter.host_call(f"command '{name}'", commands.request, name, payload)
        except ScriptRuntimeError as error:
            return {'success': False, 'error': error.message}
        return {'success': True, 'result': result}

    async def std_get_windows(args: List[Any]) -> Any:
        if context.windows is None:
            return []
        return await interpreter.host_call('getWindows', context.windows.list)

    return [
        BuiltinFunction('query', 1, std_query, 'system'),
        BuiltinFunction('execCommand', 1, std_exec_command, 'system'),
        BuiltinFunction('getWindows', None, std_get_windows, 'system'),
    ]
