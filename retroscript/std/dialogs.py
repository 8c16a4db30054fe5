import asyncio
import re
from typing import Any, Dict, List
from urllib.parse import urlparse

from retroscript.builtin_function import BuiltinFunction
from retroscript.types import UNDEFINED, to_string

# Unanswered dialogs resolve with their fallback after this many seconds
DIALOG_TIMEOUT = 30.0

EMAIL = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def request_dialog(events, event: str, payload: Dict[str, Any], fallback: Any, timeout: float = DIALOG_TIMEOUT):
    """Ask the host a question through the event bus.

    Listeners receive the payload plus a `callback` to call with the answer.
    Returns a future resolving to that answer (or to `fallback` when nobody
    answers in time), or `fallback` itself when nobody listens.
    """
    if not events.has_listeners(event):
        return fallback
    loop = asyncio.get_running_loop()
    answer = loop.create_future()

    def callback(value: Any = fallback):
        if not answer.done():
            answer.set_result(value)

    timer = loop.call_later(timeout, callback, fallback)
    answer.add_done_callback(lambda _: timer.cancel())
    events.emit(event, {**payload, 'callback': callback})
    return answer


def is_valid(value: str, kind: str) -> bool:
    if kind == 'number':
        try:
            float(value)
        except ValueError:
            return False
        return value.strip() != ''
    if kind == 'email':
        return EMAIL.match(value) is not None
    if kind == 'url':
        parsed = urlparse(value)
        return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)
    if kind == 'nonempty':
        return value.strip() != ''
    return True


def populate_dialog_functions(interpreter) -> List[BuiltinFunction]:
    events = interpreter.context.events

    async def std_alert(args: List[Any]) -> Any:
        await interpreter.notify_host('dialog:alert', {'message': to_string(args[0])})
        return None

    def std_confirm(args: List[Any]) -> Any:
        return request_dialog(events, 'dialog:confirm', {'message': to_string(args[0])}, True)

    def std_prompt(args: List[Any]) -> Any:
        default = args[1] if len(args) > 1 else ''
        payload = {'message': to_string(args[0]), 'defaultValue': to_string(default)}
        return request_dialog(events, 'dialog:prompt', payload, default)

    def std_validate_input(args: List[Any]) -> Any:
        value = '' if args[0] is None or args[0] is UNDEFINED else to_string(args[0])
        kind = to_string(args[1]) if len(args) > 1 else 'text'
        return is_valid(value, kind)

    return [
        BuiltinFunction('alert', 1, std_alert, 'dialog'),
        BuiltinFunction('confirm', 1, std_confirm, 'dialog'),
        BuiltinFunction('prompt', 1, std_prompt, 'dialog'),
        BuiltinFunction('validateInput', 1, std_validate_input, 'dialog'),
    ]
