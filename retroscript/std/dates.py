import re
import time
from datetime import datetime
from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.errors import ScriptTypeError
from retroscript.types import to_number

DEFAULT_FORMAT = 'YYYY-MM-DD HH:mm:ss'

FORMAT_TOKENS = re.compile(r'YYYY|MM|DD|HH|mm|ss')


def format_datetime(moment: datetime, pattern: str) -> str:
    fields = {
        'YYYY': f"{moment.year:04d}",
        'MM': f"{moment.month:02d}",
        'DD': f"{moment.day:02d}",
        'HH': f"{moment.hour:02d}",
        'mm': f"{moment.minute:02d}",
        'ss': f"{moment.second:02d}",
    }
    return FORMAT_TOKENS.sub(lambda match: fields[match.group(0)], pattern)


def to_datetime(value: Any) -> datetime:
    """Accept a millisecond timestamp or an ISO 8601 string."""
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    return datetime.fromtimestamp(to_number(value, 'formatDate') / 1000)


def populate_date_functions() -> List[BuiltinFunction]:

    def std_now(args: List[Any]) -> Any:
        return datetime.now().isoformat(timespec='seconds')

    def std_timestamp(args: List[Any]) -> Any:
        return int(time.time() * 1000)

    def std_date(args: List[Any]) -> Any:
        return format_datetime(datetime.now(), 'YYYY-MM-DD')

    def std_time(args: List[Any]) -> Any:
        return format_datetime(datetime.now(), 'HH:mm:ss')

    def std_format_date(args: List[Any]) -> Any:
        pattern = args[1] if len(args) > 1 else DEFAULT_FORMAT
        if not isinstance(pattern, str):
            raise ScriptTypeError("formatDate() pattern must be a string")
        return format_datetime(to_datetime(args[0]), pattern)

    return [
        BuiltinFunction('now', None, std_now, 'datetime'),
        BuiltinFunction('timestamp', None, std_timestamp, 'datetime'),
        BuiltinFunction('date', None, std_date, 'datetime'),
        BuiltinFunction('time', None, std_time, 'datetime'),
        BuiltinFunction('formatDate', 1, std_format_date, 'datetime'),
    ]
