from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class BuiltinFunction:
    name: str
    arity: Optional[int]  # minimum number of arguments, None when any count is accepted
    fn: Callable[[List[Any]], Any]
    group: str = 'host'

    @classmethod
    def wrap(cls, name: str, fn: Callable[..., Any], group: str = 'host') -> 'BuiltinFunction':
        """Adapt a plain positional host callable."""
        return cls(name, None, lambda args: fn(*args), group)

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


class BuiltinTable:
    """Name -> BuiltinFunction table shared between runs.

    The table is append-only and copy-on-write: `define` swaps in a new
    mapping, so a run iterating or reading the current mapping never sees
    it change underneath.
    """
    def __init__(self, functions: Iterable[BuiltinFunction] = ()):
        self._functions: Dict[str, BuiltinFunction] = {f.name: f for f in functions}

    def define(self, function: BuiltinFunction):
        functions = dict(self._functions)
        functions[function.name] = function
        self._functions = functions

    def get(self, name: str) -> Optional[BuiltinFunction]:
        return self._functions.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def names(self) -> List[str]:
        return sorted(self._functions)

    def group(self, group: str) -> List[BuiltinFunction]:
        return [f for f in self._functions.values() if f.group == group]
