from typing import Any, Dict, Optional

from retroscript.types import UNDEFINED


class Environment:
    """A scope mapping variable names to values, chained to its parent scope.

    Assignment is shell-like: writing a name that an enclosing scope already
    binds updates that binding in place; writing a name bound nowhere creates
    it in this scope. Child scopes never leak new bindings upward.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}

    def extend(self) -> 'Environment':
        return Environment(parent=self)

    def resolve(self, name: str) -> Optional['Environment']:
        env = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        return None

    def has(self, name: str) -> bool:
        return self.resolve(name) is not None

    def get(self, name: str) -> Any:
        env = self.resolve(name)
        if env is None:
            return UNDEFINED
        return env.values[name]

    def set(self, name: str, value: Any):
        # Update the nearest binding, otherwise create one here
        env = self.resolve(name)
        if env is None:
            env = self
        env.values[name] = value

    def define(self, name: str, value: Any):
        self.values[name] = value

    def snapshot(self) -> Dict[str, Any]:
        """All visible bindings, the nearest scope winning."""
        chain = []
        env = self
        while env is not None:
            chain.append(env)
            env = env.parent
        result: Dict[str, Any] = {}
        for env in reversed(chain):
            result.update(env.values)
        return result

    def clear(self):
        self.values.clear()
