"""Host capabilities a script runs against.

A ``HostContext`` bundles the four capabilities the interpreter reaches the
outside world through: a filesystem, an event bus, a command bus and a
window manager. Any object with the matching methods can be plugged in and
any method may return an awaitable; the interpreter suspends on it.

The classes below are small in-memory reference implementations used by the
command line, the tests and embedders that do not bring their own.
"""

from __future__ import annotations

import asyncio
import inspect
import posixpath
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


class EventBus:
    """Named events with listeners called in subscription order."""
    def __init__(self):
        self._listeners: Dict[str, List[Callable[[Any], Any]]] = {}

    def subscribe(self, name: str, callback: Callable[[Any], Any]):
        self._listeners.setdefault(name, []).append(callback)

    def unsubscribe(self, name: str, callback: Callable[[Any], Any]):
        listeners = self._listeners.get(name)
        if not listeners:
            return
        for i, listener in enumerate(listeners):
            if listener is callback:
                del listeners[i]
                break
        if not listeners:
            del self._listeners[name]

    def has_listeners(self, name: str) -> bool:
        return bool(self._listeners.get(name))

    def listener_count(self, name: Optional[str] = None) -> int:
        if name is not None:
            return len(self._listeners.get(name, ()))
        return sum(len(listeners) for listeners in self._listeners.values())

    def emit(self, name: str, payload: Any = None):
        """Call every listener of `name`.

        Returns a future that completes when every awaitable a listener
        returned has completed, or None when all listeners were synchronous.
        """
        pending = []
        for callback in list(self._listeners.get(name, ())):
            result = callback(payload)
            if inspect.isawaitable(result):
                pending.append(asyncio.ensure_future(result))
        if pending:
            return asyncio.gather(*pending)
        return None


class MemoryFileSystem:
    """A virtual filesystem kept in a dict; paths are absolute POSIX-style."""
    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = {}
        self.directories = {'/'}
        for path, content in (files or {}).items():
            self.write(path, content)

    @staticmethod
    def normalize(path: str) -> str:
        return posixpath.normpath('/' + str(path).strip().lstrip('/'))

    def _make_parents(self, path: str):
        parent = posixpath.dirname(path)
        while parent not in self.directories:
            if parent in self.files:
                raise NotADirectoryError(f"Not a directory: {parent}")
            self.directories.add(parent)
            parent = posixpath.dirname(parent)

    def read(self, path: str) -> str:
        path = self.normalize(path)
        if path in self.directories:
            raise IsADirectoryError(f"Is a directory: {path}")
        if path not in self.files:
            raise FileNotFoundError(f"File not found: {path}")
        return self.files[path]

    def write(self, path: str, content: str):
        path = self.normalize(path)
        if path in self.directories:
            raise IsADirectoryError(f"Is a directory: {path}")
        self._make_parents(path)
        self.files[path] = str(content)

    def delete(self, path: str):
        path = self.normalize(path)
        if path in self.files:
            del self.files[path]
            return
        if path == '/' or path not in self.directories:
            raise FileNotFoundError(f"File not found: {path}")
        prefix = path + '/'
        self.files = {p: c for p, c in self.files.items() if not p.startswith(prefix)}
        self.directories = {d for d in self.directories if d != path and not d.startswith(prefix)}

    def mkdir(self, path: str):
        path = self.normalize(path)
        if path in self.files:
            raise FileExistsError(f"File exists: {path}")
        self._make_parents(path)
        self.directories.add(path)

    def exists(self, path: str) -> bool:
        path = self.normalize(path)
        return path in self.files or path in self.directories

    def list(self, path: str = '/') -> List[str]:
        path = self.normalize(path)
        if path in self.files:
            raise NotADirectoryError(f"Not a directory: {path}")
        if path not in self.directories:
            raise FileNotFoundError(f"Directory not found: {path}")
        names = set()
        for entry in list(self.files) + list(self.directories):
            if entry != path and posixpath.dirname(entry) == path:
                names.add(posixpath.basename(entry))
        return sorted(names)


class CommandBus:
    """Named host commands; `execute` and `request` both call the handler."""
    def __init__(self):
        self._handlers: Dict[str, Callable[[Any], Any]] = {}

    def register(self, name: str, handler: Callable[[Any], Any]):
        self._handlers[name] = handler

    def unregister(self, name: str):
        self._handlers.pop(name, None)

    def has(self, name: str) -> bool:
        return name in self._handlers

    def _handler(self, name: str) -> Callable[[Any], Any]:
        handler = self._handlers.get(name)
        if handler is None:
            raise LookupError(f"Unknown command: {name}")
        return handler

    def execute(self, name: str, payload: Any = None):
        return self._handler(name)(payload)

    def request(self, name: str, payload: Any = None):
        return self._handler(name)(payload)


class WindowManager:
    """Tracks launched app windows in memory."""
    def __init__(self):
        self.windows: List[Dict[str, Any]] = []
        self.active: Optional[str] = None
        self._next_id = 0

    def _find(self, target: Any) -> Dict[str, Any]:
        # match a window id first, then the newest window of an app
        for window in self.windows:
            if window['id'] == target:
                return window
        for window in reversed(self.windows):
            if window['appId'] == target:
                return window
        raise LookupError(f"No window '{target}'")

    def launch(self, app_id: str, params: Optional[Dict[str, Any]] = None) -> str:
        self._next_id += 1
        window_id = f"{app_id}-{self._next_id}"
        self.windows.append({'id': window_id, 'appId': app_id, 'params': dict(params or {}), 'state': 'normal'})
        self.active = window_id
        return window_id

    def close(self, target: Any = None):
        if target is None:
            if self.active is None:
                return
            target = self.active
        window = self._find(target)
        self.windows.remove(window)
        if self.active == window['id']:
            self.active = self.windows[-1]['id'] if self.windows else None

    def focus(self, target: Any):
        window = self._find(target)
        window['state'] = 'normal'
        self.active = window['id']

    def minimize(self, target: Any):
        self._find(target)['state'] = 'minimized'

    def maximize(self, target: Any):
        self._find(target)['state'] = 'maximized'

    def list(self) -> List[Dict[str, Any]]:
        return [dict(window) for window in self.windows]


@dataclass
class HostContext:
    filesystem: Optional[Any] = None
    events: Any = field(default_factory=EventBus)
    commands: Optional[Any] = None
    windows: Optional[Any] = None

    @classmethod
    def in_memory(cls, files: Optional[Dict[str, str]] = None) -> 'HostContext':
        return cls(MemoryFileSystem(files), EventBus(), CommandBus(), WindowManager())
