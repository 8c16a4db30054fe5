import os
import shutil
from typing import List


class DirectoryFileSystem:
    """Serves virtual paths (`/notes/todo.txt`) out of a real directory."""
    def __init__(self, root: str):
        self.root = os.path.realpath(root)

    def resolve(self, path: str) -> str:
        relative = str(path).strip().lstrip('/\\')
        full = os.path.realpath(os.path.join(self.root, relative))
        if full != self.root and not full.startswith(self.root + os.sep):
            raise PermissionError(f"Path escapes the filesystem root: {path}")
        return full

    def read(self, path: str) -> str:
        full = self.resolve(path)
        if not os.path.isfile(full):
            raise FileNotFoundError(f"File not found: {path}")
        with open(full, 'r', encoding='utf-8') as f:
            return f.read()

    def write(self, path: str, content: str):
        full = self.resolve(path)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, 'w', encoding='utf-8') as f:
            f.write(content)

    def delete(self, path: str):
        full = self.resolve(path)
        if full == self.root:
            raise PermissionError("Cannot delete the filesystem root")
        if os.path.isdir(full):
            shutil.rmtree(full)
        elif os.path.exists(full):
            os.remove(full)
        else:
            raise FileNotFoundError(f"File not found: {path}")

    def mkdir(self, path: str):
        os.makedirs(self.resolve(path), exist_ok=True)

    def exists(self, path: str) -> bool:
        return os.path.exists(self.resolve(path))

    def list(self, path: str = '/') -> List[str]:
        full = self.resolve(path)
        if not os.path.isdir(full):
            raise FileNotFoundError(f"Directory not found: {path}")
        return sorted(os.listdir(full))
