from typing import Any, List

from retroscript.builtin_function import BuiltinFunction
from retroscript.types import to_string
from .basic_io import DirectoryFileSystem


def populate_file_functions(interpreter) -> List[BuiltinFunction]:
    """File queries against the run's host filesystem."""

    async def std_file_exists(args: List[Any]) -> Any:
        filesystem = interpreter.require_filesystem()
        return bool(await interpreter.host_call('fileExists', filesystem.exists, to_string(args[0])))

    async def std_read_file(args: List[Any]) -> Any:
        filesystem = interpreter.require_filesystem()
        return await interpreter.host_call('readFile', filesystem.read, to_string(args[0]))

    async def std_list_files(args: List[Any]) -> Any:
        filesystem = interpreter.require_filesystem()
        path = to_string(args[0]) if args else '/'
        return list(await interpreter.host_call('listFiles', filesystem.list, path))

    return [
        BuiltinFunction('fileExists', 1, std_file_exists, 'system'),
        BuiltinFunction('readFile', 1, std_read_file, 'system'),
        BuiltinFunction('listFiles', None, std_list_files, 'system'),
    ]


__all__ = ['DirectoryFileSystem', 'populate_file_functions']
