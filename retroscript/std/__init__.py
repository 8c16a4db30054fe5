from typing import List

from retroscript.builtin_function import BuiltinFunction
from .arrays import populate_array_functions
from .conversion import populate_conversion_functions
from .dates import populate_date_functions
from .diagnostics import bind_diagnostic_functions, populate_diagnostic_functions
from .dialogs import populate_dialog_functions
from .encoding import populate_encoding_functions
from .io import populate_file_functions
from .numeric import populate_numeric_functions
from .objects import populate_object_functions
from .strings import populate_string_functions
from .system import populate_system_functions


def standard_functions() -> List[BuiltinFunction]:
    """Host-independent builtins shared by every run."""
    return (
        populate_numeric_functions()
        + populate_string_functions()
        + populate_array_functions()
        + populate_object_functions()
        + populate_conversion_functions()
        + populate_date_functions()
        + populate_encoding_functions()
        + populate_diagnostic_functions()
    )


def host_functions(interpreter) -> List[BuiltinFunction]:
    """Builtins bound to one run's host context."""
    return (
        populate_file_functions(interpreter)
        + populate_system_functions(interpreter)
        + populate_dialog_functions(interpreter)
        + bind_diagnostic_functions(interpreter)
    )
