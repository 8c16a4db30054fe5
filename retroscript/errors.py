from typing import Optional


class ScriptError(Exception):
    """Base class for every error raised while parsing or running a script."""
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None, hint: str = ''):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.hint = hint

    def locate(self, line: int, column: int) -> 'ScriptError':
        # keep the innermost position
        if self.line is None:
            self.line = line
            self.column = column
        return self

    def __str__(self) -> str:
        text = self.message
        if self.line is not None:
            text = f"Line {self.line}, Column {self.column}: {text}"
        if self.hint:
            text += f"\nHint: {self.hint}"
        return text


class ScriptParseError(ScriptError):
    pass


class ScriptRuntimeError(ScriptError):
    """Errors a script can catch with try/catch."""
    pass


class ScriptTypeError(ScriptRuntimeError):
    pass


class ScriptReferenceError(ScriptRuntimeError):
    pass


class ScriptHostError(ScriptRuntimeError):
    """A host capability (filesystem, commands, windows) reported a failure."""
    pass


class ScriptFatalError(ScriptError):
    """Errors that terminate the run regardless of any surrounding try/catch."""
    pass


class ScriptIterationError(ScriptFatalError):
    pass


class ScriptRecursionError(ScriptFatalError):
    pass


class ScriptTimeoutError(ScriptFatalError):
    pass


class ScriptHandlerLimitError(ScriptFatalError):
    pass


class ScriptStoppedError(ScriptFatalError):
    pass
