import sys
from typing import Optional, TextIO


class DebugLog:
    """Verbosity-gated trace writer.

    Level 1 traces run lifecycle, missing host capabilities and handler
    failures; level 2 adds every executed statement; level 3 adds
    conditions and function calls.
    """
    def __init__(self, level: int = 0, file: Optional[str] = None):
        self.level = level
        self.fp: Optional[TextIO] = open(file, 'w', encoding='utf-8') if level > 0 and file else None

    def enabled(self, level: int = 1) -> bool:
        return 0 < level <= self.level

    def __call__(self, msg: str, level: int = 1):
        if not self.enabled(level):
            return
        if self.fp:
            self.fp.write(msg + '\n')
            self.fp.flush()
        else:
            print(msg, file=sys.stderr)

    def close(self):
        if self.fp:
            self.fp.close()
            self.fp = None
