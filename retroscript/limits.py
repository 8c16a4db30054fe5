import dataclasses
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SafetyLimits:
    """Resource ceilings enforced on every run."""
    max_loop_iterations: int = 100000  # per loop statement
    max_recursion_depth: int = 50
    max_event_handlers: int = 100  # per run
    timeout: Optional[float] = 30.0  # seconds, None disables the deadline

    def replace(self, **overrides) -> 'SafetyLimits':
        return dataclasses.replace(self, **overrides)
