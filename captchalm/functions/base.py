import inspect
import textwrap
from collections.abc import Callable
from dataclasses import dataclass
from functools import cached_property
from typing import Any

from captchalm.schemas.challenge import Difficulty


@dataclass(frozen=True)
class PuzzleFunction:
    """A pure, deterministic function that can be turned into a challenge."""

    name: str
    fn: Callable[..., Any]
    parameter_types: tuple[str, ...]
    description: str
    difficulty: Difficulty
    category: str

    @property
    def arity(self) -> int:
        return len(self.parameter_types)

    def invoke(self, *args: Any) -> Any:
        return self.fn(*args)

    @cached_property
    def source(self) -> str:
        """Python source shown to solvers in function_execution payloads."""
        return textwrap.dedent(inspect.getsource(self.fn)).strip()
