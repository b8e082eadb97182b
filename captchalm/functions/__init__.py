"""Registry of puzzle functions available to function_execution challenges."""

from captchalm.errors import ConfigurationError
from captchalm.functions.arithmetic import ARITHMETIC_FUNCTIONS
from captchalm.functions.arrays import ARRAY_FUNCTIONS
from captchalm.functions.base import PuzzleFunction
from captchalm.functions.composite import COMPOSITE_FUNCTIONS, apply_chained_operations
from captchalm.functions.strings import STRING_FUNCTIONS
from captchalm.schemas.challenge import Difficulty
from captchalm.services.crypto_utils import random_element

FUNCTION_CATEGORIES: dict[str, list[PuzzleFunction]] = {
    "arithmetic": ARITHMETIC_FUNCTIONS,
    "strings": STRING_FUNCTIONS,
    "arrays": ARRAY_FUNCTIONS,
    "composite": COMPOSITE_FUNCTIONS,
}

ALL_FUNCTIONS: list[PuzzleFunction] = [
    *ARITHMETIC_FUNCTIONS,
    *STRING_FUNCTIONS,
    *ARRAY_FUNCTIONS,
    *COMPOSITE_FUNCTIONS,
]

_BY_NAME = {func.name: func for func in ALL_FUNCTIONS}


def get_functions_by_difficulty(
    difficulty: Difficulty | str, functions: list[PuzzleFunction] | None = None
) -> list[PuzzleFunction]:
    difficulty = Difficulty(difficulty)
    pool = ALL_FUNCTIONS if functions is None else functions
    return [func for func in pool if func.difficulty is difficulty]


def get_function_by_name(name: str) -> PuzzleFunction | None:
    return _BY_NAME.get(name)


def get_functions_by_category(category: str) -> list[PuzzleFunction]:
    return FUNCTION_CATEGORIES[category]


def get_random_function(
    difficulty: Difficulty | str | None = None,
    functions: list[PuzzleFunction] | None = None,
) -> PuzzleFunction:
    """
    Pick a random function, optionally restricted to one difficulty tier.

    An empty pool is a deployment mistake, so it raises ConfigurationError
    rather than a client-facing error.
    """
    pool = ALL_FUNCTIONS if functions is None else functions
    if difficulty is not None:
        pool = get_functions_by_difficulty(difficulty, pool)
    if not pool:
        raise ConfigurationError(f"No functions available for difficulty: {difficulty}")
    return random_element(pool)


__all__ = [
    "ALL_FUNCTIONS",
    "FUNCTION_CATEGORIES",
    "PuzzleFunction",
    "apply_chained_operations",
    "get_function_by_name",
    "get_functions_by_category",
    "get_functions_by_difficulty",
    "get_random_function",
]
