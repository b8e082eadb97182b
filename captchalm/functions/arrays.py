"""Integer list puzzle functions."""

from collections import Counter

from captchalm.functions.base import PuzzleFunction
from captchalm.schemas.challenge import Difficulty


def sum_evens(values):
    """Sum of the even numbers in the list."""
    return sum(n for n in values if n % 2 == 0)


def sum_odds(values):
    """Sum of the odd numbers in the list."""
    return sum(n for n in values if n % 2 != 0)


def product(values):
    """Product of all elements."""
    result = 1
    for n in values:
        result *= n
    return result


def rotate_array(values, k):
    """Rotate the list k positions to the right."""
    if not values:
        return []
    k %= len(values)
    if k == 0:
        return list(values)
    return values[-k:] + values[:-k]


def find_median(values):
    """Median; the mean of the two middle values for even lengths."""
    if not values:
        raise ValueError("Cannot find median of empty list")
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def find_mode(values):
    """Most frequent element; the first one seen wins a tie."""
    if not values:
        raise ValueError("Cannot find mode of empty list")
    counts = Counter(values)
    best = values[0]
    for n in counts:
        if counts[n] > counts[best]:
            best = n
    return best


def value_range(values):
    """Difference between the largest and smallest element."""
    if not values:
        return 0
    return max(values) - min(values)


def count_greater_than(values, threshold):
    """Count elements strictly greater than threshold."""
    return sum(1 for n in values if n > threshold)


def count_less_than(values, threshold):
    """Count elements strictly less than threshold."""
    return sum(1 for n in values if n < threshold)


def second_largest(values):
    """Second largest distinct element."""
    distinct = sorted(set(values), reverse=True)
    if len(distinct) < 2:
        raise ValueError("List must have at least 2 distinct elements")
    return distinct[1]


def running_sum(values):
    """Prefix sums of the list."""
    result = []
    total = 0
    for n in values:
        total += n
        result.append(total)
    return result


def element_at_wrapped(values, index):
    """Element at `index`, wrapping around the list length."""
    if not values:
        raise ValueError("List is empty")
    return values[index % len(values)]


def dot_product(a, b):
    """Dot product of two equal-length lists."""
    if len(a) != len(b):
        raise ValueError("Lists must have equal length")
    return sum(x * y for x, y in zip(a, b))


def max_index(values):
    """Index of the first maximum element."""
    if not values:
        raise ValueError("List is empty")
    best = 0
    for i in range(1, len(values)):
        if values[i] > values[best]:
            best = i
    return best


ARRAY_FUNCTIONS = [
    PuzzleFunction(
        "sum_evens", sum_evens, ("number[]",),
        "Sum all even numbers in a list", Difficulty.EASY, "arrays",
    ),
    PuzzleFunction(
        "sum_odds", sum_odds, ("number[]",),
        "Sum all odd numbers in a list", Difficulty.EASY, "arrays",
    ),
    PuzzleFunction(
        "product", product, ("number[]",),
        "Calculate the product of all elements", Difficulty.EASY, "arrays",
    ),
    PuzzleFunction(
        "rotate_array", rotate_array, ("number[]", "number"),
        "Rotate a list by k positions to the right", Difficulty.MEDIUM, "arrays",
    ),
    PuzzleFunction(
        "find_median", find_median, ("number[]",),
        "Find the median value of a list", Difficulty.MEDIUM, "arrays",
    ),
    PuzzleFunction(
        "find_mode", find_mode, ("number[]",),
        "Find the mode (most frequent element)", Difficulty.MEDIUM, "arrays",
    ),
    PuzzleFunction(
        "value_range", value_range, ("number[]",),
        "Calculate the range (max - min) of a list", Difficulty.EASY, "arrays",
    ),
    PuzzleFunction(
        "count_greater_than", count_greater_than, ("number[]", "number"),
        "Count elements greater than a threshold", Difficulty.EASY, "arrays",
    ),
    PuzzleFunction(
        "count_less_than", count_less_than, ("number[]", "number"),
        "Count elements less than a threshold", Difficulty.EASY, "arrays",
    ),
    PuzzleFunction(
        "second_largest", second_largest, ("number[]",),
        "Find the second largest distinct element", Difficulty.MEDIUM, "arrays",
    ),
    PuzzleFunction(
        "running_sum", running_sum, ("number[]",),
        "Calculate the running sum list", Difficulty.EASY, "arrays",
    ),
    PuzzleFunction(
        "element_at_wrapped", element_at_wrapped, ("number[]", "number"),
        "Get element at index with wrapping", Difficulty.EASY, "arrays",
    ),
    PuzzleFunction(
        "dot_product", dot_product, ("number[]", "number[]"),
        "Calculate dot product of two lists", Difficulty.MEDIUM, "arrays",
    ),
    PuzzleFunction(
        "max_index", max_index, ("number[]",),
        "Find index of maximum element", Difficulty.EASY, "arrays",
    ),
]
