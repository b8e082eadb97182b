"""Multi-step puzzle functions, including the chained-operation evaluator."""

import math
from collections.abc import Mapping

from captchalm.functions.base import PuzzleFunction
from captchalm.schemas.challenge import Difficulty


def truncated_mod(a, b):
    """Remainder whose sign follows the dividend."""
    if b == 0:
        raise ZeroDivisionError("Modulo by zero")
    if isinstance(a, float) or isinstance(b, float):
        return math.fmod(a, b)
    remainder = abs(a) % abs(b)
    return -remainder if a < 0 else remainder


def _operation_fields(op):
    if isinstance(op, Mapping):
        name = op["operation"]
        value = op.get("value")
    else:
        name = op.operation
        value = op.value
    return getattr(name, "value", name), value


def apply_chained_operations(initial_value, operations):
    """Apply each {operation, value} step to the running value, left to right."""
    result = initial_value
    for op in operations:
        name, value = _operation_fields(op)
        if name == "add":
            result += value if value is not None else 0
        elif name == "subtract":
            result -= value if value is not None else 0
        elif name == "multiply":
            result *= value if value is not None else 1
        elif name == "divide":
            if value == 0:
                raise ZeroDivisionError("Division by zero")
            result /= value if value is not None else 1
        elif name == "modulo":
            result = truncated_mod(result, value if value is not None else 1)
        elif name == "power":
            result **= value if value is not None else 1
        elif name == "floor":
            result = math.floor(result)
        elif name == "ceil":
            result = math.ceil(result)
        elif name == "abs":
            result = abs(result)
        elif name == "negate":
            result = -result
        else:
            raise ValueError(f"Unknown operation: {name}")
    return result


def compute_and_hash(a, b, c):
    """Run a fixed arithmetic pipeline and return the result as 4+ hex digits."""
    step1 = a * b
    step2 = step1 + c
    step3 = truncated_mod(step2, 1000)
    step4 = step3 * truncated_mod(a, 10)
    return format(abs(step4), "04x")


def evaluate_polynomial(a, b, c, x):
    """Evaluate a*x^2 + b*x + c."""
    return a * x * x + b * x + c


def weighted_sum(values, weights):
    """Sum of values[i] * weights[i]."""
    if len(values) != len(weights):
        raise ValueError("Values and weights must have same length")
    return sum(v * w for v, w in zip(values, weights))


def checksum(values):
    """Rolling 32-bit hash (h * 31 + v), returned as an absolute value."""
    result = 0
    for v in values:
        result = ((result << 5) - result + v) & 0xFFFFFFFF
        if result >= 0x80000000:
            result -= 0x100000000
    return abs(result)


def evaluate_expression(expr):
    """Evaluate a nested [op, left, right] expression tree."""
    if isinstance(expr, bool):
        raise ValueError("Invalid expression format")
    if isinstance(expr, (int, float)):
        return expr
    if not isinstance(expr, (list, tuple)) or len(expr) != 3:
        raise ValueError("Invalid expression format")

    op, left, right = expr
    lhs = evaluate_expression(left)
    rhs = evaluate_expression(right)
    if op == "+":
        return lhs + rhs
    if op == "-":
        return lhs - rhs
    if op == "*":
        return lhs * rhs
    if op == "/":
        if rhs == 0:
            raise ZeroDivisionError("Division by zero")
        return lhs / rhs
    if op == "%":
        return truncated_mod(lhs, rhs)
    if op == "^":
        return lhs**rhs
    raise ValueError(f"Unknown operator: {op}")


COMPOSITE_FUNCTIONS = [
    PuzzleFunction(
        "apply_chained_operations", apply_chained_operations, ("number", "operation[]"),
        "Apply a chain of arithmetic operations to a value", Difficulty.MEDIUM, "composite",
    ),
    PuzzleFunction(
        "compute_and_hash", compute_and_hash, ("number", "number", "number"),
        "Compute operations and return hex hash", Difficulty.HARD, "composite",
    ),
    PuzzleFunction(
        "evaluate_polynomial", evaluate_polynomial, ("number", "number", "number", "number"),
        "Evaluate polynomial a*x^2 + b*x + c", Difficulty.MEDIUM, "composite",
    ),
    PuzzleFunction(
        "weighted_sum", weighted_sum, ("number[]", "number[]"),
        "Compute weighted sum of two lists", Difficulty.MEDIUM, "composite",
    ),
    PuzzleFunction(
        "checksum", checksum, ("number[]",),
        "Compute a simple checksum from values", Difficulty.MEDIUM, "composite",
    ),
    PuzzleFunction(
        "evaluate_expression", evaluate_expression, ("expression",),
        "Evaluate a nested arithmetic expression", Difficulty.HARD, "composite",
    ),
]
