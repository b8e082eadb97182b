"""Number-theory puzzle functions."""

import math

from captchalm.functions.base import PuzzleFunction
from captchalm.schemas.challenge import Difficulty


def fibonacci(n):
    """Return the nth Fibonacci number."""
    if n < 0:
        raise ValueError("Fibonacci not defined for negative numbers")
    a, b = 0, 1
    for _ in range(n):
        a, b = b, a + b
    return a


def is_prime(n):
    """Return True if n is prime."""
    if n < 2:
        return False
    if n == 2:
        return True
    if n % 2 == 0:
        return False
    i = 3
    while i * i <= n:
        if n % i == 0:
            return False
        i += 2
    return True


def gcd(a, b):
    """Greatest common divisor of a and b."""
    a, b = abs(a), abs(b)
    while b:
        a, b = b, a % b
    return a


def lcm(a, b):
    """Least common multiple of a and b."""
    if a == 0 or b == 0:
        return 0
    return abs(a * b) // gcd(a, b)


def factorial(n):
    """Return n! for non-negative n."""
    if n < 0:
        raise ValueError("Factorial not defined for negative numbers")
    result = 1
    for i in range(2, n + 1):
        result *= i
    return result


def mod_pow(base, exp, mod):
    """Return (base ** exp) % mod using square-and-multiply."""
    if mod == 1:
        return 0
    result = 1
    base = base % mod
    while exp > 0:
        if exp % 2 == 1:
            result = (result * base) % mod
        exp //= 2
        base = (base * base) % mod
    return result


def digit_sum(n):
    """Sum of the decimal digits of n."""
    return sum(int(d) for d in str(abs(n)))


def digit_count(n):
    """Number of decimal digits in n."""
    return len(str(abs(n)))


def is_perfect_square(n):
    """Return True if n is a perfect square."""
    if n < 0:
        return False
    root = math.isqrt(n)
    return root * root == n


def triangular(n):
    """Return the nth triangular number."""
    return n * (n + 1) // 2


def sum_of_primes(n):
    """Sum of the first n primes."""
    total = 0
    count = 0
    candidate = 2
    while count < n:
        if is_prime(candidate):
            total += candidate
            count += 1
        candidate += 1
    return total


ARITHMETIC_FUNCTIONS = [
    PuzzleFunction(
        "fibonacci", fibonacci, ("number",),
        "Calculate the nth Fibonacci number", Difficulty.EASY, "arithmetic",
    ),
    PuzzleFunction(
        "is_prime", is_prime, ("number",),
        "Check if a number is prime", Difficulty.EASY, "arithmetic",
    ),
    PuzzleFunction(
        "gcd", gcd, ("number", "number"),
        "Calculate greatest common divisor of two numbers", Difficulty.EASY, "arithmetic",
    ),
    PuzzleFunction(
        "lcm", lcm, ("number", "number"),
        "Calculate least common multiple of two numbers", Difficulty.MEDIUM, "arithmetic",
    ),
    PuzzleFunction(
        "factorial", factorial, ("number",),
        "Calculate factorial of a number", Difficulty.EASY, "arithmetic",
    ),
    PuzzleFunction(
        "mod_pow", mod_pow, ("number", "number", "number"),
        "Calculate modular exponentiation (base^exp mod mod)", Difficulty.HARD, "arithmetic",
    ),
    PuzzleFunction(
        "digit_sum", digit_sum, ("number",),
        "Calculate sum of digits in a number", Difficulty.EASY, "arithmetic",
    ),
    PuzzleFunction(
        "digit_count", digit_count, ("number",),
        "Count the number of digits", Difficulty.EASY, "arithmetic",
    ),
    PuzzleFunction(
        "is_perfect_square", is_perfect_square, ("number",),
        "Check if a number is a perfect square", Difficulty.EASY, "arithmetic",
    ),
    PuzzleFunction(
        "triangular", triangular, ("number",),
        "Calculate the nth triangular number", Difficulty.EASY, "arithmetic",
    ),
    PuzzleFunction(
        "sum_of_primes", sum_of_primes, ("number",),
        "Calculate sum of first n prime numbers", Difficulty.HARD, "arithmetic",
    ),
]
