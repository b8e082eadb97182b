"""Tests for the puzzle function registry and its implementations."""

import pytest

from captchalm.errors import ConfigurationError
from captchalm.functions import (
    ALL_FUNCTIONS,
    FUNCTION_CATEGORIES,
    get_function_by_name,
    get_functions_by_category,
    get_functions_by_difficulty,
    get_random_function,
)
from captchalm.functions.arithmetic import (
    factorial,
    fibonacci,
    gcd,
    is_perfect_square,
    is_prime,
    lcm,
    mod_pow,
    sum_of_primes,
)
from captchalm.functions.arrays import (
    find_median,
    find_mode,
    max_index,
    rotate_array,
    running_sum,
    second_largest,
)
from captchalm.functions.composite import (
    apply_chained_operations,
    checksum,
    compute_and_hash,
    evaluate_expression,
    truncated_mod,
)
from captchalm.functions.strings import (
    alternating_case,
    caesar_cipher,
    count_substring,
    hamming_distance,
    longest_word,
)
from captchalm.schemas.challenge import ChainedOperation, Difficulty, Operation


class TestRegistry:
    """Tests for registry lookups."""

    def test_names_are_unique(self):
        names = [func.name for func in ALL_FUNCTIONS]
        assert len(names) == len(set(names))

    def test_categories_cover_all_functions(self):
        assert sum(len(funcs) for funcs in FUNCTION_CATEGORIES.values()) == len(ALL_FUNCTIONS)
        assert set(FUNCTION_CATEGORIES) == {"arithmetic", "strings", "arrays", "composite"}

    def test_every_difficulty_has_functions(self):
        for difficulty in Difficulty:
            funcs = get_functions_by_difficulty(difficulty)
            assert funcs
            assert all(func.difficulty is difficulty for func in funcs)

    def test_get_function_by_name(self):
        func = get_function_by_name("fibonacci")
        assert func is not None
        assert func.invoke(10) == 55
        assert get_function_by_name("no_such_function") is None

    def test_get_functions_by_category(self):
        assert all(func.category == "strings" for func in get_functions_by_category("strings"))

    def test_get_random_function_respects_difficulty(self):
        for _ in range(20):
            assert get_random_function(Difficulty.HARD).difficulty is Difficulty.HARD

    def test_get_random_function_empty_pool(self):
        """Test that an empty pool is a configuration error."""
        easy_only = get_functions_by_difficulty(Difficulty.EASY)
        with pytest.raises(ConfigurationError):
            get_random_function(Difficulty.HARD, easy_only)

    def test_source_is_python(self):
        """Test that the shown source is the function's own definition."""
        source = get_function_by_name("gcd").source
        assert source.startswith("def gcd(a, b):")

    def test_arity_matches_parameter_types(self):
        assert get_function_by_name("mod_pow").arity == 3


class TestArithmetic:
    def test_fibonacci(self):
        assert [fibonacci(n) for n in range(8)] == [0, 1, 1, 2, 3, 5, 8, 13]
        with pytest.raises(ValueError):
            fibonacci(-1)

    def test_is_prime(self):
        assert [n for n in range(20) if is_prime(n)] == [2, 3, 5, 7, 11, 13, 17, 19]

    def test_gcd_lcm(self):
        assert gcd(12, 18) == 6
        assert lcm(4, 6) == 12
        assert lcm(0, 5) == 0

    def test_factorial(self):
        assert factorial(0) == 1
        assert factorial(5) == 120

    def test_mod_pow(self):
        assert mod_pow(3, 4, 7) == pow(3, 4, 7)
        assert mod_pow(5, 3, 1) == 0

    def test_is_perfect_square(self):
        assert is_perfect_square(49) is True
        assert is_perfect_square(50) is False
        assert is_perfect_square(-4) is False

    def test_sum_of_primes(self):
        assert sum_of_primes(5) == 2 + 3 + 5 + 7 + 11


class TestStrings:
    def test_caesar_cipher(self):
        assert caesar_cipher("Hello, World", 3) == "Khoor, Zruog"
        assert caesar_cipher("xyz", 29) == "abc"

    def test_hamming_distance(self):
        assert hamming_distance("karolin", "kathrin") == 3
        with pytest.raises(ValueError):
            hamming_distance("a", "ab")

    def test_count_substring_counts_overlaps(self):
        assert count_substring("aaaa", "aa") == 3
        assert count_substring("abc", "") == 0

    def test_alternating_case(self):
        assert alternating_case("hello") == "hElLo"

    def test_longest_word_tie_goes_to_later(self):
        assert longest_word("beta code data") == "data"


class TestArrays:
    def test_rotate_array(self):
        assert rotate_array([1, 2, 3, 4, 5], 2) == [4, 5, 1, 2, 3]
        assert rotate_array([1, 2, 3], 3) == [1, 2, 3]

    def test_find_median(self):
        assert find_median([3, 1, 2]) == 2
        assert find_median([4, 1, 3, 2]) == 2.5

    def test_find_mode_first_seen_wins_tie(self):
        assert find_mode([3, 1, 3, 1]) == 3

    def test_second_largest(self):
        assert second_largest([5, 5, 3, 1]) == 3
        with pytest.raises(ValueError):
            second_largest([2, 2])

    def test_running_sum(self):
        assert running_sum([1, 2, 3]) == [1, 3, 6]

    def test_max_index_first_maximum(self):
        assert max_index([1, 9, 3, 9]) == 1


class TestComposite:
    def test_truncated_mod_follows_dividend(self):
        assert truncated_mod(7, 3) == 1
        assert truncated_mod(-7, 3) == -1
        assert truncated_mod(7, -3) == 1
        with pytest.raises(ZeroDivisionError):
            truncated_mod(1, 0)

    def test_chained_operations_example(self):
        """Test the documented 42 -> *3 -> +17 -> %50 chain."""
        operations = [
            ChainedOperation(operation=Operation.MULTIPLY, value=3),
            ChainedOperation(operation=Operation.ADD, value=17),
            ChainedOperation(operation=Operation.MODULO, value=50),
        ]
        assert apply_chained_operations(42, operations) == 43

    def test_chained_operations_accepts_mappings(self):
        operations = [{"operation": "subtract", "value": 50}, {"operation": "abs"}]
        assert apply_chained_operations(10, operations) == 40

    def test_chained_operations_unary_and_power(self):
        operations = [
            {"operation": "divide", "value": 4},
            {"operation": "ceil"},
            {"operation": "power", "value": 2},
            {"operation": "negate"},
        ]
        assert apply_chained_operations(10, operations) == -9

    def test_chained_operations_negative_modulo(self):
        assert apply_chained_operations(-7, [{"operation": "modulo", "value": 3}]) == -1

    def test_chained_operations_errors(self):
        with pytest.raises(ZeroDivisionError):
            apply_chained_operations(5, [{"operation": "divide", "value": 0}])
        with pytest.raises(ValueError):
            apply_chained_operations(5, [{"operation": "sqrt"}])

    def test_compute_and_hash(self):
        # (2*3 + 4) % 1000 * (2 % 10) = 20 = 0x14
        assert compute_and_hash(2, 3, 4) == "0014"

    def test_checksum(self):
        assert checksum([1, 2, 3]) == 1026

    def test_evaluate_expression(self):
        assert evaluate_expression(["+", ["*", 2, 3], 4]) == 10
        assert evaluate_expression(["%", -7, 3]) == -1
        with pytest.raises(ValueError):
            evaluate_expression(["+", 1])
        with pytest.raises(ZeroDivisionError):
            evaluate_expression(["/", 1, 0])
