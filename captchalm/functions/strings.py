"""String manipulation puzzle functions."""

from captchalm.functions.base import PuzzleFunction
from captchalm.schemas.challenge import Difficulty

VOWELS = "aeiouAEIOU"
CONSONANTS = "bcdfghjklmnpqrstvwxyzBCDFGHJKLMNPQRSTVWXYZ"


def reverse_words(text):
    """Reverse the order of space-separated words."""
    return " ".join(reversed(text.split(" ")))


def reverse_string(text):
    """Reverse a string character by character."""
    return text[::-1]


def count_vowels(text):
    """Count the vowels in a string."""
    return sum(1 for char in text if char in VOWELS)


def count_consonants(text):
    """Count the consonants in a string."""
    return sum(1 for char in text if char in CONSONANTS)


def caesar_cipher(text, shift):
    """Shift every ASCII letter by `shift` positions, wrapping within its case."""
    shift %= 26
    out = []
    for char in text:
        if "a" <= char <= "z":
            out.append(chr((ord(char) - ord("a") + shift) % 26 + ord("a")))
        elif "A" <= char <= "Z":
            out.append(chr((ord(char) - ord("A") + shift) % 26 + ord("A")))
        else:
            out.append(char)
    return "".join(out)


def hamming_distance(a, b):
    """Number of positions at which two equal-length strings differ."""
    if len(a) != len(b):
        raise ValueError("Strings must be of equal length")
    return sum(1 for x, y in zip(a, b) if x != y)


def count_substring(text, sub):
    """Count occurrences of `sub`, overlaps included."""
    if not sub:
        return 0
    count = 0
    pos = text.find(sub)
    while pos != -1:
        count += 1
        pos = text.find(sub, pos + 1)
    return count


def char_at_wrapped(text, index):
    """Character at `index`, wrapping around the string length."""
    if not text:
        return ""
    return text[index % len(text)]


def ascii_sum(text):
    """Sum of the code points of every character."""
    return sum(ord(char) for char in text)


def remove_vowels(text):
    """Remove all vowels from a string."""
    return "".join(char for char in text if char not in VOWELS)


def alternating_case(text):
    """Lowercase even positions and uppercase odd positions."""
    return "".join(c.lower() if i % 2 == 0 else c.upper() for i, c in enumerate(text))


def word_count(text):
    """Count whitespace-separated words."""
    return len(text.split())


def longest_word(text):
    """Longest word; the later one wins a tie."""
    words = text.split()
    if not words:
        return ""
    best = words[0]
    for word in words[1:]:
        if len(word) >= len(best):
            best = word
    return best


STRING_FUNCTIONS = [
    PuzzleFunction(
        "reverse_words", reverse_words, ("string",),
        "Reverse the order of words in a string", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "reverse_string", reverse_string, ("string",),
        "Reverse a string character by character", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "count_vowels", count_vowels, ("string",),
        "Count the number of vowels in a string", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "count_consonants", count_consonants, ("string",),
        "Count the number of consonants in a string", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "caesar_cipher", caesar_cipher, ("string", "number"),
        "Apply Caesar cipher with given shift", Difficulty.MEDIUM, "strings",
    ),
    PuzzleFunction(
        "hamming_distance", hamming_distance, ("string", "string"),
        "Calculate Hamming distance between two equal-length strings", Difficulty.MEDIUM,
        "strings",
    ),
    PuzzleFunction(
        "count_substring", count_substring, ("string", "string"),
        "Count occurrences of a substring", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "char_at_wrapped", char_at_wrapped, ("string", "number"),
        "Get character at index with wrapping", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "ascii_sum", ascii_sum, ("string",),
        "Calculate sum of ASCII values of all characters", Difficulty.MEDIUM, "strings",
    ),
    PuzzleFunction(
        "remove_vowels", remove_vowels, ("string",),
        "Remove all vowels from a string", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "alternating_case", alternating_case, ("string",),
        "Convert to alternating case", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "word_count", word_count, ("string",),
        "Count words in a string", Difficulty.EASY, "strings",
    ),
    PuzzleFunction(
        "longest_word", longest_word, ("string",),
        "Get the longest word in a string", Difficulty.EASY, "strings",
    ),
]
