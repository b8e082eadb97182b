from collections.abc import Callable
from typing import Any

import structlog

from captchalm.errors import ConfigurationError
from captchalm.functions import ALL_FUNCTIONS, PuzzleFunction, get_random_function
from captchalm.functions.composite import apply_chained_operations
from captchalm.schemas.challenge import (
    ChainedOperation,
    ChainedOperationsPayload,
    Challenge,
    ChallengeType,
    CodeTransform,
    CodeTransformPayload,
    Difficulty,
    EncodedInstructionPayload,
    EncodingType,
    FunctionExecutionPayload,
    Operation,
    PatternExtractionPayload,
)
from captchalm.schemas.config import CaptchaConfig
from captchalm.services.crypto_utils import (
    canonical_json,
    generate_id,
    now_ms,
    random_element,
    random_int,
    sign,
)
from captchalm.services.encoding import canonical_string, encode

logger = structlog.get_logger()

WORDS = ["hello", "world", "test", "code", "data", "alpha", "beta", "gamma"]
LETTERS = "abcdefghijklmnopqrstuvwxyz"

BASE_OPERATIONS = [
    Operation.ADD,
    Operation.SUBTRACT,
    Operation.MULTIPLY,
    Operation.MODULO,
    Operation.FLOOR,
    Operation.ABS,
]
HARD_OPERATIONS = [Operation.POWER, Operation.CEIL, Operation.NEGATE]

# Beyond this magnitude a power step uses exponent 1 so answers stay printable.
POWER_GUARD = 1000

PATTERN_QUERIES: list[tuple[str, Callable[[list[dict]], int]]] = [
    ("sum(items[*].value)", lambda items: sum(item["value"] for item in items)),
    ("max(items[*].value)", lambda items: max(item["value"] for item in items)),
    ("min(items[*].value)", lambda items: min(item["value"] for item in items)),
    ("count(items)", lambda items: len(items)),
]


def _by_difficulty(difficulty: Difficulty, easy, medium, hard):
    return {Difficulty.EASY: easy, Difficulty.MEDIUM: medium, Difficulty.HARD: hard}[difficulty]


def compute_signature(
    secret: str,
    challenge_id: str,
    challenge_type: ChallengeType | str,
    payload,
    expires_at: int,
    expected_answer: str,
) -> str:
    """
    HMAC over the canonical JSON of the fields a client could tamper with.

    The payload is serialized in its wire form (camelCase keys, enum values),
    so a challenge that has round-tripped through JSON signs identically.
    """
    data = canonical_json(
        {
            "id": challenge_id,
            "type": ChallengeType(challenge_type).value,
            "payload": payload.model_dump(mode="json", by_alias=True),
            "expiresAt": expires_at,
            "expectedAnswer": expected_answer,
        }
    )
    return sign(data, secret)


class ChallengeGenerator:
    """Builds signed challenges together with the answer a correct solver returns."""

    def __init__(
        self,
        config: CaptchaConfig,
        functions: list[PuzzleFunction] | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config
        self.functions = ALL_FUNCTIONS if functions is None else functions
        self._clock = clock
        self._builders = {
            ChallengeType.FUNCTION_EXECUTION: self._function_execution,
            ChallengeType.CHAINED_OPERATIONS: self._chained_operations,
            ChallengeType.ENCODED_INSTRUCTION: self._encoded_instruction,
            ChallengeType.PATTERN_EXTRACTION: self._pattern_extraction,
            ChallengeType.CODE_TRANSFORM: self._code_transform,
        }
        self._argument_builders: dict[str, Callable[[Difficulty], list]] = {
            "fibonacci": lambda d: [random_int(5, 15)],
            "factorial": lambda d: [random_int(3, 10)],
            "sum_of_primes": lambda d: [random_int(3, 8)],
            "mod_pow": lambda d: [random_int(2, 10), random_int(2, 8), random_int(10, 50)],
            "caesar_cipher": lambda d: [self._random_words(3), random_int(1, 25)],
            "hamming_distance": self._hamming_arguments,
            "count_substring": self._substring_arguments,
            "char_at_wrapped": lambda d: [self._random_words(2), random_int(0, 20)],
            "rotate_array": lambda d: [self._random_array(5), random_int(1, 5)],
            "count_greater_than": lambda d: [self._random_array(6), random_int(20, 50)],
            "count_less_than": lambda d: [self._random_array(6), random_int(20, 50)],
            "element_at_wrapped": lambda d: [self._random_array(5), random_int(0, 10)],
            "second_largest": self._second_largest_arguments,
            "dot_product": self._paired_arrays,
            "weighted_sum": lambda d: self._paired_arrays(d, 3 if d is Difficulty.EASY else 4),
            "checksum": lambda d: [self._random_array(5)],
            "evaluate_polynomial": lambda d: [
                random_int(1, 5),
                random_int(1, 10),
                random_int(1, 10),
                random_int(1, 5),
            ],
            "compute_and_hash": lambda d: [random_int(10, 50) for _ in range(3)],
            "apply_chained_operations": self._chained_arguments,
            "evaluate_expression": self._expression_arguments,
        }

    def generate(
        self,
        challenge_type: ChallengeType | str | None = None,
        difficulty: Difficulty | str | None = None,
    ) -> tuple[Challenge, str]:
        """Generate a new challenge. Returns (challenge, expected_answer)."""
        if challenge_type is None:
            challenge_type = random_element(self.config.challenge_types)
        try:
            challenge_type = ChallengeType(challenge_type)
        except ValueError:
            raise ConfigurationError(f"Unknown challenge type: {challenge_type}") from None
        builder = self._builders[challenge_type]
        difficulty = Difficulty(difficulty if difficulty is not None else self.config.difficulty)
        payload, expected_answer = builder(difficulty)

        challenge_id = generate_id()
        expires_at = self._clock() + self.config.expiration_ms
        signature = compute_signature(
            self.config.secret,
            challenge_id,
            challenge_type,
            payload,
            expires_at,
            expected_answer,
        )

        logger.debug(
            "challenge_generated",
            challenge_id=challenge_id[:8],
            challenge_type=challenge_type.value,
            difficulty=difficulty.value,
        )

        challenge = Challenge(
            id=challenge_id,
            type=challenge_type,
            difficulty=difficulty,
            payload=payload,
            expires_at=expires_at,
            signature=signature,
        )
        return challenge, expected_answer

    # Payload builders

    def _function_execution(self, difficulty: Difficulty):
        func = get_random_function(difficulty, self.functions)
        parameters = self.generate_parameters(func, difficulty)
        result = func.invoke(*parameters)
        response_encoding = self._response_encoding(difficulty)

        payload = FunctionExecutionPayload(
            function_name=func.name,
            function_code=func.source,
            parameters=parameters,
            response_encoding=response_encoding,
        )
        return payload, encode(canonical_string(result), response_encoding)

    def _chained_operations(self, difficulty: Difficulty):
        initial_value, operations = self._random_operation_chain(difficulty)
        result = apply_chained_operations(initial_value, operations)
        response_encoding = self._response_encoding(difficulty)

        payload = ChainedOperationsPayload(
            initial_value=initial_value,
            operations=operations,
            response_encoding=response_encoding,
        )
        return payload, encode(canonical_string(result), response_encoding)

    def _encoded_instruction(self, difficulty: Difficulty):
        a = random_int(10, 100)
        b = random_int(10, 100)
        op = random_element(["+", "-", "*"])
        if op == "+":
            result = a + b
        elif op == "-":
            result = a - b
        else:
            result = a * b

        instruction_encoding = self._instruction_encoding(difficulty)
        response_encoding = self._response_encoding(difficulty)

        payload = EncodedInstructionPayload(
            instruction=encode(f"Calculate: {a} {op} {b}", instruction_encoding),
            instruction_encoding=instruction_encoding,
            response_encoding=response_encoding,
        )
        return payload, encode(canonical_string(result), response_encoding)

    def _pattern_extraction(self, difficulty: Difficulty):
        count = _by_difficulty(difficulty, 3, 5, 7)
        items = [{"id": i + 1, "value": random_int(10, 100)} for i in range(count)]
        query, aggregate = random_element(PATTERN_QUERIES)
        response_encoding = self._response_encoding(difficulty)

        payload = PatternExtractionPayload(
            data={"items": items},
            query=query,
            response_encoding=response_encoding,
        )
        return payload, encode(canonical_string(aggregate(items)), response_encoding)

    def _code_transform(self, difficulty: Difficulty):
        a = random_int(1, 20)
        b = random_int(1, 20)
        response_encoding = self._response_encoding(difficulty)

        payload = CodeTransformPayload(
            code=f"x = {a}\ny = {b}\nresult = x + y",
            transform=CodeTransform.EXECUTE,
            response_encoding=response_encoding,
        )
        return payload, encode(canonical_string(a + b), response_encoding)

    # Encoding selection

    def _response_encoding(self, difficulty: Difficulty) -> EncodingType:
        return random_element(
            _by_difficulty(
                difficulty,
                [EncodingType.PLAIN],
                [EncodingType.PLAIN, EncodingType.BASE64],
                [EncodingType.BASE64, EncodingType.HEX],
            )
        )

    def _instruction_encoding(self, difficulty: Difficulty) -> EncodingType:
        return random_element(
            _by_difficulty(
                difficulty,
                [EncodingType.BASE64],
                [EncodingType.BASE64, EncodingType.ROT13],
                [EncodingType.HEX, EncodingType.ROT13],
            )
        )

    # Argument synthesis

    def generate_parameters(self, func: PuzzleFunction, difficulty: Difficulty) -> list[Any]:
        """Synthesize arguments for `func`, falling back to its declared parameter types."""
        builder = self._argument_builders.get(func.name)
        if builder is not None:
            return builder(difficulty)

        low, high = _by_difficulty(difficulty, (1, 20), (10, 50), (20, 100))
        parameters: list[Any] = []
        for parameter_type in func.parameter_types:
            if parameter_type == "string":
                parameters.append(self._random_words(_by_difficulty(difficulty, 2, 4, 6)))
            elif parameter_type == "number[]":
                parameters.append(self._random_array(_by_difficulty(difficulty, 4, 6, 8)))
            else:
                parameters.append(random_int(low, high))
        return parameters

    def _random_operation_chain(self, difficulty: Difficulty) -> tuple[int, list[ChainedOperation]]:
        operation_count = _by_difficulty(difficulty, 3, 5, 7)
        available = list(BASE_OPERATIONS)
        if difficulty is Difficulty.HARD:
            available.extend(HARD_OPERATIONS)

        initial_value = random_int(10, 100)
        current = initial_value
        operations = []
        for _ in range(operation_count):
            operation = random_element(available)
            if operation in (Operation.ADD, Operation.SUBTRACT):
                value = random_int(1, 50)
            elif operation is Operation.MULTIPLY:
                value = random_int(2, 10)
            elif operation is Operation.DIVIDE:
                value = random_int(2, 5)
            elif operation is Operation.MODULO:
                value = random_int(10, 100)
            elif operation is Operation.POWER:
                value = random_int(1, 3) if abs(current) <= POWER_GUARD else 1
            else:
                value = None

            step = ChainedOperation(operation=operation, value=value)
            current = apply_chained_operations(current, [step])
            operations.append(step)
        return initial_value, operations

    def _chained_arguments(self, difficulty: Difficulty) -> list:
        initial_value, operations = self._random_operation_chain(difficulty)
        return [initial_value, [op.model_dump(mode="json") for op in operations]]

    def _expression_arguments(self, difficulty: Difficulty) -> list:
        inner = [random_element(["+", "-", "*"]), random_int(1, 20), random_int(1, 20)]
        return [[random_element(["+", "-", "*"]), inner, random_int(1, 20)]]

    def _hamming_arguments(self, difficulty: Difficulty) -> list:
        word = self._random_word(5)
        return [word, self._mutate_word(word, 2)]

    def _substring_arguments(self, difficulty: Difficulty) -> list:
        text = self._random_words(_by_difficulty(difficulty, 3, 4, 6))
        return [text, random_element(text.split(" "))]

    def _second_largest_arguments(self, difficulty: Difficulty) -> list:
        values = self._random_array(_by_difficulty(difficulty, 4, 6, 8))
        while len(set(values)) < 2:
            values = self._random_array(len(values))
        return [values]

    def _paired_arrays(self, difficulty: Difficulty, length: int | None = None) -> list:
        if length is None:
            length = _by_difficulty(difficulty, 3, 4, 5)
        return [self._random_array(length), self._random_array(length)]

    @staticmethod
    def _random_words(count: int) -> str:
        return " ".join(random_element(WORDS) for _ in range(count))

    @staticmethod
    def _random_word(length: int) -> str:
        return "".join(random_element(LETTERS) for _ in range(length))

    @staticmethod
    def _mutate_word(word: str, changes: int) -> str:
        chars = list(word)
        positions: set[int] = set()
        while len(positions) < min(changes, len(word)):
            positions.add(random_int(0, len(word) - 1))
        for pos in positions:
            replacement = random_element(LETTERS)
            while replacement == chars[pos]:
                replacement = random_element(LETTERS)
            chars[pos] = replacement
        return "".join(chars)

    @staticmethod
    def _random_array(length: int) -> list[int]:
        return [random_int(1, 50) for _ in range(length)]
