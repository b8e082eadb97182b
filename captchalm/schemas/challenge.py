from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Transport contract between protected endpoints and solvers
CHALLENGE_ID_HEADER = "x-captchalm-id"
SOLUTION_HEADER = "x-captchalm-solution"
CHALLENGE_BODY_FIELD = "_captchalmChallenge"


class CamelModel(BaseModel):
    """Wire models serialize with camelCase keys and accept either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EncodingType(str, Enum):
    PLAIN = "plain"
    BASE64 = "base64"
    HEX = "hex"
    ROT13 = "rot13"


class ChallengeType(str, Enum):
    FUNCTION_EXECUTION = "function_execution"
    CHAINED_OPERATIONS = "chained_operations"
    ENCODED_INSTRUCTION = "encoded_instruction"
    PATTERN_EXTRACTION = "pattern_extraction"
    CODE_TRANSFORM = "code_transform"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Operation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    MODULO = "modulo"
    POWER = "power"
    FLOOR = "floor"
    CEIL = "ceil"
    ABS = "abs"
    NEGATE = "negate"


class CodeTransform(str, Enum):
    EXECUTE = "execute"
    EXECUTE_AND_HASH = "execute_and_hash"
    EXECUTE_AND_BASE64 = "execute_and_base64"


class ChainedOperation(CamelModel):
    operation: Operation
    value: int | None = None


class FunctionExecutionPayload(CamelModel):
    type: Literal["function_execution"] = "function_execution"
    function_name: str
    function_code: str
    parameters: list[Any]
    response_encoding: EncodingType


class ChainedOperationsPayload(CamelModel):
    type: Literal["chained_operations"] = "chained_operations"
    initial_value: int
    operations: list[ChainedOperation]
    response_encoding: EncodingType


class EncodedInstructionPayload(CamelModel):
    type: Literal["encoded_instruction"] = "encoded_instruction"
    instruction: str
    instruction_encoding: EncodingType
    response_encoding: EncodingType


class PatternExtractionPayload(CamelModel):
    type: Literal["pattern_extraction"] = "pattern_extraction"
    data: dict[str, Any]
    query: str
    response_encoding: EncodingType


class CodeTransformPayload(CamelModel):
    type: Literal["code_transform"] = "code_transform"
    code: str
    transform: CodeTransform = CodeTransform.EXECUTE
    response_encoding: EncodingType


ChallengePayload = Annotated[
    Union[
        FunctionExecutionPayload,
        ChainedOperationsPayload,
        EncodedInstructionPayload,
        PatternExtractionPayload,
        CodeTransformPayload,
    ],
    Field(discriminator="type"),
]


class Challenge(CamelModel):
    id: str
    type: ChallengeType
    difficulty: Difficulty
    payload: ChallengePayload
    expires_at: int = Field(..., description="Unix timestamp in milliseconds")
    signature: str


class ChallengeSolution(CamelModel):
    challenge_id: str
    solution: str


class ChallengeResponse(BaseModel):
    success: bool = True
    challenge: Challenge
