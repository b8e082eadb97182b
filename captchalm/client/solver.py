"""
Challenge solver for automated clients.

Answers are computed by matching the payload type to a local implementation:
registry functions are looked up by name and code_transform snippets are
interpreted by a small arithmetic evaluator. Code text sent by the server is
never executed.
"""

import ast
import operator
import re
import time
from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from captchalm.errors import SolveError
from captchalm.functions import apply_chained_operations, get_function_by_name
from captchalm.schemas.challenge import (
    CHALLENGE_BODY_FIELD,
    CHALLENGE_ID_HEADER,
    SOLUTION_HEADER,
    ChainedOperationsPayload,
    Challenge,
    CodeTransform,
    CodeTransformPayload,
    EncodedInstructionPayload,
    FunctionExecutionPayload,
    PatternExtractionPayload,
)
from captchalm.services.crypto_utils import now_ms, short_hash
from captchalm.services.encoding import canonical_string, decode, encode, encode_base64

logger = structlog.get_logger()

INSTRUCTION_PATTERN = re.compile(r"Calculate:\s*(-?\d+)\s*([+\-*/])\s*(-?\d+)")
QUERY_PATTERN = re.compile(r"^(\w+)\(([^)]+)\)$")
WILDCARD_PATH_PATTERN = re.compile(r"^(\w+)\[\*\]\.(\w+)$")

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}
_UNARY_OPERATORS = {ast.USub: operator.neg, ast.UAdd: operator.pos}


@dataclass
class SolutionResult:
    solution: str
    solve_duration_ms: float
    success: bool
    error: str | None = None


@dataclass
class FetchResult:
    challenge: Challenge | None
    solution: str
    success: bool
    error: str | None = None


@dataclass
class RequestCredentials:
    headers: dict[str, str]
    body: dict[str, Any]
    success: bool
    error: str | None = None


def execute_function(payload: FunctionExecutionPayload) -> Any:
    func = get_function_by_name(payload.function_name)
    if func is None:
        raise SolveError(f"Unknown function: {payload.function_name}")
    if len(payload.parameters) != func.arity:
        raise SolveError(
            f"{func.name} expects {func.arity} parameters, got {len(payload.parameters)}"
        )
    return func.invoke(*payload.parameters)


def execute_encoded_instruction(payload: EncodedInstructionPayload) -> Any:
    instruction = decode(payload.instruction, payload.instruction_encoding)
    match = INSTRUCTION_PATTERN.search(instruction)
    if not match:
        raise SolveError(f"Could not parse instruction: {instruction}")

    a = int(match.group(1))
    op = match.group(2)
    b = int(match.group(3))
    if op == "/":
        if b == 0:
            raise SolveError("Division by zero")
        return a / b
    return {"+": operator.add, "-": operator.sub, "*": operator.mul}[op](a, b)


def extract_path_values(data: dict[str, Any], path: str) -> list[Any]:
    """Resolve `name[*].prop` or `name` against the payload data."""
    wildcard = WILDCARD_PATH_PATTERN.match(path)
    if wildcard:
        array_name, prop = wildcard.groups()
        items = data.get(array_name)
        if not isinstance(items, list):
            raise SolveError(f"Expected a list at {array_name}")
        try:
            return [item[prop] for item in items]
        except (KeyError, TypeError) as e:
            raise SolveError(f"Invalid path: {path}") from e

    if path in data:
        value = data[path]
        return value if isinstance(value, list) else [value]
    raise SolveError(f"Invalid path: {path}")


def execute_pattern_extraction(payload: PatternExtractionPayload) -> Any:
    match = QUERY_PATTERN.match(payload.query.strip())
    if not match:
        raise SolveError(f"Invalid query format: {payload.query}")

    func, path = match.groups()
    values = extract_path_values(payload.data, path.strip())
    func = func.lower()
    if func == "count":
        return len(values)
    if not values:
        raise SolveError(f"{func} of an empty selection")
    if func == "sum":
        return sum(values)
    if func == "max":
        return max(values)
    if func == "min":
        return min(values)
    if func == "avg":
        return sum(values) / len(values)
    raise SolveError(f"Unknown function: {func}")


def evaluate_code(code: str) -> Any:
    """
    Evaluate straight-line arithmetic such as `x = 3`, `y = x * 2`, `result = x + y`.

    Only integer/float literals, previously assigned names, + - * / // % and
    unary minus are accepted. The value of `result`, or of a trailing
    `return`/expression statement, is returned.
    """
    try:
        tree = ast.parse(code, mode="exec")
    except SyntaxError as e:
        raise SolveError(f"Could not parse code: {e.msg}") from e

    env: dict[str, Any] = {}
    last: Any = None
    for node in tree.body:
        if isinstance(node, ast.Assign):
            if len(node.targets) != 1 or not isinstance(node.targets[0], ast.Name):
                raise SolveError("Only simple assignments are supported")
            last = env[node.targets[0].id] = _evaluate_node(node.value, env)
        elif isinstance(node, (ast.Return, ast.Expr)) and node.value is not None:
            last = _evaluate_node(node.value, env)
        else:
            raise SolveError(f"Unsupported statement: {type(node).__name__}")

    if "result" in env:
        return env["result"]
    if last is None:
        raise SolveError("Code does not produce a value")
    return last


def _evaluate_node(node: ast.AST, env: dict[str, Any]) -> Any:
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return node.value
    if isinstance(node, ast.Name):
        if node.id not in env:
            raise SolveError(f"Undefined name: {node.id}")
        return env[node.id]
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _evaluate_node(node.left, env)
        right = _evaluate_node(node.right, env)
        try:
            return _BINARY_OPERATORS[type(node.op)](left, right)
        except ZeroDivisionError as e:
            raise SolveError("Division by zero") from e
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_evaluate_node(node.operand, env))
    raise SolveError(f"Unsupported expression: {type(node).__name__}")


def execute_code_transform(payload: CodeTransformPayload) -> Any:
    value = evaluate_code(payload.code)
    if payload.transform is CodeTransform.EXECUTE:
        return value
    if payload.transform is CodeTransform.EXECUTE_AND_BASE64:
        return encode_base64(canonical_string(value))
    return short_hash(canonical_string(value))


def execute_payload(payload) -> Any:
    """Compute the raw (unencoded) answer for any payload."""
    if isinstance(payload, FunctionExecutionPayload):
        return execute_function(payload)
    if isinstance(payload, ChainedOperationsPayload):
        return apply_chained_operations(payload.initial_value, payload.operations)
    if isinstance(payload, EncodedInstructionPayload):
        return execute_encoded_instruction(payload)
    if isinstance(payload, PatternExtractionPayload):
        return execute_pattern_extraction(payload)
    if isinstance(payload, CodeTransformPayload):
        return execute_code_transform(payload)
    raise SolveError(f"Unknown challenge payload: {type(payload).__name__}")


class ChallengeSolver:
    """Solves challenges locally and submits them to protected endpoints."""

    def __init__(
        self,
        timeout_ms: int = 10_000,
        http_client: httpx.Client | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.timeout_ms = timeout_ms
        self._http_client = http_client
        self._clock = clock

    def solve(self, challenge: Challenge) -> SolutionResult:
        start = time.perf_counter()

        if self._clock() > challenge.expires_at:
            return SolutionResult("", self._elapsed(start), False, "Challenge has expired")

        try:
            raw = execute_payload(challenge.payload)
            solution = encode(canonical_string(raw), challenge.payload.response_encoding)
        except (
            ValueError, TypeError, KeyError, ZeroDivisionError, OverflowError, RecursionError
        ) as e:
            logger.debug("challenge_solve_failed", challenge_type=challenge.type.value, error=str(e))
            return SolutionResult("", self._elapsed(start), False, str(e))

        duration = self._elapsed(start)
        logger.debug(
            "challenge_solved",
            challenge_type=challenge.type.value,
            duration_ms=round(duration, 2),
        )
        return SolutionResult(solution, duration, True)

    def solve_for_request(self, challenge: Challenge) -> RequestCredentials:
        """Solve and return the headers and body fields a protected endpoint expects."""
        body = {CHALLENGE_BODY_FIELD: challenge.model_dump(mode="json", by_alias=True)}
        result = self.solve(challenge)
        if not result.success:
            return RequestCredentials(headers={}, body=body, success=False, error=result.error)

        return RequestCredentials(
            headers={CHALLENGE_ID_HEADER: challenge.id, SOLUTION_HEADER: result.solution},
            body=body,
            success=True,
        )

    def fetch_and_solve(self, challenge_url: str) -> FetchResult:
        """GET a challenge from the server and solve it."""
        try:
            with self._client() as client:
                response = client.get(challenge_url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("challenge_fetch_failed", status_code=e.response.status_code)
            return FetchResult(
                None, "", False, f"Failed to fetch challenge: {e.response.status_code}"
            )
        except (httpx.RequestError, ValueError) as e:
            logger.warning("challenge_fetch_failed", error=str(e))
            return FetchResult(None, "", False, f"Failed to fetch challenge: {e}")

        if not isinstance(data, dict) or not data.get("success") or not data.get("challenge"):
            error = data.get("error") if isinstance(data, dict) else None
            return FetchResult(None, "", False, error or "Invalid challenge response")

        try:
            challenge = Challenge.model_validate(data["challenge"])
        except ValidationError:
            return FetchResult(None, "", False, "Invalid challenge response")

        result = self.solve(challenge)
        return FetchResult(challenge, result.solution, result.success, result.error)

    def complete_protected_request(
        self,
        challenge_url: str,
        protected_url: str,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Fetch and solve a challenge, then POST to the protected endpoint with it."""
        fetched = self.fetch_and_solve(challenge_url)
        if not fetched.success:
            raise SolveError(f"Failed to solve challenge: {fetched.error}")

        request_headers = dict(headers or {})
        request_headers[CHALLENGE_ID_HEADER] = fetched.challenge.id
        request_headers[SOLUTION_HEADER] = fetched.solution

        body = dict(json or {})
        body[CHALLENGE_BODY_FIELD] = fetched.challenge.model_dump(mode="json", by_alias=True)

        with self._client() as client:
            return client.post(protected_url, json=body, headers=request_headers)

    def _client(self):
        # A caller-supplied client is borrowed, not closed.
        if self._http_client is not None:
            return nullcontext(self._http_client)
        return httpx.Client(timeout=self.timeout_ms / 1000)

    @staticmethod
    def _elapsed(start: float) -> float:
        return (time.perf_counter() - start) * 1000
