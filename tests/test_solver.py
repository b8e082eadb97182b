"""Tests for the client-side challenge solver."""

import httpx
import pytest

from captchalm.client.solver import (
    ChallengeSolver,
    evaluate_code,
    execute_code_transform,
    execute_encoded_instruction,
    execute_function,
    execute_pattern_extraction,
    extract_path_values,
)
from captchalm.errors import SolveError
from captchalm.schemas.challenge import (
    CHALLENGE_BODY_FIELD,
    CHALLENGE_ID_HEADER,
    SOLUTION_HEADER,
    ChallengeType,
    CodeTransform,
    CodeTransformPayload,
    EncodedInstructionPayload,
    EncodingType,
    FunctionExecutionPayload,
    PatternExtractionPayload,
)
from captchalm.services.crypto_utils import short_hash
from captchalm.services.encoding import encode


def function_payload(name, parameters):
    return FunctionExecutionPayload(
        function_name=name,
        function_code="",
        parameters=parameters,
        response_encoding=EncodingType.PLAIN,
    )


def nested_expression(depth):
    expression = 1
    for _ in range(depth):
        expression = ["+", expression, 1]
    return expression


class TestExecutors:
    """Tests for the per-type answer computation."""

    def test_execute_function(self):
        assert execute_function(function_payload("gcd", [12, 18])) == 6

    def test_execute_function_unknown(self):
        with pytest.raises(SolveError):
            execute_function(function_payload("launch_missiles", []))

    def test_execute_function_wrong_arity(self):
        with pytest.raises(SolveError):
            execute_function(function_payload("gcd", [12]))

    @pytest.mark.parametrize(
        "encoding,expected",
        [
            (EncodingType.BASE64, 42),
            (EncodingType.HEX, 42),
            (EncodingType.ROT13, 42),
            (EncodingType.PLAIN, 42),
        ],
    )
    def test_encoded_instruction(self, encoding, expected):
        payload = EncodedInstructionPayload(
            instruction=encode("Calculate: 50 - 8", encoding),
            instruction_encoding=encoding,
            response_encoding=EncodingType.PLAIN,
        )
        assert execute_encoded_instruction(payload) == expected

    def test_encoded_instruction_division(self):
        payload = EncodedInstructionPayload(
            instruction="Calculate: 9 / 3",
            instruction_encoding=EncodingType.PLAIN,
            response_encoding=EncodingType.PLAIN,
        )
        assert execute_encoded_instruction(payload) == 3

    def test_encoded_instruction_unparseable(self):
        payload = EncodedInstructionPayload(
            instruction="Say hello",
            instruction_encoding=EncodingType.PLAIN,
            response_encoding=EncodingType.PLAIN,
        )
        with pytest.raises(SolveError):
            execute_encoded_instruction(payload)

    def test_extract_path_values(self):
        data = {"items": [{"value": 1}, {"value": 2}], "total": 3}
        assert extract_path_values(data, "items[*].value") == [1, 2]
        assert extract_path_values(data, "total") == [3]
        with pytest.raises(SolveError):
            extract_path_values(data, "missing")

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("sum(items[*].value)", 60),
            ("max(items[*].value)", 30),
            ("min(items[*].value)", 10),
            ("count(items)", 3),
            ("avg(items[*].value)", 20),
        ],
    )
    def test_pattern_extraction(self, query, expected):
        payload = PatternExtractionPayload(
            data={"items": [{"id": 1, "value": 10}, {"id": 2, "value": 20}, {"id": 3, "value": 30}]},
            query=query,
            response_encoding=EncodingType.PLAIN,
        )
        assert execute_pattern_extraction(payload) == expected

    def test_pattern_extraction_bad_query(self):
        payload = PatternExtractionPayload(
            data={"items": []}, query="items.value", response_encoding=EncodingType.PLAIN
        )
        with pytest.raises(SolveError):
            execute_pattern_extraction(payload)

    def test_evaluate_code(self):
        assert evaluate_code("x = 3\ny = 4\nresult = x + y") == 7
        assert evaluate_code("a = 10\nb = -a * 2\nb // 3") == -7

    @pytest.mark.parametrize(
        "code",
        [
            "import os",
            "result = __import__('os')",
            "result = open('x')",
            "result = y + 1",
            "result = 1 / 0",
            "def f(): pass",
        ],
    )
    def test_evaluate_code_rejects_unsupported(self, code):
        """Test that anything beyond straight-line arithmetic is refused."""
        with pytest.raises(SolveError):
            evaluate_code(code)

    def test_code_transform_variants(self):
        def payload(transform):
            return CodeTransformPayload(
                code="x = 2\ny = 5\nresult = x + y",
                transform=transform,
                response_encoding=EncodingType.PLAIN,
            )

        assert execute_code_transform(payload(CodeTransform.EXECUTE)) == 7
        assert execute_code_transform(payload(CodeTransform.EXECUTE_AND_BASE64)) == "Nw=="
        assert execute_code_transform(payload(CodeTransform.EXECUTE_AND_HASH)) == short_hash("7")


class TestChallengeSolver:
    """Tests for solving full challenges."""

    def test_solve_encodes_answer(self, captcha, clock):
        challenge, expected = captcha.generate(ChallengeType.CHAINED_OPERATIONS)
        result = ChallengeSolver(clock=clock).solve(challenge)
        assert result.success is True
        assert result.solution == expected
        assert result.solve_duration_ms >= 0

    def test_solve_expired(self, captcha, clock):
        challenge, _ = captcha.generate()
        clock.advance(30_001)
        result = ChallengeSolver(clock=clock).solve(challenge)
        assert result.success is False
        assert result.error == "Challenge has expired"

    def test_solve_reports_failure(self, captcha, clock):
        """Test that an unsolvable payload yields a failure result, not an exception."""
        challenge, _ = captcha.generate(ChallengeType.FUNCTION_EXECUTION)
        broken = challenge.model_copy(
            update={"payload": challenge.payload.model_copy(update={"function_name": "nope"})}
        )
        result = ChallengeSolver(clock=clock).solve(broken)
        assert result.success is False
        assert "Unknown function" in result.error

    @pytest.mark.parametrize(
        "expression",
        [
            ["^", 10.0, 400],
            nested_expression(5_000),
        ],
        ids=["float_overflow", "deep_nesting"],
    )
    def test_solve_survives_hostile_expressions(self, captcha, clock, expression):
        """Test that overflowing or deeply nested expressions fail cleanly."""
        challenge, _ = captcha.generate(ChallengeType.FUNCTION_EXECUTION)
        payload = FunctionExecutionPayload.model_construct(
            function_name="evaluate_expression",
            function_code="",
            parameters=[expression],
            response_encoding=EncodingType.PLAIN,
        )
        hostile = challenge.model_copy(update={"payload": payload})

        result = ChallengeSolver(clock=clock).solve(hostile)
        assert result.success is False
        assert result.solution == ""

    def test_solve_for_request(self, captcha, clock):
        challenge, expected = captcha.generate()
        credentials = ChallengeSolver(clock=clock).solve_for_request(challenge)
        assert credentials.success is True
        assert credentials.headers == {CHALLENGE_ID_HEADER: challenge.id, SOLUTION_HEADER: expected}
        assert credentials.body[CHALLENGE_BODY_FIELD]["expiresAt"] == challenge.expires_at


class TestSolverOverHttp:
    """Tests for fetching challenges and calling protected endpoints."""

    def test_fetch_and_solve(self, client, clock):
        solver = ChallengeSolver(http_client=client, clock=clock)
        result = solver.fetch_and_solve("/_captchalm/challenge")
        assert result.success is True, result.error
        assert result.challenge is not None
        assert result.solution

    def test_fetch_and_solve_http_error(self, client, clock):
        solver = ChallengeSolver(http_client=client, clock=clock)
        result = solver.fetch_and_solve("/no/such/endpoint")
        assert result.success is False
        assert result.error == "Failed to fetch challenge: 404"

    def test_fetch_and_solve_invalid_body(self, client, clock):
        solver = ChallengeSolver(http_client=client, clock=clock)
        result = solver.fetch_and_solve("/health")
        assert result.success is False
        assert result.error == "Invalid challenge response"

    def test_fetch_and_solve_connection_error(self, clock):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.Client(transport=httpx.MockTransport(refuse))
        result = ChallengeSolver(http_client=http_client, clock=clock).fetch_and_solve(
            "http://captcha.invalid/_captchalm/challenge"
        )
        assert result.success is False
        assert result.error.startswith("Failed to fetch challenge")

    def test_complete_protected_request(self, client, clock):
        solver = ChallengeSolver(http_client=client, clock=clock)
        response = solver.complete_protected_request(
            "/_captchalm/challenge", "/api/v1/data", json={"message": "hi"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["yourData"] == {"message": "hi"}

    def test_complete_protected_request_raises_on_fetch_failure(self, client, clock):
        solver = ChallengeSolver(http_client=client, clock=clock)
        with pytest.raises(SolveError):
            solver.complete_protected_request("/missing", "/api/v1/data")
