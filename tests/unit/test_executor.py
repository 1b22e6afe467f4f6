"""Unit tests for the pipeline executor."""

from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from pydantic import BaseModel

from structured_llm_client.capabilities import ApiResponse
from structured_llm_client.exceptions import (
    ExtractionFailedError,
    ProviderException,
    ResponseValidationError,
    SchemaNotFoundError,
    UnableToParseResponse,
)
from structured_llm_client.messages import user_message
from structured_llm_client.pipeline import (
    ErrorKind,
    Failure,
    PipelineExecutor,
    SharedContext,
    Success,
)
from structured_llm_client.request_types import ExtractionRequest
from structured_llm_client.schema.manager import SchemaManager


def _context(model: Any, max_retries: int = 0) -> SharedContext:
    request = ExtractionRequest(
        response_model=model,
        model="gpt-4o-mini",
        messages=(user_message("My name is Ada and I am 36."),),
        max_retries=max_retries,
    )
    return SharedContext.initial(request)


def _api_call(*arguments: str | None) -> AsyncMock:
    """Bound create call replaying the given argument strings."""
    return AsyncMock(
        side_effect=[
            ApiResponse(args, Mock(name=f"raw{i}"))
            for i, args in enumerate(arguments)
        ]
    )


@pytest.mark.unit
class TestSharedContext:
    def test_initial(self, user_profile_model: type[BaseModel]) -> None:
        """Test the initial context starts with no retries or responses."""
        context = _context(user_profile_model, max_retries=2)

        assert context.retries == 0
        assert context.max_retries == 2
        assert context.api_responses == ()
        assert context.can_retry

    def test_updates_are_functional(self, user_profile_model: type[BaseModel]) -> None:
        """Test updates return new contexts and leave the original intact."""
        context = _context(user_profile_model, max_retries=1)

        updated = context.with_response("raw").next_retry()

        assert context.api_responses == ()
        assert context.retries == 0
        assert updated.api_responses == ("raw",)
        assert updated.retries == 1
        assert not updated.can_retry

    def test_schema_name_left_unresolved(self) -> None:
        """Test a schema name is kept for resolution by the executor."""
        context = _context("user_profile")

        assert context.response_model is None
        assert context.model_name == "user_profile"

    def test_with_model(self, user_profile_model: type[BaseModel]) -> None:
        """Test binding a resolved model names the context after it."""
        context = _context("user_profile").with_model(user_profile_model)

        assert context.response_model is user_profile_model
        assert context.model_name == "UserProfile"


@pytest.mark.unit
class TestPipelineExecutor:
    """Test cases for PipelineExecutor."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test a valid first reply succeeds without retries."""
        api_call = _api_call('{"name": "Ada", "age": 36}')

        outcome = await PipelineExecutor(api_call).execute(_context(user_profile_model))

        assert isinstance(outcome, Success)
        instance, responses = outcome.value
        assert instance == user_profile_model(name="Ada", age=36)
        assert len(responses) == 1
        assert outcome.context.retries == 0

    @pytest.mark.asyncio
    async def test_validation_failure_retried_with_corrections(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test a validation failure is retried with a corrective message."""
        api_call = _api_call('{"name": "Ada", "age": "x"}', '{"name": "Ada", "age": 36}')

        outcome = await PipelineExecutor(api_call).execute(
            _context(user_profile_model, max_retries=1)
        )

        assert isinstance(outcome, Success)
        assert outcome.value[0].age == 36
        assert len(outcome.value[1]) == 2
        assert outcome.context.retries == 1

        first_request, second_request = (c.args[0] for c in api_call.await_args_list)
        assert len(first_request.messages) == 1
        assert len(second_request.messages) == 2
        correction = second_request.messages[-1]
        assert correction["role"] == "user"
        assert "property age" in correction["content"]
        assert '"x"' not in correction["content"]

    @pytest.mark.asyncio
    async def test_corrections_accumulate_across_attempts(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test corrective messages accumulate until the budget runs out."""
        bad = '{"name": "Ada", "age": "x"}'
        api_call = _api_call(bad, bad, bad)

        outcome = await PipelineExecutor(api_call).execute(
            _context(user_profile_model, max_retries=2)
        )

        assert isinstance(outcome, Failure)
        assert outcome.kind is ErrorKind.VALIDATION
        assert isinstance(outcome.error, ResponseValidationError)
        assert len(outcome.context.api_responses) == 3
        lengths = [len(c.args[0].messages) for c in api_call.await_args_list]
        assert lengths == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_missing_tool_call_not_retried(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test an unparseable reply is terminal."""
        api_call = _api_call(None, '{"name": "Ada", "age": 36}')

        outcome = await PipelineExecutor(api_call).execute(
            _context(user_profile_model, max_retries=3)
        )

        assert isinstance(outcome, Failure)
        assert outcome.kind is ErrorKind.UNABLE_TO_PARSE
        assert isinstance(outcome.error, UnableToParseResponse)
        assert api_call.await_count == 1
        assert len(outcome.context.api_responses) == 1

    @pytest.mark.asyncio
    async def test_transport_failure_not_retried(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test provider errors are terminal transport failures."""
        error = ProviderException("down", provider="openai", model="gpt-4o-mini")
        api_call = AsyncMock(side_effect=error)

        outcome = await PipelineExecutor(api_call).execute(
            _context(user_profile_model, max_retries=3)
        )

        assert isinstance(outcome, Failure)
        assert outcome.kind is ErrorKind.TRANSPORT
        assert outcome.error is error
        assert outcome.context.api_responses == ()
        assert api_call.await_count == 1

    @pytest.mark.asyncio
    async def test_extra_messages_appended(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test extra messages are appended after the conversation."""
        api_call = _api_call('{"name": "Ada", "age": 36}')

        await PipelineExecutor(api_call).execute(
            _context(user_profile_model), [user_message("Answer in English.")]
        )

        (request,) = (c.args[0] for c in api_call.await_args_list)
        assert request.messages[-1] == user_message("Answer in English.")

    @pytest.mark.asyncio
    async def test_failure_raised_for_caller(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test a failure is raised with its error and responses."""
        outcome = await PipelineExecutor(_api_call(None)).execute(
            _context(user_profile_model)
        )
        assert isinstance(outcome, Failure)

        with pytest.raises(ExtractionFailedError) as exc_info:
            outcome.raise_for_caller()

        assert exc_info.value.error is outcome.error
        assert exc_info.value.api_responses == outcome.context.api_responses

    @pytest.mark.asyncio
    async def test_custom_validator_used(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test a supplied validator parses and validates the reply."""
        validator = Mock()
        validator.parse.return_value = {"name": "Ada", "age": 36}
        validator.validate.return_value = "validated"
        api_call = _api_call('{"ignored": true}')

        outcome = await PipelineExecutor(api_call, validator=validator).execute(
            _context(user_profile_model)
        )

        assert isinstance(outcome, Success)
        assert outcome.value[0] == "validated"
        validator.validate.assert_called_once_with(
            {"name": "Ada", "age": 36}, user_profile_model, retries=0
        )

    @pytest.mark.asyncio
    async def test_each_violation_fed_back_separately(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test a reply violating two fields yields two corrective messages."""
        api_call = _api_call('{"name": 1, "age": "x"}', '{"name": "Ada", "age": 36}')

        outcome = await PipelineExecutor(api_call).execute(
            _context(user_profile_model, max_retries=1)
        )

        assert isinstance(outcome, Success)
        second_request = api_call.await_args_list[1].args[0]
        assert len(second_request.messages) == 3
        name_fix, age_fix = second_request.messages[1:]
        assert name_fix["role"] == age_fix["role"] == "user"
        assert name_fix["content"].startswith(
            "An instance of UserProfile has failed the validation:\n"
        )
        constraint = " - property {} has failed the following constraints: {}"
        assert constraint.format("name", "string_type") in name_fix["content"]
        assert constraint.format("age", "int_parsing") in age_fix["content"]

    @pytest.mark.asyncio
    async def test_schema_dict_resolved_before_first_attempt(self) -> None:
        """Test a schema dict is resolved into a model and used as the tool."""
        api_call = _api_call('{"label": "HAM"}')
        schema = {
            "title": "Verdict",
            "type": "object",
            "properties": {"label": {"type": "string", "enum": ["SPAM", "HAM"]}},
            "required": ["label"],
        }

        outcome = await PipelineExecutor(api_call).execute(_context(schema))

        assert isinstance(outcome, Success)
        assert outcome.context.model_name == "Verdict"
        assert outcome.value[0].label == "HAM"
        (request,) = (c.args[0] for c in api_call.await_args_list)
        assert request.tool_choice["function"]["name"] == "Verdict"

    @pytest.mark.asyncio
    async def test_schema_name_resolved_through_manager(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test schema names are resolved by the supplied schema manager."""
        manager = Mock(spec=SchemaManager)
        manager.get_response_model.return_value = user_profile_model
        api_call = _api_call('{"name": "Ada", "age": 36}')

        outcome = await PipelineExecutor(api_call, schema_manager=manager).execute(
            _context("user_profile")
        )

        assert isinstance(outcome, Success)
        manager.get_response_model.assert_called_once_with("user_profile")

    @pytest.mark.asyncio
    async def test_unknown_schema_name_fails_before_upstream_call(self) -> None:
        """Test an unknown schema name is a terminal schema failure."""
        api_call = _api_call('{"name": "Ada", "age": 36}')

        outcome = await PipelineExecutor(api_call).execute(
            _context("does_not_exist", max_retries=3)
        )

        assert isinstance(outcome, Failure)
        assert outcome.kind is ErrorKind.SCHEMA_RESOLUTION
        assert isinstance(outcome.error, SchemaNotFoundError)
        assert outcome.context.api_responses == ()
        api_call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unclassified_error_propagates(
        self, user_profile_model: type[BaseModel]
    ) -> None:
        """Test errors outside the known stage failures are not swallowed."""
        validator = Mock()
        validator.parse.side_effect = TypeError("validator bug")
        api_call = _api_call('{"name": "Ada", "age": 36}')

        with pytest.raises(TypeError, match="validator bug"):
            await PipelineExecutor(api_call, validator=validator).execute(
                _context(user_profile_model, max_retries=3)
            )

        assert api_call.await_count == 1
