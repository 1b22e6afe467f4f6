"""Integration tests for structured extraction against a real provider."""

from enum import Enum
from typing import Any

import pytest
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from structured_llm_client import (
    ExtractionFailedError,
    build,
    summarize_usage,
    system_message,
    user_message,
)

# Load environment variables from .env file if it exists
load_dotenv()

MODEL = "gpt-4o-mini"


class UserProfile(BaseModel):
    """Nested user profile for extraction testing."""

    class Address(BaseModel):
        city: str
        country: str

    name: str
    age: int = Field(ge=0)
    address: Address


class Label(str, Enum):
    SPAM = "SPAM"
    NOT_SPAM = "NOT_SPAM"


class Classification(BaseModel):
    label: Label
    reason: str


class ShoutedName(BaseModel):
    """Forces at least one correction round trip on most models."""

    name: str

    @field_validator("name")
    @classmethod
    def must_be_uppercase(cls, v: str) -> str:
        if v != v.upper():
            raise ValueError("name must be written in uppercase letters")
        return v


@pytest.mark.integration
class TestOpenAIExtraction:
    """Real OpenAI calls through completions.create."""

    @pytest.mark.asyncio
    async def test_nested_model_extraction(self, integration_test_setup: Any) -> None:
        """Test extracting a model with nested objects."""
        client = build(api_key=integration_test_setup.openai_api_key)

        profile, raw_responses = await client.completions.create(
            response_model=UserProfile,
            model=MODEL,
            messages=[
                system_message("Extract the user profile."),
                user_message("Ada Lovelace, 36, lives in London, United Kingdom."),
            ],
            max_retries=2,
            temperature=0,
        )

        assert isinstance(profile, UserProfile)
        assert "Ada" in profile.name
        assert profile.age == 36
        assert profile.address.city == "London"
        assert len(raw_responses) >= 1

        usage = summarize_usage(raw_responses, model=MODEL)
        assert usage.attempts == len(raw_responses)
        assert usage.input_tokens > 0
        assert usage.provider == "openai"

    @pytest.mark.asyncio
    async def test_enum_extraction(self, integration_test_setup: Any) -> None:
        """Test extracting an enum-valued field."""
        client = build(api_key=integration_test_setup.openai_api_key)

        result = await client.completions.create(
            response_model=Classification,
            model=MODEL,
            messages=[
                user_message(
                    "Classify this email: 'You won a free cruise! Send your "
                    "bank details to claim it.'"
                )
            ],
            temperature=0,
        )

        assert result.response.label is Label.SPAM  # type: ignore[attr-defined]

    @pytest.mark.asyncio
    async def test_correction_round_trip(self, integration_test_setup: Any) -> None:
        """Test a failed constraint is corrected on retry."""
        client = build(api_key=integration_test_setup.openai_api_key)

        try:
            shouted, raw_responses = await client.completions.create(
                response_model=ShoutedName,
                model=MODEL,
                messages=[user_message("Extract the name: my name is grace hopper")],
                max_retries=3,
                temperature=0,
            )
        except ExtractionFailedError as e:
            pytest.fail(
                f"Extraction failed after {len(e.api_responses)} attempt(s): {e.error}"
            )

        assert shouted.name == shouted.name.upper()  # type: ignore[attr-defined]
        assert 1 <= len(raw_responses) <= 4
