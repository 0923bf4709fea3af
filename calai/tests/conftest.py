"""
Shared fixtures for CalAI tests.

Domain samples, synthetic photos and mocked transport.
"""

import json
from typing import Any, Dict
from unittest.mock import AsyncMock

import pytest

from calai.application.analysis.coordinator import AnalysisCoordinator
from calai.application.analysis.service import FoodImageAnalysisService
from calai.domain.analysis.models import (
    AnalysisResult,
    EncodedImage,
    IngredientEstimate,
    RawImage,
    RawModelReply,
)
from calai.infrastructure.ai.analysis_client import AnalysisClient
from calai.infrastructure.persistence.in_memory_record_store import (
    InMemoryFoodRecordStore,
)
from calai.tests.helpers import gradient_image, jpeg_bytes, make_reply


# ═══════════════════════════════════════════════════════════
# DOMAIN MODEL FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def salad_wire() -> Dict[str, Any]:
    """Salad analysis in the field names the model is asked to use."""
    return {
        "foodName": "Salad",
        "foodDescription": "Fresh green salad",
        "calories": 150,
        "ingredients": [
            {
                "name": "Lettuce",
                "calorie_per_gram": 0.15,
                "total_grams": 100,
                "total_calories": 15,
            }
        ],
    }


@pytest.fixture
def salad_result() -> AnalysisResult:
    return AnalysisResult(
        food_name="Salad",
        food_description="Fresh green salad",
        calories=150,
        ingredients=[
            IngredientEstimate(
                name="Lettuce",
                calories_per_gram=0.15,
                total_grams=100,
                total_calories=15,
            )
        ],
    )


@pytest.fixture
def salad_reply(salad_wire: Dict[str, Any]) -> RawModelReply:
    """Reply wrapping the JSON in prose and a markdown fence."""
    content = (
        "Here is the nutritional analysis of your meal:\n```json\n"
        + json.dumps(salad_wire)
        + "\n```\nLet me know if you need anything else."
    )
    return RawModelReply.model_validate(make_reply(content))


@pytest.fixture
def small_photo() -> RawImage:
    return RawImage(pixels=gradient_image(320, 240), scale=2.0)


@pytest.fixture
def encoded_photo() -> EncodedImage:
    image = gradient_image(64, 48)
    return EncodedImage(data=jpeg_bytes(image), quality=80, width=64, height=48)


# ═══════════════════════════════════════════════════════════
# MOCK CLIENT / SERVICE FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def mock_client(salad_reply: RawModelReply) -> AsyncMock:
    """Mock analysis client.

    Default behavior: returns the salad reply.
    Override ``send.return_value`` or ``send.side_effect`` in tests.
    """
    client = AsyncMock(spec=AnalysisClient)
    client.send.return_value = salad_reply
    return client


@pytest.fixture
def service(mock_client: AsyncMock) -> FoodImageAnalysisService:
    return FoodImageAnalysisService(mock_client, api_key="sk-test")


@pytest.fixture
def store() -> InMemoryFoodRecordStore:
    return InMemoryFoodRecordStore()


@pytest.fixture
def coordinator(
    service: FoodImageAnalysisService, store: InMemoryFoodRecordStore
) -> AnalysisCoordinator:
    return AnalysisCoordinator(service, store)
