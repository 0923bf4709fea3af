"""
Tests for model reply extraction.

Test locating and validating the nutrition JSON in free text.
"""

import json
from typing import Any, Dict

import pytest

from calai.domain.analysis.extractor import extract_analysis_result, find_json_candidate
from calai.domain.analysis.models import AnalysisResult, RawModelReply
from calai.domain.shared.errors import (
    MissingContentError,
    NoJsonFoundError,
    SchemaMismatchError,
)
from calai.tests.helpers import make_reply


def reply_with(content: Any) -> RawModelReply:
    return RawModelReply.model_validate(make_reply(content))


class TestFindJsonCandidate:
    """Test find_json_candidate()."""

    def test_plain_object(self) -> None:
        assert find_json_candidate('{"a": 1}') == '{"a": 1}'

    def test_strips_prose_and_fences(self) -> None:
        text = 'Sure!\n```json\n{"a": {"b": 2}}\n```\nEnjoy.'

        assert find_json_candidate(text) == '{"a": {"b": 2}}'

    def test_no_opening_brace(self) -> None:
        with pytest.raises(NoJsonFoundError) as exc_info:
            find_json_candidate("I cannot identify this food.")

        assert exc_info.value.content == "I cannot identify this food."

    def test_no_closing_brace(self) -> None:
        with pytest.raises(NoJsonFoundError):
            find_json_candidate('{"foodName": "Salad"')

    def test_closing_before_opening(self) -> None:
        with pytest.raises(NoJsonFoundError):
            find_json_candidate("} nothing here {")

    def test_two_objects_spanned_together(self) -> None:
        """Outer span is returned; it is not valid JSON on its own."""
        assert find_json_candidate('{"a": 1} and {"b": 2}') == '{"a": 1} and {"b": 2}'


class TestExtractAnalysisResult:
    """Test extract_analysis_result()."""

    def test_extracts_from_prose(
        self, salad_reply: RawModelReply, salad_result: AnalysisResult
    ) -> None:
        result = extract_analysis_result(salad_reply)

        assert result == salad_result
        assert result.food_name == "Salad"
        assert result.ingredients[0].calories_per_gram == 0.15

    def test_wire_form_round_trip(self, salad_result: AnalysisResult) -> None:
        """Result serialized with wire names extracts to an equal result."""
        content = "Result: " + json.dumps(salad_result.to_wire()) + " Bon appetit!"

        assert extract_analysis_result(reply_with(content)) == salad_result

    def test_empty_ingredients_allowed(self) -> None:
        content = json.dumps(
            {
                "foodName": "Water",
                "foodDescription": "Glass of water",
                "calories": 0,
                "ingredients": [],
            }
        )

        result = extract_analysis_result(reply_with(content))

        assert result.ingredients == []
        assert result.calories == 0

    def test_no_choices(self) -> None:
        reply = RawModelReply.model_validate(make_reply("ignored", choices=[]))

        with pytest.raises(MissingContentError):
            extract_analysis_result(reply)

    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_missing_text(self, content: Any) -> None:
        with pytest.raises(MissingContentError):
            extract_analysis_result(reply_with(content))

    def test_no_json_in_text(self) -> None:
        with pytest.raises(NoJsonFoundError):
            extract_analysis_result(reply_with("Sorry, I can't help with that."))

    def test_invalid_json(self) -> None:
        with pytest.raises(SchemaMismatchError) as exc_info:
            extract_analysis_result(reply_with("{ this is not json }"))

        assert exc_info.value.candidate == "{ this is not json }"

    def test_missing_field(self, salad_wire: Dict[str, Any]) -> None:
        del salad_wire["foodDescription"]

        with pytest.raises(SchemaMismatchError):
            extract_analysis_result(reply_with(json.dumps(salad_wire)))

    def test_missing_ingredient_field(self, salad_wire: Dict[str, Any]) -> None:
        del salad_wire["ingredients"][0]["total_grams"]

        with pytest.raises(SchemaMismatchError):
            extract_analysis_result(reply_with(json.dumps(salad_wire)))

    def test_number_as_string_rejected(self, salad_wire: Dict[str, Any]) -> None:
        """Types are strict: "150" is not a number."""
        salad_wire["calories"] = "150"

        with pytest.raises(SchemaMismatchError):
            extract_analysis_result(reply_with(json.dumps(salad_wire)))

    def test_wrong_field_type(self, salad_wire: Dict[str, Any]) -> None:
        salad_wire["ingredients"] = {"name": "Lettuce"}

        with pytest.raises(SchemaMismatchError):
            extract_analysis_result(reply_with(json.dumps(salad_wire)))

    def test_error_is_chained(self, salad_wire: Dict[str, Any]) -> None:
        del salad_wire["calories"]

        with pytest.raises(SchemaMismatchError) as exc_info:
            extract_analysis_result(reply_with(json.dumps(salad_wire)))

        assert exc_info.value.__cause__ is not None
