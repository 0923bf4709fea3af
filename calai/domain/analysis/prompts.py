"""
Prompt contract for meal photo analysis.

IMPORTANT: The instruction text and ANALYSIS_OUTPUT_SCHEMA describe the same
JSON shape. Field names here must match the aliases on AnalysisResult and
IngredientEstimate; bump PROMPT_VERSION whenever they change.
"""

from typing import Any, Dict, List

PROMPT_VERSION = "1"

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_MAX_TOKENS = 1000


# ═══════════════════════════════════════════════════════════
# INSTRUCTION (static)
# ═══════════════════════════════════════════════════════════

ANALYSIS_INSTRUCTION = """Analyze this food image and provide detailed nutritional information.
Return a JSON object with the following EXACT structure:
{
    "foodName": "Name of the dish",
    "foodDescription": "Description of the dish",
    "calories": 123,
    "ingredients": [
        {
            "name": "Ingredient name",
            "calorie_per_gram": 1.5,
            "total_grams": 100,
            "total_calories": 150
        }
    ]
}
Important rules:
1. MUST include all fields exactly as shown
2. calorie_per_gram should be in calories per gram
3. total_grams should be the estimated weight in grams
4. total_calories should be calorie_per_gram * total_grams
5. Be as accurate as possible with the nutritional analysis"""


# ═══════════════════════════════════════════════════════════
# JSON SCHEMA (mirrors the instruction)
# ═══════════════════════════════════════════════════════════

ANALYSIS_OUTPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "foodName": {
            "type": "string",
            "description": "Name of the dish",
        },
        "foodDescription": {
            "type": "string",
            "description": "Description of the dish",
        },
        "calories": {
            "type": "number",
            "description": "Total calories of the dish",
        },
        "ingredients": {
            "type": "array",
            "description": "Visible ingredients with weight estimates",
            "items": {
                "type": "object",
                "properties": {
                    "name": {
                        "type": "string",
                        "description": "Ingredient name",
                    },
                    "calorie_per_gram": {
                        "type": "number",
                        "description": "Calories per gram",
                    },
                    "total_grams": {
                        "type": "number",
                        "description": "Estimated weight in grams",
                    },
                    "total_calories": {
                        "type": "number",
                        "description": "calorie_per_gram * total_grams",
                    },
                },
                "required": [
                    "name",
                    "calorie_per_gram",
                    "total_grams",
                    "total_calories",
                ],
            },
        },
    },
    "required": ["foodName", "foodDescription", "calories", "ingredients"],
}


def required_fields() -> List[str]:
    """Top-level field names the model must return."""
    return list(ANALYSIS_OUTPUT_SCHEMA["required"])


def required_ingredient_fields() -> List[str]:
    """Field names every ingredient must carry."""
    return list(ANALYSIS_OUTPUT_SCHEMA["properties"]["ingredients"]["items"]["required"])
