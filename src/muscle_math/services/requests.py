"""Build model instructions from user profile inputs."""

import math
from dataclasses import dataclass

from muscle_math.domain.profile import UserProfile
from muscle_math.errors import InvalidProfileError

QUICK_MEAL_COUNT = 1
DAILY_PLAN_MEAL_COUNT = 3

SUGGESTION_SET_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "meal": {
                        "type": "string",
                        "description": "Name of the meal with an appropriate emoji",
                    },
                    "items": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {
                                    "type": "string",
                                    "description": "Name of the item with an "
                                    "appropriate emoji",
                                },
                                "url": {
                                    "type": "string",
                                    "description": "URL to the item's search "
                                    "results at the store",
                                },
                            },
                            "required": ["name", "url"],
                            "additionalProperties": False,
                        },
                    },
                    "proteinGrams": {"type": "integer", "minimum": 0},
                    "calories": {"type": "integer", "minimum": 0},
                    "estimatedCost": {"type": "number", "minimum": 0},
                    "isFavorited": {
                        "type": "boolean",
                        "description": "This value should be false",
                    },
                },
                "required": [
                    "meal",
                    "items",
                    "proteinGrams",
                    "calories",
                    "estimatedCost",
                    "isFavorited",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["suggestions"],
    "additionalProperties": False,
}


@dataclass(frozen=True)
class GenerationRequest:
    """Instruction block and prompt handed to the model."""

    instructions: str
    prompt: str
    schema: dict[str, object]


def validate_profile(profile: UserProfile) -> None:
    """Raise InvalidProfileError when the profile cannot be planned for."""
    if profile.age is None or profile.current_weight is None:
        raise InvalidProfileError("age and current weight are required")
    if profile.goal_weight is None:
        raise InvalidProfileError("goal weight is required")
    if not profile.store_name:
        raise InvalidProfileError("store is required")
    if profile.age <= 0:
        raise InvalidProfileError("age must be positive")
    for weight in (profile.current_weight, profile.goal_weight):
        if not math.isfinite(weight) or weight <= 0:
            raise InvalidProfileError("weights must be positive numbers")
    for label, value in profile.macro_targets():
        if not math.isfinite(value) or value < 0:
            raise InvalidProfileError(f"target {label} must not be negative")


def build_request(profile: UserProfile, meal_count: int) -> GenerationRequest:
    """Render the instructions and prompt for a plan of ``meal_count`` meals."""
    validate_profile(profile)
    if meal_count < 1:
        raise InvalidProfileError("meal count must be positive")
    return GenerationRequest(
        instructions=render_instructions(profile),
        prompt=render_prompt(meal_count),
        schema=SUGGESTION_SET_SCHEMA,
    )


def render_prompt(meal_count: int) -> str:
    noun = "meal" if meal_count == 1 else "meals"
    return f"Plan {meal_count} {noun}"


def render_instructions(profile: UserProfile) -> str:
    """Render the instruction block for a validated profile."""
    lines = [
        "You are a nutrition and grocery planning assistant. "
        "Given the following user:",
        f"- Age: {profile.age}",
        f"- Current weight (lbs): {_whole(profile.current_weight)}",
        f"- Goal weight (lbs): {_whole(profile.goal_weight)}",
        f"- Preferred grocery store: {profile.store_name}",
    ]
    targets = profile.macro_targets()
    if targets:
        lines.append("Macro targets:")
        lines.extend(
            f"- Target {label}: {_whole(value)} g" for label, value in targets
        )
    lines.extend(
        [
            "",
            "Suggest budget-conscious meal plans for one day that can be shopped "
            "at the specified store. For each meal, include:",
            "- A short meal name with an appropriate emoji",
            "- 3-6 specific grocery items to buy (brand-agnostic when possible, "
            "but realistic for the store)",
            "- Estimated protein grams and calories for the meal",
            "- Estimated total cost in USD for the listed items "
            "(reasonable ballpark)",
            "- For each item, a URL to the item's search results at the store",
        ]
    )
    if targets:
        lines.append(
            "When balancing calories against the macro targets, "
            "prioritize hitting the protein target."
        )
    lines.append("Never set isFavorited to true.")
    return "\n".join(lines)


def _whole(value: float) -> int:
    # Half-up, non-negative inputs only.
    return int(float(value) + 0.5)
