"""Tests for building model instructions from profiles."""

from itertools import product

import pytest

from muscle_math.domain.profile import UserProfile
from muscle_math.errors import InvalidProfileError
from muscle_math.services.requests import (
    DAILY_PLAN_MEAL_COUNT,
    QUICK_MEAL_COUNT,
    SUGGESTION_SET_SCHEMA,
    build_request,
)


def test_build_request_renders_profile_fields(profile) -> None:
    request = build_request(profile, DAILY_PLAN_MEAL_COUNT)

    assert "- Age: 30" in request.instructions
    assert "- Current weight (lbs): 230" in request.instructions
    assert "- Goal weight (lbs): 200" in request.instructions
    assert "- Preferred grocery store: Target" in request.instructions
    assert "Macro targets:" in request.instructions
    assert "- Target protein: 170 g" in request.instructions
    assert "Target carbs" not in request.instructions
    assert "Target fat" not in request.instructions
    assert "prioritize hitting the protein target" in request.instructions
    assert request.prompt == "Plan 3 meals"
    assert request.schema is SUGGESTION_SET_SCHEMA


def test_build_request_is_deterministic(profile) -> None:
    first = build_request(profile, DAILY_PLAN_MEAL_COUNT)
    second = build_request(profile, DAILY_PLAN_MEAL_COUNT)

    assert first.instructions == second.instructions
    assert first.prompt == second.prompt


def test_build_request_without_macros_omits_section() -> None:
    profile = UserProfile(age=41, current_weight=180, goal_weight=175, store="Aldi")

    request = build_request(profile, QUICK_MEAL_COUNT)

    assert "Macro targets" not in request.instructions
    assert "prioritize" not in request.instructions
    assert "3-6 specific grocery items" in request.instructions
    assert "Estimated total cost in USD" in request.instructions
    assert request.prompt == "Plan 1 meal"


def test_build_request_rounds_weights_and_macros() -> None:
    profile = UserProfile(
        age=25,
        current_weight=230.6,
        goal_weight=199.4,
        store="  Costco ",
        target_carbs=150.5,
        target_fat=0,
    )

    request = build_request(profile, 2)

    assert "- Current weight (lbs): 231" in request.instructions
    assert "- Goal weight (lbs): 199" in request.instructions
    assert "- Preferred grocery store: Costco" in request.instructions
    assert "- Target carbs: 151 g" in request.instructions
    assert "- Target fat: 0 g" in request.instructions
    assert "Target protein" not in request.instructions


@pytest.mark.parametrize(
    ("age", "current_weight", "goal_weight", "store"),
    [
        combo
        for combo in product(
            [None, 30], [None, 230.0], [None, 200.0], ["", "  ", "Meijer"]
        )
        if combo != (30, 230.0, 200.0, "Meijer")
    ],
)
def test_build_request_rejects_incomplete_profiles(
    age, current_weight, goal_weight, store
) -> None:
    profile = UserProfile(
        age=age,
        current_weight=current_weight,
        goal_weight=goal_weight,
        store=store,
    )

    with pytest.raises(InvalidProfileError) as excinfo:
        build_request(profile, DAILY_PLAN_MEAL_COUNT)

    assert excinfo.value.user_message == "Please fill in all fields."


def test_build_request_rejects_bad_values() -> None:
    with pytest.raises(InvalidProfileError):
        build_request(
            UserProfile(age=0, current_weight=200, goal_weight=180, store="Target"), 1
        )
    with pytest.raises(InvalidProfileError):
        build_request(
            UserProfile(
                age=30,
                current_weight=200,
                goal_weight=180,
                store="Target",
                target_fat=-5,
            ),
            1,
        )
    with pytest.raises(InvalidProfileError):
        build_request(
            UserProfile(age=30, current_weight=200, goal_weight=180, store="Target"), 0
        )


@pytest.mark.parametrize(
    "overrides",
    [
        {"current_weight": float("nan")},
        {"goal_weight": float("inf")},
        {"current_weight": float("-inf")},
        {"target_protein": float("nan")},
        {"target_carbs": float("inf")},
    ],
)
def test_build_request_rejects_non_finite_values(overrides) -> None:
    values = {"age": 30, "current_weight": 200, "goal_weight": 180, "store": "Target"}
    profile = UserProfile(**{**values, **overrides})

    with pytest.raises(InvalidProfileError) as excinfo:
        build_request(profile, QUICK_MEAL_COUNT)

    assert excinfo.value.user_message == "Please fill in all fields."
