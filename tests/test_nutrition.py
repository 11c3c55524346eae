import pytest

from gym_plan.nutrition import (
    basal_metabolic_rate,
    bmi,
    bmi_class,
    calories_from_macros,
    daily_protein_target,
    daily_water_target,
    macro_percentages,
    macro_split,
    nutrition_plan,
    round_half_up,
    sum_macros,
    target_calories,
    total_daily_expenditure,
)
from gym_plan.schemas import ActivityLevel, BMIClass, Level, Macros, Objective, Sex

from conftest import make_meal


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2.5, 3), (2.4999, 2), (-2.5, -2), (229.425, 229), (84.97, 85)],
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_bmr_male_and_female():
    assert basal_metabolic_rate(80, 180, 30) == 1780
    assert basal_metabolic_rate(80, 180, 30, Sex.FEMALE) == 1614


def test_tdee_rounds_halves_up():
    # 1780 * 1.375 == 2447.5
    assert total_daily_expenditure(1780, ActivityLevel.LIGHT) == 2448
    assert total_daily_expenditure(1780) == 2759


def test_target_calories_per_objective():
    assert target_calories(2759, Objective.HYPERTROPHY) == 3059
    assert target_calories(2759, Objective.FAT_LOSS) == 2359
    assert target_calories(2759, Objective.CONDITIONING) == 2759
    assert target_calories(2759, Objective.PERFORMANCE) == 2959


def test_macro_split_hypertrophy():
    assert macro_split(3059, Objective.HYPERTROPHY) == Macros(
        protein_g=229, carb_g=344, fat_g=85, calories=3059
    )


def test_nutrition_plan_intermediate_hypertrophy():
    plan = nutrition_plan(80, 180, 30, Objective.HYPERTROPHY, Level.INTERMEDIATE)
    assert plan.bmr == 1780
    assert plan.tdee == 2759
    assert plan.target_calories == 3059
    assert plan.macros.protein_g == 229


def test_nutrition_plan_beginner_fat_loss():
    plan = nutrition_plan(80, 180, 30, Objective.FAT_LOSS, Level.BEGINNER)
    assert plan.tdee == 2448
    assert plan.target_calories == 2048
    assert plan.macros == Macros(protein_g=179, carb_g=179, fat_g=68, calories=2048)


def test_nutrition_plan_reports_rounded_bmr():
    plan = nutrition_plan(70.3, 175, 25, Objective.CONDITIONING, Level.INTERMEDIATE)
    # 703 + 1093.75 - 125 + 5
    assert plan.bmr == 1677


def test_calories_from_macros():
    assert calories_from_macros(30, 40, 10) == 370
    assert calories_from_macros(0, 0, 0) == 0


def test_bmi_one_decimal():
    assert bmi(80, 180) == 24.7


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (18.4, BMIClass.UNDERWEIGHT),
        (18.5, BMIClass.NORMAL),
        (24.9, BMIClass.NORMAL),
        (24.99, BMIClass.NORMAL),
        (25.0, BMIClass.OVERWEIGHT),
        (34.9, BMIClass.OBESE_1),
        (39.9, BMIClass.OBESE_2),
        (40.0, BMIClass.OBESE_3),
    ],
)
def test_bmi_class_boundaries(value, expected):
    assert bmi_class(value) is expected


def test_daily_targets():
    assert daily_protein_target(80, Objective.HYPERTROPHY) == 160
    assert daily_protein_target(80, Objective.FAT_LOSS) == 176
    assert daily_water_target(80) == 2.8
    assert daily_water_target(70.5) == 2.47


def test_sum_macros_and_percentages():
    total = sum_macros([make_meal("a", 30, 40, 10), make_meal("b", 20.4, 10.3, 5.2)])
    assert total == Macros(protein_g=50, carb_g=50, fat_g=15, calories=540)

    pct = macro_percentages(total, Macros(protein_g=100, carb_g=200, fat_g=0, calories=1000))
    assert pct == {"protein_g": 50, "carb_g": 25, "fat_g": 0, "calories": 54}


def test_sum_macros_empty():
    assert sum_macros([]) == Macros(protein_g=0, carb_g=0, fat_g=0, calories=0)


def test_bmr_monotonic():
    assert basal_metabolic_rate(81, 180, 30) > basal_metabolic_rate(80, 180, 30)
    assert basal_metabolic_rate(80, 181, 30) > basal_metabolic_rate(80, 180, 30)
    assert basal_metabolic_rate(80, 180, 31) < basal_metabolic_rate(80, 180, 30)


def test_macro_split_reference_values():
    assert macro_split(2000, Objective.HYPERTROPHY) == Macros(
        protein_g=150, carb_g=225, fat_g=56, calories=2000
    )
