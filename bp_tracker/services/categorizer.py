"""
blood pressure categorizer.

maps a systolic/diastolic pair to a clinical tier using an ordered decision
list. the bands overlap (a pair can match both stage 1 and elevated, or
both stage 2 and crisis), so rules are checked from most to least severe
and the first match wins.
"""

import math
from numbers import Real
from typing import Callable, List, Tuple

from bp_tracker.models.trends import Category
from bp_tracker.services.errors import CategorizationError


# threshold constants (mmhg)
CRISIS_SYSTOLIC_ABOVE = 180
CRISIS_DIASTOLIC_ABOVE = 120

STAGE2_SYSTOLIC_MIN = 140
STAGE2_DIASTOLIC_MIN = 90

STAGE1_SYSTOLIC_MIN = 130
STAGE1_SYSTOLIC_MAX = 139
STAGE1_DIASTOLIC_MIN = 80
STAGE1_DIASTOLIC_MAX = 89

ELEVATED_SYSTOLIC_MIN = 120
ELEVATED_SYSTOLIC_MAX = 129

NORMAL_SYSTOLIC_BELOW = 120
NORMAL_DIASTOLIC_BELOW = 80


Rule = Tuple[Category, Callable[[float, float], bool]]

# evaluated top to bottom, first match wins
DECISION_LIST: List[Rule] = [
    (
        Category.CRISIS,
        lambda s, d: s > CRISIS_SYSTOLIC_ABOVE or d > CRISIS_DIASTOLIC_ABOVE,
    ),
    (
        Category.STAGE2,
        lambda s, d: s >= STAGE2_SYSTOLIC_MIN or d >= STAGE2_DIASTOLIC_MIN,
    ),
    (
        Category.STAGE1,
        lambda s, d: (
            STAGE1_SYSTOLIC_MIN <= s <= STAGE1_SYSTOLIC_MAX
            or STAGE1_DIASTOLIC_MIN <= d <= STAGE1_DIASTOLIC_MAX
        ),
    ),
    (
        Category.ELEVATED,
        lambda s, d: (
            ELEVATED_SYSTOLIC_MIN <= s <= ELEVATED_SYSTOLIC_MAX
            and d < NORMAL_DIASTOLIC_BELOW
        ),
    ),
    (
        Category.NORMAL,
        lambda s, d: s < NORMAL_SYSTOLIC_BELOW and d < NORMAL_DIASTOLIC_BELOW,
    ),
]


def _check_pressure(name: str, value) -> None:
    """
    reject values that are not finite, non-negative numbers.

    args:
        name: field name used in the error message
        value: value to check

    raises:
        CategorizationError: if the value is unusable
    """
    # bool is a subclass of int but never a pressure
    if isinstance(value, bool) or not isinstance(value, Real):
        raise CategorizationError(f"{name} must be a number (got {value!r})")
    if math.isnan(value) or math.isinf(value):
        raise CategorizationError(f"{name} must be finite (got {value!r})")
    if value < 0:
        raise CategorizationError(f"{name} must not be negative (got {value!r})")


def categorize(systolic: float, diastolic: float) -> Category:
    """
    categorize a blood pressure pair.

    rules, first match wins:
        1. systolic > 180 or diastolic > 120            -> crisis
        2. systolic >= 140 or diastolic >= 90           -> stage 2
        3. systolic 130-139 or diastolic 80-89          -> stage 1
        4. systolic 120-129 and diastolic < 80          -> elevated
        5. systolic < 120 and diastolic < 80            -> normal
        6. anything else                                -> unknown

    for integer input rule 6 is unreachable. fractional values that fall in
    the gaps between the integer bands (e.g. systolic 129.5 or diastolic
    89.5) match no band and come back as unknown.

    args:
        systolic: systolic pressure in mmhg
        diastolic: diastolic pressure in mmhg

    returns:
        Category for the pair

    raises:
        CategorizationError: if either value is negative, nan, infinite or
            not a number
    """
    _check_pressure("systolic", systolic)
    _check_pressure("diastolic", diastolic)

    for category, matches in DECISION_LIST:
        if matches(systolic, diastolic):
            return category

    return Category.UNKNOWN


def categorize_reading(reading) -> Category:
    """categorize any object with systolic and diastolic attributes."""
    return categorize(reading.systolic, reading.diastolic)
