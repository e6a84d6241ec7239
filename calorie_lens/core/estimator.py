from decimal import ROUND_HALF_UP, Decimal

_CATEGORY_CALORIES: list[tuple[tuple[str, ...], int]] = [
    (('fruit', 'berry'), 50),
    (('vegetable', 'salad'), 25),
    (('meat', 'chicken', 'beef'), 250),
    (('bread', 'pasta', 'rice'), 150),
    (('dessert', 'cake', 'sweet'), 300),
    (('drink', 'beverage'), 100),
]

GENERIC_CALORIES_PER_UNIT_CONFIDENCE = Decimal('150')


def estimate_calories(identifier: str, confidence: float) -> int:
    normalized = (identifier or '').lower()
    for needles, calories in _CATEGORY_CALORIES:
        if any(needle in normalized for needle in needles):
            return calories
    # str() keeps the decimal the caller wrote, 0.31 scales to exactly 46.5 and rounds half up.
    scaled = GENERIC_CALORIES_PER_UNIT_CONFIDENCE * Decimal(str(confidence))
    return int(scaled.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
