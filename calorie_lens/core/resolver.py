import logging
from dataclasses import dataclass

from calorie_lens.core.estimator import estimate_calories
from calorie_lens.core.food_table import FoodTable
from calorie_lens.core.labels import format_food_name
from calorie_lens.core.types import AnalysisResult, ClassificationObservation, FoodItem

logger = logging.getLogger(__name__)

NO_FOOD_MESSAGE = 'no food detected'
DEFAULT_PORTION = '100g'
FALLBACK_PORTION = 'porción'


@dataclass(frozen=True)
class ResolverLimits:
    max_results_to_analyze: int = 15
    max_items: int = 8
    fallback_max_items: int = 5
    estimate_min_confidence: float = 0.3
    fallback_min_confidence: float = 0.5


class LabelResolver:
    """Turns ranked classifier observations into food items with calorie estimates.

    Stateless apart from the read-only reference table, so one instance can serve
    concurrent requests.
    """

    def __init__(self, table: FoodTable, limits: ResolverLimits | None = None):
        self._table = table
        self._limits = limits or ResolverLimits()

    def resolve(self, observations: list[ClassificationObservation]) -> AnalysisResult:
        top = list(observations)[: max(0, self._limits.max_results_to_analyze)]
        for index, observation in enumerate(top[:10], start=1):
            logger.debug('observation %s. %s %s%%', index, observation.identifier, int(observation.confidence * 100))

        foods = [observation for observation in top if self._table.is_food(observation.identifier)]
        logger.debug('food observations=%s of %s', len(foods), len(top))

        if not foods:
            return self._resolve_fallback(top)

        items: list[FoodItem] = []
        emitted: set[str] = set()
        for observation in foods:
            name = format_food_name(observation.identifier)
            key = name.lower()
            if not key or key in emitted:
                continue
            emitted.add(key)

            record = self._table.lookup(observation.identifier)
            if record is not None:
                items.append(
                    FoodItem(
                        name=name,
                        calories=record.calories,
                        confidence=float(observation.confidence),
                        portion_size=record.portion,
                    )
                )
            elif observation.confidence > self._limits.estimate_min_confidence:
                items.append(
                    FoodItem(
                        name=name,
                        calories=estimate_calories(observation.identifier, observation.confidence),
                        confidence=float(observation.confidence),
                        portion_size=DEFAULT_PORTION,
                    )
                )

            if len(items) >= self._limits.max_items:
                break

        return AnalysisResult.from_items(_by_confidence(items))

    def _resolve_fallback(self, top: list[ClassificationObservation]) -> AnalysisResult:
        candidates = [observation for observation in top if self._is_possible_food(observation)]

        items: list[FoodItem] = []
        emitted: set[str] = set()
        for observation in candidates:
            if len(items) >= self._limits.fallback_max_items:
                break
            name = format_food_name(observation.identifier)
            key = name.lower()
            if not key or key in emitted:
                continue
            emitted.add(key)
            items.append(
                FoodItem(
                    name=name,
                    calories=estimate_calories(observation.identifier, observation.confidence),
                    confidence=float(observation.confidence),
                    portion_size=FALLBACK_PORTION,
                )
            )

        if not items:
            return AnalysisResult.negative(NO_FOOD_MESSAGE)
        logger.debug('fallback pass admitted %s observations', len(items))
        return AnalysisResult.from_items(_by_confidence(items))

    def _is_possible_food(self, observation: ClassificationObservation) -> bool:
        if self._table.is_generic_food(observation.identifier):
            return True
        if self._table.is_non_food(observation.identifier):
            return False
        return observation.confidence > self._limits.fallback_min_confidence


def _by_confidence(items: list[FoodItem]) -> list[FoodItem]:
    # sorted() is stable, equal confidences keep input order.
    return sorted(items, key=lambda item: item.confidence, reverse=True)
