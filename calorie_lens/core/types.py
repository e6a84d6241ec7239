from dataclasses import dataclass


@dataclass(frozen=True)
class ClassificationObservation:
    identifier: str
    confidence: float


@dataclass
class ClassificationResult:
    observations: list[ClassificationObservation]
    model_id: str
    latency_ms: int
    image_size: tuple[int, int]


@dataclass(frozen=True)
class FoodRecord:
    key: str
    calories: int
    portion: str


@dataclass(frozen=True)
class FoodItem:
    name: str
    calories: int
    confidence: float
    portion_size: str

    @property
    def calories_per_serving(self) -> str:
        return f'{self.calories} kcal'

    @property
    def confidence_percent(self) -> int:
        return int(self.confidence * 100)


@dataclass(frozen=True)
class AnalysisResult:
    items: tuple[FoodItem, ...]
    total_calories: int
    is_food: bool
    message: str | None = None

    @classmethod
    def from_items(cls, items: list[FoodItem]) -> 'AnalysisResult':
        return cls(
            items=tuple(items),
            total_calories=sum(item.calories for item in items),
            is_food=bool(items),
            message=None,
        )

    @classmethod
    def negative(cls, message: str) -> 'AnalysisResult':
        return cls(items=(), total_calories=0, is_food=False, message=message)

    @property
    def items_description(self) -> str:
        return ', '.join(item.name for item in self.items)


@dataclass
class AnalysisState:
    result: AnalysisResult | None = None
    error_message: str | None = None
    is_processing: bool = False
