from pydantic import BaseModel, Field

from calorie_lens.core.types import AnalysisResult, AnalysisState, ClassificationObservation


class ObservationIn(BaseModel):
    identifier: str
    confidence: float = Field(ge=0.0, le=1.0)


class ObservationOut(BaseModel):
    identifier: str
    confidence: float = Field(ge=0.0, le=1.0)


class ResolveRequest(BaseModel):
    observations: list[ObservationIn] = []

    def to_observations(self) -> list[ClassificationObservation]:
        return [
            ClassificationObservation(identifier=row.identifier, confidence=row.confidence)
            for row in self.observations
        ]


class FoodItemOut(BaseModel):
    name: str
    calories: int
    confidence: float = Field(ge=0.0, le=1.0)
    portion_size: str
    calories_per_serving: str
    confidence_percent: int


class AnalysisOut(BaseModel):
    items: list[FoodItemOut]
    total_calories: int
    is_food: bool
    message: str | None = None
    items_description: str = ''

    @classmethod
    def from_result(cls, result: AnalysisResult) -> 'AnalysisOut':
        return cls(
            items=[
                FoodItemOut(
                    name=item.name,
                    calories=item.calories,
                    confidence=item.confidence,
                    portion_size=item.portion_size,
                    calories_per_serving=item.calories_per_serving,
                    confidence_percent=item.confidence_percent,
                )
                for item in result.items
            ],
            total_calories=result.total_calories,
            is_food=result.is_food,
            message=result.message,
            items_description=result.items_description,
        )


class ResolveResponse(BaseModel):
    ok: bool = True
    result: AnalysisOut


class AnalyzeResponse(BaseModel):
    ok: bool = True
    model: str
    latency_ms: int
    observations: list[ObservationOut]
    result: AnalysisOut


class SessionStateResponse(BaseModel):
    ok: bool = True
    session_id: str
    is_processing: bool
    error_message: str | None = None
    result: AnalysisOut | None = None

    @classmethod
    def from_state(cls, session_id: str, state: AnalysisState) -> 'SessionStateResponse':
        return cls(
            session_id=session_id,
            is_processing=state.is_processing,
            error_message=state.error_message,
            result=AnalysisOut.from_result(state.result) if state.result is not None else None,
        )


class HealthResponse(BaseModel):
    ok: bool
    version: str
    provider: str
    model_loaded: bool
    model: str | None = None
    model_status: dict | None = None
    model_weights_path: str | None = None
    model_weights_sha256: str | None = None
    model_loaded_at: str | None = None
    food_table_size: int = 0
    uptime_s: float


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: str
    details: dict | None = None
    request_id: str | None = None
