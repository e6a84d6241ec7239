import time

from calorie_lens.core.classifier import Classifier
from calorie_lens.core.types import ClassificationObservation, ClassificationResult


class DummyProvider(Classifier):
    def __init__(self, model_id: str = 'dummy-v1', observations: list[ClassificationObservation] | None = None) -> None:
        self._model_id = model_id
        self._observations = observations

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def weights_path(self) -> str | None:
        return None

    def classify(self, image) -> ClassificationResult:
        start = time.perf_counter()
        width, height = image.size
        observations = self._observations
        if observations is None:
            observations = [
                ClassificationObservation(identifier='pizza', confidence=0.91),
                ClassificationObservation(identifier='salad', confidence=0.62),
                ClassificationObservation(identifier='french_fries', confidence=0.54),
                ClassificationObservation(identifier='table', confidence=0.4),
            ]
        latency_ms = int((time.perf_counter() - start) * 1000)
        return ClassificationResult(
            observations=sorted(observations, key=lambda row: row.confidence, reverse=True),
            model_id=self.model_id,
            latency_ms=max(latency_ms, 1),
            image_size=(width, height),
        )
