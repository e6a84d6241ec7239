import io
import time

import httpx

from calorie_lens.core.classifier import Classifier
from calorie_lens.core.types import ClassificationObservation, ClassificationResult


def _join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


class RemoteProvider(Classifier):
    """Image classification served over HTTP.

    Expects a JSON body of the form ``{"predictions": [{"label": ..., "probability": ...}]}``.
    """

    def __init__(
        self,
        base_url: str = 'http://127.0.0.1:5000',
        predict_path: str = '/model/predict',
        timeout_ms: int = 12000,
        model_id: str = 'remote-image-classifier',
    ) -> None:
        self._base_url = base_url
        self._predict_path = predict_path
        self._timeout = max(int(timeout_ms), 1000) / 1000.0
        self._model_id = model_id

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def weights_path(self) -> str | None:
        return None

    def classify(self, image) -> ClassificationResult:
        start = time.perf_counter()
        width, height = image.size
        payload = io.BytesIO()
        image.save(payload, format='JPEG', quality=92)

        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(
                _join_url(self._base_url, self._predict_path),
                files={'image': ('capture.jpg', payload.getvalue(), 'image/jpeg')},
            )
        response.raise_for_status()
        body = response.json()

        observations: list[ClassificationObservation] = []
        for row in body.get('predictions', []):
            label = str(row.get('label') or '').strip()
            probability = float(row.get('probability') or 0.0)
            if not label:
                continue
            observations.append(
                ClassificationObservation(identifier=label, confidence=max(0.0, min(1.0, probability)))
            )
        observations.sort(key=lambda row: row.confidence, reverse=True)

        latency_ms = int((time.perf_counter() - start) * 1000)
        return ClassificationResult(
            observations=observations,
            model_id=self.model_id,
            latency_ms=max(latency_ms, 1),
            image_size=(width, height),
        )
