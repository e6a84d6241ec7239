import time
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from calorie_lens.core.classifier import Classifier
from calorie_lens.core.types import ClassificationObservation, ClassificationResult


class TorchImageNetProvider(Classifier):
    """Local ImageNet classifier from torchvision.

    torch and torchvision are optional; when they cannot be imported or the weights
    cannot be loaded the provider stays unavailable and ``classify`` raises.
    """

    def __init__(self, model_id: str = 'resnet50', weights: str = 'DEFAULT', top_k: int = 15):
        self._model_id = model_id
        self._weights_name = weights
        self._top_k = max(1, int(top_k))
        self._available = False
        self._message: str | None = None
        self._model = None
        self._categories: list[str] = []
        self._transform = None
        self._torch = None
        self._device = None
        self._weights_file: str | None = None
        self._load()

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def weights_path(self) -> str | None:
        return self._weights_file

    def status(self) -> dict[str, Any]:
        return {'available': self._available, 'message': self._message, 'model_id': self._model_id}

    def _load(self) -> None:
        try:
            import torch
            from torchvision import models
        except Exception as exc:
            self._message = f'torch/torchvision not available: {exc}'
            return

        try:
            weights_enum = models.get_model_weights(self._model_id)
            weights = weights_enum[self._weights_name]
            device = 'cuda' if torch.cuda.is_available() else 'cpu'
            model = models.get_model(self._model_id, weights=weights)
            model.eval().to(device)

            self._torch = torch
            self._device = device
            self._model = model
            self._categories = [str(c) for c in weights.meta.get('categories', [])]
            self._transform = weights.transforms()
            self._weights_file = _hub_checkpoint(torch, weights.url)
            self._available = bool(self._categories)
            self._message = None if self._available else 'weights carry no category names'
        except Exception as exc:
            self._message = f'failed to load classifier: {exc}'

    def classify(self, image) -> ClassificationResult:
        if not self._available or self._model is None or self._transform is None or self._torch is None:
            raise RuntimeError(self._message or 'classifier unavailable')

        start = time.perf_counter()
        x = self._transform(image).unsqueeze(0).to(self._device)
        with self._torch.no_grad():
            logits = self._model(x)[0]
            probs = self._torch.softmax(logits, dim=0)
            values, indexes = self._torch.topk(probs, k=min(self._top_k, len(self._categories)))

        observations = [
            ClassificationObservation(
                identifier=self._categories[int(index.item())],
                confidence=round(float(value.item()), 4),
            )
            for value, index in zip(values.cpu(), indexes.cpu())
        ]
        latency_ms = int((time.perf_counter() - start) * 1000)
        return ClassificationResult(
            observations=observations,
            model_id=self.model_id,
            latency_ms=max(latency_ms, 1),
            image_size=image.size,
        )


def _hub_checkpoint(torch, url: str | None) -> str | None:
    # torchvision downloads weights into <hub dir>/checkpoints/<file name of the url>.
    if not url:
        return None
    candidate = Path(torch.hub.get_dir()) / 'checkpoints' / Path(urlparse(url).path).name
    return str(candidate) if candidate.is_file() else None
