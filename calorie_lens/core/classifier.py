from abc import ABC, abstractmethod

from calorie_lens.config import Settings
from calorie_lens.core.types import ClassificationResult


class Classifier(ABC):
    @abstractmethod
    def classify(self, image) -> ClassificationResult:
        raise NotImplementedError

    @property
    @abstractmethod
    def model_id(self) -> str:
        raise NotImplementedError

    @property
    def weights_path(self) -> str | None:
        return None

    def status(self) -> dict:
        return {'available': True, 'message': None}


def create_classifier(settings: Settings) -> Classifier:
    provider = settings.provider.strip().lower()
    if provider == 'dummy':
        from calorie_lens.providers.dummy_provider import DummyProvider

        return DummyProvider(model_id='dummy-v1')
    if provider == 'remote':
        from calorie_lens.providers.remote_provider import RemoteProvider

        return RemoteProvider(
            base_url=settings.remote_base_url,
            predict_path=settings.remote_predict_path,
            timeout_ms=settings.remote_timeout_ms,
        )
    if provider == 'torch':
        from calorie_lens.providers.torch_provider import TorchImageNetProvider

        return TorchImageNetProvider(
            model_id=settings.model_id,
            weights=settings.torch_weights,
            top_k=settings.classifier_top_k,
        )
    raise ValueError(f'Unsupported PROVIDER={settings.provider!r}')
