import logging
from dataclasses import dataclass

from calorie_lens.core.classifier import Classifier
from calorie_lens.core.errors import AnalysisError, classifier_failed, no_results
from calorie_lens.core.resolver import LabelResolver
from calorie_lens.core.types import AnalysisResult, ClassificationResult
from calorie_lens.utils.image_io import load_image_from_bytes

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    classification: ClassificationResult
    result: AnalysisResult


class FoodAnalyzer:
    def __init__(self, classifier: Classifier, resolver: LabelResolver, max_image_bytes: int = 8 * 1024 * 1024):
        self._classifier = classifier
        self._resolver = resolver
        self._max_image_bytes = max_image_bytes

    def analyze(self, image_bytes: bytes) -> AnalysisOutcome:
        image = load_image_from_bytes(image_bytes, self._max_image_bytes)

        try:
            classification = self._classifier.classify(image)
        except AnalysisError:
            raise
        except Exception as exc:
            logger.warning('Classifier failed model=%s error=%s', self._classifier.model_id, exc)
            raise classifier_failed(str(exc) or exc.__class__.__name__, model_id=self._classifier.model_id) from exc

        if not classification.observations:
            raise no_results()

        return AnalysisOutcome(
            classification=classification,
            result=self._resolver.resolve(classification.observations),
        )
