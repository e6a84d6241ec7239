from io import BytesIO

import pytest
from PIL import Image

from calorie_lens.core.analyzer import FoodAnalyzer
from calorie_lens.core.classifier import Classifier
from calorie_lens.core.errors import AnalysisError
from calorie_lens.core.food_table import FoodTable
from calorie_lens.core.resolver import LabelResolver
from calorie_lens.core.session import AnalysisSession, SessionStore
from calorie_lens.core.types import ClassificationObservation
from calorie_lens.providers.dummy_provider import DummyProvider


def make_image_bytes() -> bytes:
    image = Image.new('RGB', (120, 80), color='white')
    buf = BytesIO()
    image.save(buf, format='JPEG')
    return buf.getvalue()


def make_analyzer(classifier: Classifier) -> FoodAnalyzer:
    return FoodAnalyzer(classifier, LabelResolver(FoodTable('calorie_lens/data/foods.json')))


class FailingClassifier(Classifier):
    @property
    def model_id(self) -> str:
        return 'failing'

    def classify(self, image):
        raise RuntimeError('model crashed')


def test_analyzer_resolves_dummy_observations():
    outcome = make_analyzer(DummyProvider()).analyze(make_image_bytes())

    assert outcome.classification.model_id == 'dummy-v1'
    assert [item.name for item in outcome.result.items] == ['Pizza', 'Salad', 'French Fries']
    assert outcome.result.total_calories == 266 + 33 + 312


def test_analyzer_rejects_undecodable_image():
    with pytest.raises(AnalysisError) as exc_info:
        make_analyzer(DummyProvider()).analyze(b'definitely not a jpeg')

    assert exc_info.value.code == 'IMAGE_UNPROCESSABLE'
    assert exc_info.value.message == 'cannot process image'


def test_analyzer_wraps_classifier_failure():
    with pytest.raises(AnalysisError) as exc_info:
        make_analyzer(FailingClassifier()).analyze(make_image_bytes())

    assert exc_info.value.code == 'CLASSIFIER_FAILED'
    assert exc_info.value.message == 'analysis error: model crashed'
    assert exc_info.value.status_code == 502


def test_analyzer_reports_empty_classification():
    with pytest.raises(AnalysisError) as exc_info:
        make_analyzer(DummyProvider(observations=[])).analyze(make_image_bytes())

    assert exc_info.value.code == 'NO_RESULTS'
    assert exc_info.value.message == 'no results found'


def test_analyzer_returns_negative_result_without_error():
    classifier = DummyProvider(observations=[ClassificationObservation(identifier='laptop', confidence=0.95)])

    outcome = make_analyzer(classifier).analyze(make_image_bytes())

    assert outcome.result.is_food is False
    assert outcome.result.message == 'no food detected'


def test_session_keeps_result_until_reset():
    session = AnalysisSession(make_analyzer(DummyProvider()))

    session.analyze(make_image_bytes())

    assert session.state.result is not None
    assert session.state.result.total_calories == 611
    assert session.state.is_processing is False

    session.reset()
    session.reset()

    assert session.state.result is None
    assert session.state.error_message is None


def test_session_keeps_error_message_and_clears_it_on_next_analysis():
    failing = AnalysisSession(make_analyzer(FailingClassifier()))

    with pytest.raises(AnalysisError):
        failing.analyze(make_image_bytes())

    assert failing.state.error_message == 'analysis error: model crashed'
    assert failing.state.result is None
    assert failing.state.is_processing is False

    failing.reset()
    assert failing.state.error_message is None


def test_session_rejects_analysis_while_one_is_in_flight():
    rejected: list[AnalysisError] = []

    class ReentrantClassifier(DummyProvider):
        session: AnalysisSession | None = None

        def classify(self, image):
            assert self.session is not None
            assert self.session.state.is_processing is True
            try:
                self.session.analyze(make_image_bytes())
            except AnalysisError as exc:
                rejected.append(exc)
            return super().classify(image)

    classifier = ReentrantClassifier()
    session = AnalysisSession(make_analyzer(classifier))
    classifier.session = session

    outcome = session.analyze(make_image_bytes())

    assert [exc.code for exc in rejected] == ['ANALYSIS_IN_PROGRESS']
    assert rejected[0].status_code == 409
    assert outcome.result.is_food is True
    assert session.state.result == outcome.result


def test_session_store_reuses_sessions():
    store = SessionStore(make_analyzer(DummyProvider()))

    assert store.get_or_create('kitchen') is store.get_or_create('kitchen')
    assert store.get_or_create('kitchen') is not store.get_or_create('office')
    assert len(store) == 2


def test_session_store_find_does_not_create():
    store = SessionStore(make_analyzer(DummyProvider()))

    assert store.find('ghost') is None
    assert len(store) == 0

    created = store.get_or_create('kitchen')
    assert store.find('kitchen') is created


def test_session_store_drops_least_recently_used():
    store = SessionStore(make_analyzer(DummyProvider()), max_sessions=2)
    first = store.get_or_create('first')
    store.get_or_create('second')

    assert store.find('first') is first
    store.get_or_create('third')

    assert len(store) == 2
    assert store.find('second') is None
    assert store.find('first') is first
    assert store.find('third') is not None


def test_analyzer_rejects_empty_and_oversized_uploads():
    analyzer = FoodAnalyzer(DummyProvider(), LabelResolver(FoodTable('calorie_lens/data/foods.json')), max_image_bytes=64)

    with pytest.raises(AnalysisError) as empty:
        analyzer.analyze(b'')
    with pytest.raises(AnalysisError) as oversized:
        analyzer.analyze(make_image_bytes())

    assert (empty.value.code, empty.value.status_code, empty.value.message) == ('MISSING_IMAGE', 400, 'cannot process image')
    assert (oversized.value.code, oversized.value.status_code, oversized.value.message) == (
        'IMAGE_TOO_LARGE',
        413,
        'cannot process image',
    )
    assert oversized.value.details == {'max_bytes': 64}


def test_classifier_failure_names_the_model():
    with pytest.raises(AnalysisError) as exc_info:
        make_analyzer(FailingClassifier()).analyze(make_image_bytes())

    assert exc_info.value.details == {'model_id': 'failing'}
