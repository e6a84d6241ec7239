import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from calorie_lens.config import get_settings
from calorie_lens.core.analyzer import AnalysisOutcome, FoodAnalyzer
from calorie_lens.core.classifier import create_classifier
from calorie_lens.core.errors import AnalysisError, session_not_found
from calorie_lens.core.food_table import FoodTable
from calorie_lens.core.resolver import LabelResolver, ResolverLimits
from calorie_lens.core.session import AnalysisSession, SessionStore
from calorie_lens.logging_setup import setup_logging
from calorie_lens.schemas import (
    AnalysisOut,
    AnalyzeResponse,
    ErrorResponse,
    HealthResponse,
    ObservationOut,
    ResolveRequest,
    ResolveResponse,
    SessionStateResponse,
)
from calorie_lens.utils.weights_fingerprint import weights_sha256

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger('calorie_lens')

app = FastAPI(title='Calorie Lens', version=settings.version)
started_at = time.time()


def _request_id(request: Request) -> str:
    return request.headers.get('x-request-id') or str(uuid.uuid4())


def _analyze_response(outcome: AnalysisOutcome) -> AnalyzeResponse:
    classification = outcome.classification
    used = classification.observations[: settings.max_results_to_analyze]
    return AnalyzeResponse(
        ok=True,
        model=classification.model_id,
        latency_ms=classification.latency_ms,
        observations=[ObservationOut(identifier=row.identifier, confidence=row.confidence) for row in used],
        result=AnalysisOut.from_result(outcome.result),
    )


def _existing_session(session_id: str) -> AnalysisSession:
    session = app.state.sessions.find(session_id)
    if session is None:
        raise session_not_found(session_id)
    return session


@app.on_event('startup')
def startup_event() -> None:
    classifier = create_classifier(settings)
    table = FoodTable(settings.food_data_path)
    resolver = LabelResolver(
        table,
        ResolverLimits(
            max_results_to_analyze=settings.max_results_to_analyze,
            max_items=settings.max_items,
            fallback_max_items=settings.fallback_max_items,
            estimate_min_confidence=settings.estimate_min_confidence,
            fallback_min_confidence=settings.fallback_min_confidence,
        ),
    )
    analyzer = FoodAnalyzer(classifier, resolver, max_image_bytes=settings.max_image_bytes)
    app.state.classifier = classifier
    app.state.food_table = table
    app.state.resolver = resolver
    app.state.analyzer = analyzer
    app.state.sessions = SessionStore(analyzer, max_sessions=settings.max_sessions)
    app.state.model_loaded = True
    app.state.model_loaded_at = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    app.state.model_weights_path = classifier.weights_path
    app.state.model_weights_sha256 = weights_sha256(classifier.weights_path)
    classifier_status = classifier.status()
    logger.info(
        'Classifier initialized provider=%s model=%s available=%s message=%s',
        settings.provider,
        classifier.model_id,
        classifier_status.get('available'),
        classifier_status.get('message'),
    )
    logger.info('Food table loaded path=%s size=%s', table.path, table.size)


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    payload = ErrorResponse(
        error=exc.code,
        message=exc.message,
        details=exc.details or None,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    logger.exception('Unhandled exception request_id=%s', request_id)
    payload = ErrorResponse(
        error='UNEXPECTED_SERVER_ERROR',
        message='Unexpected server error.',
        request_id=request_id,
    )
    return JSONResponse(status_code=500, content=payload.model_dump())


@app.get('/health', response_model=HealthResponse)
def health():
    classifier = app.state.classifier
    return HealthResponse(
        ok=True,
        version=settings.version,
        provider=settings.provider,
        model_loaded=bool(getattr(app.state, 'model_loaded', False)),
        model=getattr(classifier, 'model_id', None),
        model_status=classifier.status(),
        model_weights_path=getattr(app.state, 'model_weights_path', None),
        model_weights_sha256=getattr(app.state, 'model_weights_sha256', None),
        model_loaded_at=getattr(app.state, 'model_loaded_at', None),
        food_table_size=app.state.food_table.size,
        uptime_s=round(time.time() - started_at, 3),
    )


@app.post('/analyze', response_model=AnalyzeResponse)
async def analyze(request: Request, image: UploadFile = File(...)):
    request_id = _request_id(request)
    image_bytes = await image.read()
    analyzer: FoodAnalyzer = app.state.analyzer
    outcome = await run_in_threadpool(analyzer.analyze, image_bytes)
    response = _analyze_response(outcome)
    logger.info(
        'analyze request_id=%s bytes=%s observations=%s items=%s total_calories=%s is_food=%s',
        request_id,
        len(image_bytes),
        len(outcome.classification.observations),
        len(outcome.result.items),
        outcome.result.total_calories,
        outcome.result.is_food,
    )
    return response


@app.post('/resolve', response_model=ResolveResponse)
def resolve(payload: ResolveRequest):
    resolver: LabelResolver = app.state.resolver
    result = resolver.resolve(payload.to_observations())
    return ResolveResponse(ok=True, result=AnalysisOut.from_result(result))


@app.post('/sessions/{session_id}/analyze', response_model=AnalyzeResponse)
async def analyze_in_session(session_id: str, request: Request, image: UploadFile = File(...)):
    request_id = _request_id(request)
    image_bytes = await image.read()
    session = app.state.sessions.get_or_create(session_id)
    outcome = await run_in_threadpool(session.analyze, image_bytes)
    logger.info(
        'session analyze request_id=%s session_id=%s items=%s total_calories=%s',
        request_id,
        session_id,
        len(outcome.result.items),
        outcome.result.total_calories,
    )
    return _analyze_response(outcome)


@app.get('/sessions/{session_id}', response_model=SessionStateResponse)
def session_state(session_id: str):
    session = _existing_session(session_id)
    return SessionStateResponse.from_state(session_id, session.state)


@app.post('/sessions/{session_id}/reset', response_model=SessionStateResponse)
def reset_session(session_id: str):
    session = _existing_session(session_id)
    session.reset()
    return SessionStateResponse.from_state(session_id, session.state)
