class AnalysisError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


def image_unprocessable(code: str = 'IMAGE_UNPROCESSABLE', status_code: int = 400, details: dict | None = None) -> AnalysisError:
    return AnalysisError(code, 'cannot process image', status_code=status_code, details=details)


def classifier_failed(detail: str, model_id: str | None = None) -> AnalysisError:
    return AnalysisError(
        'CLASSIFIER_FAILED',
        f'analysis error: {detail}',
        status_code=502,
        details={'model_id': model_id} if model_id else None,
    )


def no_results() -> AnalysisError:
    return AnalysisError('NO_RESULTS', 'no results found', status_code=422)


def analysis_in_progress() -> AnalysisError:
    return AnalysisError('ANALYSIS_IN_PROGRESS', 'analysis already in progress', status_code=409)


def session_not_found(session_id: str) -> AnalysisError:
    return AnalysisError('SESSION_NOT_FOUND', f'no session with id {session_id}', status_code=404, details={'session_id': session_id})
