import threading
from collections import OrderedDict

from calorie_lens.core.analyzer import AnalysisOutcome, FoodAnalyzer
from calorie_lens.core.errors import AnalysisError, analysis_in_progress
from calorie_lens.core.types import AnalysisState


class AnalysisSession:
    """Holds the latest result or error for one client and allows one analysis at a time."""

    def __init__(self, analyzer: FoodAnalyzer):
        self._analyzer = analyzer
        self._state = AnalysisState()
        self._lock = threading.Lock()

    @property
    def state(self) -> AnalysisState:
        return AnalysisState(
            result=self._state.result,
            error_message=self._state.error_message,
            is_processing=self._state.is_processing,
        )

    def analyze(self, image_bytes: bytes) -> AnalysisOutcome:
        with self._lock:
            if self._state.is_processing:
                raise analysis_in_progress()
            self._state = AnalysisState(is_processing=True)

        try:
            outcome = self._analyzer.analyze(image_bytes)
        except AnalysisError as exc:
            with self._lock:
                self._state = AnalysisState(error_message=exc.message)
            raise
        except Exception as exc:
            with self._lock:
                self._state = AnalysisState(error_message=f'analysis error: {exc}')
            raise

        with self._lock:
            self._state = AnalysisState(result=outcome.result)
        return outcome

    def reset(self) -> None:
        with self._lock:
            self._state = AnalysisState(is_processing=self._state.is_processing)


class SessionStore:
    """Sessions by client id, least recently used dropped once ``max_sessions`` is reached."""

    def __init__(self, analyzer: FoodAnalyzer, max_sessions: int = 1024):
        self._analyzer = analyzer
        self._max_sessions = max(1, int(max_sessions))
        self._sessions: OrderedDict[str, AnalysisSession] = OrderedDict()
        self._lock = threading.Lock()

    def find(self, session_id: str) -> AnalysisSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
            return session

    def get_or_create(self, session_id: str) -> AnalysisSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = AnalysisSession(self._analyzer)
                self._sessions[session_id] = session
                while len(self._sessions) > self._max_sessions:
                    self._sessions.popitem(last=False)
            else:
                self._sessions.move_to_end(session_id)
            return session

    def __len__(self) -> int:
        return len(self._sessions)
