# ------------------------------------------------------------
# search_state.py
#
# Background searches with observable state, for a Qt front end.
#
# It:
#   - runs each search call on a QThreadPool worker (QRunnable)
#   - keeps one SearchState per kind: doctor, hospital, pharmacy
#   - moves every state Idle -> Fetching -> Succeeded/Failed/Cancelled
#   - cancels the running search of a kind when a new one starts
#   - ignores results that arrive for a superseded request
#
# CareProviderSearch itself stays free of Qt; state lives here.
# ------------------------------------------------------------

import logging
from typing import Callable, Dict, List, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

from errors import Cancelled, user_message
from models import DOCTOR, HOSPITAL, SearchPage
from search import CancellationToken, CareProviderSearch


logger = logging.getLogger(__name__)

PHARMACY = "pharmacy"

IDLE = "idle"
FETCHING = "fetching"
SUCCEEDED = "succeeded"
FAILED = "failed"
CANCELLED = "cancelled"


class SearchState(QObject):
    """
    Observable state of one kind of search (doctors, hospitals...).

    Read the properties directly, or connect to the signals to be told
    when they change.
    """
    loadingChanged = Signal(bool)
    errorChanged = Signal(str)
    resultsChanged = Signal(object)
    statusChanged = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._status = IDLE
        self._is_loading = False
        self._last_error: Optional[str] = None
        self._results: List = []
        self._next_page_token: Optional[str] = None

    @property
    def status(self) -> str:
        return self._status

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def results(self) -> List:
        return list(self._results)

    @property
    def next_page_token(self) -> Optional[str]:
        return self._next_page_token

    @property
    def has_more(self) -> bool:
        return self._next_page_token is not None

    def _set_status(self, status: str) -> None:
        if status != self._status:
            self._status = status
            self.statusChanged.emit(status)

    def _set_loading(self, loading: bool) -> None:
        if loading != self._is_loading:
            self._is_loading = loading
            self.loadingChanged.emit(loading)

    def _set_error(self, message: Optional[str]) -> None:
        if message != self._last_error:
            self._last_error = message
            self.errorChanged.emit(message or "")

    def begin(self, append: bool = False) -> None:
        self._set_error(None)
        if not append:
            self._results = []
            self._next_page_token = None
            self.resultsChanged.emit([])
        self._set_loading(True)
        self._set_status(FETCHING)

    def succeed(self, page: SearchPage, append: bool = False) -> None:
        if append:
            self._results = self._results + list(page.providers)
        else:
            self._results = list(page.providers)
        self._next_page_token = page.next_page_token
        self.resultsChanged.emit(list(self._results))
        self._set_loading(False)
        self._set_status(SUCCEEDED)

    def fail(self, error: Exception) -> None:
        self._set_error(user_message(error))
        self._set_loading(False)
        self._set_status(FAILED)

    def mark_cancelled(self) -> None:
        # A cancelled search is not an error; earlier results stay visible
        self._set_loading(False)
        self._set_status(CANCELLED)


class SearchWorkerSignals(QObject):
    # (kind, request id, ...)
    started = Signal(str, int)
    finished = Signal(str, int, bool, object)
    failed = Signal(str, int, object)
    cancelled = Signal(str, int)


class SearchWorker(QRunnable):
    """Runs one search call on a QThreadPool thread and reports through signals."""

    def __init__(
        self,
        signals: SearchWorkerSignals,
        kind: str,
        request_id: int,
        call: Callable[[CancellationToken], SearchPage],
        cancel_token: CancellationToken,
        append: bool = False,
    ):
        super().__init__()
        self.signals = signals
        self.kind = kind
        self.request_id = request_id
        self.call = call
        self.cancel_token = cancel_token
        self.append = append

    @Slot()
    def run(self):
        self.signals.started.emit(self.kind, self.request_id)
        try:
            page = self.call(self.cancel_token)
        except Cancelled:
            self.signals.cancelled.emit(self.kind, self.request_id)
        except Exception as e:
            # Every outcome has to reach the state or it stays loading
            logger.warning("%s search failed: %s", self.kind, e)
            self.signals.failed.emit(self.kind, self.request_id, e)
        else:
            self.signals.finished.emit(self.kind, self.request_id, self.append, page)

    def cancel(self):
        self.cancel_token.cancel()


class SearchController(QObject):
    """
    Runs doctor, hospital and pharmacy searches in the background.

    Each kind has its own SearchState. Starting a new search of a kind
    cancels the one still running for that kind; other kinds are not
    affected. load_more() fetches the next page of the last search.
    """

    def __init__(self, search: CareProviderSearch, pharmacies=None, threadpool=None, parent=None):
        super().__init__(parent)
        self.search = search
        self.pharmacies = pharmacies
        self.threadpool = threadpool or QThreadPool.globalInstance()
        self.states: Dict[str, SearchState] = {
            DOCTOR: SearchState(self),
            HOSPITAL: SearchState(self),
            PHARMACY: SearchState(self),
        }
        self._signals = SearchWorkerSignals(self)
        self._signals.finished.connect(self._on_finished)
        self._signals.failed.connect(self._on_failed)
        self._signals.cancelled.connect(self._on_cancelled)

        self._request_ids: Dict[str, int] = {}
        self._tokens: Dict[str, CancellationToken] = {}
        # kind -> function(page_token, cancel_token) repeating the last search
        self._last_calls: Dict[str, Callable] = {}

    def state(self, kind: str) -> SearchState:
        return self.states[kind]

    # ------------------------------------------------------------
    # Starting searches
    # ------------------------------------------------------------

    def fetch_nearby(self, kind: str, latitude: float, longitude: float, radius_m: Optional[float] = None) -> CancellationToken:
        def call(page_token, cancel_token):
            return self.search.search_nearby(
                kind, latitude, longitude, radius_m,
                page_token=page_token, cancel_token=cancel_token,
            )
        return self._start_new(kind, call)

    def fetch_pediatric_doctors(self, latitude: float, longitude: float, radius_m: Optional[float] = None) -> CancellationToken:
        def call(page_token, cancel_token):
            return self.search.search_pediatric_doctors(
                latitude, longitude, radius_m,
                page_token=page_token, cancel_token=cancel_token,
            )
        return self._start_new(DOCTOR, call)

    def search_text(
        self,
        kind: str,
        query: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> CancellationToken:
        def call(page_token, cancel_token):
            return self.search.search_by_text(
                query, kind, latitude, longitude,
                page_token=page_token, cancel_token=cancel_token,
            )
        return self._start_new(kind, call)

    def fetch_pharmacies(self, latitude: float, longitude: float) -> CancellationToken:
        if self.pharmacies is None:
            raise RuntimeError("No pharmacy client configured")

        def call(page_token, cancel_token):
            cancel_token.raise_if_cancelled()
            found = self.pharmacies.nearby(latitude, longitude)
            cancel_token.raise_if_cancelled()
            return SearchPage(found, None)
        return self._start_new(PHARMACY, call)

    def load_more(self, kind: str) -> Optional[CancellationToken]:
        """Fetch the next page; returns None when there is nothing to load."""
        state = self.states[kind]
        last_call = self._last_calls.get(kind)
        if state.is_loading or not state.has_more or last_call is None:
            return None
        page_token = state.next_page_token
        return self._start(kind, lambda cancel_token: last_call(page_token, cancel_token), append=True)

    def cancel(self, kind: str) -> None:
        token = self._tokens.get(kind)
        if token is not None:
            token.cancel()

    def cancel_all(self) -> None:
        for kind in list(self._tokens):
            self.cancel(kind)

    def _start_new(self, kind: str, call: Callable) -> CancellationToken:
        self._last_calls[kind] = call
        return self._start(kind, lambda cancel_token: call(None, cancel_token), append=False)

    def _start(self, kind: str, call: Callable, append: bool) -> CancellationToken:
        self.cancel(kind)

        request_id = self._request_ids.get(kind, 0) + 1
        self._request_ids[kind] = request_id
        token = CancellationToken()
        self._tokens[kind] = token

        self.states[kind].begin(append=append)

        worker = SearchWorker(self._signals, kind, request_id, call, token, append=append)
        worker.setAutoDelete(True)
        self.threadpool.start(worker)
        return token

    # ------------------------------------------------------------
    # Worker callbacks (main thread)
    # ------------------------------------------------------------

    def _is_current(self, kind: str, request_id: int) -> bool:
        return self._request_ids.get(kind) == request_id

    @Slot(str, int, bool, object)
    def _on_finished(self, kind, request_id, append, page):
        if self._is_current(kind, request_id):
            self.states[kind].succeed(page, append=append)

    @Slot(str, int, object)
    def _on_failed(self, kind, request_id, error):
        if self._is_current(kind, request_id):
            self.states[kind].fail(error)

    @Slot(str, int)
    def _on_cancelled(self, kind, request_id):
        if self._is_current(kind, request_id):
            self.states[kind].mark_cancelled()
