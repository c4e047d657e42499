import logging
import functools
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from apps.domain.default_documents import DEFAULT_LEGAL_DOCUMENTS
from apps.domain.exceptions import (
    AlreadySigned,
    DocumentNotFound,
    InitializationError,
    OutOfOrderSignature,
    LegalAcceptanceError,
    SigningNetworkError,
    Unauthorized,
)
from apps.domain.interfaces.acceptance_api import AcceptanceApi
from apps.domain.interfaces.acceptance_view import AcceptanceView
from apps.domain.interfaces.scheduler import Scheduler
from .config import EngineConfig
from .markdown import render_markdown
from .scheduler import ThreadingScheduler
from .session import AcceptanceResult, AcceptanceSession, RequiredDocument

logger = logging.getLogger('apps')

REGISTRATION_FIELDS = ('firstName', 'lastName', 'email', 'password')


class EngineState(str, Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    PRESENTING = 'presenting'
    SIGNING = 'signing'
    ACCEPTED = 'accepted'
    COMPLETED = 'completed'
    FAILED = 'failed'
    TERMINATED = 'terminated'


def display_percentage(value: float) -> int:
    return int(value + 0.5)


def synchronized(method):
    """Run ``method`` under the engine lock; timer callbacks and UI calls never interleave."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class DocumentAcceptanceEngine:
    """Walks a user through every required legal document, one accept per document.

    The engine owns no UI: it renders through an ``AcceptanceView`` and talks
    to the server through an ``AcceptanceApi``. Timers (reading gate, delayed
    auto-advance) go through the injected scheduler.

    When the required documents cannot be loaded the engine falls back to the
    bundled set and runs in degraded mode: acceptances are simulated locally,
    never sent to the server, and reported as such in the ``AcceptanceResult``
    passed to ``on_all_documents_accepted``.
    """

    def __init__(
        self,
        api: AcceptanceApi,
        view: AcceptanceView,
        scheduler: Optional[Scheduler] = None,
        config: Optional[EngineConfig] = None,
        fallback_documents: Optional[List[Dict]] = DEFAULT_LEGAL_DOCUMENTS,
        on_all_documents_accepted: Optional[Callable[[AcceptanceResult], None]] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        self.api = api
        self.view = view
        self.scheduler = scheduler or ThreadingScheduler()
        self.config = config or EngineConfig()
        self.fallback_documents = fallback_documents
        self.on_all_documents_accepted = on_all_documents_accepted
        self.on_unauthorized = on_unauthorized

        self.state = EngineState.IDLE
        self.session: Optional[AcceptanceSession] = None
        self.user_context: Dict = {}
        self.reading_progress = 0.0

        self._active = False
        self._gate_open = False
        self._gate_timer = None
        self._advance_timer = None
        self._lock = threading.RLock()
        self._accept_lock = threading.Lock()
        self._completion_lock = threading.Lock()
        self._completed = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def degraded(self) -> bool:
        return bool(self.session and self.session.degraded)

    @property
    def current_index(self) -> Optional[int]:
        return self.session.current_index if self.session else None

    @property
    def accept_enabled(self) -> bool:
        return self.state == EngineState.PRESENTING and self._gate_open

    # Lifecycle

    def start(self, user_context: Dict) -> bool:
        return self.initialize(user_context)

    @synchronized
    def stop(self) -> None:
        self._cancel_timers()
        self._active = False
        logger.info('Acceptance engine stopped')

    @synchronized
    def initialize(self, user_context: Dict) -> bool:
        if self._active:
            logger.info('Acceptance engine already active, skipping initialization')
            return False

        self._active = True
        self._completed = False
        self.state = EngineState.LOADING
        self.user_context = dict(user_context or {})

        try:
            if self._needs_registration():
                self._register()
            documents, degraded = self._load_documents()
        except Unauthorized:
            self._terminate()
            return False
        except LegalAcceptanceError as e:
            self.state = EngineState.FAILED
            self._active = False
            logger.error(f'Acceptance engine initialization failed: {str(e)}')
            self.view.notify('Failed to load legal documents. Please try again.', 'error')
            raise

        self.session = AcceptanceSession.start(documents, degraded=degraded)
        logger.info(
            f'Acceptance session started with {self.session.total} document(s), '
            f'{len(self.session.signed_ids)} already signed{" (degraded)" if degraded else ""}'
        )
        if degraded:
            self.view.notify('Working offline: acceptances in this session are not saved.', 'warning')

        if self.session.is_complete():
            self.complete()
        else:
            self.present(self.session.current_index)
        return True

    # Presentation and reading gate

    @synchronized
    def present(self, index: int) -> bool:
        session = self.session
        if session is None or not 0 <= index < session.total:
            return False
        # Nothing past the first unsigned document can be shown
        if index > session.first_unsigned_index():
            return False
        if self.state in (EngineState.SIGNING, EngineState.COMPLETED, EngineState.FAILED, EngineState.TERMINATED):
            return False

        self._cancel_timer('_gate_timer')
        session.current_index = index
        self.state = EngineState.PRESENTING
        document = session.current

        self.view.show_document(document, index, session.total, render_markdown(document.content))
        self.reading_progress = 0.0
        self.view.show_reading_progress(0)
        self._gate_open = False
        self.view.set_accept_busy(False)
        self.view.set_accept_enabled(False)
        if not session.is_signed(index):
            self._gate_timer = self.scheduler.call_later(
                self.config.reading_fallback_seconds, self._open_gate, index
            )
        self._refresh_navigation()
        self._refresh_progress()
        return True

    @synchronized
    def update_reading_progress(self, scroll_top: float, scroll_height: float, client_height: float) -> float:
        scrollable = scroll_height - client_height
        if scrollable <= 0:
            progress = 100.0
        else:
            progress = min(max(scroll_top, 0) / scrollable * 100, 100.0)
        self.reading_progress = progress
        self.view.show_reading_progress(display_percentage(progress))
        if self.session and progress >= self.config.reading_threshold_percent:
            self._open_gate(self.session.current_index)
        return progress

    @synchronized
    def _open_gate(self, index: int) -> None:
        session = self.session
        if session is None or self.state != EngineState.PRESENTING:
            return
        if session.current_index != index or session.is_signed(index) or self._gate_open:
            return
        self._gate_open = True
        self.view.set_accept_enabled(True)

    # Transitions

    def accept(self, index: Optional[int] = None) -> bool:
        if not self._accept_lock.acquire(blocking=False):
            logger.debug('Accept ignored, a signature is already in flight')
            return False
        try:
            with self._lock:
                return self._accept(index)
        finally:
            self._accept_lock.release()

    def _accept(self, index: Optional[int]) -> bool:
        session = self.session
        if session is None or self.state != EngineState.PRESENTING:
            return False
        if index is None:
            index = session.current_index
        if index != session.current_index or session.is_signed(index) or not self._gate_open:
            return False

        document = session.current
        self._cancel_timer('_gate_timer')
        self.state = EngineState.SIGNING
        self.view.set_accept_enabled(False)
        self.view.set_accept_busy(True)

        if session.degraded:
            logger.info(f'Degraded mode: acceptance of {document.id} simulated locally')
            session.mark_signed(index, simulated=True)
            self._after_signed(index)
            return True

        try:
            self.api.sign(document.id, self._signature_data())
        except AlreadySigned:
            logger.info(f'Document {document.id} was already signed, resuming')
        except DocumentNotFound as e:
            logger.error(f'Document {document.id} rejected by server: {str(e)}')
            self._fail('This document is no longer available. Please reload to continue.')
            return False
        except OutOfOrderSignature as e:
            logger.error(f'Document {document.id} rejected by server: {str(e)}')
            self._fail('An earlier document still needs your acceptance. Please reload to continue.')
            return False
        except Unauthorized:
            self._terminate()
            return False
        except SigningNetworkError as e:
            logger.warning(f'Signing document {document.id} failed: {str(e)}')
            self._reopen_accept()
            self.view.notify('Failed to sign document. Please try again.', 'error')
            return False
        except Exception:
            self._reopen_accept()
            raise

        session.mark_signed(index)
        self._after_signed(index)
        return True

    @synchronized
    def back(self) -> bool:
        session = self.session
        if session is None or self.state not in (EngineState.PRESENTING, EngineState.ACCEPTED):
            return False
        if not session.can_go_back():
            return False
        self._cancel_timer('_advance_timer')
        return self.present(session.current_index - 1)

    @synchronized
    def forward(self) -> bool:
        session = self.session
        if session is None or self.state not in (EngineState.PRESENTING, EngineState.ACCEPTED):
            return False
        if not session.can_go_forward():
            return False
        self._cancel_timer('_advance_timer')
        return self.present(session.current_index + 1)

    @synchronized
    def complete(self) -> bool:
        with self._completion_lock:
            if self._completed:
                return False
            session = self.session
            if session is None or not session.is_complete():
                return False
            self._completed = True

        self._cancel_timers()
        self.state = EngineState.COMPLETED
        self.view.set_accept_busy(False)
        self.view.set_accept_enabled(False)
        self._refresh_progress()
        self.view.show_completion(list(session.documents))
        result = session.result()
        logger.info(f'All {session.total} legal document(s) accepted{" (degraded)" if session.degraded else ""}')

        if not session.degraded:
            try:
                self.api.record_completion()
            except LegalAcceptanceError as e:
                logger.warning(f'Could not record completion on the server: {str(e)}')

        if self.on_all_documents_accepted:
            self.on_all_documents_accepted(result)
        return True

    def progress(self) -> Tuple[int, int, int]:
        session = self.session
        if session is None:
            return 0, 0, 0
        signed = len(session.signed_ids & {document.id for document in session.documents})
        total = session.total
        percentage = display_percentage(signed / total * 100) if total else 100
        return signed, total, percentage

    # Internals

    def _after_signed(self, index: int) -> None:
        session = self.session
        self.state = EngineState.ACCEPTED
        self.view.set_accept_busy(False)
        self.view.set_accept_enabled(False)
        self.view.notify(f'Successfully accepted {session.documents[index].title}', 'success')
        self._refresh_navigation()
        self._refresh_progress()
        self._advance_timer = self.scheduler.call_later(
            self.config.advance_delay_seconds, self._advance_after_sign, index
        )

    @synchronized
    def _advance_after_sign(self, index: int) -> None:
        session = self.session
        if session is None or self.state != EngineState.ACCEPTED or session.current_index != index:
            return
        if session.is_complete():
            self.complete()
        elif index < session.total - 1:
            self.present(index + 1)
        else:
            self.present(session.first_unsigned_index())

    def _reopen_accept(self) -> None:
        self.state = EngineState.PRESENTING
        self._gate_open = True
        self.view.set_accept_busy(False)
        self.view.set_accept_enabled(True)

    def _fail(self, message: str) -> None:
        self._cancel_timers()
        self.state = EngineState.FAILED
        self.view.set_accept_busy(False)
        self.view.set_accept_enabled(False)
        self.view.notify(message, 'error')

    def _terminate(self) -> None:
        self._cancel_timers()
        self.state = EngineState.TERMINATED
        self._active = False
        logger.warning('Acceptance session terminated: authentication required')
        if self.on_unauthorized:
            self.on_unauthorized()

    def _needs_registration(self) -> bool:
        ctx = self.user_context
        return not ctx.get('id') and all(ctx.get(field) for field in REGISTRATION_FIELDS)

    def _register(self) -> None:
        ctx = self.user_context
        result = self.api.register_user({
            'firstName': ctx['firstName'],
            'lastName': ctx['lastName'],
            'email': ctx['email'],
            'password': ctx['password'],
            'company': ctx.get('company'),
        })
        ctx['id'] = result['id']
        ctx['token'] = result.get('token')
        ctx.pop('password', None)
        logger.info(f'Registered user {ctx["id"]} before legal acceptance')

    def _load_documents(self) -> Tuple[List[RequiredDocument], bool]:
        try:
            payload = self.api.fetch_required()
            return [RequiredDocument.from_api(item) for item in payload], False
        except Unauthorized:
            raise
        except (InitializationError, KeyError, TypeError) as e:
            if not self.fallback_documents:
                raise InitializationError(f'Required documents unavailable and no fallback set: {str(e)}')
            logger.warning(f'Loading required documents failed, using bundled fallback set: {str(e)}')
            return [RequiredDocument.from_default(item) for item in self.fallback_documents], True

    def _signature_data(self) -> Dict:
        ctx = self.user_context
        name = ctx.get('name') or ' '.join(filter(None, [ctx.get('firstName'), ctx.get('lastName')]))
        return {
            'name': name,
            'email': ctx.get('email'),
            'ipAddress': ctx.get('ipAddress'),
            'userAgent': ctx.get('userAgent', ''),
            'signedAt': datetime.now(timezone.utc).isoformat(),
        }

    def _refresh_navigation(self) -> None:
        session = self.session
        self.view.set_navigation(session.can_go_back(), session.can_go_forward())

    def _refresh_progress(self) -> None:
        session = self.session
        signed, total, percentage = self.progress()
        items = []
        for index, document in enumerate(session.documents):
            if session.is_signed(index):
                item_status = 'completed'
            elif index == session.current_index:
                item_status = 'current'
            else:
                item_status = 'pending'
            items.append({'index': index, 'id': document.id, 'title': document.title, 'status': item_status})
        self.view.show_progress(signed, total, percentage, items)

    def _cancel_timer(self, name: str) -> None:
        timer = getattr(self, name)
        if timer is not None:
            timer.cancel()
            setattr(self, name, None)

    def _cancel_timers(self) -> None:
        self._cancel_timer('_gate_timer')
        self._cancel_timer('_advance_timer')
