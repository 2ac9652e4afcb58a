import logging
from contextlib import contextmanager
from threading import Lock

from support_bot.core.errors import SessionNotFound
from support_bot.db.repository import SessionRepository
from support_bot.schemas.domain import ChatSession, Message, SessionMetadata

logger = logging.getLogger(__name__)


class _LockEntry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = Lock()
        self.holders = 0


class SessionLocks:
    """
    Per-session mutexes so turns against one session run one at a time in this process.

    An entry lives only while some caller holds or waits on it, so the registry
    stays bounded by the number of in-flight turns.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._entries: dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, session_id: str):
        with self._guard:
            entry = self._entries.get(session_id)
            if entry is None:
                entry = self._entries[session_id] = _LockEntry()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[session_id]


_session_locks = SessionLocks()


class SessionService:
    """
    Lifecycle of a conversation: Active on creation, Escalated after a one-way
    transition. Messages are only ever appended.
    """

    def __init__(self, repository: SessionRepository, locks: SessionLocks | None = None) -> None:
        self.repository = repository
        self.locks = locks or _session_locks

    def create(self, owner_id: str, metadata: SessionMetadata | None = None) -> ChatSession:
        session = self.repository.create_session(owner_id, metadata or SessionMetadata())
        logger.info("session created id=%s owner=%s", session.id, owner_id)
        return session

    def get(self, session_id: str) -> ChatSession | None:
        return self.repository.find_session_by_id(session_id)

    def require(self, session_id: str) -> ChatSession:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFound()
        return session

    def append_message(self, session_id: str, message: Message) -> ChatSession:
        session = self.repository.append_message(session_id, message)
        if session is None:
            raise SessionNotFound()
        return session

    def escalate(self, session_id: str, reason: str) -> tuple[ChatSession, bool]:
        """Returns the session and whether this call performed the transition."""
        reason = (reason or "").strip()
        if not reason:
            raise ValueError("escalation reason must be non-empty")

        # Whether this call transitioned is decided by the store's conditional write.
        result = self.repository.set_escalated(session_id, reason)
        if result is None:
            raise SessionNotFound()
        session, transitioned = result
        if transitioned:
            logger.info("session escalated id=%s reason=%s", session_id, reason)
        return session, transitioned

    def list_for_owner(self, owner_id: str) -> list[ChatSession]:
        return self.repository.find_sessions_by_owner(owner_id)
