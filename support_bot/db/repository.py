"""
Session storage.

One interface, two implementations: a process-local mapping store for
development and tests, and a SQLAlchemy-backed store for durable deployments.
``get_session_repository`` picks one from the ``session_store`` setting.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from copy import deepcopy
from datetime import datetime, timezone
from functools import lru_cache
from threading import Lock

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from support_bot.core.config import get_settings
from support_bot.core.errors import StorageFault
from support_bot.db.models import ConversationMessage, ConversationSession
from support_bot.db.session import get_session_factory
from support_bot.schemas.domain import ChatSession, Message, SessionMetadata, utcnow

logger = logging.getLogger(__name__)


class SessionRepository(ABC):
    @abstractmethod
    def create_session(self, owner_id: str, metadata: SessionMetadata) -> ChatSession:
        """Persist a new, active session owned by ``owner_id``."""

    @abstractmethod
    def find_session_by_id(self, session_id: str) -> ChatSession | None:
        """Return the session or None when the id is unknown."""

    @abstractmethod
    def append_message(self, session_id: str, message: Message) -> ChatSession | None:
        """Append one message and bump ``updated_at`` as a single write."""

    @abstractmethod
    def set_escalated(self, session_id: str, reason: str) -> tuple[ChatSession, bool] | None:
        """
        Mark the session escalated and report whether this call changed it.
        A session that is already escalated is left untouched.
        """

    @abstractmethod
    def find_sessions_by_owner(self, owner_id: str) -> list[ChatSession]:
        """All sessions owned by ``owner_id``, oldest first."""


class InMemorySessionRepository(SessionRepository):
    """
    Mapping store for single-process deployments and tests.
    Sessions are lost on restart. Returned objects are copies, so callers
    cannot mutate stored state behind the repository's back.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}
        self._lock = Lock()

    def create_session(self, owner_id: str, metadata: SessionMetadata) -> ChatSession:
        session = ChatSession(owner_id=owner_id, metadata=metadata)
        with self._lock:
            self._sessions[session.id] = session
            return deepcopy(session)

    def find_session_by_id(self, session_id: str) -> ChatSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            return deepcopy(session) if session else None

    def append_message(self, session_id: str, message: Message) -> ChatSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.messages.append(message)
            session.updated_at = max(utcnow(), session.created_at)
            return deepcopy(session)

    def set_escalated(self, session_id: str, reason: str) -> tuple[ChatSession, bool] | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            changed = not session.escalated
            if changed:
                session.escalated = True
                session.escalation_reason = reason
                session.updated_at = max(utcnow(), session.created_at)
            return deepcopy(session), changed

    def find_sessions_by_owner(self, owner_id: str) -> list[ChatSession]:
        with self._lock:
            owned = [deepcopy(s) for s in self._sessions.values() if s.owner_id == owner_id]
        return sorted(owned, key=lambda s: s.created_at)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_domain(row: ConversationSession) -> ChatSession:
    return ChatSession(
        id=row.id,
        owner_id=row.owner_id,
        messages=[
            Message(
                role=msg.role,
                content=msg.content,
                timestamp=_aware(msg.created_at),
                confidence=msg.confidence,
                latency_ms=msg.latency_ms,
            )
            for msg in row.messages
        ],
        escalated=bool(row.escalated),
        escalation_reason=row.escalation_reason,
        metadata=SessionMetadata(user_agent=row.user_agent, ip_address=row.ip_address),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class SqlSessionRepository(SessionRepository):
    def __init__(self, session_factory=None) -> None:
        self._session_factory = session_factory or get_session_factory()

    @contextmanager
    def _db(self):
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("session store failure")
            raise StorageFault(f"Session store failure: {exc.__class__.__name__}") from exc
        finally:
            db.close()

    def create_session(self, owner_id: str, metadata: SessionMetadata) -> ChatSession:
        now = utcnow()
        with self._db() as db:
            row = ConversationSession(
                owner_id=owner_id,
                user_agent=metadata.user_agent,
                ip_address=metadata.ip_address,
                created_at=now,
                updated_at=now,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_domain(row)

    def find_session_by_id(self, session_id: str) -> ChatSession | None:
        with self._db() as db:
            row = db.get(ConversationSession, session_id)
            return _to_domain(row) if row else None

    def append_message(self, session_id: str, message: Message) -> ChatSession | None:
        with self._db() as db:
            row = db.get(ConversationSession, session_id)
            if row is None:
                return None
            row.messages.append(
                ConversationMessage(
                    role=message.role,
                    content=message.content,
                    confidence=message.confidence,
                    latency_ms=message.latency_ms,
                    created_at=message.timestamp,
                )
            )
            row.updated_at = max(utcnow(), _aware(row.created_at))
            db.commit()
            return _to_domain(row)

    def set_escalated(self, session_id: str, reason: str) -> tuple[ChatSession, bool] | None:
        with self._db() as db:
            result = db.execute(
                update(ConversationSession)
                .where(
                    ConversationSession.id == session_id,
                    ConversationSession.escalated.is_(False),
                )
                .values(escalated=True, escalation_reason=reason, updated_at=utcnow())
            )
            changed = result.rowcount == 1
            db.commit()
            row = db.get(ConversationSession, session_id, populate_existing=True)
            if row is None:
                return None
            return _to_domain(row), changed

    def find_sessions_by_owner(self, owner_id: str) -> list[ChatSession]:
        with self._db() as db:
            rows = db.scalars(
                select(ConversationSession)
                .where(ConversationSession.owner_id == owner_id)
                .order_by(ConversationSession.created_at)
            ).all()
            return [_to_domain(row) for row in rows]


@lru_cache(maxsize=1)
def get_session_repository() -> SessionRepository:
    settings = get_settings()
    if settings.session_store == "memory":
        logger.info("using in-memory session store")
        return InMemorySessionRepository()
    return SqlSessionRepository()
