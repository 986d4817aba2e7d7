# backend/resume_store.py
"""
Resume collection storage and the client-side state that mirrors it.

ResumeRepository  - one document per resume, nested under one user,
                    with a push subscription per user (every write
                    re-delivers the user's full list).
ResumeState       - resumes / selected id / current editing document,
                    with an explicit subscribe interface.
ResumeSession     - binds one signed-in user to a repository and a state
                    (one-way sync: store -> state).

Consistency is last-write-wins: a save and a concurrent external edit are
not reconciled, whichever lands last is what the next snapshot shows.
"""

import datetime as dt
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from database import Base, SessionLocal, engine
from errors import ResumeNotFound, ValidationError
from models import Resume, User
from resume_schema import ResumeDocument, empty_resume, normalize_resume, to_wire

logger = logging.getLogger(__name__)


@dataclass
class ResumeRecord:
    id: str
    data: ResumeDocument
    updated_at: Optional[dt.datetime] = None


SnapshotCallback = Callable[[List[ResumeRecord]], None]


def _now() -> dt.datetime:
    # naive UTC, the DateTime columns carry no tz
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


# ============================================================
# ====================== DOCUMENT STORE ======================
# ============================================================

class ResumeRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal, create_tables: bool = True):
        self._session_factory = session_factory
        self._listeners: Dict[str, List[SnapshotCallback]] = {}
        if create_tables:
            bind = session_factory.kw.get("bind") or engine
            Base.metadata.create_all(bind=bind)

    def _session(self) -> Session:
        return self._session_factory()

    # ---- users ----

    def ensure_user(self, user_id: str, email: str = "") -> None:
        with self._session() as db:
            if db.get(User, user_id) is None:
                db.add(User(id=user_id, email=email))
                db.commit()
                logger.info("[STORE] created user document %s", user_id)

    # ---- reads ----

    def list_resumes(self, user_id: str) -> List[ResumeRecord]:
        with self._session() as db:
            rows = (
                db.query(Resume)
                .filter(Resume.user_id == user_id)
                .order_by(Resume.created_at, Resume.id)
                .all()
            )
            return [
                ResumeRecord(id=row.id, data=normalize_resume(row.data), updated_at=row.updated_at)
                for row in rows
            ]

    def get_resume(self, user_id: str, resume_id: str) -> Optional[ResumeRecord]:
        with self._session() as db:
            row = self._get_row(db, user_id, resume_id)
            if row is None:
                return None
            return ResumeRecord(id=row.id, data=normalize_resume(row.data), updated_at=row.updated_at)

    @staticmethod
    def _get_row(db: Session, user_id: str, resume_id: str) -> Optional[Resume]:
        return (
            db.query(Resume)
            .filter(Resume.user_id == user_id, Resume.id == resume_id)
            .first()
        )

    # ---- writes (each one pushes a fresh snapshot to listeners) ----

    def create_resume(self, user_id: str, title: str) -> ResumeRecord:
        doc = empty_resume(title)
        now = _now()
        resume_id = uuid4().hex
        with self._session() as db:
            db.add(
                Resume(
                    id=resume_id,
                    user_id=user_id,
                    data=to_wire(doc),
                    created_at=now,
                    updated_at=now,
                )
            )
            db.commit()
        logger.info("[STORE] created resume %s for %s", resume_id, user_id)
        self._emit(user_id)
        return ResumeRecord(id=resume_id, data=doc, updated_at=now)

    def overwrite_resume(self, user_id: str, resume_id: str, doc: Any) -> ResumeRecord:
        """
        Merge-write the whole document: every key of `doc` replaces the
        stored one, stored keys absent from `doc` survive. Creates the
        document when it does not exist yet.
        """
        normalized = normalize_resume(doc)
        now = _now()
        with self._session() as db:
            row = self._get_row(db, user_id, resume_id)
            if row is None:
                row = Resume(id=resume_id, user_id=user_id, data={}, created_at=now)
                db.add(row)
            row.data = {**(row.data or {}), **to_wire(normalized)}
            row.updated_at = now
            db.commit()
        self._emit(user_id)
        return ResumeRecord(id=resume_id, data=normalized, updated_at=now)

    def update_resume(self, user_id: str, resume_id: str, changes: Mapping) -> ResumeRecord:
        """Patch top-level keys of an existing document."""
        now = _now()
        with self._session() as db:
            row = self._get_row(db, user_id, resume_id)
            if row is None:
                raise ResumeNotFound(f"Resume {resume_id} does not exist.")
            normalized = normalize_resume({**(row.data or {}), **dict(changes)})
            row.data = to_wire(normalized)
            row.updated_at = now
            db.commit()
        self._emit(user_id)
        return ResumeRecord(id=resume_id, data=normalized, updated_at=now)

    def delete_resume(self, user_id: str, resume_id: str) -> None:
        with self._session() as db:
            row = self._get_row(db, user_id, resume_id)
            if row is not None:
                db.delete(row)
                db.commit()
                logger.info("[STORE] deleted resume %s for %s", resume_id, user_id)
        self._emit(user_id)

    # ---- realtime subscription ----

    def listen_to_resumes(self, user_id: str, callback: SnapshotCallback) -> Callable[[], None]:
        """
        Deliver the user's full resume list now and after every write,
        in write order. Returns the unsubscribe function.
        """
        self._listeners.setdefault(user_id, []).append(callback)
        callback(self.list_resumes(user_id))

        def unsubscribe() -> None:
            callbacks = self._listeners.get(user_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _emit(self, user_id: str) -> None:
        callbacks = list(self._listeners.get(user_id, []))
        if not callbacks:
            return
        records = self.list_resumes(user_id)
        for callback in callbacks:
            callback(records)


# ============================================================
# ======================= CLIENT STATE =======================
# ============================================================

StateListener = Callable[["ResumeState"], None]


class ResumeState:
    """In-memory editing state. Every update notifies subscribers."""

    def __init__(self):
        self.resumes: List[ResumeRecord] = []
        self.selected_resume_id: Optional[str] = None
        self.current_resume: ResumeDocument = empty_resume()
        self._listeners: List[StateListener] = []

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _find(self, resume_id: Optional[str]) -> Optional[ResumeRecord]:
        if resume_id is None:
            return None
        return next((r for r in self.resumes if r.id == resume_id), None)

    def set_resumes(self, records: List[ResumeRecord]) -> None:
        """
        Replace the collection. The current document follows the selected
        record when it is still present; otherwise it is left as is.
        """
        self.resumes = list(records)
        selected = self._find(self.selected_resume_id)
        if selected is not None:
            self.current_resume = selected.data.model_copy(deep=True)
        self._notify()

    def select_resume(self, resume_id: str) -> None:
        self.selected_resume_id = resume_id
        selected = self._find(resume_id)
        if selected is not None:
            self.current_resume = selected.data.model_copy(deep=True)
        self._notify()

    def set_current_resume(self, doc: ResumeDocument) -> None:
        self.current_resume = doc
        self._notify()

    def reset_current_resume(self) -> None:
        self.current_resume = empty_resume()
        self.selected_resume_id = None
        self._notify()


# ============================================================
# ========================== SESSION =========================
# ============================================================

class ResumeSession:
    def __init__(
        self,
        repository: ResumeRepository,
        state: ResumeState,
        user_id: str,
        email: str = "",
    ):
        self.repository = repository
        self.state = state
        self.user_id = user_id
        self.email = email
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> None:
        self.repository.ensure_user(self.user_id, self.email)
        self._unsubscribe = self.repository.listen_to_resumes(self.user_id, self._on_snapshot)

    def stop(self) -> None:
        """Sign-out: stop listening and drop everything that belonged to the user."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.state.set_resumes([])
        self.state.reset_current_resume()

    def _on_snapshot(self, records: List[ResumeRecord]) -> None:
        self.state.set_resumes(records)
        if self.state.selected_resume_id is None and records:
            self.state.select_resume(records[0].id)

    def select(self, resume_id: str) -> None:
        self.state.select_resume(resume_id)

    def create(self, title: str) -> ResumeRecord:
        if not (title or "").strip():
            raise ValidationError("Resume title is required.")
        record = self.repository.create_resume(self.user_id, title)
        self.state.select_resume(record.id)
        self.state.set_current_resume(record.data.model_copy(deep=True))
        return record

    def save(self, doc: Any) -> ResumeRecord:
        resume_id = self.state.selected_resume_id
        if resume_id is None:
            raise ValidationError("No resume is selected.")
        record = self.repository.overwrite_resume(self.user_id, resume_id, doc)
        self.state.set_current_resume(record.data.model_copy(deep=True))
        return record

    def delete(self, resume_id: str) -> None:
        self.repository.delete_resume(self.user_id, resume_id)
        if self.state.selected_resume_id == resume_id:
            self.state.reset_current_resume()

    def hydrate_with_parsed_data(self, doc: Any) -> ResumeDocument:
        """Load an AI result into the editor without saving it."""
        normalized = normalize_resume(doc)
        self.state.set_current_resume(normalized)
        return normalized
