import logging
from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tinylink import models
from tinylink.errors import (
    CodeConflict,
    CodeSpaceExhausted,
    InvalidCode,
    InvalidUrl,
    NotFound,
    StoreUnavailable,
)
from tinylink.utils import generate_code, is_valid_code, is_valid_url, normalize_url

logger = logging.getLogger("tinylink.crud")

CODE_LENGTH = 6
MAX_ATTEMPTS = 10

# Paths served by fixed routes; a link under one of these could never redirect
RESERVED = {"health", "links", "docs", "redoc"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _store(db: Session):
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Link store failure")
        raise StoreUnavailable() from exc


# ---------- Store ----------

def get_link(db: Session, code: str) -> models.ShortLink | None:
    with _store(db):
        return db.query(models.ShortLink).filter_by(code=code).first()

def upsert_link(db: Session, code: str, target_url: str) -> models.ShortLink:
    """Point ``code`` at ``target_url`` with fresh counters.

    A soft-deleted row is revived in place; otherwise a new row is inserted.
    When an active row already holds the code the unique index rejects the
    insert and CodeConflict is raised.
    """
    now = _utcnow()
    with _store(db):
        revived = (
            db.query(models.ShortLink)
            .filter_by(code=code, deleted=True)
            .update(
                {
                    models.ShortLink.target_url: target_url,
                    models.ShortLink.deleted: False,
                    models.ShortLink.total_clicks: 0,
                    models.ShortLink.last_clicked: None,
                    models.ShortLink.created_at: now,
                },
                synchronize_session=False,
            )
        )
        if not revived:
            db.add(models.ShortLink(
                code=code,
                target_url=target_url,
                deleted=False,
                total_clicks=0,
                last_clicked=None,
                created_at=now,
            ))
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise CodeConflict() from exc
    return get_link(db, code)

def increment_clicks(db: Session, code: str) -> bool:
    with _store(db):
        updated = (
            db.query(models.ShortLink)
            .filter_by(code=code, deleted=False)
            .update(
                {
                    models.ShortLink.total_clicks: models.ShortLink.total_clicks + 1,
                    models.ShortLink.last_clicked: _utcnow(),
                },
                synchronize_session=False,
            )
        )
        db.commit()
    return bool(updated)

def mark_deleted(db: Session, code: str) -> bool:
    with _store(db):
        link = db.query(models.ShortLink).filter_by(code=code).first()
        if not link:
            return False
        if not link.deleted:
            link.deleted = True
            db.commit()
    return True

def get_active_links(db: Session) -> list[models.ShortLink]:
    with _store(db):
        return (
            db.query(models.ShortLink)
            .filter_by(deleted=False)
            .order_by(models.ShortLink.created_at.desc(), models.ShortLink.id.desc())
            .all()
        )


# ---------- Registry ----------

def create_link(db: Session, url: str | None, code: str | None = None,
                generator: Callable[[int], str] | None = None) -> models.ShortLink:
    generator = generator or generate_code
    if not url or not url.strip():
        raise InvalidUrl("URL is required")
    target_url = normalize_url(url)
    if not is_valid_url(target_url):
        raise InvalidUrl()

    if code:
        if not is_valid_code(code):
            raise InvalidCode()
        if code in RESERVED:
            raise CodeConflict(f"Code '{code}' is reserved")
        existing = get_link(db, code)
        if existing and not existing.deleted:
            raise CodeConflict()
        return upsert_link(db, code, target_url)

    for attempt in range(1, MAX_ATTEMPTS + 1):
        candidate = generator(CODE_LENGTH)
        if candidate in RESERVED:
            logger.debug("Generated code %s is reserved (attempt %d)", candidate, attempt)
            continue
        existing = get_link(db, candidate)
        if existing and not existing.deleted:
            logger.debug("Generated code %s is taken (attempt %d)", candidate, attempt)
            continue
        try:
            return upsert_link(db, candidate, target_url)
        except CodeConflict:
            # another writer claimed the candidate between lookup and insert
            logger.debug("Lost insert race for %s (attempt %d)", candidate, attempt)
    raise CodeSpaceExhausted()

def get_active_link(db: Session, code: str) -> models.ShortLink:
    link = get_link(db, code)
    if not link or link.deleted:
        raise NotFound()
    return link

def resolve_link(db: Session, code: str) -> models.ShortLink:
    """Look up an active link for a redirect and count the click."""
    link = get_active_link(db, code)
    if not increment_clicks(db, code):
        raise NotFound()
    return link

def delete_link(db: Session, code: str) -> None:
    if not mark_deleted(db, code):
        raise NotFound()
