# scheve_cms/services/settings_documents.py
from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from scheve_cms.errors import StorageFailure
from scheve_cms.models import SettingsDocument, utcnow

logger = logging.getLogger(__name__)


class SettingsDocuments:
    """
    find/insert/replace for singleton settings documents keyed by a fixed name.
    Every write is one statement + commit, so readers see the old or the new payload, never a mix.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_one(self, key: str) -> dict | None:
        try:
            row = self.db.execute(
                select(SettingsDocument.payload).where(SettingsDocument.key == key)
            ).first()
        except SQLAlchemyError as e:
            self._fail(f"Failed to read settings document {key!r}", e)
        return dict(row[0]) if row else None

    def insert_one(self, key: str, payload: dict) -> dict:
        """
        Insert a new document. If another writer created it first,
        the existing payload is returned instead.
        """
        self.db.add(SettingsDocument(key=key, payload=payload, updated_at=utcnow()))
        try:
            self.db.commit()
            return payload
        except IntegrityError:
            self.db.rollback()
            existing = self.find_one(key)
            if existing is None:
                raise StorageFailure(f"Duplicate settings key but row not found: {key!r}")
            return existing
        except SQLAlchemyError as e:
            self._fail(f"Failed to insert settings document {key!r}", e)

    def replace_one(self, key: str, payload: dict, upsert: bool = True) -> dict | None:
        """
        Overwrite the document. With upsert=False a missing row is left missing and None is returned.
        """
        try:
            if upsert:
                stmt = self._insert(key, payload)
                self.db.execute(stmt)
                self.db.commit()
                return payload

            result = self.db.execute(
                update(SettingsDocument)
                .where(SettingsDocument.key == key)
                .values(payload=payload, updated_at=utcnow())
            )
            self.db.commit()
            return payload if result.rowcount else None
        except SQLAlchemyError as e:
            self._fail(f"Failed to replace settings document {key!r}", e)

    def _insert(self, key: str, payload: dict):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            raise StorageFailure(f"Upsert not supported for database dialect {dialect!r}")

        now = utcnow()
        stmt = insert(SettingsDocument).values(key=key, payload=payload, updated_at=now)
        return stmt.on_conflict_do_update(
            index_elements=[SettingsDocument.key],
            set_={"payload": stmt.excluded.payload, "updated_at": now},
        )

    def _fail(self, message: str, error: Exception):
        self.db.rollback()
        logger.exception(message)
        raise StorageFailure(f"{message}: {type(error).__name__}") from error
