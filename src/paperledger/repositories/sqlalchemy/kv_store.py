"""SQLAlchemy implementation of KeyValueStore."""

import logging
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from paperledger.core.exceptions import StorageError
from paperledger.core.timezone import now_eastern
from paperledger.repositories.sqlalchemy.orm_models import KeyValueEntryORM

logger = logging.getLogger(__name__)


class SqlAlchemyKeyValueStore:
    """SQLAlchemy-backed key-value store for one profile."""

    def __init__(
        self,
        db: Session,
        profile_id: str = "default",
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._db = db
        self._profile_id = profile_id
        self._clock = clock

    @property
    def profile_id(self) -> str:
        return self._profile_id

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        return self.get_many([key])[key]

    def get_many(self, keys: Iterable[str]) -> dict[str, Optional[str]]:
        """Return a mapping of every requested key to its value or None."""
        keys = list(keys)
        try:
            rows = (
                self._db.query(KeyValueEntryORM.key, KeyValueEntryORM.value)
                .filter(
                    KeyValueEntryORM.profile_id == self._profile_id,
                    KeyValueEntryORM.key.in_(keys),
                )
                .all()
            )
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageError(f"Failed to read keys {keys}: {exc}") from exc
        found = {row.key: row.value for row in rows}
        return {key: found.get(key) for key in keys}

    def set(self, key: str, value: str) -> None:
        """Store a value."""
        self.write_batch({key: value})

    def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        self.write_batch({key: None})

    def write_batch(
        self,
        entries: Mapping[str, Optional[str]],
        expect: Optional[tuple[str, Optional[str]]] = None,
    ) -> bool:
        """
        Apply all entries in one database transaction.

        The expect guard is a conditional UPDATE/INSERT on the guard key
        inside the same transaction, so two writers holding the same
        expected value cannot both succeed.
        """
        try:
            if expect is not None:
                guard_key, expected = expect
                new_value = entries.get(guard_key, expected)
                if not self._claim(guard_key, expected, new_value):
                    self._db.rollback()
                    logger.info(
                        "Conditional write rejected for profile %s: %s no longer %r",
                        self._profile_id,
                        guard_key,
                        expected,
                    )
                    return False

            for key, value in entries.items():
                if expect is not None and key == expect[0]:
                    continue
                if value is None:
                    self._delete_row(key)
                else:
                    self._upsert_row(key, value)

            self._db.commit()
            return True
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageError(f"Failed to write keys {sorted(entries)}: {exc}") from exc

    def _claim(self, key: str, expected: Optional[str], new_value: Optional[str]) -> bool:
        """Swap the guard key from expected to new_value; False if it moved."""
        query = self._db.query(KeyValueEntryORM).filter(
            KeyValueEntryORM.profile_id == self._profile_id,
            KeyValueEntryORM.key == key,
        )

        if expected is None:
            if query.first() is not None:
                return False
            if new_value is None:
                return True
            self._db.add(self._row(key, new_value))
            try:
                self._db.flush()
            except IntegrityError:
                # Another writer inserted the key first
                return False
            return True

        query = query.filter(KeyValueEntryORM.value == expected)
        if new_value is None:
            return query.delete(synchronize_session=False) == 1
        updated = query.update(
            {
                KeyValueEntryORM.value: new_value,
                KeyValueEntryORM.updated_at_est: self._clock(),
            },
            synchronize_session=False,
        )
        return updated == 1

    def _upsert_row(self, key: str, value: str) -> None:
        self._db.merge(self._row(key, value))

    def _delete_row(self, key: str) -> None:
        self._db.query(KeyValueEntryORM).filter(
            KeyValueEntryORM.profile_id == self._profile_id,
            KeyValueEntryORM.key == key,
        ).delete(synchronize_session=False)

    def _row(self, key: str, value: str) -> KeyValueEntryORM:
        return KeyValueEntryORM(
            profile_id=self._profile_id,
            key=key,
            value=value,
            updated_at_est=self._clock(),
        )
