"""Key-value stores used to persist client-side state."""

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from estate_catalog.models.database import KeyValueDB, get_engine, get_session, init_db


class SqliteKeyValueStore:
    """
    String key-value store backed by a SQLite table.

    Exposes the two operations the favorites service needs: get and set.
    """

    def __init__(self, database_url: str | None = None):
        self.engine = get_engine(database_url)
        init_db(self.engine)

    def get(self, key: str) -> str | None:
        """Stored value for key, or None."""
        session = get_session(self.engine)
        try:
            row = session.execute(select(KeyValueDB).where(KeyValueDB.key == key)).scalar_one_or_none()
            return row.value if row is not None else None
        finally:
            session.close()

    def set(self, key: str, value: str) -> None:
        """Insert or replace the value stored under key."""
        session = get_session(self.engine)

        try:
            stmt = sqlite_insert(KeyValueDB).values(key=key, value=value)
            stmt = stmt.on_conflict_do_update(
                index_elements=["key"],
                set_={"value": stmt.excluded.value},
            )
            session.execute(stmt)
            session.commit()

        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class MemoryKeyValueStore:
    """In-process store with the same interface (tests, ephemeral sessions)."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
