from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from careercoach.db.models import KeyValueEntry


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def get_value(self, key: str) -> str | None:
        entry = self.session.scalar(select(KeyValueEntry).where(KeyValueEntry.key == key))
        return entry.value if entry else None

    def set_value(self, key: str, value: str) -> KeyValueEntry:
        entry = self.session.scalar(select(KeyValueEntry).where(KeyValueEntry.key == key))
        if entry:
            entry.value = value
        else:
            entry = KeyValueEntry(key=key, value=value)
            self.session.add(entry)

        self.session.commit()
        self.session.refresh(entry)
        return entry

    def remove_value(self, key: str) -> bool:
        result = self.session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        self.session.commit()
        return bool(result.rowcount)

    def list_keys(self, prefix: str = "") -> list[str]:
        statement = select(KeyValueEntry.key).order_by(KeyValueEntry.key)
        if prefix:
            statement = statement.where(KeyValueEntry.key.startswith(prefix))
        return list(self.session.scalars(statement).all())
