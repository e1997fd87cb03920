from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import session_scope
from models import StoredBlob

logger = logging.getLogger(__name__)


class StorageReadError(RuntimeError):
    pass


class StorageWriteError(RuntimeError):
    pass


class BlobStore:
    """JSON document store keyed by name, backed by the ``blobs`` table."""

    def __init__(self, session_factory: Callable[[], Session], key: str) -> None:
        self.session_factory = session_factory
        self.key = key

    def read(self) -> Optional[Any]:
        try:
            with session_scope(self.session_factory) as session:
                blob = session.get(StoredBlob, self.key)
                text = blob.value if blob else None
        except SQLAlchemyError as exc:
            raise StorageReadError(f"Could not read '{self.key}'") from exc

        if text is None:
            logger.info(f"store_read: key={self.key} absent")
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageReadError(f"Stored '{self.key}' is not valid JSON") from exc
        logger.info(f"store_read: key={self.key} bytes={len(text)}")
        return data

    def write(self, records: list[dict[str, Any]]) -> None:
        text = json.dumps(records, ensure_ascii=False)
        try:
            with session_scope(self.session_factory) as session:
                blob = session.get(StoredBlob, self.key)
                if blob is None:
                    session.add(StoredBlob(key=self.key, value=text))
                else:
                    blob.value = text
        except SQLAlchemyError as exc:
            raise StorageWriteError(f"Could not write '{self.key}'") from exc
        logger.info(f"store_write: key={self.key} records={len(records)}")
