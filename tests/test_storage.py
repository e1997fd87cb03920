from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from database import Base
from models import StoredBlob
from storage import BlobStore, StorageReadError, StorageWriteError


def _factory(tmp_path: Path, *, create_tables: bool = True) -> sessionmaker[Session]:
    engine = create_engine(f"sqlite:///{tmp_path / 'store.db'}")
    if create_tables:
        Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


def test_read_absent_key_returns_none(tmp_path: Path) -> None:
    store = BlobStore(_factory(tmp_path), "ledger")
    assert store.read() is None


def test_write_then_read_round_trips_records(tmp_path: Path) -> None:
    factory = _factory(tmp_path)
    records = [{"id": "1", "amount": 9.5, "note": "早餐"}]

    BlobStore(factory, "ledger").write(records)
    BlobStore(factory, "ledger").write(records + [{"id": "2"}])

    assert BlobStore(factory, "ledger").read() == records + [{"id": "2"}]
    assert BlobStore(factory, "other").read() is None


def test_unparsable_blob_raises_read_error(tmp_path: Path) -> None:
    factory = _factory(tmp_path)
    with factory() as session:
        session.add(StoredBlob(key="ledger", value="{not json"))
        session.commit()

    with pytest.raises(StorageReadError):
        BlobStore(factory, "ledger").read()


def test_database_failures_are_wrapped(tmp_path: Path) -> None:
    store = BlobStore(_factory(tmp_path, create_tables=False), "ledger")

    with pytest.raises(StorageReadError):
        store.read()
    with pytest.raises(StorageWriteError):
        store.write([])
