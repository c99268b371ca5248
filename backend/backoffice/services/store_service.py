from __future__ import annotations

import uuid

from ..extensions import db
from ..models import Store
from ..validation import ValidationError, NotFoundError, is_storable_id
from .concurrency import lock_for_update, run_in_write_transaction


def generate_store_code() -> str:
    return f"STORE-{uuid.uuid4().hex[:8]}"


def _live_stores():
    return db.session.query(Store).filter(Store.is_deleted.is_(False))


def _require_storable(store_id: int) -> None:
    if not is_storable_id(store_id):
        raise NotFoundError("Store not found", details={"storeId": store_id})


def create_store(name: str | None, code: str | None = None) -> Store:
    if not name or not name.strip():
        raise ValidationError("Store name is required")

    def _op():
        store = Store(
            name=name.strip(),
            code=(code or "").strip() or generate_store_code(),
        )
        db.session.add(store)
        db.session.flush()
        return store

    return run_in_write_transaction(_op)


def update_store(
    store_id: int,
    *,
    name: str | None = None,
    code: str | None = None,
) -> Store:
    if name is not None and not name.strip():
        raise ValidationError("Store name cannot be blank")
    _require_storable(store_id)

    def _op():
        store = lock_for_update(_live_stores().filter(Store.id == store_id)).first()
        if not store:
            raise NotFoundError("Store not found", details={"storeId": store_id})

        if name is not None:
            store.name = name.strip()
        if code is not None and code.strip():
            store.code = code.strip()
        return store

    return run_in_write_transaction(_op)


def delete_store(store_id: int) -> None:
    _require_storable(store_id)

    def _op():
        store = lock_for_update(_live_stores().filter(Store.id == store_id)).first()
        if not store:
            raise NotFoundError("Store not found", details={"storeId": store_id})
        store.is_deleted = True

    run_in_write_transaction(_op)


def get_store(store_id: int) -> Store:
    _require_storable(store_id)
    store = _live_stores().filter(Store.id == store_id).first()
    if not store:
        raise NotFoundError("Store not found", details={"storeId": store_id})
    return store


def store_exists(store_id: int) -> bool:
    if not is_storable_id(store_id):
        return False
    return db.session.query(_live_stores().filter(Store.id == store_id).exists()).scalar()


def list_stores() -> list[Store]:
    return _live_stores().order_by(Store.id.asc()).all()
