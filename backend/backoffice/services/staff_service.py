"""
Staff Service

Staff members belong to exactly one live store. Passwords are opaque
credentials: they are hashed with bcrypt on the way in and never returned.

SECURITY NOTES:
- Cost factor comes from BCRYPT_LOG_ROUNDS (default 12)
- Password strength rules are not enforced here
"""

from __future__ import annotations

import uuid

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Staff
from ..validation import ValidationError, NotFoundError, is_storable_id
from . import store_service
from .concurrency import lock_for_update, run_in_write_transaction


def generate_staff_code() -> str:
    return f"STAFF-{uuid.uuid4().hex[:8]}"


def hash_password(password: str) -> str:
    """Hash password using bcrypt with the configured cost factor."""
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _live_staff():
    return db.session.query(Staff).filter(Staff.is_deleted.is_(False))


def _require_storable(staff_id: int) -> None:
    if not is_storable_id(staff_id):
        raise NotFoundError("Staff not found", details={"staffId": staff_id})


def _require_store(store_id: int | None) -> None:
    if store_id is None:
        raise ValidationError("storeId is required")
    if not store_service.store_exists(store_id):
        raise ValidationError("storeId does not reference an existing store")


def create_staff(
    name: str | None,
    store_id: int | None,
    password: str | None,
    code: str | None = None,
) -> Staff:
    if not name or not name.strip():
        raise ValidationError("Staff name is required")
    if not password:
        raise ValidationError("password is required")
    password_hash = hash_password(password)

    def _op():
        _require_store(store_id)
        staff = Staff(
            name=name.strip(),
            store_id=store_id,
            code=(code or "").strip() or generate_staff_code(),
            password_hash=password_hash,
        )
        db.session.add(staff)
        db.session.flush()
        return staff

    return run_in_write_transaction(_op)


def update_staff(
    staff_id: int,
    *,
    name: str | None = None,
    store_id: int | None = None,
    password: str | None = None,
) -> Staff:
    if name is not None and not name.strip():
        raise ValidationError("Staff name cannot be blank")
    _require_storable(staff_id)
    password_hash = hash_password(password) if password else None

    def _op():
        staff = lock_for_update(_live_staff().filter(Staff.id == staff_id)).first()
        if not staff:
            raise NotFoundError("Staff not found", details={"staffId": staff_id})

        if store_id is not None:
            _require_store(store_id)
            staff.store_id = store_id
        if name is not None:
            staff.name = name.strip()
        if password_hash:
            staff.password_hash = password_hash
        return staff

    return run_in_write_transaction(_op)


def delete_staff(staff_id: int) -> None:
    _require_storable(staff_id)

    def _op():
        staff = lock_for_update(_live_staff().filter(Staff.id == staff_id)).first()
        if not staff:
            raise NotFoundError("Staff not found", details={"staffId": staff_id})
        staff.is_deleted = True

    run_in_write_transaction(_op)


def get_staff(staff_id: int) -> Staff:
    _require_storable(staff_id)
    staff = _live_staff().filter(Staff.id == staff_id).first()
    if not staff:
        raise NotFoundError("Staff not found", details={"staffId": staff_id})
    return staff


def get_staff_by_code(code: str) -> Staff:
    staff = _live_staff().filter(Staff.code == code).first()
    if not staff:
        raise NotFoundError("Staff not found", details={"code": code})
    return staff


def staff_exists(staff_id: int) -> bool:
    if not is_storable_id(staff_id):
        return False
    return db.session.query(_live_staff().filter(Staff.id == staff_id).exists()).scalar()


def list_staff() -> list[Staff]:
    return _live_staff().order_by(Staff.id.asc()).all()
