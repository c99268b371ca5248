from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z

class Item(db.Model):
    """
    Sellable item with an on-hand stock count.

    STOCK DESIGN DECISION:
    Item.stock is a mutable counter, not a ledger sum. Sales decrement it
    with a conditional UPDATE (stock >= quantity) so two writers on the same
    row serialize and neither can drive it negative. The CHECK constraints
    back that up at the database level.

    CODE:
    - Scannable/barcode code, unique among live (non-deleted) items
    - Generated as ITEM-xxxxxxxx when the client does not send one
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_items_price_non_negative"),
        db.CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),
        db.Index("ix_items_code_deleted", "code", "is_deleted"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    code = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Integer currency units (no fractional prices)
    price = db.Column(db.Integer, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)

    # Soft delete: sale lines keep pointing at deleted items
    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Item id={self.id} code={self.code!r} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
