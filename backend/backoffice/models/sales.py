from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z

class Sale(db.Model):
    """
    Completed sale transaction.

    WHY append-only: a sale is recorded once, after every stock decrement for
    its lines has been applied in the same database transaction. There is no
    update path; readers see either the whole sale or nothing.

    total_price and deposit are stored exactly as submitted (see
    validation.enforce_sale_totals for the optional strict check).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_store_sale_at", "store_id", "sale_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)

    # All amounts in integer currency units
    total_price = db.Column(db.Integer, nullable=False)
    deposit = db.Column(db.Integer, nullable=False)

    sale_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store")
    staff = db.relationship("Staff")
    lines = db.relationship(
        "SaleLine",
        back_populates="sale",
        order_by="SaleLine.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} store_id={self.store_id} total_price={self.total_price}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "staffId": self.staff_id,
            "totalPrice": self.total_price,
            "deposit": self.deposit,
            "saleAt": to_utc_z(self.sale_at),
            "createdAt": to_utc_z(self.created_at),
            "items": [line.to_dict() for line in self.lines],
        }

class SaleLine(db.Model):
    """Line item on a sale; price is the unit price charged at sale time."""
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_lines_quantity_positive"),
        db.CheckConstraint("price >= 0", name="ck_sale_lines_price_non_negative"),
        db.UniqueConstraint("sale_id", "position", name="uq_sale_lines_sale_position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    # 0-based input order within the sale
    position = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", back_populates="lines")
    item = db.relationship("Item")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "itemId": self.item_id,
            "price": self.price,
            "quantity": self.quantity,
        }
