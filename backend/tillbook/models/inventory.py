from __future__ import annotations

from ..extensions import db


class Product(db.Model):
    """
    Product master data.

    STOCK: Product.stock is the on-hand count. Checkout decrements it with a
    single `stock = stock - qty` UPDATE so concurrent sales cannot lose updates.

    DELETION: A product referenced by historical sale lines is deactivated
    (is_active=False) rather than removed, so transaction history keeps its name.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_active_stock", "is_active", "stock"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Live catalog price. Sale lines snapshot it at checkout.
    price = db.Column(db.Float, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} price={self.price} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
        }
