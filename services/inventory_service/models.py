from sqlalchemy import CheckConstraint, Column, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Upper bound of the PostgreSQL INTEGER column
MAX_QUANTITY = 2**31 - 1


class StockRow(Base):
    """Stock level for one SKU. `version` is the CAS witness for set-balance."""

    __tablename__ = "t_inventory"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column("sku_code", String(255), unique=True, nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=0)  # Optimistic lock

    def __repr__(self) -> str:
        return f"StockRow(sku={self.sku!r}, quantity={self.quantity}, version={self.version})"
