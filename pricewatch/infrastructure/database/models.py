"""
Database Models - Pure SQLAlchemy ORM

Table definitions only; conversion to domain objects happens in the
repositories.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from pricewatch.core.domain.entities import utcnow

Base = declarative_base()

class Product(Base):
    """
    Catalog product.

    ``version`` is managed by the mapper and bumped on every UPDATE; it is
    copied into price snapshots as their revision.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), index=True)

    price = Column(Numeric(12, 2))
    previous_price = Column(Numeric(12, 2))

    is_active = Column(Boolean, default=True, nullable=False)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index('idx_product_updated_at', 'updated_at'),
        Index('idx_product_category_active', 'category', 'is_active'),
    )
