"""
Catalog Repository - SQLAlchemy implementation of the catalog store
"""

from typing import List, Optional, Iterator
from decimal import Decimal
from datetime import datetime
from contextlib import contextmanager
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import func, text

from pricewatch.core.domain.entities import CatalogItem
from pricewatch.core.exceptions import CatalogQueryError
from pricewatch.core.logging_config import get_logger
from pricewatch.infrastructure.database.connection import DatabaseManager, get_db_manager
from pricewatch.infrastructure.database.models import Product as ProductORM

class SQLAlchemyCatalogRepository:
    """Catalog queries over the products table."""

    def __init__(self, session: Session):
        self.session = session
        self.logger = get_logger(__name__)

    def _orm_to_domain(self, orm_product: ProductORM) -> CatalogItem:
        return CatalogItem(
            id=orm_product.id,
            name=orm_product.name,
            category=orm_product.category,
            current_price=orm_product.price,
            last_modified=orm_product.updated_at,
            revision=orm_product.version,
            previous_price=orm_product.previous_price,
            is_active=orm_product.is_active
        )

    def find_changed_since(self, since: datetime) -> List[CatalogItem]:
        """Inclusive on ``since`` so same-instant updates are not missed."""
        try:
            rows = (
                self.session.query(ProductORM)
                .filter(ProductORM.updated_at >= since)
                .order_by(ProductORM.updated_at, ProductORM.id)
                .all()
            )
            return [self._orm_to_domain(row) for row in rows]
        except SQLAlchemyError as e:
            raise CatalogQueryError("find_changed_since", cause=e) from e

    def find_all_active(self) -> List[CatalogItem]:
        try:
            rows = (
                self.session.query(ProductORM)
                .filter(ProductORM.is_active.is_(True))
                .order_by(ProductORM.id)
                .all()
            )
            return [self._orm_to_domain(row) for row in rows]
        except SQLAlchemyError as e:
            raise CatalogQueryError("find_all_active", cause=e) from e

    def get_by_id(self, item_id: int) -> Optional[CatalogItem]:
        try:
            row = self.session.get(ProductORM, item_id)
            return self._orm_to_domain(row) if row else None
        except SQLAlchemyError as e:
            raise CatalogQueryError("get_by_id", cause=e) from e

    def find_with_price_changes(self) -> List[CatalogItem]:
        try:
            rows = (
                self.session.query(ProductORM)
                .filter(
                    ProductORM.previous_price.isnot(None),
                    ProductORM.price.isnot(None),
                    ProductORM.previous_price != ProductORM.price
                )
                .order_by(ProductORM.updated_at.desc())
                .all()
            )
            return [self._orm_to_domain(row) for row in rows]
        except SQLAlchemyError as e:
            raise CatalogQueryError("find_with_price_changes", cause=e) from e

    def find_active_by_category(self, category: str) -> List[CatalogItem]:
        try:
            rows = (
                self.session.query(ProductORM)
                .filter(ProductORM.category == category, ProductORM.is_active.is_(True))
                .order_by(ProductORM.id)
                .all()
            )
            return [self._orm_to_domain(row) for row in rows]
        except SQLAlchemyError as e:
            raise CatalogQueryError("find_active_by_category", cause=e) from e

    def count_all(self) -> int:
        try:
            return self.session.query(func.count(ProductORM.id)).scalar() or 0
        except SQLAlchemyError as e:
            raise CatalogQueryError("count_all", cause=e) from e

    def update_price(self, item_id: int, new_price: Optional[Decimal]) -> Optional[CatalogItem]:
        try:
            row = self.session.get(ProductORM, item_id)
            if row is None:
                return None

            row.previous_price = row.price
            row.price = new_price
            self.session.flush()

            self.logger.info(f"Price for item {item_id} set from {row.previous_price} to {new_price}")
            return self._orm_to_domain(row)
        except SQLAlchemyError as e:
            raise CatalogQueryError("update_price", cause=e) from e

    def health_check(self) -> bool:
        try:
            self.session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            self.logger.warning(f"Health check failed: {e}")
            return False

def make_catalog_scope(db_manager: Optional[DatabaseManager] = None):
    """Build a callable that opens a session-bound repository per use."""

    @contextmanager
    def catalog_scope() -> Iterator[SQLAlchemyCatalogRepository]:
        manager = db_manager or get_db_manager()
        with manager.get_session() as session:
            yield SQLAlchemyCatalogRepository(session)

    return catalog_scope
