from pricewatch.infrastructure.database.repositories.catalog import SQLAlchemyCatalogRepository, make_catalog_scope

__all__ = ['SQLAlchemyCatalogRepository', 'make_catalog_scope']
