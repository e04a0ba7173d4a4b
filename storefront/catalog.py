# storefront/catalog.py
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .models import Product
from .schemas import ProductFilters

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50

_SORTS = {
    "price_asc": Product.price.asc(),
    "price_desc": Product.price.desc(),
    "name_asc": Product.name.asc(),
    "newest": Product.created_at.desc(),
}


def normalize_filters(filters: ProductFilters) -> ProductFilters:
    # 範囲外はエラーにせずデフォルトに戻す
    page = filters.page if filters.page >= 1 else 1
    limit = filters.limit if 1 <= filters.limit <= MAX_PAGE_SIZE else DEFAULT_PAGE_SIZE
    return filters.model_copy(update={"page": page, "limit": limit})


def list_products(db: Session, filters: ProductFilters) -> Tuple[List[Product], int]:
    filters = normalize_filters(filters)
    stmt = select(Product)

    # 1) カテゴリ（"all" は絞り込みなし）
    if filters.category and filters.category != "all":
        stmt = stmt.where(Product.category == filters.category)

    # 2) 名前・説明の部分一致（大文字小文字を区別しない）
    if filters.search:
        pattern = f"%{filters.search.lower()}%"
        stmt = stmt.where(or_(
            func.lower(Product.name).like(pattern),
            func.lower(Product.description).like(pattern),
        ))

    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

    # 3) 並び順とページング
    stmt = (
        stmt.order_by(_SORTS[filters.sort], Product.id)
        .offset((filters.page - 1) * filters.limit)
        .limit(filters.limit)
    )
    rows = db.execute(stmt).scalars().all()
    return list(rows), total


def get_product(db: Session, product_id: str) -> Optional[Product]:
    return db.get(Product, product_id)


def get_product_by_slug(db: Session, slug: str) -> Optional[Product]:
    return db.execute(select(Product).where(Product.slug == slug)).scalar_one_or_none()


def get_products_by_ids(db: Session, product_ids: Iterable[str]) -> Dict[str, Product]:
    ids = set(product_ids)
    if not ids:
        return {}
    rows = db.execute(select(Product).where(Product.id.in_(ids))).scalars().all()
    return {p.id: p for p in rows}


def list_categories(db: Session) -> List[str]:
    rows = db.execute(select(Product.category).distinct().order_by(Product.category)).scalars().all()
    return list(rows)
