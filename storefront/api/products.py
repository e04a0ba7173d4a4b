from math import ceil
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..catalog import get_product, get_product_by_slug, list_categories, list_products, normalize_filters
from ..database import get_db
from ..schemas import ProductFilters, ProductOut, ProductPage

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductPage)
def search_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Literal["price_asc", "price_desc", "newest", "name_asc"] = "newest",
    page: int = 1,
    limit: int = 12,
    db: Session = Depends(get_db),
):
    # 範囲外の page/limit はデフォルトに戻して返す
    filters = normalize_filters(
        ProductFilters(category=category, search=search, sort=sort, page=page, limit=limit)
    )
    rows, total = list_products(db, filters)
    return ProductPage(
        data=[ProductOut.model_validate(r) for r in rows],
        total=total,
        page=filters.page,
        limit=filters.limit,
        total_pages=ceil(total / filters.limit),
    )


@router.get("/categories", response_model=List[str])
def categories(db: Session = Depends(get_db)):
    return list_categories(db)


@router.get("/slug/{slug}", response_model=ProductOut)
def product_by_slug(slug: str, db: Session = Depends(get_db)):
    row = get_product_by_slug(db, slug)
    if row is None:
        raise HTTPException(status_code=404, detail="商品が見つかりません")
    return ProductOut.model_validate(row)


@router.get("/{product_id}", response_model=ProductOut)
def product_by_id(product_id: str, db: Session = Depends(get_db)):
    row = get_product(db, product_id)
    if row is None:
        raise HTTPException(status_code=404, detail="商品が見つかりません")
    return ProductOut.model_validate(row)
