from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..catalog import get_product
from ..config import settings
from ..database import get_db
from ..pricing import apply_promo, price_line, shipping, tax
from ..promos import PromoRegistry
from ..schemas import PriceLineIn, PricingResult, PromoIn, PromoResult, ShippingResult, TaxResult
from .deps import get_promo_registry, get_user_id

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/line", response_model=PricingResult)
def price_one_line(
    body: PriceLineIn,
    user_id: Optional[str] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    product = get_product(db, body.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="商品が見つかりません")
    return price_line(product, body.quantity, authenticated=user_id is not None)


# 無効なコードも 200 で返す（呼び出し側は valid で分岐）
@router.post("/promo", response_model=PromoResult)
def validate_promo(body: PromoIn, registry: PromoRegistry = Depends(get_promo_registry)):
    return apply_promo(body.code, body.order_total, registry=registry)


@router.get("/shipping", response_model=ShippingResult)
def shipping_cost(total: Decimal = Query(ge=0)):
    return shipping(total)


@router.get("/tax", response_model=TaxResult)
def tax_amount(amount: Decimal = Query(ge=0), rate: Optional[Decimal] = Query(default=None, ge=0, le=100)):
    return tax(amount, settings.tax_rate if rate is None else rate)
