from typing import Optional
import logging

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..cart import UnknownProductsError, list_cart_lines, resolve_guest_lines, to_cart_lines
from ..config import settings
from ..database import get_db
from ..pricing import cart_summary
from ..promos import PromoRegistry
from ..schemas import CartSummary, CheckoutIn
from .deps import get_promo_registry, get_user_id

router = APIRouter(prefix="/checkout", tags=["checkout"])
logger = logging.getLogger(__name__)


@router.post("/summary", response_model=CartSummary)
def checkout_summary(
    req: CheckoutIn,
    user_id: Optional[str] = Depends(get_user_id),
    registry: PromoRegistry = Depends(get_promo_registry),
    db: Session = Depends(get_db),
):
    """注文確認画面の金額。注文は保存しないし、プロモの使用回数も増やさない。"""
    authenticated = user_id is not None
    try:
        # 1) カートの明細を用意（ログイン済みで items 空なら保存済みカート）
        if authenticated and not req.items:
            lines = to_cart_lines(list_cart_lines(db, user_id))
        else:
            lines = resolve_guest_lines(db, req.items)

        # 2) 金額計算
        summary = cart_summary(
            lines,
            authenticated,
            promo_code=req.promo_code,
            registry=registry,
            tax_rate=settings.tax_rate,
        )
        logger.info(
            "checkout summary user=%s items=%d total=%s promo=%s",
            user_id or "guest", summary.item_count, summary.total,
            summary.promo.code if summary.promo else None,
        )
        return summary

    except UnknownProductsError as e:
        # 3) 存在しない商品ID
        raise HTTPException(400, detail={"message": "存在しない商品ID", "product_ids": e.product_ids})
    except SQLAlchemyError:
        db.rollback()
        logger.exception("checkout_summary failed")
        raise HTTPException(status_code=500, detail="金額計算に失敗しました")
