from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..cart import (
    CartError,
    CartItemNotFoundError,
    UnknownProductsError,
    add_to_cart,
    list_cart_lines,
    remove_cart_item,
    update_cart_item,
)
from ..database import get_db
from ..schemas import CartItemDelete, CartItemIn, CartItemOut, CartItemUpdate, MessageOut
from .deps import require_user_id

router = APIRouter(prefix="/cart", tags=["cart"])
logger = logging.getLogger(__name__)


def _raise_http(e: CartError):
    if isinstance(e, UnknownProductsError):
        raise HTTPException(404, detail={"message": "存在しない商品ID", "product_ids": e.product_ids})
    if isinstance(e, CartItemNotFoundError):
        raise HTTPException(404, detail="カート明細が見つかりません")
    logger.error("cart operation failed: %s", e)
    raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=List[CartItemOut])
def get_cart(user_id: str = Depends(require_user_id), db: Session = Depends(get_db)):
    return list_cart_lines(db, user_id)


@router.post("", response_model=MessageOut, status_code=201)
def post_cart(body: CartItemIn, user_id: str = Depends(require_user_id), db: Session = Depends(get_db)):
    if not body.product_id:
        raise HTTPException(status_code=400, detail="product_id is required")
    try:
        add_to_cart(db, user_id, body.product_id, body.quantity)
    except CartError as e:
        _raise_http(e)
    return MessageOut(message="Item added to cart")


@router.patch("", response_model=MessageOut)
def patch_cart(body: CartItemUpdate, user_id: str = Depends(require_user_id), db: Session = Depends(get_db)):
    if not body.item_id:
        raise HTTPException(status_code=400, detail="item_id is required")
    try:
        update_cart_item(db, body.item_id, user_id, body.quantity)
    except CartError as e:
        _raise_http(e)
    return MessageOut(message="Cart updated")


@router.delete("", response_model=MessageOut)
def delete_cart(body: CartItemDelete, user_id: str = Depends(require_user_id), db: Session = Depends(get_db)):
    if not body.item_id:
        raise HTTPException(status_code=400, detail="item_id is required")
    try:
        remove_cart_item(db, body.item_id, user_id)
    except CartError as e:
        _raise_http(e)
    return MessageOut(message="Item removed from cart")
