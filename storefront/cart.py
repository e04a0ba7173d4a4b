# storefront/cart.py
from typing import Iterable, List
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .catalog import get_product, get_products_by_ids
from .models import CartItem
from .pricing import CartLine
from .schemas import CartItemIn

logger = logging.getLogger(__name__)


class CartError(Exception):
    """カートの保存・更新に失敗した"""


class UnknownProductsError(CartError):
    def __init__(self, product_ids: Iterable[str]):
        self.product_ids = sorted(set(product_ids))
        super().__init__(f"存在しない商品ID: {', '.join(self.product_ids)}")


class CartItemNotFoundError(CartError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"カート明細が見つかりません: {item_id}")


def list_cart_lines(db: Session, user_id: str) -> List[CartItem]:
    stmt = (
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.created_at.asc(), CartItem.id)
    )
    return list(db.execute(stmt).scalars().unique().all())


def to_cart_lines(items: Iterable[CartItem]) -> List[CartLine]:
    return [CartLine(item.product, item.quantity) for item in items]


def resolve_guest_lines(db: Session, items: List[CartItemIn]) -> List[CartLine]:
    """ゲストのローカルカート（商品ID+数量）を商品と突き合わせる"""
    by_id = get_products_by_ids(db, [i.product_id for i in items])
    missing = [i.product_id for i in items if i.product_id not in by_id]
    if missing:
        raise UnknownProductsError(missing)
    return [CartLine(by_id[i.product_id], i.quantity) for i in items]


def _find_item(db: Session, item_id: str, user_id: str) -> CartItem:
    item = db.execute(
        select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
    ).scalar_one_or_none()
    if item is None:
        raise CartItemNotFoundError(item_id)
    return item


def add_to_cart(db: Session, user_id: str, product_id: str, quantity: int = 1) -> CartItem:
    if get_product(db, product_id) is None:
        raise UnknownProductsError([product_id])

    try:
        # 既にあれば数量を加算、なければ追加
        item = db.execute(
            select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
        ).scalar_one_or_none()
        if item is not None:
            item.quantity += quantity
        else:
            item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
            db.add(item)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("add_to_cart failed")
        raise CartError(f"Failed to add to cart: {e}") from e

    db.refresh(item)
    return item


def update_cart_item(db: Session, item_id: str, user_id: str, quantity: int) -> None:
    if quantity <= 0:
        remove_cart_item(db, item_id, user_id)
        return

    item = _find_item(db, item_id, user_id)
    try:
        item.quantity = quantity
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("update_cart_item failed")
        raise CartError(f"Failed to update cart item: {e}") from e


def remove_cart_item(db: Session, item_id: str, user_id: str) -> None:
    item = _find_item(db, item_id, user_id)
    try:
        db.delete(item)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("remove_cart_item failed")
        raise CartError(f"Failed to remove cart item: {e}") from e
