"""
価格計算エンジン（I/Oなし・状態なしの純粋関数）

行ごとの計算順序:
  1) 商品割引 (discount_percentage)
  2) まとめ買い割引 (3個以上で10%)
  3) 会員割引 (ログイン済みで5%)
各割引は「それまでの割引後の価格」に対してかける（元値に対してではない）。
カート単位では プロモコード → 税 → 送料 の順。税と送料は同じ金額を基準に別々に計算する。
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, NamedTuple, Optional
import logging

from .promos import PromoRegistry, default_promo_registry
from .schemas import (
    CartSummary,
    DiscountBreakdown,
    LinePricing,
    PricingResult,
    PromoResult,
    ShippingResult,
    TaxResult,
)

logger = logging.getLogger(__name__)

BULK_DISCOUNT_THRESHOLD = 3
BULK_DISCOUNT_PERCENTAGE = Decimal("10")
MEMBER_DISCOUNT_PERCENTAGE = Decimal("5")
FREE_SHIPPING_THRESHOLD = Decimal("1000.00")
STANDARD_SHIPPING_COST = Decimal("15.00")
DEFAULT_TAX_RATE = Decimal("10")

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class CartLine(NamedTuple):
    product: Any  # price と discount_percentage を持つもの（ProductOut / ORM Product）
    quantity: int


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # 2進小数の誤差を持ち込まない
        return Decimal(str(value))
    return Decimal(value)


def round2(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_percentage(value) -> str:
    # Decimal("10.00") -> "10", Decimal("12.50") -> "12.5"
    d = to_decimal(value)
    if d == d.to_integral_value():
        return str(d.quantize(Decimal("1")))
    return format(d.normalize(), "f")


# ========== 行単位 ==========

def bulk_discount(running_price, quantity: int) -> Decimal:
    if quantity >= BULK_DISCOUNT_THRESHOLD:
        return to_decimal(running_price) * BULK_DISCOUNT_PERCENTAGE / HUNDRED
    return ZERO


def member_discount(running_price, authenticated: bool) -> Decimal:
    if authenticated:
        return to_decimal(running_price) * MEMBER_DISCOUNT_PERCENTAGE / HUNDRED
    return ZERO


def price_line(product, quantity: int, authenticated: bool) -> PricingResult:
    """1商品×数量の価格と割引内訳を返す。

    内訳の amount は表示用に1円（セント）単位で丸めるが、計算途中の価格は丸めない。
    丸めるのは最後の original_price / final_price だけ。
    """
    discounts: List[DiscountBreakdown] = []
    original = to_decimal(product.price) * quantity
    running = original

    # 1) 商品割引
    pct = product.discount_percentage
    if pct is not None and to_decimal(pct) > 0:
        pct = to_decimal(pct)
        amount = running * pct / HUNDRED
        discounts.append(DiscountBreakdown(
            kind="product",
            label=f"{format_percentage(pct)}% Product Discount",
            percentage=pct,
            amount=round2(amount),
        ))
        running -= amount

    # 2) まとめ買い割引
    amount = bulk_discount(running, quantity)
    if amount > 0:
        discounts.append(DiscountBreakdown(
            kind="bulk",
            label=f"{format_percentage(BULK_DISCOUNT_PERCENTAGE)}% Bulk Discount ({BULK_DISCOUNT_THRESHOLD}+ items)",
            percentage=BULK_DISCOUNT_PERCENTAGE,
            amount=round2(amount),
        ))
        running -= amount

    # 3) 会員割引
    amount = member_discount(running, authenticated)
    if amount > 0:
        discounts.append(DiscountBreakdown(
            kind="member",
            label=f"{format_percentage(MEMBER_DISCOUNT_PERCENTAGE)}% Member Discount",
            percentage=MEMBER_DISCOUNT_PERCENTAGE,
            amount=round2(amount),
        ))
        running -= amount

    final_price = round2(running)
    return PricingResult(
        original_price=round2(original),
        final_price=final_price,
        discounts=discounts,
        total_discount=round2(original - final_price),
    )


# ========== 送料・税 ==========

def shipping(total) -> ShippingResult:
    # 1000ちょうどは送料あり（より大きい場合のみ無料）
    is_free = to_decimal(total) > FREE_SHIPPING_THRESHOLD
    return ShippingResult(
        cost=ZERO.quantize(CENT) if is_free else STANDARD_SHIPPING_COST,
        is_free_shipping=is_free,
        free_shipping_threshold=FREE_SHIPPING_THRESHOLD,
    )


def tax(amount, rate=None) -> TaxResult:
    rate = DEFAULT_TAX_RATE if rate is None else to_decimal(rate)
    return TaxResult(
        rate=rate,
        amount=round2(to_decimal(amount) * rate / HUNDRED),
        label=f"Tax ({format_percentage(rate)}%)",
    )


# ========== プロモコード ==========

def _invalid(code: str, error: str) -> PromoResult:
    logger.debug("promo %r rejected: %s", code, error)
    return PromoResult(valid=False, code=code, discount_amount=ZERO.quantize(CENT), error=error)


def _as_utc(dt: datetime) -> datetime:
    # naive な日時は UTC とみなす
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def apply_promo(
    code: str,
    order_total,
    registry: Optional[PromoRegistry] = None,
    now: Optional[datetime] = None,
) -> PromoResult:
    """プロモコードを検証して割引額を返す。

    order_total は行ごとの割引後・税と送料の前の金額。
    最初に引っかかったチェックのエラーを返す（例外は投げない）。
    """
    if registry is None:
        registry = default_promo_registry()
    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    order_total = to_decimal(order_total)
    normalized = code.strip().upper()

    # 1) 存在チェック
    promo = registry.get(normalized)
    if promo is None:
        return _invalid(normalized, "Invalid promo code")

    # 2) 有効フラグ
    if not promo.active:
        return _invalid(normalized, "This promo code is no longer active")

    # 3) 有効期限
    if promo.expires_at is not None and _as_utc(promo.expires_at) < now:
        return _invalid(normalized, "This promo code has expired")

    # 4) 使用回数の上限
    if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
        return _invalid(normalized, "This promo code has reached its usage limit")

    # 5) 最低注文金額
    if promo.min_order_amount is not None and order_total < promo.min_order_amount:
        return _invalid(
            normalized,
            f"A minimum order of ${promo.min_order_amount:.2f} is required for this promo code",
        )

    if promo.discount_type == "percentage":
        discount = round2(order_total * promo.discount_value / HUNDRED)
    else:
        # 固定額はもともと通貨単位なので丸めない
        discount = promo.discount_value

    # 注文金額を超えて割り引かない・マイナスにしない
    discount = max(ZERO, min(discount, order_total))

    return PromoResult(valid=True, code=normalized, discount_amount=discount)


# ========== カート全体 ==========

def _promo_breakdown(promo: PromoResult, base: Decimal, registry: PromoRegistry) -> DiscountBreakdown:
    definition = registry.get(promo.code)
    if definition is not None and definition.discount_type == "percentage":
        percentage = definition.discount_value
    elif base > 0:
        # 固定額は実質の割引率を表示用に出す
        percentage = round2(promo.discount_amount / base * HUNDRED)
    else:
        percentage = ZERO
    return DiscountBreakdown(
        kind="promo",
        label=f"Promo Code {promo.code}",
        percentage=percentage,
        amount=round2(promo.discount_amount),
    )


def cart_summary(
    lines: Iterable,
    authenticated: bool,
    promo_code: Optional[str] = None,
    registry: Optional[PromoRegistry] = None,
    tax_rate=None,
    now: Optional[datetime] = None,
) -> CartSummary:
    """カートの合計を計算する。lines は (product, quantity) の並び。"""
    if registry is None:
        registry = default_promo_registry()

    items: List[LinePricing] = []
    discounts: List[DiscountBreakdown] = []
    subtotal = ZERO
    total_after_discounts = ZERO
    item_count = 0

    # 1) 行ごとの価格
    for product, quantity in lines:
        pricing = price_line(product, quantity, authenticated)
        product_id = getattr(product, "id", None)
        items.append(LinePricing(
            product_id=str(product_id) if product_id is not None else None,
            name=getattr(product, "name", None),
            quantity=quantity,
            pricing=pricing,
        ))
        subtotal += pricing.original_price
        total_after_discounts += pricing.final_price
        discounts.extend(pricing.discounts)
        item_count += quantity

    # 2) プロモコード（割引後の合計に対して）
    promo = None
    if promo_code and promo_code.strip():
        promo = apply_promo(promo_code, total_after_discounts, registry=registry, now=now)
        if promo.valid:
            discounts.append(_promo_breakdown(promo, total_after_discounts, registry))
            total_after_discounts -= promo.discount_amount

    # 3) 税と送料は同じ金額を基準にそれぞれ計算
    tax_result = tax(total_after_discounts, tax_rate)
    shipping_result = shipping(total_after_discounts)

    return CartSummary(
        items=items,
        subtotal=round2(subtotal),
        total_after_discounts=round2(total_after_discounts),
        total_discount=round2(subtotal - total_after_discounts),
        discounts=discounts,
        promo=promo,
        tax=tax_result,
        shipping=shipping_result,
        total=round2(total_after_discounts + tax_result.amount + shipping_result.cost),
        item_count=item_count,
    )
