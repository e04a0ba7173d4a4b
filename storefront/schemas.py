from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

# ========== 商品 ==========

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str = ""
    description: str = ""
    price: Decimal = Field(ge=0)
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    stock: int = Field(default=0, ge=0)
    category: str = "uncategorized"
    image_url: str = ""
    created_at: Optional[datetime] = None


class ProductPage(BaseModel):
    data: List[ProductOut]
    total: int
    page: int
    limit: int
    total_pages: int


class ProductFilters(BaseModel):
    category: Optional[str] = None
    search: Optional[str] = None
    sort: Literal["price_asc", "price_desc", "newest", "name_asc"] = "newest"
    page: int = 1
    limit: int = 12


# ========== 価格計算（エンジンの出力） ==========

DiscountKind = Literal["product", "bulk", "member", "promo"]


class DiscountBreakdown(BaseModel):
    kind: DiscountKind
    label: str
    percentage: Decimal
    amount: Decimal


class PricingResult(BaseModel):
    original_price: Decimal
    final_price: Decimal
    discounts: List[DiscountBreakdown] = []
    total_discount: Decimal


class ShippingResult(BaseModel):
    cost: Decimal
    is_free_shipping: bool
    free_shipping_threshold: Decimal


class TaxResult(BaseModel):
    rate: Decimal
    amount: Decimal
    label: str


class PromoResult(BaseModel):
    valid: bool
    code: str
    discount_amount: Decimal
    error: Optional[str] = None


class LinePricing(BaseModel):
    product_id: Optional[str] = None
    name: Optional[str] = None
    quantity: int
    pricing: PricingResult


class CartSummary(BaseModel):
    items: List[LinePricing]
    subtotal: Decimal
    total_after_discounts: Decimal
    total_discount: Decimal
    discounts: List[DiscountBreakdown]
    promo: Optional[PromoResult] = None
    tax: TaxResult
    shipping: ShippingResult
    total: Decimal
    item_count: int


# ========== 入力側（フロントエンドから受け取るデータ） ==========

class CartItemIn(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)  # デフォルト1


class CartItemUpdate(BaseModel):
    item_id: str
    quantity: int = Field(ge=0)  # 0 なら削除


class CartItemDelete(BaseModel):
    item_id: str


class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    quantity: int
    created_at: Optional[datetime] = None
    product: ProductOut


class PriceLineIn(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class PromoIn(BaseModel):
    code: str
    order_total: Decimal = Field(ge=0)


class CheckoutIn(BaseModel):
    # ゲストはローカルのカートを送る。ログイン済みで空なら保存済みカートを使う
    items: List[CartItemIn] = []
    promo_code: Optional[str] = None


class MessageOut(BaseModel):
    message: str
