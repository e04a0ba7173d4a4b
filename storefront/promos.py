"""
プロモコードの定義と読み取り専用レジストリ

レジストリはアプリ起動時に1回だけ作り、価格計算には引数（FastAPI では Depends）で渡す。
使用回数 current_uses はここでは更新しない（注文確定側の責務）。
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, Iterator, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class PromoCode(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    discount_type: Literal["percentage", "fixed"]
    discount_value: Decimal = Field(ge=0)
    min_order_amount: Optional[Decimal] = None
    max_uses: Optional[int] = None
    current_uses: int = 0
    active: bool = True
    expires_at: Optional[datetime] = None


class PromoRegistry:
    def __init__(self, promos: Iterable[PromoCode]):
        self._by_code: Dict[str, PromoCode] = {p.code.strip().upper(): p for p in promos}

    def get(self, code: str) -> Optional[PromoCode]:
        return self._by_code.get(code.strip().upper())

    def __contains__(self, code: str) -> bool:
        return self.get(code) is not None

    def __iter__(self) -> Iterator[PromoCode]:
        return iter(self._by_code.values())

    def __len__(self) -> int:
        return len(self._by_code)


def default_promo_registry() -> PromoRegistry:
    """デモ用の3コード"""
    return PromoRegistry([
        PromoCode(
            code="SAVE10",
            discount_type="percentage",
            discount_value=Decimal("10"),
            min_order_amount=Decimal("50.00"),
        ),
        PromoCode(
            code="FLAT20",
            discount_type="fixed",
            discount_value=Decimal("20.00"),
        ),
        PromoCode(
            code="VIP50",
            discount_type="fixed",
            discount_value=Decimal("50.00"),
            min_order_amount=Decimal("250.00"),
            max_uses=100,
            expires_at=datetime(2027, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        ),
    ])
