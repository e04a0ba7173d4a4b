from typing import Optional
from fastapi import Header, HTTPException, Request

from ..promos import PromoRegistry


# 認証は上流（認証サービス）が済ませ、ユーザーIDをヘッダで渡してくる
def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_user_id or None


def require_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


def get_promo_registry(request: Request) -> PromoRegistry:
    return request.app.state.promo_registry
