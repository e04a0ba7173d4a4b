from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api.cart import router as cart_router
from .api.checkout import router as checkout_router
from .api.pricing import router as pricing_router
from .api.products import router as products_router
from .config import settings
from .database import engine
from .promos import default_promo_registry

logger = logging.getLogger("uvicorn.error")  # ターミナルに出るuvicornのログ
logging.getLogger("storefront").setLevel(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- アプリ起動時 ---
    try:
        with engine.connect() as con:
            con.execute(text("SELECT 1"))
        logger.info("✅ DB connectivity OK (startup)")
    except Exception as e:
        logger.error("❌ DB connectivity FAILED (startup): %s", e, exc_info=True)
    logger.info("promo codes loaded: %d", len(app.state.promo_registry))
    yield


# ★ app はここで1回だけ作る
app = FastAPI(
    title="Storefront API",
    version="0.1.0",
    lifespan=lifespan,
)

# プロモコードは読み取り専用。ルートには Depends(get_promo_registry) で渡す
app.state.promo_registry = default_promo_registry()

app.include_router(products_router)
app.include_router(cart_router)
app.include_router(pricing_router)
app.include_router(checkout_router)

# CORS設定（Next.jsのフロントエンドから呼び出せるようにする）
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health/db")
def health_db():
    """ヘルスチェック用：DBにSELECT 1してOK/NGを返す"""
    try:
        with engine.connect() as con:
            con.execute(text("SELECT 1"))
        return {"db": "ok"}
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"db not ok: {e}")


@app.get("/")
def root():
    return {"status": "ok"}
