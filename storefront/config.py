# storefront/config.py
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from dotenv import load_dotenv
import os

# .env 読み込み（既にある環境変数は上書きしない）
load_dotenv()


@dataclass(frozen=True)
class Settings:
    db_url: str
    db_ssl_ca: Optional[str]
    cors_origins: List[str]
    tax_rate: Decimal
    log_level: str


def load_settings() -> Settings:
    db_url = os.getenv("DB_URL")
    if not db_url:
        raise RuntimeError("環境変数 DB_URL が見つかりません。'.env' を確認してください。")

    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

    return Settings(
        db_url=db_url,
        db_ssl_ca=os.getenv("DB_SSL_CA") or None,
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        tax_rate=Decimal(os.getenv("TAX_RATE", "10")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


settings = load_settings()
