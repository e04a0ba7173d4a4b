# storefront/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import settings


def _connect_args() -> dict:
    # SQLite（テスト用）はスレッドチェックを外す
    if settings.db_url.startswith("sqlite"):
        return {"check_same_thread": False}
    # MySQL は証明書パスがあれば SSL 接続
    if settings.db_ssl_ca:
        return {"ssl": {"ca": settings.db_ssl_ca}}
    return {}


# エンジン作成（落ちた接続を自動復旧）
engine = create_engine(
    settings.db_url,
    pool_pre_ping=True,
    echo=False,  # 必要なら True にしてSQLログを見る
    connect_args=_connect_args(),
    future=True,
)

# セッションファクトリ
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


# モデル定義で継承する Base
class Base(DeclarativeBase):
    pass


# FastAPI で使う依存関数。DBとの接続を一時的に開いて、使い終わったら閉じる
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
