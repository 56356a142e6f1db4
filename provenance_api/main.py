from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .config import Settings, get_settings, settings
from .db import get_db, init_db
from .services.chain_client import ChainClient, get_chain_client
from .services.submission import SubmissionError, parse_body, submit
from .services.tx_cache import TxResultCache, get_tx_cache
from .services.tx_lookup import lookup_tx

# Настройка логирования
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

PUSH_REQUIRED = ("RPC_URL", "PRIVATE_KEY", "CONTRACT_ADDRESS", "CHAIN_EXPLORER_TX_URL")
TX_REQUIRED = ("RPC_URL", "CONTRACT_ADDRESS", "CHAIN_EXPLORER_TX_URL")

CACHE_CONTROL_OK = "public, s-maxage=300, stale-while-revalidate=600"
CACHE_CONTROL_ERROR = "public, s-maxage=15, stale-while-revalidate=30"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Создаём таблицы (если БД настроена)
    init_db()
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@app.exception_handler(Exception)
async def unhandled_error(_request: Request, exc: Exception):
    logger.error(f"❌ Необработанная ошибка: {exc}")
    return _error(str(exc) or "Unknown error", 500)


def _missing_env(cfg: Settings, names) -> JSONResponse | None:
    missing = cfg.missing(*names)
    if missing:
        logger.error(f"❌ Не заданы переменные окружения: {missing}")
        return _error(f"Missing required env vars: {', '.join(missing)}", 500)
    return None


def chain_dependency(cfg: Settings = Depends(get_settings)) -> ChainClient | None:
    # Без конфигурации клиент не создаём, маршрут вернёт ошибку конфигурации
    if cfg.missing("RPC_URL", "CONTRACT_ADDRESS"):
        return None
    return get_chain_client()


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name}


@app.post("/api/push")
async def push_entity(
    request: Request,
    cfg: Settings = Depends(get_settings),
    chain: ChainClient | None = Depends(chain_dependency),
    db: Session | None = Depends(get_db),
):
    logger.info("=" * 80)
    logger.info("🎯 НОВЫЙ ЗАПРОС НА /api/push")

    config_error = _missing_env(cfg, PUSH_REQUIRED)
    if config_error is not None:
        return config_error

    try:
        body = parse_body(await request.json())
    except ValueError:
        # JSONDecodeError и UnicodeDecodeError
        return _error("Invalid JSON body", 400)
    except SubmissionError as e:
        logger.warning(f"❌ {e.message}")
        return _error(e.message, e.status_code)

    try:
        resp = await submit(body, chain=chain, db=db, settings=cfg)
    except SubmissionError as e:
        logger.warning(f"❌ {e.message}")
        return _error(e.message, e.status_code)
    except Exception as e:
        logger.error(f"❌ Ошибка записи в блокчейн: {e}")
        return _error(str(e) or "Unknown error", 500)

    logger.info(f"✅ Записано: {resp.txHash}")
    logger.info("=" * 80)
    return JSONResponse(resp.model_dump(by_alias=True, exclude_none=True))


@app.get("/api/tx/{tx_hash}")
async def get_tx(
    tx_hash: str,
    cfg: Settings = Depends(get_settings),
    chain: ChainClient | None = Depends(chain_dependency),
    db: Session | None = Depends(get_db),
    cache: TxResultCache = Depends(get_tx_cache),
):
    logger.info(f"🔍 Запрос деталей транзакции {tx_hash}")

    config_error = _missing_env(cfg, TX_REQUIRED)
    if config_error is not None:
        return config_error

    payload, status_code = await lookup_tx(tx_hash, chain=chain, db=db, cache=cache, settings=cfg)
    return JSONResponse(
        payload,
        status_code=status_code,
        headers={"Cache-Control": CACHE_CONTROL_OK if status_code == 200 else CACHE_CONTROL_ERROR},
    )


# Возможность запуска напрямую (но лучше через uvicorn)
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("provenance_api.main:app", host="127.0.0.1", port=8000, reload=True)
