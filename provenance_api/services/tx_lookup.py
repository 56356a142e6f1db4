from __future__ import annotations

import logging
from typing import Tuple

from sqlalchemy.orm import Session

from ..config import Settings
from ..schemas import ErrorResponse, TxDetailResponse
from .chain_client import ChainClient, summarize_receipt
from .store import get_entity_by_tx, persist_entity_best_effort, row_to_entity
from .tx_cache import LONG_TTL, SHORT_TTL, TxResultCache


logger = logging.getLogger(__name__)

TX_NOT_FOUND = "Transaction not found"


def _dump(model) -> dict:
    return model.model_dump(by_alias=True)


async def lookup_tx(
    tx_hash: str,
    chain: ChainClient,
    db: Session | None,
    cache: TxResultCache,
    settings: Settings,
) -> Tuple[dict, int]:
    """
    Детали транзакции: кэш в памяти -> БД -> блокчейн.

    Никогда не бросает исключений: любая ошибка превращается в
    {success: false, error} и кэшируется на SHORT_TTL.
    """
    cached = cache.get(tx_hash)
    if cached:
        logger.info(f"   ⚡ {tx_hash}: найден в кэше памяти")
        return cached.value, cached.status_code

    tx_url = settings.tx_url(tx_hash)
    chain_name = settings.CHAIN_NAME or ""

    try:
        row = get_entity_by_tx(db, tx_hash)
        if row is not None:
            logger.info(f"   🗄️ {tx_hash}: найден в БД, RPC не нужен")
            payload = _dump(
                TxDetailResponse(
                    txHash=tx_hash,
                    txUrl=row.tx_url or tx_url,
                    chainName=row.chain_name or chain_name,
                    events=[],
                    entity=row_to_entity(row),
                )
            )
            cache.set(tx_hash, payload, 200, LONG_TTL)
            return payload, 200

        logger.info(f"   ⛓️ {tx_hash}: читаем receipt из блокчейна")
        receipt = await chain.get_receipt(tx_hash)
        if receipt is None:
            logger.info(f"   ❌ {tx_hash}: транзакция не найдена")
            payload = _dump(ErrorResponse(error=TX_NOT_FOUND))
            cache.set(tx_hash, payload, 404, SHORT_TTL)
            return payload, 404

        events = chain.decode_entity_events(receipt)
        logger.info(f"   📜 {tx_hash}: событий {len(events)}")

        entity = None
        ttl = LONG_TTL
        # Для деталей берём только первое событие
        if events and events[0].id:
            try:
                entity = await chain.get_entity(events[0].id)
            except Exception as e:
                # Отдаём события без сущности, но ненадолго
                logger.warning(f"   ⚠️ {tx_hash}: не удалось прочитать сущность {events[0].id}: {e}")
                ttl = SHORT_TTL

        payload = _dump(
            TxDetailResponse(
                txHash=tx_hash,
                txUrl=tx_url,
                chainName=chain_name,
                events=events,
                entity=entity,
                receipt=summarize_receipt(receipt),
            )
        )
        cache.set(tx_hash, payload, 200, ttl)

        if entity is not None:
            persist_entity_best_effort(db, tx_hash, entity, tx_url, chain_name)

        return payload, 200
    except Exception as e:
        logger.error(f"   ❌ {tx_hash}: ошибка при разборе транзакции: {e}")
        payload = _dump(ErrorResponse(error=str(e) or "Unknown error"))
        cache.set(tx_hash, payload, 500, SHORT_TTL)
        return payload, 500
