from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..config import Settings
from ..schemas import PushBatchBody, PushEntityBody, PushResponse
from .chain_client import ChainClient, summarize_receipt
from .identifiers import derive_entity_id, normalize_previous_id
from .store import persist_entity_best_effort


logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def parse_body(data: Any) -> PushEntityBody | PushBatchBody:
    if not isinstance(data, dict):
        raise SubmissionError("Request body must be a JSON object")
    try:
        if data.get("batch"):
            # Любое истинное значение batch включает пакетный режим
            return PushBatchBody.model_validate({**data, "batch": True})
        return PushEntityBody.model_validate(data)
    except ValidationError as e:
        raise SubmissionError(f"Invalid request body: {e.errors()[0].get('msg')}")


def validate_single(body: PushEntityBody) -> None:
    if not body.entityType or not body.dataJson:
        raise SubmissionError("Missing entityType or dataJson")


def validate_batch(body: PushBatchBody) -> None:
    if not body.items or len(body.items) < 2:
        raise SubmissionError("Batch mode requires at least two items")
    for item in body.items:
        if not item.entityType:
            raise SubmissionError("Missing entityType in batch item")
        if not item.dataJson:
            raise SubmissionError("Missing dataJson in batch item")


async def _persist_from_chain(
    chain: ChainClient,
    db: Session | None,
    entity_id: str,
    tx_hash: str,
    tx_url: str,
    chain_name: str | None,
) -> None:
    if db is None:
        return
    try:
        entity = await chain.get_entity(entity_id)
    except Exception as e:
        logger.warning(f"   ⚠️ Не удалось прочитать сущность {entity_id} после записи: {e}")
        return
    persist_entity_best_effort(db, tx_hash, entity, tx_url, chain_name)


async def submit(
    body: PushEntityBody | PushBatchBody,
    chain: ChainClient,
    db: Session | None,
    settings: Settings,
) -> PushResponse:
    """
    Отправляет одну сущность или пачку в контракт и ждёт одно подтверждение.

    Валидация выполняется до любого обращения к блокчейну.
    """
    chain_name = settings.CHAIN_NAME or None

    if isinstance(body, PushBatchBody):
        validate_batch(body)
        ids = [derive_entity_id(i.id, i.baseKey, i.entityType) for i in body.items]
        previous_ids = [normalize_previous_id(i.previousId) for i in body.items]

        logger.info(f"📦 Пакетная запись: {len(ids)} сущностей")
        tx_hash, receipt = await chain.submit_batch(
            ids,
            [i.entityType for i in body.items],
            [i.dataJson for i in body.items],
            previous_ids,
        )
        # Страница деталей использует первое событие, сохраняем первую сущность
        first_id = ids[0]
    else:
        validate_single(body)
        first_id = derive_entity_id(body.id, body.baseKey, body.entityType)

        logger.info(f"📝 Запись сущности {body.entityType} ({first_id})")
        tx_hash, receipt = await chain.submit_entity(
            first_id,
            body.entityType,
            body.dataJson,
            normalize_previous_id(body.previousId),
        )

    tx_url = settings.tx_url(tx_hash)
    await _persist_from_chain(chain, db, first_id, tx_hash, tx_url, chain_name)

    return PushResponse(
        success=True,
        txHash=tx_hash,
        txUrl=tx_url,
        chainName=chain_name,
        receipt=summarize_receipt(receipt),
    )
