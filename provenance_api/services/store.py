from __future__ import annotations

import logging

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..models import RegistryEntity
from ..schemas import EntityView


logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "entity_type",
    "data_json",
    "version",
    "previous_id",
    "timestamp",
    "submitter",
    "tx_url",
    "chain_name",
)


def get_entity_by_tx(db: Session | None, tx_hash: str) -> RegistryEntity | None:
    if db is None:
        return None
    return db.query(RegistryEntity).filter_by(tx_hash=tx_hash).first()


def save_entity_by_tx(db: Session | None, row: dict) -> None:
    """Upsert по tx_hash: повторная запись перезаписывает все поля."""
    if db is None:
        return

    values = {"tx_hash": row["tx_hash"], **{col: row.get(col) for col in _COLUMNS}}
    insert = pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert
    stmt = insert(RegistryEntity).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[RegistryEntity.tx_hash],
        set_={col: getattr(stmt.excluded, col) for col in _COLUMNS},
    )
    db.execute(stmt)
    db.commit()


def entity_to_row(
    tx_hash: str, entity: EntityView, tx_url: str, chain_name: str | None
) -> dict:
    return {
        "tx_hash": tx_hash,
        "id": entity.id,
        "entity_type": entity.entityType,
        "data_json": entity.dataJson,
        "version": entity.version,
        "previous_id": entity.previousId,
        "timestamp": entity.timestamp,
        "submitter": entity.submitter,
        "tx_url": tx_url,
        "chain_name": chain_name or None,
    }


def row_to_entity(row: RegistryEntity) -> EntityView:
    return EntityView(
        id=row.id or "",
        entityType=row.entity_type or "",
        dataJson=row.data_json or "",
        version=row.version or "",
        previousId=row.previous_id or "",
        timestamp=row.timestamp or "",
        submitter=row.submitter or "",
    )


def persist_entity_best_effort(
    db: Session | None,
    tx_hash: str,
    entity: EntityView,
    tx_url: str,
    chain_name: str | None,
) -> bool:
    # Ошибки БД не должны влиять на ответ: источник истины — блокчейн
    if db is None:
        return False
    try:
        save_entity_by_tx(db, entity_to_row(tx_hash, entity, tx_url, chain_name))
        logger.info(f"   💾 Сущность сохранена в БД для {tx_hash}")
        return True
    except Exception as e:
        logger.warning(f"   ⚠️ DB persist failed for {tx_hash}: {e}")
        db.rollback()
        return False
