from __future__ import annotations

import re

from web3 import Web3


ZERO_HASH = "0x" + "0" * 64
BYTES32_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_bytes32(value: str | None) -> bool:
    if not value:
        return False
    return bool(BYTES32_PATTERN.match(value))


def derive_entity_id(
    entity_id: str | None,
    base_key: str | None = None,
    entity_type: str | None = None,
) -> str:
    """
    Канонический bytes32 идентификатор сущности.

    Уже готовый 0x-идентификатор используется как есть, иначе берём keccak256
    от первого заданного значения: id, baseKey, entityType.
    """
    if is_bytes32(entity_id):
        return entity_id

    base = next((v for v in (entity_id, base_key, entity_type) if v is not None), "")
    return Web3.to_hex(Web3.keccak(text=base))


def normalize_previous_id(previous_id: str | None) -> str:
    return previous_id if is_bytes32(previous_id) else ZERO_HASH
