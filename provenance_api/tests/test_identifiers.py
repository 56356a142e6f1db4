from web3 import Web3

from provenance_api.services.identifiers import (
    ZERO_HASH,
    derive_entity_id,
    is_bytes32,
    normalize_previous_id,
)

CANONICAL = "0x" + "ab" * 32


def test_explicit_bytes32_id_is_used_unchanged():
    assert derive_entity_id(CANONICAL, base_key="ignored", entity_type="Widget") == CANONICAL


def test_base_key_derivation_is_deterministic():
    first = derive_entity_id(None, base_key="batch-42", entity_type="Widget")
    second = derive_entity_id(None, base_key="batch-42", entity_type="Other")
    assert first == second
    assert first == Web3.to_hex(Web3.keccak(text="batch-42"))
    assert is_bytes32(first)


def test_falls_back_to_entity_type_then_non_canonical_id():
    assert derive_entity_id(None, None, "Widget") == Web3.to_hex(Web3.keccak(text="Widget"))
    assert derive_entity_id("sku-1", "batch-42", "Widget") == Web3.to_hex(Web3.keccak(text="sku-1"))


def test_empty_string_hash():
    assert derive_entity_id("", None, None) == (
        "0xc5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    )


def test_previous_id_defaults_to_zero_hash():
    assert normalize_previous_id(None) == ZERO_HASH
    assert normalize_previous_id("") == ZERO_HASH
    assert normalize_previous_id("0x1234") == ZERO_HASH
    assert normalize_previous_id(CANONICAL) == CANONICAL
