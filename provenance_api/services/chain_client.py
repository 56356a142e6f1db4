from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, List, Optional, Tuple

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import MismatchedABI, TransactionNotFound

from ..config import settings
from ..schemas import EntityView, EventView


logger = logging.getLogger(__name__)

ENTITY_PUSHED = "EntityPushed"

_ENTITY_TUPLE = {
    "name": "entity",
    "type": "tuple",
    "components": [
        {"name": "id", "type": "bytes32"},
        {"name": "entityType", "type": "string"},
        {"name": "dataJson", "type": "string"},
        {"name": "version", "type": "uint256"},
        {"name": "previousId", "type": "bytes32"},
        {"name": "timestamp", "type": "uint256"},
        {"name": "submitter", "type": "address"},
    ],
}

REGISTRY_ABI = [
    {
        "type": "function",
        "name": "pushEntity",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "id", "type": "bytes32"},
            {"name": "entityType", "type": "string"},
            {"name": "dataJson", "type": "string"},
            {"name": "previousId", "type": "bytes32"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "pushBatchEntities",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "ids", "type": "bytes32[]"},
            {"name": "entityTypes", "type": "string[]"},
            {"name": "dataJsons", "type": "string[]"},
            {"name": "previousIds", "type": "bytes32[]"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "getEntity",
        "stateMutability": "view",
        "inputs": [{"name": "id", "type": "bytes32"}],
        "outputs": [_ENTITY_TUPLE],
    },
    {
        "type": "event",
        "name": ENTITY_PUSHED,
        "anonymous": False,
        "inputs": [
            {"name": "id", "type": "bytes32", "indexed": True},
            {"name": "entityType", "type": "string", "indexed": False},
            {"name": "submitter", "type": "address", "indexed": True},
            {"name": "version", "type": "uint256", "indexed": False},
        ],
    },
]


class ChainError(Exception):
    pass


def _hex(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return AsyncWeb3.to_hex(value)
    return str(value)


def _raw_tx_bytes(signed) -> bytes:
    # eth-account отдаёт raw_transaction (новые версии) или rawTransaction (старые)
    raw = getattr(signed, "raw_transaction", None)
    if raw is None:
        raw = getattr(signed, "rawTransaction", None)
    if raw is None:
        raise TypeError("SignedTransaction has no raw tx bytes")
    return raw


def summarize_receipt(receipt: Any) -> dict:
    return {
        "blockNumber": receipt.get("blockNumber"),
        "blockHash": _hex(receipt.get("blockHash")) or None,
        "status": receipt.get("status"),
        "gasUsed": receipt.get("gasUsed"),
        "from": receipt.get("from"),
        "to": receipt.get("to"),
    }


class ChainClient:
    """
    Обёртка над RPC и контрактом ProvenanceRegistry.

    Запись требует private_key; чтение работает и без него.
    """

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        private_key: str | None = None,
        receipt_timeout: float = 120.0,
    ):
        self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": 30}))
        self.contract_address = AsyncWeb3.to_checksum_address(contract_address)
        self.contract = self.w3.eth.contract(address=self.contract_address, abi=REGISTRY_ABI)
        self.account = self.w3.eth.account.from_key(private_key) if private_key else None
        self.receipt_timeout = receipt_timeout

        logger.info("⛓️ ChainClient init:")
        logger.info(f"   Contract: {self.contract_address}")
        logger.info(f"   Signer present: {bool(self.account)}")

    async def _send(self, fn) -> Tuple[str, Any]:
        if self.account is None:
            raise ChainError("PRIVATE_KEY is not set")

        nonce = await self.w3.eth.get_transaction_count(self.account.address, "pending")
        tx = await fn.build_transaction({"from": self.account.address, "nonce": nonce})
        signed = self.account.sign_transaction(tx)
        tx_hash = await self.w3.eth.send_raw_transaction(_raw_tx_bytes(signed))
        tx_hash_hex = AsyncWeb3.to_hex(tx_hash)
        logger.info(f"   📤 Транзакция отправлена: {tx_hash_hex}")

        # Ждём одно подтверждение
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt.get("status") != 1:
            raise ChainError(f"Transaction {tx_hash_hex} reverted")

        logger.info(f"   ✅ Подтверждена в блоке {receipt.get('blockNumber')}")
        return tx_hash_hex, receipt

    async def submit_entity(
        self, entity_id: str, entity_type: str, data_json: str, previous_id: str
    ) -> Tuple[str, Any]:
        fn = self.contract.functions.pushEntity(entity_id, entity_type, data_json, previous_id)
        return await self._send(fn)

    async def submit_batch(
        self,
        ids: List[str],
        entity_types: List[str],
        data_jsons: List[str],
        previous_ids: List[str],
    ) -> Tuple[str, Any]:
        fn = self.contract.functions.pushBatchEntities(ids, entity_types, data_jsons, previous_ids)
        return await self._send(fn)

    async def get_receipt(self, tx_hash: str) -> Optional[Any]:
        try:
            return await self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    def decode_entity_events(self, receipt: Any) -> List[EventView]:
        events: List[EventView] = []
        event = self.contract.events.EntityPushed()
        for log in receipt.get("logs") or []:
            if (log.get("address") or "").lower() != self.contract_address.lower():
                continue
            try:
                parsed = event.process_log(log)
            except MismatchedABI:
                # не наше событие
                continue

            args = parsed["args"]
            events.append(
                EventView(
                    name=parsed["event"],
                    id=_hex(args.get("id")),
                    entityType=args.get("entityType"),
                    submitter=args.get("submitter"),
                    version=_hex(args.get("version")),
                )
            )
        return events

    async def get_entity(self, entity_id: str) -> EntityView:
        r = await self.contract.functions.getEntity(entity_id).call()
        return EntityView(
            id=_hex(r[0]),
            entityType=r[1] or "",
            dataJson=r[2] or "",
            version=_hex(r[3]),
            previousId=_hex(r[4]),
            timestamp=_hex(r[5]),
            submitter=r[6] or "",
        )


@lru_cache(maxsize=1)
def get_chain_client() -> ChainClient:
    return ChainClient(
        rpc_url=settings.RPC_URL,
        contract_address=settings.CONTRACT_ADDRESS,
        private_key=settings.PRIVATE_KEY or None,
        receipt_timeout=settings.TX_RECEIPT_TIMEOUT,
    )
