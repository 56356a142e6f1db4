import hashlib

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from provenance_api.config import Settings
from provenance_api.db import Base
from provenance_api import models  # noqa: F401
from provenance_api.schemas import EntityView, EventView
from provenance_api.services.tx_cache import TxResultCache

CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
SUBMITTER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeChain:
    """Подмена ChainClient: хранит сущности и receipts в памяти."""

    def __init__(self):
        self.entities: dict[str, EntityView] = {}
        self.receipts: dict[str, dict] = {}
        self.calls: list[str] = []
        self._nonce = 0

    def _next_hash(self) -> str:
        self._nonce += 1
        return "0x" + hashlib.sha256(str(self._nonce).encode()).hexdigest()

    def _store(self, entity_id, entity_type, data_json, previous_id) -> EventView:
        prev = self.entities.get(entity_id)
        version = str(int(prev.version) + 1) if prev else "1"
        self.entities[entity_id] = EntityView(
            id=entity_id,
            entityType=entity_type,
            dataJson=data_json,
            version=version,
            previousId=previous_id,
            timestamp="1700000000",
            submitter=SUBMITTER,
        )
        return EventView(
            name="EntityPushed", id=entity_id, entityType=entity_type, submitter=SUBMITTER, version=version
        )

    def add_receipt(self, tx_hash: str, events: list[EventView]) -> dict:
        receipt = {
            "blockNumber": 7,
            "blockHash": b"\x01" * 32,
            "status": 1,
            "gasUsed": 52000,
            "from": SUBMITTER,
            "to": CONTRACT,
            "events": events,
        }
        self.receipts[tx_hash] = receipt
        return receipt

    async def submit_entity(self, entity_id, entity_type, data_json, previous_id):
        self.calls.append("submit_entity")
        tx_hash = self._next_hash()
        event = self._store(entity_id, entity_type, data_json, previous_id)
        return tx_hash, self.add_receipt(tx_hash, [event])

    async def submit_batch(self, ids, entity_types, data_jsons, previous_ids):
        self.calls.append("submit_batch")
        tx_hash = self._next_hash()
        events = [self._store(*args) for args in zip(ids, entity_types, data_jsons, previous_ids)]
        return tx_hash, self.add_receipt(tx_hash, events)

    async def get_receipt(self, tx_hash):
        self.calls.append("get_receipt")
        return self.receipts.get(tx_hash)

    def decode_entity_events(self, receipt):
        return list(receipt["events"])

    async def get_entity(self, entity_id):
        self.calls.append("get_entity")
        return self.entities[entity_id]


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def test_settings():
    return Settings(
        RPC_URL="http://127.0.0.1:8545",
        CONTRACT_ADDRESS=CONTRACT,
        PRIVATE_KEY="0x" + "11" * 32,
        CHAIN_EXPLORER_TX_URL="https://explorer.example/tx/",
        CHAIN_NAME="Testnet",
        DATABASE_URL="",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TxResultCache(clock=clock)


@pytest.fixture
def chain():
    return FakeChain()
