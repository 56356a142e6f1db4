from hexbytes import HexBytes
from web3 import Web3

from provenance_api.services.chain_client import ChainClient, summarize_receipt

from conftest import CONTRACT, SUBMITTER

ENTITY_ID = "0x" + "01" * 32
OTHER_CONTRACT = "0x" + "22" * 20
EVENT_TOPIC = Web3.keccak(text="EntityPushed(bytes32,string,address,uint256)")


def _log(client, address=CONTRACT, topic=EVENT_TOPIC, entity_type="Widget", version=3, index=0):
    return {
        "address": address,
        "topics": [
            HexBytes(topic),
            HexBytes(ENTITY_ID),
            HexBytes(b"\x00" * 12 + bytes.fromhex(SUBMITTER[2:])),
        ],
        "data": HexBytes(client.w3.codec.encode(["string", "uint256"], [entity_type, version])),
        "logIndex": index,
        "transactionIndex": 0,
        "transactionHash": HexBytes(b"\x0a" * 32),
        "blockHash": HexBytes(b"\x0b" * 32),
        "blockNumber": 12,
    }


def test_decode_keeps_only_registry_events():
    client = ChainClient("http://127.0.0.1:8545", CONTRACT)
    receipt = {
        "logs": [
            _log(client, address=OTHER_CONTRACT, index=0),
            _log(client, topic=Web3.keccak(text="Transfer(address,address,uint256)"), index=1),
            _log(client, entity_type="Widget", version=3, index=2),
            _log(client, entity_type="Gadget", version=4, index=3),
        ]
    }

    events = client.decode_entity_events(receipt)

    assert [e.entityType for e in events] == ["Widget", "Gadget"]
    first = events[0]
    assert first.name == "EntityPushed"
    assert first.id == ENTITY_ID
    assert first.version == "3"
    assert first.submitter.lower() == SUBMITTER.lower()


def test_client_without_key_is_read_only():
    client = ChainClient("http://127.0.0.1:8545", CONTRACT.lower())
    assert client.account is None
    assert client.contract_address == CONTRACT


def test_receipt_summary():
    summary = summarize_receipt(
        {"blockNumber": 5, "blockHash": b"\x01" * 32, "status": 1, "gasUsed": 100, "from": SUBMITTER, "to": CONTRACT}
    )
    assert summary["blockHash"] == "0x" + "01" * 32
    assert summary["from"] == SUBMITTER
