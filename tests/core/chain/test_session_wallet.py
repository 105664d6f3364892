"""
Agent session, key storage and native transfer tests.

The session runs against an in-memory stand-in for ``web3.eth`` and signs
with a real ``eth_account`` key.
"""

import asyncio
from types import SimpleNamespace

import pytest
from eth_account import Account
from web3.exceptions import ContractLogicError

from tradechat.core.chain.contracts import NATIVE_TRANSFER_GAS
from tradechat.core.chain.keystore import FileKeyStore, connect_or_create
from tradechat.core.chain.session import AgentSession
from tradechat.core.chain.transfers import WalletTransfers
from tradechat.core.errors import (
    ContractRevertError,
    InsufficientFundsError,
    ValidationError,
    WalletNotConnectedError,
)


RECIPIENT = "0x3333333333333333333333333333333333333333"
PRIVATE_KEY = "0x" + "11" * 32


class FakeEth:
    def __init__(self):
        self.nonce = 7
        self.receipt_status = 1
        self.raw: list = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.estimate_error = None

    @property
    def gas_price(self):
        async def price():
            return 10 ** 9

        return price()

    async def get_transaction_count(self, address, block_identifier):
        return self.nonce

    async def estimate_gas(self, tx):
        if self.estimate_error is not None:
            raise self.estimate_error
        return 50_000

    async def send_raw_transaction(self, raw):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.raw.append(raw)
        return bytes([len(self.raw)]) * 32

    async def wait_for_transaction_receipt(self, tx_hash, timeout):
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        self.nonce += 1
        return {"status": self.receipt_status, "transactionHash": tx_hash, "blockNumber": 10}

    async def get_balance(self, address):
        return 10 ** 18


def make_session(account=None) -> AgentSession:
    web3 = SimpleNamespace(eth=FakeEth(), provider=SimpleNamespace())
    return AgentSession(web3, 5003, receipt_timeout=5, account=account)


@pytest.mark.asyncio
async def test_send_transaction_fills_fields_and_returns_receipt():
    session = make_session(Account.from_key(PRIVATE_KEY))

    receipt = await session.send_transaction({"to": RECIPIENT, "value": 1}, description="test")

    assert receipt["status"] == 1
    assert len(session.web3.eth.raw) == 1


@pytest.mark.asyncio
async def test_transactions_are_single_flight():
    session = make_session(Account.from_key(PRIVATE_KEY))

    await asyncio.gather(
        session.send_transaction({"to": RECIPIENT, "value": 1, "gas": 21_000}),
        session.send_transaction({"to": RECIPIENT, "value": 2, "gas": 21_000}),
    )

    assert session.web3.eth.max_in_flight == 1
    assert session.web3.eth.nonce == 9


@pytest.mark.asyncio
async def test_reverted_receipt_raises():
    session = make_session(Account.from_key(PRIVATE_KEY))
    session.web3.eth.receipt_status = 0

    with pytest.raises(ContractRevertError) as excinfo:
        await session.send_transaction({"to": RECIPIENT, "value": 1, "gas": 21_000})

    assert excinfo.value.tx_hash.startswith("0x")
    assert excinfo.value.transaction["to"] == RECIPIENT


@pytest.mark.asyncio
async def test_estimate_revert_is_converted():
    session = make_session(Account.from_key(PRIVATE_KEY))
    session.web3.eth.estimate_error = ContractLogicError("execution reverted: STF", data="0x08c379a0")

    with pytest.raises(ContractRevertError) as excinfo:
        await session.estimate_gas({"to": RECIPIENT, "data": "0x"})

    assert excinfo.value.data == "0x08c379a0"
    assert "STF" in excinfo.value.message


def test_signer_lifecycle():
    session = make_session()
    assert session.is_connected is False
    with pytest.raises(WalletNotConnectedError):
        session.address

    first = Account.from_key(PRIVATE_KEY)
    session.attach(first)
    session.attach(first)
    with pytest.raises(ValueError):
        session.attach(Account.create())

    session.detach()
    assert session.is_connected is False


def test_keystore_round_trip(tmp_path):
    keystore = FileKeyStore(tmp_path)

    created = connect_or_create(make_session(), "alice", keystore, "secret", iterations=2)
    loaded = connect_or_create(make_session(), "alice", keystore, "secret")
    other = connect_or_create(make_session(), "bob", keystore, "secret", iterations=2)

    assert created.address == loaded.address
    assert other.address != created.address
    assert len(list(tmp_path.glob("*.json"))) == 2


def test_keystore_wrong_passphrase(tmp_path):
    keystore = FileKeyStore(tmp_path)
    connect_or_create(make_session(), "alice", keystore, "secret", iterations=2)

    with pytest.raises(ValueError):
        connect_or_create(make_session(), "alice", keystore, "wrong")


def test_new_wallet_not_created_while_another_signer_attached(tmp_path):
    keystore = FileKeyStore(tmp_path)
    session = make_session()
    alice = connect_or_create(session, "alice", keystore, "secret", iterations=2)

    with pytest.raises(ValueError, match="already attached"):
        connect_or_create(session, "bob", keystore, "secret", iterations=2)

    assert keystore.get("bob") is None
    assert len(list(tmp_path.glob("*.json"))) == 1
    assert session.address == alice.address
    assert connect_or_create(session, "alice", keystore, "secret").address == alice.address


@pytest.mark.asyncio
async def test_transfer_native_checks_balance_first(session):
    session.balance = 10 ** 18
    transfers = WalletTransfers(session)

    with pytest.raises(InsufficientFundsError):
        await transfers.transfer_native(RECIPIENT, "1")
    assert session.sent == []

    await transfers.transfer_native(RECIPIENT, "0.5")
    tx, _ = session.sent[0]
    assert tx["value"] == 5 * 10 ** 17
    assert tx["gas"] == NATIVE_TRANSFER_GAS


@pytest.mark.asyncio
async def test_transfer_native_rejects_bad_input(session):
    transfers = WalletTransfers(session)

    with pytest.raises(ValidationError):
        await transfers.transfer_native(RECIPIENT, "-1")
    with pytest.raises(ValidationError):
        await transfers.transfer_native("not-an-address", "1")


@pytest.mark.asyncio
async def test_transfer_back_sweeps_balance_less_gas(session):
    session.balance = 10 ** 18
    transfers = WalletTransfers(session)

    await transfers.transfer_back(RECIPIENT)

    tx, _ = session.sent[0]
    assert tx["value"] == 10 ** 18 - NATIVE_TRANSFER_GAS * session.price


@pytest.mark.asyncio
async def test_transfer_back_with_dust_balance(session):
    session.balance = NATIVE_TRANSFER_GAS * session.price
    transfers = WalletTransfers(session)

    with pytest.raises(InsufficientFundsError):
        await transfers.transfer_back(RECIPIENT)
    assert session.sent == []
