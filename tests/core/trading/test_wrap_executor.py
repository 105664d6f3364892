import pytest

from tradechat.core.errors import ContractRevertError, ValidationError

from conftest import WMNT, function_name


@pytest.mark.asyncio
async def test_wrap_sends_value_with_buffered_gas(session, wraps):
    tx_hash = await wraps.wrap("0.1")

    assert tx_hash.startswith("0x") and len(tx_hash) == 66
    tx, _ = session.sent[0]
    assert tx["to"] == WMNT
    assert tx["value"] == 10 ** 17
    assert tx["gas"] == 120_000
    assert function_name(tx["data"]) == "deposit"


@pytest.mark.asyncio
async def test_unwrap_passes_amount_as_argument(session, wraps):
    await wraps.unwrap("2")

    tx, _ = session.sent[0]
    assert tx["value"] == 0
    assert function_name(tx["data"]) == "withdraw"
    assert session.encoded_calls("withdraw") == [[2 * 10 ** 18]]


@pytest.mark.asyncio
async def test_estimation_revert_propagates(session, wraps):
    session.fail_estimate["withdraw"] = ContractRevertError("execution reverted", reason="execution reverted")

    with pytest.raises(ContractRevertError):
        await wraps.unwrap("1000")
    assert session.sent == []


@pytest.mark.asyncio
async def test_invalid_amount(wraps):
    with pytest.raises(ValidationError):
        await wraps.wrap("0.0000000000000000001")
