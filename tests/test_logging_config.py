from tradechat.logging_config import REDACTED, redact_secrets


def test_secret_fields_are_masked():
    event = {
        "event": "wallet_connected",
        "address": "0x" + "11" * 20,
        "private_key": "0xdeadbeef",
        "keystore_passphrase": "hunter2",
        "GROQ_API_KEY": "gsk_123",
    }

    result = redact_secrets(None, "info", event)

    assert result["address"] == "0x" + "11" * 20
    assert result["event"] == "wallet_connected"
    assert result["private_key"] == REDACTED
    assert result["keystore_passphrase"] == REDACTED
    assert result["GROQ_API_KEY"] == REDACTED
