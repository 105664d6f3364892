"""
Agent key storage.

The agent wallet's signing key is stored per user as an ``eth_account``
keystore (v3 JSON) document. Storage is a plain get/put interface so the
backing medium can be swapped.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .session import AgentSession


logger = logging.getLogger(__name__)


class AgentKeyStore(Protocol):
    """get/put interface for encrypted agent keys keyed by user id."""

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def put(self, user_id: str, document: Dict[str, Any]) -> None:
        ...


class FileKeyStore:
    """Stores one keystore document per user under ``directory``."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, user_id: str) -> Path:
        # User ids come from the client; hash them so they are safe file names
        digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(user_id)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def put(self, user_id: str, document: Dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(user_id).write_text(json.dumps(document), encoding="utf-8")


def connect_or_create(
    session: AgentSession,
    user_id: str,
    keystore: AgentKeyStore,
    passphrase: str,
    *,
    iterations: Optional[int] = None,
) -> LocalAccount:
    """Attach the user's stored agent key, creating and storing one if absent.

    Args:
        session: Session the signer is attached to
        user_id: Owner of the agent wallet
        keystore: Where the encrypted key lives
        passphrase: Keystore passphrase
        iterations: KDF work factor override for newly stored keys

    Returns:
        The attached account

    Raises:
        ValueError: another signer is attached; nothing is created or stored
    """
    document = keystore.get(user_id)
    if document is None and session.is_connected:
        raise ValueError(
            f"Signer {session.address} is already attached; detach it before creating a new agent wallet"
        )
    if document is not None:
        account = Account.from_key(Account.decrypt(document, passphrase))
        logger.info("Loaded agent wallet %s for user", account.address)
    else:
        account = Account.create()
        keystore.put(
            user_id,
            Account.encrypt(account.key, passphrase, kdf="pbkdf2", iterations=iterations),
        )
        logger.info("Created agent wallet %s for user", account.address)

    session.attach(account)
    return account


__all__ = ["AgentKeyStore", "FileKeyStore", "connect_or_create"]
