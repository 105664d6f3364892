"""
Chain access layer

- AgentSession: provider plus the single attached agent signer, with a
  single-flight transaction queue
- FileKeyStore / connect_or_create: encrypted agent key storage
- WalletTransfers: native coin transfers with pre-flight balance checks
"""

from .keystore import AgentKeyStore, FileKeyStore, connect_or_create
from .session import AgentSession
from .transfers import WalletTransfers

__all__ = [
    "AgentSession",
    "AgentKeyStore",
    "FileKeyStore",
    "connect_or_create",
    "WalletTransfers",
]
