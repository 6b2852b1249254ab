from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum

from ..utils import BytesOrB64

UserAddress = str
PUBLIC_KEY_LENGTH = 32


class SignMethod(IntEnum):
    ED25519 = 0
    ECDSA = 1


class AccountType(IntEnum):
    """Account discriminant written into modern account ids."""
    NATIVE = 0
    EVM = 1
    SOLANA = 2


@dataclass(frozen=True)
class ChainCapability:
    """
    Address and signature operations for one chain.

    The chain set is closed: the concrete values live in
    ``c3_core.chains`` and every one of them is a stateless frozen value.
    Subclasses fix ``account_type`` and ``sign_method``; several EVM chains
    share one subclass and differ only by ``chain_id``/``name``.
    """
    chain_id: int
    name: str

    account_type = None   # type: AccountType
    sign_method = None    # type: SignMethod

    def public_key_of(self, address: UserAddress) -> bytes:
        raise NotImplementedError

    def address_of(self, public_key: bytes) -> UserAddress:
        raise NotImplementedError

    def validate_address(self, address: UserAddress) -> bool:
        raise NotImplementedError

    def canonicalize(self, address: str) -> UserAddress:
        raise NotImplementedError

    def signing_method(self) -> SignMethod:
        return self.sign_method

    def domain_prefix(self, payload_length: int) -> bytes:
        return b""

    def verify_signature(self, signature: BytesOrB64, message: BytesOrB64, address: UserAddress) -> bool:
        raise NotImplementedError

    def is_valid_tx_hash(self, tx_hash: str) -> bool:
        raise NotImplementedError

    def __str__(self) -> str:
        return f"{self.name}({self.chain_id})"

