"""
c3_core.chains.solana
---------------------
Solana: the address is the base58 text of the raw 32-byte ed25519 public
key and signatures are plain ed25519 over the message bytes.
"""

from __future__ import annotations
import re
from dataclasses import dataclass

import base58

from ..crypto import ed25519_verify
from ..errors import MalformedAddress
from ..logger import get_logger
from ..utils import BytesOrB64, to_bytes
from .base import PUBLIC_KEY_LENGTH, AccountType, ChainCapability, SignMethod, UserAddress

log = get_logger("C3.Chains.Solana")

_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")
# transaction signatures are 64 bytes, 87 or 88 base58 characters
_TX_HASH_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{86,88}$")


@dataclass(frozen=True)
class SolanaEd25519(ChainCapability):
    account_type = AccountType.SOLANA
    sign_method = SignMethod.ED25519

    def public_key_of(self, address: UserAddress) -> bytes:
        if not isinstance(address, str) or not _BASE58_RE.match(address):
            raise MalformedAddress(f"Invalid {self.name} address: {address!r}")
        raw = base58.b58decode(address)
        if len(raw) != PUBLIC_KEY_LENGTH:
            raise MalformedAddress(f"Invalid {self.name} address length: {address!r}")
        return raw

    def address_of(self, public_key: bytes) -> UserAddress:
        if len(public_key) != PUBLIC_KEY_LENGTH:
            raise MalformedAddress(f"{self.name} public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}")
        return base58.b58encode(bytes(public_key)).decode("ascii")

    def validate_address(self, address: UserAddress) -> bool:
        try:
            self.public_key_of(address)
            return True
        except MalformedAddress:
            return False

    def canonicalize(self, address: str) -> UserAddress:
        self.public_key_of(address)
        return address

    def verify_signature(self, signature: BytesOrB64, message: BytesOrB64, address: UserAddress) -> bool:
        try:
            public_key = self.public_key_of(address)
            sig, data = to_bytes(signature), to_bytes(message)
        except (ValueError, TypeError) as ex:
            log.debug(f"[VERIFY] {self} rejected input: {ex}")
            return False
        return ed25519_verify(public_key, sig, self.domain_prefix(len(data)) + data)

    def is_valid_tx_hash(self, tx_hash: str) -> bool:
        return isinstance(tx_hash, str) and bool(_TX_HASH_RE.match(tx_hash))
