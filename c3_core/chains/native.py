"""
c3_core.chains.native
---------------------
The venue's native chain (Algorand address format).

Address: base32, no padding, of ``public_key(32) ++ sha512_256(public_key)[-4:]``
(58 characters). Signatures are raw ed25519 over the message bytes.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..crypto import ed25519_verify, sha512_256
from ..errors import MalformedAddress
from ..logger import get_logger
from ..utils import BytesOrB64, b32d, b32e, to_bytes
from .base import PUBLIC_KEY_LENGTH, AccountType, ChainCapability, SignMethod, UserAddress

log = get_logger("C3.Chains.Native")

ADDRESS_CHECKSUM_LENGTH = 4
ADDRESS_LENGTH = 58
TX_ID_LENGTH = 32
ZERO_ADDRESS = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAY5HFKQ"


def _address_checksum(public_key: bytes) -> bytes:
    return sha512_256(public_key)[-ADDRESS_CHECKSUM_LENGTH:]


@dataclass(frozen=True)
class NativeEd25519(ChainCapability):
    account_type = AccountType.NATIVE
    sign_method = SignMethod.ED25519

    def public_key_of(self, address: UserAddress) -> bytes:
        if not isinstance(address, str) or len(address) != ADDRESS_LENGTH:
            raise MalformedAddress(f"Invalid {self.name} address: {address!r}")
        try:
            raw = b32d(address)
        except ValueError as ex:
            raise MalformedAddress(f"Invalid {self.name} address: {address!r}") from ex
        public_key, checksum = raw[:PUBLIC_KEY_LENGTH], raw[PUBLIC_KEY_LENGTH:]
        if len(public_key) != PUBLIC_KEY_LENGTH or checksum != _address_checksum(public_key):
            raise MalformedAddress(f"Invalid {self.name} address checksum: {address!r}")
        return public_key

    def address_of(self, public_key: bytes) -> UserAddress:
        if len(public_key) != PUBLIC_KEY_LENGTH:
            raise MalformedAddress(f"{self.name} public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}")
        return b32e(bytes(public_key) + _address_checksum(bytes(public_key)))

    def validate_address(self, address: UserAddress) -> bool:
        try:
            self.public_key_of(address)
            return True
        except MalformedAddress:
            return False

    def canonicalize(self, address: str) -> UserAddress:
        # the last character carries 2 unused bits; re-encoding clears them
        return self.address_of(self.public_key_of(address))

    def verify_signature(self, signature: BytesOrB64, message: BytesOrB64, address: UserAddress) -> bool:
        try:
            public_key = self.public_key_of(address)
            sig, data = to_bytes(signature), to_bytes(message)
        except (ValueError, TypeError) as ex:
            log.debug(f"[VERIFY] {self} rejected input: {ex}")
            return False
        return ed25519_verify(public_key, sig, self.domain_prefix(len(data)) + data)

    def is_valid_tx_hash(self, tx_hash: str) -> bool:
        try:
            return len(b32d(tx_hash)) == TX_ID_LENGTH
        except (TypeError, ValueError):
            return False
