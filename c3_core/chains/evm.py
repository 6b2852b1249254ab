"""
c3_core.chains.evm
------------------
secp256k1 chains sharing the Ethereum address format (Ethereum, Avalanche,
BSC, Arbitrum and their testnets).

- Addresses are 20 bytes, rendered with EIP-55 checksum casing. All-lower and
  all-upper inputs are accepted and re-cased; mixed case must carry a valid
  checksum.
- Venue public keys are the 20-byte address left-padded with 12 zero bytes.
- Signatures are EIP-191 ``personal_sign``: the wallet hashes
  ``"\\x19Ethereum Signed Message:\\n" + len(message) + message`` with keccak
  and signs with ECDSA; verification recovers the address and compares.
"""

from __future__ import annotations
import re
from dataclasses import dataclass

from eth_utils import (
    is_checksum_address, is_checksum_formatted_address, is_hex_address, to_checksum_address,
)

from ..crypto import eth_recover_personal
from ..errors import AddressError, ChecksumMismatch, MalformedAddress
from ..logger import get_logger
from ..utils import BytesOrB64, b16d, pad_left, to_bytes
from .base import PUBLIC_KEY_LENGTH, AccountType, ChainCapability, SignMethod, UserAddress

log = get_logger("C3.Chains.EVM")

EVM_ADDRESS_LENGTH = 20
EVM_KEY_OFFSET = PUBLIC_KEY_LENGTH - EVM_ADDRESS_LENGTH
SIGNED_MESSAGE_PREAMBLE = b"\x19Ethereum Signed Message:\n"

_HEX_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class EvmSecp256k1(ChainCapability):
    account_type = AccountType.EVM
    sign_method = SignMethod.ECDSA

    def canonicalize(self, address: str) -> UserAddress:
        if not isinstance(address, str) or not _HEX_ADDRESS_RE.match(address) or not is_hex_address(address):
            raise MalformedAddress(f"Invalid {self.name} address: {address!r}")
        # all-lower and all-upper carry no checksum; mixed case must match EIP-55
        if is_checksum_formatted_address(address) and not is_checksum_address(address):
            raise ChecksumMismatch(f"Invalid {self.name} address checksum: {address!r}")
        return to_checksum_address(address)

    def validate_address(self, address: UserAddress) -> bool:
        try:
            self.canonicalize(address)
            return True
        except AddressError:
            return False

    def public_key_of(self, address: UserAddress) -> bytes:
        return pad_left(b16d(self.canonicalize(address)), PUBLIC_KEY_LENGTH)

    def address_of(self, public_key: bytes) -> UserAddress:
        public_key = bytes(public_key)
        if len(public_key) == PUBLIC_KEY_LENGTH and not any(public_key[:EVM_KEY_OFFSET]):
            raw = public_key[EVM_KEY_OFFSET:]
        elif len(public_key) == EVM_ADDRESS_LENGTH:
            raw = public_key
        else:
            raise MalformedAddress(
                f"{self.name} public key must be 20 bytes, or 32 bytes with 12 leading zeros"
            )
        return to_checksum_address("0x" + raw.hex())

    def domain_prefix(self, payload_length: int) -> bytes:
        return SIGNED_MESSAGE_PREAMBLE + str(payload_length).encode("ascii")

    def verify_signature(self, signature: BytesOrB64, message: BytesOrB64, address: UserAddress) -> bool:
        try:
            expected = self.canonicalize(address)
            sig, data = to_bytes(signature), to_bytes(message)
        except (ValueError, TypeError) as ex:
            log.debug(f"[VERIFY] {self} rejected input: {ex}")
            return False
        recovered = eth_recover_personal(data, sig)
        if recovered != expected:
            log.debug(f"[VERIFY] {self} signer mismatch for {expected}")
            return False
        return True

    def is_valid_tx_hash(self, tx_hash: str) -> bool:
        return isinstance(tx_hash, str) and bool(_TX_HASH_RE.match(tx_hash))

