"""
c3_core.account
---------------
Venue-wide account identifiers.

One account id names one 32-byte public key on one chain family:

    legacy  C3_<base32(public_key ++ checksum)>                 59 chars
    modern  C3_<2 hex type byte><base32(public_key ++ checksum)> 61 chars

``checksum`` is the last 3 bytes of
``sha512_256(b"(C3.IO)" + type_byte_or_empty + public_key)``; the legacy form
hashes no type byte. Legacy ids carry no account type: a key whose first 12
bytes are zero is read as a padded EVM address, anything else as a native
key. Solana keys cannot be told apart that way and always use the modern
form; native and EVM keys keep the legacy form.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional

from .chains import (
    ALGORAND, DEFAULT_REGISTRY, ETHEREUM, SOLANA, AccountType, ChainCapability, ChainRegistry,
    PUBLIC_KEY_LENGTH, UserAddress,
)
from .crypto import sha512_256
from .errors import (
    InvalidAccountIdFormat, InvalidChecksum, InvalidLength, InvalidTypeDiscriminant,
    UnsupportedChain,
)
from .utils import b32d, b32e, pad_left

ACCOUNT_ID_PREFIX = "C3_"
CHECKSUM_PREFIX = b"(C3.IO)"
CHECKSUM_LENGTH = 3
EVM_KEY_PADDING = 12
LEGACY_LENGTH = 59
MODERN_LENGTH = 61

_LEGACY_RE = re.compile(r"^C3_([A-Z2-7]{56})$")
_MODERN_RE = re.compile(r"^C3_([0-9A-F]{2})([A-Z2-7]{56})$")

# account type -> chain used to render a user address when none is given
_DEFAULT_CHAIN = {
    AccountType.NATIVE: ALGORAND,
    AccountType.EVM: ETHEREUM,
    AccountType.SOLANA: SOLANA,
}


def _checksum(public_key: bytes, type_byte: bytes = b"") -> bytes:
    return sha512_256(CHECKSUM_PREFIX + type_byte + public_key)[-CHECKSUM_LENGTH:]


def _infer_legacy_type(public_key: bytes) -> AccountType:
    if not any(public_key[:EVM_KEY_PADDING]):
        return AccountType.EVM
    return AccountType.NATIVE


@dataclass(frozen=True)
class AccountId:
    public_key: bytes
    account_type: AccountType

    def __post_init__(self):
        if len(self.public_key) != PUBLIC_KEY_LENGTH:
            raise InvalidLength(f"account public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(self.public_key)}")

    @property
    def is_legacy(self) -> bool:
        return self.account_type in (AccountType.NATIVE, AccountType.EVM)

    def to_text(self) -> str:
        if self.is_legacy:
            return ACCOUNT_ID_PREFIX + b32e(self.public_key + _checksum(self.public_key))
        type_byte = bytes([int(self.account_type)])
        return (ACCOUNT_ID_PREFIX + type_byte.hex().upper()
                + b32e(self.public_key + _checksum(self.public_key, type_byte)))

    def __str__(self) -> str:
        return self.to_text()


def _split_payload(payload: str, type_byte: bytes = b"") -> bytes:
    raw = b32d(payload)
    public_key, checksum = raw[:PUBLIC_KEY_LENGTH], raw[PUBLIC_KEY_LENGTH:]
    if len(public_key) != PUBLIC_KEY_LENGTH or len(checksum) != CHECKSUM_LENGTH:
        raise InvalidLength(f"account id payload decodes to {len(raw)} bytes")
    if checksum != _checksum(public_key, type_byte):
        raise InvalidChecksum("account id checksum mismatch")
    return public_key


def decode_account_id(account_id: str) -> AccountId:
    if not isinstance(account_id, str):
        raise InvalidAccountIdFormat(f"account id must be text, got {type(account_id).__name__}")

    if len(account_id) == LEGACY_LENGTH:
        m = _LEGACY_RE.match(account_id)
        if not m:
            raise InvalidAccountIdFormat(f"Invalid account id: {account_id!r}")
        public_key = _split_payload(m.group(1))
        return AccountId(public_key, _infer_legacy_type(public_key))

    if len(account_id) == MODERN_LENGTH:
        m = _MODERN_RE.match(account_id)
        if not m:
            raise InvalidAccountIdFormat(f"Invalid account id: {account_id!r}")
        type_byte = bytes.fromhex(m.group(1))
        try:
            account_type = AccountType(type_byte[0])
        except ValueError as ex:
            raise InvalidTypeDiscriminant(f"Unknown account type {m.group(1)} in {account_id!r}") from ex
        public_key = _split_payload(m.group(2), type_byte)
        return AccountId(public_key, account_type)

    raise InvalidLength(
        f"account id must be {LEGACY_LENGTH} or {MODERN_LENGTH} characters, got {len(account_id)}"
    )


def is_valid_account_id(account_id: str) -> bool:
    try:
        decode_account_id(account_id)
        return True
    except (InvalidAccountIdFormat, InvalidChecksum, InvalidLength, InvalidTypeDiscriminant):
        return False


def encode_account_id(public_key: bytes, chain_id: int, registry: Optional[ChainRegistry] = None) -> str:
    """Account id text for a chain public key (20-byte EVM keys are padded)."""
    cap = (registry or DEFAULT_REGISTRY).get(chain_id)
    public_key = bytes(public_key)
    if cap.account_type == AccountType.EVM and len(public_key) < PUBLIC_KEY_LENGTH:
        public_key = pad_left(public_key, PUBLIC_KEY_LENGTH)
    return AccountId(public_key, cap.account_type).to_text()


def user_address_to_account_id(address: UserAddress, chain_id: Optional[int] = None,
                               registry: Optional[ChainRegistry] = None) -> str:
    """Without ``chain_id`` the chain is guessed from the address (UNSAFE)."""
    registry = registry or DEFAULT_REGISTRY
    if chain_id is None:
        cap = registry.find_chain_by_address(address)
    else:
        cap = registry.get(chain_id)
    return encode_account_id(cap.public_key_of(address), cap.chain_id, registry)


def account_id_to_user_address(account_id: str, chain: Optional[ChainCapability] = None) -> UserAddress:
    account = decode_account_id(account_id)
    cap = chain or _DEFAULT_CHAIN[account.account_type]
    if cap.account_type != account.account_type:
        raise UnsupportedChain(
            f"{account_id} is a {account.account_type.name} account, {cap} cannot render it"
        )
    return cap.address_of(account.public_key)
