"""
c3_core.envelope
----------------
The signed envelope: the one authorization format for every state-changing
request (orders, delegations, withdrawals).

An envelope binds an operation payload to an anti-replay header:

    message_to_sign = base64("(C3.IO)0" + header(72 bytes) + operation)

and the ASCII bytes of that base64 text are what the wallet signs. The
wallet applies its chain's domain prefix itself, so the prefix is recorded
on the envelope but never folded into ``message_to_sign``.

Key features:
- The header (target, lease, expiry) and the payload cannot be changed
  independently without breaking the signature
- ``verify`` answers a yes/no question and never raises
- Wire form via the packed codec (``to_bytes`` / ``from_bytes``)

Lease uniqueness and expiry are checked by the ledger that consumes the
envelope, not here.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .chains import DEFAULT_REGISTRY, ChainRegistry, SignMethod
from .codec import Base64Bytes, Number, Object, VariableBytes, decode_exact, encode
from .errors import C3Error, UnsupportedSigningMethod, VerificationFailed
from .logger import get_logger
from .signer import MessageSigner
from .utils import b64d, b64e

log = get_logger("C3.Envelope")

DOMAIN_TAG = b"(C3.IO)0"
TARGET_LENGTH = 32
LEASE_LENGTH = 32
ZERO_LEASE = bytes(LEASE_LENGTH)

ENVELOPE_HEADER_SCHEMA = {
    "target": VariableBytes(TARGET_LENGTH),
    "lease": VariableBytes(LEASE_LENGTH),
    "expiry": Number(),
}

SIGNED_ENVELOPE_SCHEMA = {
    "header": Object(ENVELOPE_HEADER_SCHEMA),
    "operation": Base64Bytes(),
    "encodedSignedData": Base64Bytes(),
    "signMethod": Number(1),
    "signature": Base64Bytes(),
    "signer": VariableBytes(32),
    "prefix": Base64Bytes(),
}


@dataclass(frozen=True)
class EnvelopeHeader:
    target: bytes
    lease: bytes = ZERO_LEASE
    expiry: int = 0

    def as_value(self) -> dict:
        return {"target": self.target, "lease": self.lease, "expiry": self.expiry}

    def to_bytes(self) -> bytes:
        return encode(self.as_value(), ENVELOPE_HEADER_SCHEMA)

    @classmethod
    def from_value(cls, value: dict) -> "EnvelopeHeader":
        return cls(target=value["target"], lease=value["lease"], expiry=value["expiry"])


def build_message_to_sign(header: EnvelopeHeader, operation: bytes) -> bytes:
    return b64e(DOMAIN_TAG + header.to_bytes() + bytes(operation)).encode("ascii")


@dataclass(frozen=True)
class SignedEnvelope:
    header: EnvelopeHeader
    operation: bytes
    message_to_sign: bytes
    sign_method: SignMethod
    signature: bytes
    signer_public_key: bytes
    domain_prefix: bytes
    chain_id: int

    def to_bytes(self) -> bytes:
        """Packed wire form. The chain id travels next to it, not inside."""
        return encode({
            "header": self.header.as_value(),
            "operation": b64e(self.operation),
            "encodedSignedData": b64e(self.message_to_sign),
            "signMethod": int(self.sign_method),
            "signature": b64e(self.signature),
            "signer": self.signer_public_key,
            "prefix": b64e(self.domain_prefix),
        }, SIGNED_ENVELOPE_SCHEMA)

    @classmethod
    def from_bytes(cls, data: bytes, chain_id: int) -> "SignedEnvelope":
        value = decode_exact(data, SIGNED_ENVELOPE_SCHEMA)
        try:
            sign_method = SignMethod(value["signMethod"])
        except ValueError as ex:
            raise UnsupportedSigningMethod(f"Unknown sign method {value['signMethod']}") from ex
        return cls(
            header=EnvelopeHeader.from_value(value["header"]),
            operation=b64d(value["operation"]),
            message_to_sign=b64d(value["encodedSignedData"]),
            sign_method=sign_method,
            signature=b64d(value["signature"]),
            signer_public_key=value["signer"],
            domain_prefix=b64d(value["prefix"]),
            chain_id=chain_id,
        )


async def sign(header: EnvelopeHeader, operation: bytes, signer: MessageSigner,
               registry: Optional[ChainRegistry] = None) -> SignedEnvelope:
    """Have ``signer`` authorize ``operation`` under ``header``."""
    cap = (registry or DEFAULT_REGISTRY).get(signer.chain_id)
    message = build_message_to_sign(header, operation)
    signer_public_key = cap.public_key_of(signer.address)

    log.debug(f"[SIGN] {cap} {signer.address} | {len(message)} bytes")
    signature = await signer.sign_message(message)

    return SignedEnvelope(
        header=header,
        operation=bytes(operation),
        message_to_sign=message,
        sign_method=cap.signing_method(),
        signature=signature,
        signer_public_key=signer_public_key,
        domain_prefix=cap.domain_prefix(len(message)),
        chain_id=cap.chain_id,
    )


def verify(envelope: SignedEnvelope, registry: Optional[ChainRegistry] = None,
           chain_id: Optional[int] = None) -> bool:
    """
    Check the envelope signature against the header and payload it carries.

    ``chain_id`` overrides the chain recorded on the envelope. Any structural
    problem (unknown chain, header that no longer encodes, signer key the
    chain cannot render) is a plain ``False``.
    """
    try:
        chain_id = envelope.chain_id if chain_id is None else chain_id
        cap = (registry or DEFAULT_REGISTRY).get(chain_id)
        message = build_message_to_sign(envelope.header, envelope.operation)
        address = cap.address_of(envelope.signer_public_key)

        if message != envelope.message_to_sign:
            log.debug("[VERIFY] signed data does not match header and operation")
            return False
        if envelope.sign_method != cap.signing_method():
            log.debug(f"[VERIFY] {cap} does not sign with {envelope.sign_method!r}")
            return False
        return cap.verify_signature(envelope.signature, message, address)
    except (C3Error, ValueError, TypeError, AttributeError) as ex:
        log.debug(f"[VERIFY] structural failure on chain {chain_id}: {ex}")
        return False


def ensure_verified(envelope: SignedEnvelope, registry: Optional[ChainRegistry] = None,
                    chain_id: Optional[int] = None) -> SignedEnvelope:
    """``verify`` for callers that reject on failure; returns the envelope."""
    if not verify(envelope, registry, chain_id):
        raise VerificationFailed(f"envelope signed by {envelope.signer_public_key.hex()} does not verify")
    return envelope
