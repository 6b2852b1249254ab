import asyncio
from dataclasses import replace

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from eth_account import Account
from eth_account.messages import encode_defunct

from c3_core.chains import (
    ALGORAND, CHAIN_ID_ALGORAND, CHAIN_ID_AVAX, CHAIN_ID_ETH, SignMethod,
)
from c3_core.envelope import (
    DOMAIN_TAG, EnvelopeHeader, SignedEnvelope, build_message_to_sign, ensure_verified, sign, verify,
)
from c3_core.errors import UnsupportedSigningMethod, VerificationFailed
from c3_core.operations import sign_order
from c3_core.signer import MessageSigner
from c3_core.utils import b64d

# CMD Line Usage: pytest -v -s --log-cli-level=DEBUG .\tests\test_envelope.py

ED_KEY = ed25519.Ed25519PrivateKey.from_private_bytes(bytes(range(32)))
ED_PUB = ED_KEY.public_key().public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
ETH_ACCOUNT = Account.from_key("0x" + "22" * 32)

HEADER = EnvelopeHeader(target=bytes(range(32)), lease=bytes(range(32, 64)), expiry=1689177881)
OPERATION = b"\x06operation payload"


def native_signer():
    async def callback(message):
        return ED_KEY.sign(message)
    return MessageSigner(ALGORAND.address_of(ED_PUB), CHAIN_ID_ALGORAND, callback)


def evm_signer():
    async def callback(message):
        return bytes(ETH_ACCOUNT.sign_message(encode_defunct(primitive=message)).signature)
    return MessageSigner(ETH_ACCOUNT.address, CHAIN_ID_ETH, callback)


def flip(data: bytes, index: int = 0) -> bytes:
    return data[:index] + bytes([data[index] ^ 0x01]) + data[index + 1:]


def test_header_layout():
    raw = HEADER.to_bytes()
    assert len(raw) == 72
    assert raw[:32] == HEADER.target
    assert raw[32:64] == HEADER.lease
    assert int.from_bytes(raw[64:], "big") == HEADER.expiry


def test_message_to_sign_is_base64_text():
    message = build_message_to_sign(HEADER, OPERATION)
    assert b64d(message.decode("ascii")) == DOMAIN_TAG + HEADER.to_bytes() + OPERATION


@pytest.mark.asyncio
async def test_sign_and_verify_native():
    envelope = await sign(HEADER, OPERATION, native_signer())

    assert envelope.sign_method == SignMethod.ED25519
    assert envelope.signer_public_key == ED_PUB
    assert envelope.domain_prefix == b""
    assert verify(envelope)


@pytest.mark.asyncio
@pytest.mark.parametrize("tamper", [
    lambda h: replace(h, target=flip(h.target, 5)),
    lambda h: replace(h, lease=flip(h.lease, 31)),
    lambda h: replace(h, expiry=h.expiry + 1),
])
async def test_header_tampering_is_detected(tamper):
    envelope = await sign(HEADER, OPERATION, native_signer())
    header = tamper(envelope.header)

    assert not verify(replace(envelope, header=header))
    # even with a consistently rebuilt message the signature no longer matches
    rebuilt = build_message_to_sign(header, envelope.operation)
    assert not verify(replace(envelope, header=header, message_to_sign=rebuilt))


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [0, 7, len(OPERATION) - 1])
async def test_operation_tampering_is_detected(index):
    envelope = await sign(HEADER, OPERATION, native_signer())
    operation = flip(envelope.operation, index)
    rebuilt = build_message_to_sign(envelope.header, operation)

    assert not verify(replace(envelope, operation=operation))
    assert not verify(replace(envelope, operation=operation, message_to_sign=rebuilt))


@pytest.mark.asyncio
async def test_verify_never_raises_on_garbage():
    envelope = await sign(HEADER, OPERATION, native_signer())
    assert not verify(replace(envelope, chain_id=999))
    assert not verify(replace(envelope, signer_public_key=b"\x01"))
    assert not verify(replace(envelope, header=replace(envelope.header, target=b"short")))
    assert not verify(replace(envelope, signature=b""))
    assert not verify(replace(envelope, signature=123))
    assert not verify(replace(envelope, signature=None))
    assert not verify(replace(envelope, header=None))
    assert not verify(replace(envelope, operation=None))


@pytest.mark.asyncio
async def test_sign_and_verify_evm():
    envelope = await sign(HEADER, OPERATION, evm_signer())

    assert envelope.sign_method == SignMethod.ECDSA
    assert envelope.signer_public_key[:12] == bytes(12)
    assert envelope.domain_prefix == b"\x19Ethereum Signed Message:\n" + str(len(envelope.message_to_sign)).encode()
    assert verify(envelope)
    # same key, same address format on another EVM chain
    assert verify(envelope, chain_id=CHAIN_ID_AVAX)
    assert not verify(envelope, chain_id=CHAIN_ID_ALGORAND)


@pytest.mark.asyncio
async def test_wire_form_round_trip():
    envelope = await sign(HEADER, OPERATION, native_signer())
    restored = SignedEnvelope.from_bytes(envelope.to_bytes(), envelope.chain_id)

    assert restored == envelope
    assert verify(restored)


@pytest.mark.asyncio
async def test_wire_form_unknown_sign_method():
    envelope = await sign(HEADER, OPERATION, native_signer())
    with pytest.raises(UnsupportedSigningMethod):
        SignedEnvelope.from_bytes(replace(envelope, sign_method=9).to_bytes(), envelope.chain_id)


@pytest.mark.asyncio
async def test_ensure_verified():
    envelope = await sign(HEADER, OPERATION, native_signer())
    assert ensure_verified(envelope) is envelope
    with pytest.raises(VerificationFailed):
        ensure_verified(replace(envelope, operation=flip(envelope.operation)))
    with pytest.raises(VerificationFailed):
        ensure_verified(envelope, chain_id=CHAIN_ID_ETH)


@pytest.mark.asyncio
async def test_concurrent_signing():
    signer = native_signer()
    headers = [replace(HEADER, lease=bytes([i]) * 32) for i in range(8)]
    envelopes = await asyncio.gather(*(sign(h, OPERATION, signer) for h in headers))
    assert all(verify(e) for e in envelopes)
    assert len({e.signature for e in envelopes}) == len(headers)


@pytest.mark.asyncio
async def test_order_end_to_end():
    order = {
        "account": ED_PUB,
        "sellSlotId": 0,
        "buySlotId": 1,
        "sellAmount": 1_000_000,
        "buyAmount": 2_050_000,
        "maxBorrow": 0,
        "maxRepay": 0,
        "nonce": 1111111,
        "expiresOn": 1689177881,
    }
    envelope = await sign_order(order, native_signer())

    assert envelope.header.target == ED_PUB
    assert envelope.header.lease == bytes(32)
    assert verify(envelope)
    assert not verify(envelope, chain_id=CHAIN_ID_ETH)
