"""
c3_core.operations
------------------
Payload builders for the requests an account can authorize.

Orders, delegations, withdrawals and pool moves are packed with the codec
and signed inside an envelope. Cancellations are the exception: the payload
is the raw concatenation of 32-byte order ids, optionally followed by an
8-byte "cancel everything up to" timestamp, and it is signed as-is.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional, Sequence

from .chains import DEFAULT_REGISTRY, ChainRegistry
from .account import decode_account_id
from .codec import Array, Byte, FixedAddress, FixedLiteral, Number, Object, UnsignedInt, VariableBytes, encode
from .crypto import HASH_LENGTH, sha512_256
from .envelope import ZERO_LEASE, EnvelopeHeader, SignedEnvelope, sign
from .errors import C3Error, FieldOutOfRange
from .logger import get_logger
from .signer import MessageSigner
from .utils import b64d, b64e, decode_uint, encode_int64, encode_uint, pad_left

log = get_logger("C3.Operations")


class OnChainRequestOp(IntEnum):
    DEPOSIT = 0
    WITHDRAW = 1
    POOL_MOVE = 2
    DELEGATE = 3
    LIQUIDATE = 4
    ACCOUNT_MOVE = 5
    SETTLE = 6


def _op_tag(op: OnChainRequestOp) -> FixedLiteral:
    return FixedLiteral(bytes([int(op)]))


ORDER_SCHEMA = {
    "operationTag": _op_tag(OnChainRequestOp.SETTLE),
    "account": FixedAddress(),
    "nonce": Number(),
    "expiresOn": Number(),
    "sellSlotId": Byte(),
    "sellAmount": UnsignedInt(),
    "maxBorrow": UnsignedInt(),
    "buySlotId": Byte(),
    "buyAmount": UnsignedInt(),
    "maxRepay": UnsignedInt(),
}

DELEGATION_SCHEMA = {
    "operationTag": _op_tag(OnChainRequestOp.DELEGATE),
    "delegate": FixedAddress(),
    "nonce": Number(),
    "expiration": Number(),
}

WITHDRAW_SCHEMA = {
    "operationTag": _op_tag(OnChainRequestOp.WITHDRAW),
    "slotId": Byte(),
    "amount": UnsignedInt(),
    "receiver": Object({"chainId": UnsignedInt(2), "address": FixedAddress()}),
    "maxBorrow": UnsignedInt(),
    "maxFees": UnsignedInt(),
}

POOL_MOVE_SCHEMA = {
    "operationTag": _op_tag(OnChainRequestOp.POOL_MOVE),
    "slotId": Byte(),
    "amount": VariableBytes(8),
}

_SLOT_AMOUNTS = Array(Object({"slotId": Byte(), "amount": UnsignedInt()}))

LIQUIDATION_SCHEMA = {
    "operationTag": _op_tag(OnChainRequestOp.LIQUIDATE),
    "target": FixedAddress(),
    "cash": _SLOT_AMOUNTS,
    "pool": _SLOT_AMOUNTS,
}

ACCOUNT_MOVE_SCHEMA = {
    "operationTag": _op_tag(OnChainRequestOp.ACCOUNT_MOVE),
    "target": FixedAddress(),
    "cash": _SLOT_AMOUNTS,
    "pool": _SLOT_AMOUNTS,
}

_ORDER_DEFAULTS = {"maxBorrow": 0, "maxRepay": 0}


# --------- Orders ----------
def encode_order(order: Mapping[str, Any]) -> bytes:
    return encode({**_ORDER_DEFAULTS, **order}, ORDER_SCHEMA)


def order_id(encoded_order: bytes) -> str:
    """Base64 SHA-512/256 of the packed order; what cancellations refer to."""
    return b64e(sha512_256(encoded_order))


async def sign_order(order: Mapping[str, Any], signer: MessageSigner,
                     registry: Optional[ChainRegistry] = None) -> SignedEnvelope:
    account = pad_left(bytes(order["account"]), 32)
    header = EnvelopeHeader(target=account, lease=ZERO_LEASE, expiry=0)
    return await sign(header, encode_order(order), signer, registry)


# --------- Delegation ----------
def build_delegation_operation(delegate: bytes, nonce: int, expiration: int) -> bytes:
    return encode({"delegate": delegate, "nonce": nonce, "expiration": expiration}, DELEGATION_SCHEMA)


async def sign_delegation(account: bytes, delegate: bytes, nonce: int, expiration: int,
                          signer: MessageSigner, registry: Optional[ChainRegistry] = None,
                          lease: bytes = ZERO_LEASE) -> SignedEnvelope:
    header = EnvelopeHeader(target=pad_left(bytes(account), 32), lease=lease, expiry=0)
    return await sign(header, build_delegation_operation(delegate, nonce, expiration), signer, registry)


# --------- Cancellation ----------
@dataclass(frozen=True)
class SignedCancelRequest:
    payload: bytes
    signature: bytes
    address: str
    chain_id: int


def encode_cancel_request(order_ids: Sequence[str], all_orders_until: Optional[int] = None) -> bytes:
    chunks = []
    for oid in order_ids:
        raw = b64d(oid)
        if len(raw) != HASH_LENGTH:
            raise FieldOutOfRange(f"order id must decode to {HASH_LENGTH} bytes, got {len(raw)}")
        chunks.append(raw)
    if all_orders_until is not None:
        chunks.append(encode_uint(all_orders_until, 8))
    return b"".join(chunks)


async def sign_cancel_request(order_ids: Sequence[str], signer: MessageSigner,
                              all_orders_until: Optional[int] = None) -> SignedCancelRequest:
    payload = encode_cancel_request(order_ids, all_orders_until)
    signature = await signer.sign_message(payload)
    return SignedCancelRequest(payload, signature, signer.address, signer.chain_id)


def verify_cancel_request(request: SignedCancelRequest, registry: Optional[ChainRegistry] = None) -> bool:
    try:
        cap = (registry or DEFAULT_REGISTRY).get(request.chain_id)
    except C3Error as ex:
        log.debug(f"[VERIFY] cancel request: {ex}")
        return False
    return cap.verify_signature(request.signature, request.payload, request.address)


# --------- Withdraw / pool move ----------
def encode_withdraw(slot_id: int, amount: int, chain_id: int, receiver: bytes,
                    max_borrow: int = 0, max_fees: int = 0) -> bytes:
    return encode({
        "slotId": slot_id,
        "amount": amount,
        "receiver": {"chainId": chain_id, "address": receiver},
        "maxBorrow": max_borrow,
        "maxFees": max_fees,
    }, WITHDRAW_SCHEMA)


def _int64(name: str, amount: int) -> bytes:
    try:
        return encode_int64(amount)
    except OverflowError as ex:
        raise FieldOutOfRange(f"{name}: {amount} does not fit in a signed 64-bit integer") from ex


def encode_pool_move(slot_id: int, amount: int) -> bytes:
    """``amount`` is signed: negative moves funds out of the pool."""
    return encode({"slotId": slot_id, "amount": _int64("amount", amount)}, POOL_MOVE_SCHEMA)


# --------- Liquidation / account move ----------
def _slot_amounts(name: str, amounts: Mapping[int, int], signed: bool = False) -> list:
    entries = []
    for slot_id, amount in amounts.items():
        if signed:
            # stored as the uint64 holding the two's complement bits
            amount = decode_uint(_int64(f"{name}[{slot_id}]", amount), 8)
        elif amount < 0:
            raise FieldOutOfRange(f"{name}[{slot_id}]: {amount} can not be negative")
        entries.append({"slotId": slot_id, "amount": amount})
    return entries


def encode_liquidation(liquidatee: str, cash: Mapping[int, int], pool: Mapping[int, int]) -> bytes:
    """
    Liquidate the account ``liquidatee`` (an account id).

    ``cash`` is per-slot and never negative; ``pool`` positions are signed.
    """
    return encode({
        "target": decode_account_id(liquidatee).public_key,
        "cash": _slot_amounts("cash", cash),
        "pool": _slot_amounts("pool", pool, signed=True),
    }, LIQUIDATION_SCHEMA)


def encode_account_move(target: str, cash: Mapping[int, int], pool: Mapping[int, int]) -> bytes:
    """Move cash and pool balances to the account ``target``; nothing may be negative."""
    return encode({
        "target": decode_account_id(target).public_key,
        "cash": _slot_amounts("cash", cash),
        "pool": _slot_amounts("pool", pool),
    }, ACCOUNT_MOVE_SCHEMA)
