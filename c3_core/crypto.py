"""
c3_core.crypto
--------------
Hash and curve primitives used by the trust layer:

- SHA-512/256: hash commitments, order ids and account id checksums
  (the digest the on-chain verifiers use)
- Ed25519: signature verification for the native and Solana families
- secp256k1 ECDSA: EIP-191 ``personal_sign`` recovery for the EVM family

Nothing here holds a private key; producing signatures is the job of a
``c3_core.signer.MessageSigner``.
"""

from __future__ import annotations
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ed25519
from eth_account import Account
from eth_account.messages import encode_defunct

ETH_SIGNATURE_LENGTH = 65
MAX_SIGNATURE_LENGTH = ETH_SIGNATURE_LENGTH
HASH_LENGTH = 32

_ETH_LEGACY_V = 27


def sha512_256(data: bytes) -> bytes:
    h = hashes.Hash(hashes.SHA512_256())
    h.update(data)
    return h.finalize()


# --------- Ed25519 ----------
def ed25519_verify(pub_raw: bytes, sig: bytes, data: bytes) -> bool:
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(pub_raw).verify(sig, data)
        return True
    except (InvalidSignature, ValueError):
        return False


# --------- secp256k1 (EIP-191) ----------
def normalize_eth_signature(sig: bytes) -> bytes:
    """Move a {0,1} recovery id to the legacy {27,28} range.

    Wallets disagree on the encoding of ``v``; EIP-155 style values
    (chain_id * 2 + 35) are left untouched.
    """
    if len(sig) == ETH_SIGNATURE_LENGTH and sig[-1] < _ETH_LEGACY_V:
        return sig[:-1] + bytes([sig[-1] + _ETH_LEGACY_V])
    return sig


def eth_recover_personal(message: bytes, sig: bytes) -> Optional[str]:
    """Recover the checksummed signer address of an EIP-191 signature.

    The ``"\\x19Ethereum Signed Message:\\n" + len`` preamble is applied here,
    exactly as a wallet applies it when signing.
    """
    try:
        return Account.recover_message(encode_defunct(primitive=message), signature=normalize_eth_signature(sig))
    except Exception:
        # eth_keys raises a spread of types (BadSignature, ValidationError, ValueError)
        return None
