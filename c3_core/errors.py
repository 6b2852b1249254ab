"""
c3_core.errors
--------------
Error taxonomy for the trust layer.

Every error carries a stable integer ``code`` so that services relaying a
failure to a client can map it without string matching. Codes are grouped by
family (1xx codec, 2xx address, 3xx account id, 4xx signature) and are never
reused.
"""

from __future__ import annotations
from typing import Any, Dict, Optional


class C3Error(Exception):
    code: int = 0

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


# --------- Codec ----------
class CodecError(C3Error, ValueError):
    code = 100


class SchemaMismatch(CodecError):
    code = 101


class InsufficientBytes(CodecError):
    code = 102


class FieldOutOfRange(CodecError):
    code = 103


class UnknownTypeTag(CodecError):
    code = 104


# --------- Addresses / chains ----------
class AddressError(C3Error, ValueError):
    code = 200


class MalformedAddress(AddressError):
    code = 201


class UnsupportedChain(AddressError):
    code = 202


class ChecksumMismatch(AddressError):
    code = 203


# --------- Account ids ----------
class AccountIdError(C3Error, ValueError):
    code = 300


class InvalidLength(AccountIdError):
    code = 301


class InvalidChecksum(AccountIdError):
    code = 302


class InvalidTypeDiscriminant(AccountIdError):
    code = 303


class InvalidAccountIdFormat(AccountIdError):
    code = 304


# --------- Signatures ----------
class SignatureError(C3Error):
    code = 400


class VerificationFailed(SignatureError):
    code = 401


class UnsupportedSigningMethod(SignatureError):
    code = 402


class RemoteSignerError(SignatureError):
    code = 403


ALL_ERRORS = (
    C3Error,
    CodecError, SchemaMismatch, InsufficientBytes, FieldOutOfRange, UnknownTypeTag,
    AddressError, MalformedAddress, UnsupportedChain, ChecksumMismatch,
    AccountIdError, InvalidLength, InvalidChecksum, InvalidTypeDiscriminant, InvalidAccountIdFormat,
    SignatureError, VerificationFailed, UnsupportedSigningMethod, RemoteSignerError,
)
