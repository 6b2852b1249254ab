import pytest

from c3_core.account import (
    AccountId, account_id_to_user_address, decode_account_id, encode_account_id,
    is_valid_account_id, user_address_to_account_id,
)
from c3_core.chains import (
    ALGORAND, CHAIN_ID_ALGORAND, CHAIN_ID_ETH, CHAIN_ID_SOLANA, ETHEREUM, SOLANA, AccountType,
)
from c3_core.crypto import sha512_256
from c3_core.errors import (
    AccountIdError, InvalidChecksum, InvalidLength, InvalidTypeDiscriminant, UnsupportedChain,
)
from c3_core.utils import b32e

LEGACY_ID = "C3_L6VD42QWIR2ESDCZKY7B7TIYVSZNLKKLNHFODICR35B4YPOULFK6USCS"
ETH_ADDRESS = "0xBE0eB53F46cd790Cd13851d5EFf43D12404d33E8"
ALGO_ADDRESS = "X6MNR4AVJQEMJRHAPZ6F4O4SVDIYN67ZRMD2O3ULPY4QFMANQNZOEYHODE"
BASE32 = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"


def test_legacy_vector_round_trip():
    account = decode_account_id(LEGACY_ID)
    assert len(account.public_key) == 32
    assert account.to_text() == LEGACY_ID

    chain_id = CHAIN_ID_ALGORAND if account.account_type == AccountType.NATIVE else CHAIN_ID_ETH
    assert encode_account_id(account.public_key, chain_id) == LEGACY_ID


@pytest.mark.parametrize("position", range(3, len(LEGACY_ID)))
def test_any_payload_flip_is_detected(position):
    char = LEGACY_ID[position]
    replacement = BASE32[(BASE32.index(char) + 1) % len(BASE32)]
    tampered = LEGACY_ID[:position] + replacement + LEGACY_ID[position + 1:]

    with pytest.raises((InvalidChecksum, InvalidLength)):
        decode_account_id(tampered)
    assert not is_valid_account_id(tampered)


def test_bad_prefix_and_length():
    with pytest.raises(AccountIdError):
        decode_account_id("X" + LEGACY_ID[1:])
    with pytest.raises(InvalidLength):
        decode_account_id(LEGACY_ID[:-1])
    with pytest.raises(InvalidLength):
        decode_account_id("")
    assert not is_valid_account_id(None)


def test_legacy_type_inference():
    evm_key = bytes(12) + bytes(range(1, 21))
    evm_id = encode_account_id(evm_key, CHAIN_ID_ETH)
    assert len(evm_id) == 59
    assert decode_account_id(evm_id) == AccountId(evm_key, AccountType.EVM)

    native_id = encode_account_id(ALGORAND.public_key_of(ALGO_ADDRESS), CHAIN_ID_ALGORAND)
    assert len(native_id) == 59
    assert decode_account_id(native_id).account_type == AccountType.NATIVE


def test_short_evm_key_is_padded():
    key = bytes(range(1, 21))
    assert encode_account_id(key, CHAIN_ID_ETH) == encode_account_id(bytes(12) + key, CHAIN_ID_ETH)


def test_solana_uses_modern_form():
    key = bytes(range(1, 33))
    account_id = encode_account_id(key, CHAIN_ID_SOLANA)

    assert len(account_id) == 61
    assert account_id.startswith("C3_02")
    assert decode_account_id(account_id) == AccountId(key, AccountType.SOLANA)


def test_modern_form_checksum_covers_type_byte():
    key = bytes(range(1, 33))
    account_id = encode_account_id(key, CHAIN_ID_SOLANA)
    relabelled = "C3_00" + account_id[5:]
    with pytest.raises(InvalidChecksum):
        decode_account_id(relabelled)


@pytest.mark.parametrize("key, account_type, chain_id", [
    (ALGORAND.public_key_of(ALGO_ADDRESS), AccountType.NATIVE, CHAIN_ID_ALGORAND),
    (bytes(12) + bytes(range(1, 21)), AccountType.EVM, CHAIN_ID_ETH),
])
def test_modern_form_of_legacy_types(key, account_type, chain_id):
    type_byte = bytes([int(account_type)])
    checksum = sha512_256(b"(C3.IO)" + type_byte + key)[-3:]
    modern_id = "C3_" + type_byte.hex().upper() + b32e(key + checksum)

    account = decode_account_id(modern_id)
    assert account == AccountId(key, account_type)
    # re-rendered in the legacy form
    assert account.to_text() == encode_account_id(key, chain_id)
    assert len(account.to_text()) == 59


def test_unknown_type_discriminant():
    account_id = encode_account_id(bytes(range(1, 33)), CHAIN_ID_SOLANA)
    with pytest.raises(InvalidTypeDiscriminant):
        decode_account_id("C3_7F" + account_id[5:])


def test_public_key_must_be_32_bytes():
    with pytest.raises(InvalidLength):
        AccountId(bytes(31), AccountType.NATIVE)


def test_user_address_round_trips():
    for address, cap in ((ALGO_ADDRESS, ALGORAND), (ETH_ADDRESS, ETHEREUM)):
        account_id = user_address_to_account_id(address)
        assert account_id_to_user_address(account_id) == address
        assert user_address_to_account_id(address, cap.chain_id) == account_id

    sol_address = SOLANA.address_of(bytes(range(1, 33)))
    sol_id = user_address_to_account_id(sol_address, CHAIN_ID_SOLANA)
    assert account_id_to_user_address(sol_id) == sol_address


def test_account_rendered_on_wrong_family():
    account_id = user_address_to_account_id(ETH_ADDRESS)
    with pytest.raises(UnsupportedChain):
        account_id_to_user_address(account_id, SOLANA)
