# c3_core/chains/__init__.py
"""
Chain ids, the closed set of chain capabilities, and the registry over them.

Chain ids follow the Wormhole numbering used by the bridge. The registry is
built once and never mutated; ``load_chain_registry`` picks the mainnet or
testnet chain set.

The ``*_by_address`` helpers are UNSAFE: they guess the chain from the shape
of the address alone, first match wins in ``ADDRESS_PRIORITY`` order. Code
that knows the chain must call the concrete capability instead.
"""

from __future__ import annotations
import os
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from ..errors import UnsupportedChain
from ..logger import get_logger
from ..utils import BytesOrB64
from .base import PUBLIC_KEY_LENGTH, AccountType, ChainCapability, SignMethod, UserAddress
from .evm import EvmSecp256k1
from .native import NativeEd25519
from .solana import SolanaEd25519

log = get_logger("C3.Chains")

CHAIN_ID_SOLANA = 1
CHAIN_ID_ETH = 2
CHAIN_ID_BSC = 4
CHAIN_ID_AVAX = 6
CHAIN_ID_ALGORAND = 8
CHAIN_ID_ARBITRUM = 23
CHAIN_ID_SEPOLIA = 10002
CHAIN_ID_ARBITRUM_SEPOLIA = 10003

ALGORAND = NativeEd25519(CHAIN_ID_ALGORAND, "Algorand")
ETHEREUM = EvmSecp256k1(CHAIN_ID_ETH, "Ethereum")
BSC = EvmSecp256k1(CHAIN_ID_BSC, "BSC")
AVALANCHE = EvmSecp256k1(CHAIN_ID_AVAX, "Avalanche")
ARBITRUM = EvmSecp256k1(CHAIN_ID_ARBITRUM, "Arbitrum")
SEPOLIA = EvmSecp256k1(CHAIN_ID_SEPOLIA, "Sepolia")
ARBITRUM_SEPOLIA = EvmSecp256k1(CHAIN_ID_ARBITRUM_SEPOLIA, "ArbitrumSepolia")
SOLANA = SolanaEd25519(CHAIN_ID_SOLANA, "Solana")

# first structural match wins
ADDRESS_PRIORITY = (CHAIN_ID_ALGORAND, CHAIN_ID_ETH, CHAIN_ID_AVAX, CHAIN_ID_BSC,
                    CHAIN_ID_ARBITRUM, CHAIN_ID_SEPOLIA, CHAIN_ID_ARBITRUM_SEPOLIA,
                    CHAIN_ID_SOLANA)

MAINNET_CHAINS = (ALGORAND, ETHEREUM, AVALANCHE, BSC, ARBITRUM, SOLANA)
TESTNET_CHAINS = MAINNET_CHAINS + (SEPOLIA, ARBITRUM_SEPOLIA)


class ChainRegistry:
    """Immutable chain id -> capability lookup."""

    def __init__(self, capabilities: Iterable[ChainCapability]):
        table = {}
        for cap in capabilities:
            if cap.chain_id in table:
                raise ValueError(f"duplicate chain id {cap.chain_id}")
            table[cap.chain_id] = cap
        self._by_id: Mapping[int, ChainCapability] = MappingProxyType(table)
        rank = {cid: i for i, cid in enumerate(ADDRESS_PRIORITY)}
        self._ordered: Tuple[ChainCapability, ...] = tuple(
            sorted(table.values(), key=lambda c: rank.get(c.chain_id, len(rank)))
        )

    def __contains__(self, chain_id: int) -> bool:
        return chain_id in self._by_id

    def __iter__(self):
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._by_id)

    @property
    def chain_ids(self) -> Tuple[int, ...]:
        return tuple(c.chain_id for c in self._ordered)

    def get(self, chain_id: int) -> ChainCapability:
        cap = self._by_id.get(chain_id)
        if cap is None:
            raise UnsupportedChain(f"Unsupported chain id: {chain_id}", {"chain_id": chain_id})
        return cap

    def is_chain_id_supported(self, chain_id) -> bool:
        return isinstance(chain_id, int) and not isinstance(chain_id, bool) and chain_id in self._by_id

    def to_supported_chain_id(self, chain_id) -> int:
        """Parse ``chain_id`` (int or decimal text) and check it is registered."""
        try:
            value = int(chain_id)
        except (TypeError, ValueError) as ex:
            raise UnsupportedChain(f"Invalid chain id: {chain_id!r}") from ex
        if not self.is_chain_id_supported(value):
            raise UnsupportedChain(f"Unsupported chain id: {chain_id!r}", {"chain_id": value})
        return value

    # ------------------------------------------------------------------
    # UNSAFE: chain guessed from the address shape
    # ------------------------------------------------------------------
    def find_chain_by_address(self, address: UserAddress) -> ChainCapability:
        for cap in self._ordered:
            if cap.validate_address(address):
                return cap
        raise UnsupportedChain(f"No chain accepts address {address!r}")

    def is_valid_address(self, address: UserAddress) -> bool:
        return any(cap.validate_address(address) for cap in self._ordered)

    def public_key_by_address(self, address: UserAddress) -> bytes:
        return self.find_chain_by_address(address).public_key_of(address)

    def signing_method_by_address(self, address: UserAddress) -> SignMethod:
        return self.find_chain_by_address(address).signing_method()

    def domain_prefix_by_address(self, address: UserAddress, payload_length: int) -> bytes:
        return self.find_chain_by_address(address).domain_prefix(payload_length)

    def verify_signature_by_address(self, signature: BytesOrB64, message: BytesOrB64, address: UserAddress) -> bool:
        try:
            cap = self.find_chain_by_address(address)
        except UnsupportedChain:
            log.debug(f"[VERIFY] no chain for address {address!r}")
            return False
        return cap.verify_signature(signature, message, address)


_NETWORKS = {
    "mainnet": MAINNET_CHAINS,
    "testnet": TESTNET_CHAINS,
}

DEFAULT_REGISTRY = ChainRegistry(TESTNET_CHAINS)


def load_chain_registry(config: Optional[dict] = None) -> ChainRegistry:
    """
    Build the registry for one network.

    config["network"] wins over env C3_NETWORK; both default to "mainnet".
    """
    config = config or {}
    network = (config.get("network") or os.getenv("C3_NETWORK", "mainnet")).lower()
    if network not in _NETWORKS:
        raise ValueError(f"Unknown network: {network}")
    registry = ChainRegistry(_NETWORKS[network])
    log.info(f"[CHAINS] {network} registry: {', '.join(str(c) for c in registry)}")
    return registry


def get_chain(chain_id: int) -> ChainCapability:
    return DEFAULT_REGISTRY.get(chain_id)


def find_chain_by_address(address: UserAddress) -> ChainCapability:
    return DEFAULT_REGISTRY.find_chain_by_address(address)


def is_valid_address(address: UserAddress) -> bool:
    return DEFAULT_REGISTRY.is_valid_address(address)


def public_key_by_address(address: UserAddress) -> bytes:
    return DEFAULT_REGISTRY.public_key_by_address(address)


def signing_method_by_address(address: UserAddress) -> SignMethod:
    return DEFAULT_REGISTRY.signing_method_by_address(address)


def domain_prefix_by_address(address: UserAddress, payload_length: int) -> bytes:
    return DEFAULT_REGISTRY.domain_prefix_by_address(address, payload_length)


def verify_signature_by_address(signature: BytesOrB64, message: BytesOrB64, address: UserAddress) -> bool:
    return DEFAULT_REGISTRY.verify_signature_by_address(signature, message, address)


def is_chain_id_supported(chain_id) -> bool:
    return DEFAULT_REGISTRY.is_chain_id_supported(chain_id)


def to_supported_chain_id(chain_id) -> int:
    return DEFAULT_REGISTRY.to_supported_chain_id(chain_id)


__all__ = [
    "PUBLIC_KEY_LENGTH", "AccountType", "ChainCapability", "SignMethod", "UserAddress",
    "NativeEd25519", "EvmSecp256k1", "SolanaEd25519",
    "CHAIN_ID_SOLANA", "CHAIN_ID_ETH", "CHAIN_ID_BSC", "CHAIN_ID_AVAX", "CHAIN_ID_ALGORAND",
    "CHAIN_ID_ARBITRUM", "CHAIN_ID_SEPOLIA", "CHAIN_ID_ARBITRUM_SEPOLIA",
    "ALGORAND", "ETHEREUM", "BSC", "AVALANCHE", "ARBITRUM", "SEPOLIA", "ARBITRUM_SEPOLIA", "SOLANA",
    "ADDRESS_PRIORITY", "MAINNET_CHAINS", "TESTNET_CHAINS",
    "ChainRegistry", "DEFAULT_REGISTRY", "load_chain_registry", "get_chain",
    "find_chain_by_address", "is_valid_address", "public_key_by_address",
    "signing_method_by_address", "domain_prefix_by_address", "verify_signature_by_address",
    "is_chain_id_supported", "to_supported_chain_id",
]
