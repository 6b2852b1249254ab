"""
C3 Core Package
===============
Client-side trust layer of the C3 cross-chain venue: proves ownership of a
venue account from a key on any supported chain and authorizes the
requests that account makes.

Provides:
- Schema-driven packed binary codec (``c3_core.codec``)
- Per-chain address and signature capabilities (``c3_core.chains``)
- Venue-wide account ids (``c3_core.account``)
- Signed envelopes and operation payloads (``c3_core.envelope``, ``c3_core.operations``)
- The async signing boundary (``c3_core.signer``)
"""

__version__ = "0.1.0"
