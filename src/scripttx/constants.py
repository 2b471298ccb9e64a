"""
Ledger and builder policy constants.

Fee and dust policy:
- DEFAULT_FEE_RATE: one unit of fee per serialized byte
- MAX_FEE_MULTIPLIER: a fee above this multiple of the minimum relay fee is
  treated as a mistake unless overpaying is explicitly allowed
- STANDARD_DUST_LIMIT: smallest change output the builder will produce
"""

from __future__ import annotations

# Fee policy (units per byte)
DEFAULT_FEE_RATE = 1

# Overpay guard: fee > MAX_FEE_MULTIPLIER * fee_rate * size is rejected
MAX_FEE_MULTIPLIER = 10

# Standard P2PKH dust limit
STANDARD_DUST_LIMIT = 546  # satoshis

# Transaction defaults
DEFAULT_TX_VERSION = 2
DEFAULT_LOCKTIME = 0
DEFAULT_SEQUENCE = 0xFFFFFFFF

# Signature sizes. Signatures are ground until both R and S encode to
# 32 bytes, so the DER encoding is always 70 bytes.
DER_SIGNATURE_SIZE = 70
TX_SIGNATURE_SIZE = DER_SIGNATURE_SIZE + 1  # DER + sighash byte
DATA_SIGNATURE_SIZE = DER_SIGNATURE_SIZE

COMPRESSED_PUBKEY_SIZE = 33
MAX_SCRIPT_ELEMENT_SIZE = 520
MAX_SCRIPT_NUM_SIZE = 4
