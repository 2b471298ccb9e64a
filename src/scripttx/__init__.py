"""
scripttx - Transaction builder and signing engine for script-based UTXO ledgers.

Builds P2PKH and compiled-contract spends with exact size-based fees.
"""

__version__ = "0.1.0"

from scripttx.builder import TxBuilder
from scripttx.codec import (
    Transaction,
    TxInput,
    TxOutput,
    deserialize_transaction,
    serialize_transaction,
    transaction_id,
    transaction_size,
)
from scripttx.config import BuilderSettings
from scripttx.constants import DEFAULT_FEE_RATE, MAX_FEE_MULTIPLIER, STANDARD_DUST_LIMIT
from scripttx.errors import (
    BuilderFrozenError,
    ChallengeError,
    ConfigurationError,
    DecodeError,
    DuplicateChangeOutputError,
    DustError,
    InsufficientFundsError,
    MalformedParameterError,
    MissingParameterError,
    OverpayError,
    PolicyError,
    SigningError,
    TxBuilderError,
    UnknownParameterError,
)
from scripttx.models import (
    Challenge,
    ChallengeType,
    Coin,
    ContractCoin,
    ContractInstance,
    NetworkType,
    Outpoint,
    P2PKHCoin,
)
from scripttx.sighash import SigHash, SigningContext
from scripttx.signers import CallbackSigner, InputSigner, P2PKHSigner, sign_with

__all__ = [
    "BuilderFrozenError",
    "BuilderSettings",
    "CallbackSigner",
    "Challenge",
    "ChallengeError",
    "ChallengeType",
    "Coin",
    "ConfigurationError",
    "ContractCoin",
    "ContractInstance",
    "DEFAULT_FEE_RATE",
    "DecodeError",
    "DuplicateChangeOutputError",
    "DustError",
    "InputSigner",
    "InsufficientFundsError",
    "MAX_FEE_MULTIPLIER",
    "MalformedParameterError",
    "MissingParameterError",
    "NetworkType",
    "Outpoint",
    "OverpayError",
    "P2PKHCoin",
    "P2PKHSigner",
    "PolicyError",
    "STANDARD_DUST_LIMIT",
    "SigHash",
    "SigningContext",
    "SigningError",
    "Transaction",
    "TxBuilder",
    "TxBuilderError",
    "TxInput",
    "TxOutput",
    "UnknownParameterError",
    "deserialize_transaction",
    "serialize_transaction",
    "sign_with",
    "transaction_id",
    "transaction_size",
]
