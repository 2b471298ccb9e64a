"""
Coin models: spendable outputs and the locking-script families they belong to.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scripttx.errors import ConfigurationError
from scripttx.script import hash160, is_p2pkh, p2pkh_pubkey_hash, p2pkh_script


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    REGTEST = "regtest"


class ChallengeType(str, Enum):
    """Value shape of an unlocking-script parameter slot."""

    SIG = "sig"
    DATASIG = "datasig"
    PUBKEY = "pubkey"
    RIPEMD160 = "ripemd160"
    SHA1 = "sha1"
    SHA256 = "sha256"
    BYTES = "bytes"
    INT = "int"
    BOOL = "bool"


class Challenge(BaseModel):
    """A named parameter slot the unlocking script must fill."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: ChallengeType
    # Only meaningful for BYTES slots; reserved during size estimation
    max_size: int | None = Field(default=None, ge=0, le=520)


class Outpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    txid: str = Field(..., pattern=r"^[0-9a-fA-F]{64}$")
    vout: int = Field(..., ge=0, le=0xFFFFFFFF)

    @field_validator("txid")
    @classmethod
    def normalize_txid(cls, v: str) -> str:
        return v.lower()

    def __str__(self) -> str:
        return f"{self.txid}:{self.vout}"


class Coin(BaseModel):
    """
    An unspent output plus the locking script needed to spend it.

    The locking script is used verbatim both as the scriptCode when signing
    and as the previous output's script. Height and confirmations are carried
    for the caller's benefit only.
    """

    model_config = ConfigDict(frozen=True)

    outpoint: Outpoint
    amount: int = Field(..., gt=0)
    locking_script: bytes = Field(..., min_length=1)
    height: int | None = None
    confirmations: int | None = None

    @property
    def challenges(self) -> tuple[Challenge, ...]:
        raise ConfigurationError(f"Coin {self.outpoint} has no unlocking template")


def check_unique_names(challenges: tuple[Challenge, ...]) -> tuple[Challenge, ...]:
    names = [c.name for c in challenges]
    if len(names) != len(set(names)):
        raise ValueError(f"Duplicate challenge names: {names}")
    return challenges


P2PKH_CHALLENGES: tuple[Challenge, ...] = (
    Challenge(name="sig", type=ChallengeType.SIG),
    Challenge(name="pubKey", type=ChallengeType.PUBKEY),
)


class P2PKHCoin(Coin):
    """Coin locked to a standard pay-to-public-key-hash script."""

    @field_validator("locking_script")
    @classmethod
    def validate_p2pkh(cls, v: bytes) -> bytes:
        if not is_p2pkh(v):
            raise ValueError(f"Locking script is not P2PKH: {v.hex()}")
        return v

    @property
    def challenges(self) -> tuple[Challenge, ...]:
        return P2PKH_CHALLENGES

    @property
    def pubkey_hash(self) -> bytes:
        return p2pkh_pubkey_hash(self.locking_script)

    @classmethod
    def from_public_key(
        cls, outpoint: Outpoint, amount: int, public_key: bytes, **meta: int | None
    ) -> P2PKHCoin:
        return cls(
            outpoint=outpoint,
            amount=amount,
            locking_script=p2pkh_script(hash160(public_key)),
            **meta,
        )


class ContractInstance(BaseModel):
    """Compiler output for one contract instance."""

    model_config = ConfigDict(frozen=True)

    locking_script: bytes = Field(..., min_length=1)
    challenges: tuple[Challenge, ...]
    name: str = ""

    @field_validator("challenges")
    @classmethod
    def validate_unique_names(cls, v: tuple[Challenge, ...]) -> tuple[Challenge, ...]:
        return check_unique_names(v)


class ContractCoin(Coin):
    """Coin locked to a compiled contract; carries its ordered challenge list."""

    contract_challenges: tuple[Challenge, ...]

    @field_validator("contract_challenges")
    @classmethod
    def validate_unique_names(cls, v: tuple[Challenge, ...]) -> tuple[Challenge, ...]:
        return check_unique_names(v)

    @property
    def challenges(self) -> tuple[Challenge, ...]:
        return self.contract_challenges

    @classmethod
    def from_instance(
        cls, outpoint: Outpoint, amount: int, instance: ContractInstance, **meta: int | None
    ) -> ContractCoin:
        return cls(
            outpoint=outpoint,
            amount=amount,
            locking_script=instance.locking_script,
            contract_challenges=instance.challenges,
            **meta,
        )
