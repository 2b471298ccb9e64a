"""
Transaction builder.

The fee depends on the final size, the final size depends on the signatures,
and the signatures depend on the final outputs (including change, which
depends on the fee). The builder breaks the cycle in two phases:

1. Estimate: serialize a skeleton with change at zero and placeholder
   unlocking scripts whose every slot is as long as its real value can be.
2. Finalize: fix the fee and change, then run each input's signer in
   registration order against the now-final outputs.

Signatures are produced at a fixed length, so for fixed-length challenge
slots the final size equals the estimate exactly.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from scripttx.address import address_to_script
from scripttx.codec import Transaction, TxInput, TxOutput
from scripttx.config import BuilderSettings, get_settings
from scripttx.constants import DEFAULT_SEQUENCE
from scripttx.errors import (
    BuilderFrozenError,
    ConfigurationError,
    DuplicateChangeOutputError,
    DustError,
    InsufficientFundsError,
    OverpayError,
    SigningError,
)
from scripttx.models import Coin, NetworkType
from scripttx.resolver import placeholder_unlocking_script
from scripttx.sighash import SigningContext
from scripttx.signers import CallbackSigner, InputSigner


@dataclass
class PendingInput:
    """A registered coin and the signer that will unlock it."""

    coin: Coin
    signer: InputSigner
    sequence: int = DEFAULT_SEQUENCE


@dataclass
class PendingOutput:
    """A registered output. amount is None for the change output."""

    script: bytes
    amount: int | None = None

    @property
    def is_change(self) -> bool:
        return self.amount is None


@dataclass
class FeeResolution:
    """Outcome of the fee and change computation."""

    estimated_size: int
    fee: int
    total_in: int
    total_out: int
    change: int | None


class TxBuilder:
    """
    Assembles and signs a transaction from registered coins and outputs.

    Registration order is preserved: it is part of what every signature
    commits to. A builder can be built once; any later use raises
    BuilderFrozenError, whether or not the build succeeded.
    """

    def __init__(
        self,
        network: NetworkType | str | None = None,
        settings: BuilderSettings | None = None,
    ):
        self.settings = settings or get_settings()
        self.network = NetworkType(network) if network is not None else self.settings.network
        self.version = self.settings.tx_version
        self.locktime = self.settings.locktime
        self.inputs: list[PendingInput] = []
        self.outputs: list[PendingOutput] = []
        self._frozen = False

    def _check_not_frozen(self) -> None:
        if self._frozen:
            raise BuilderFrozenError()

    def add_input(
        self,
        coin: Coin,
        signer: InputSigner | Callable[[SigningContext], bytes],
        sequence: int = DEFAULT_SEQUENCE,
    ) -> TxBuilder:
        """
        Register a coin to spend.

        Args:
            coin: The coin being spent
            signer: InputSigner, or a function of the SigningContext returning
                the unlocking script
            sequence: Input sequence number

        Returns:
            The builder, for chaining
        """
        self._check_not_frozen()
        if not 0 <= sequence <= 0xFFFFFFFF:
            raise ConfigurationError(f"Invalid sequence number: {sequence}")
        if any(inp.coin.outpoint == coin.outpoint for inp in self.inputs):
            raise ConfigurationError(f"Coin {coin.outpoint} is already an input")
        # Raises ConfigurationError for coins without an unlocking template
        challenges = coin.challenges
        if not isinstance(signer, InputSigner):
            signer = CallbackSigner(signer)

        self.inputs.append(PendingInput(coin=coin, signer=signer, sequence=sequence))
        logger.debug(
            f"Added input {len(self.inputs) - 1}: {coin.outpoint} "
            f"({coin.amount} sats, {len(challenges)} challenges)"
        )
        return self

    def add_output(self, destination: bytes | str, amount: int | None = None) -> TxBuilder:
        """
        Register an output paying amount to destination (script or address).

        Omitting amount registers the change output, which receives whatever
        is left after explicit outputs and the fee. Only one is allowed.
        """
        self._check_not_frozen()

        if isinstance(destination, str):
            script = address_to_script(destination, self.network)
        else:
            script = bytes(destination)

        if amount is None:
            if any(out.is_change for out in self.outputs):
                raise DuplicateChangeOutputError()
            logger.debug(f"Added change output {len(self.outputs)}")
        else:
            if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
                raise ConfigurationError(f"Invalid output amount: {amount!r}")
            logger.debug(f"Added output {len(self.outputs)}: {amount} sats")

        self.outputs.append(PendingOutput(script=script, amount=amount))
        return self

    def with_locktime(self, locktime: int) -> TxBuilder:
        self._check_not_frozen()
        if not 0 <= locktime <= 0xFFFFFFFF:
            raise ConfigurationError(f"Invalid locktime: {locktime}")
        self.locktime = locktime
        return self

    @property
    def has_change(self) -> bool:
        return any(out.is_change for out in self.outputs)

    def _transaction(self, change: int, script_sigs: list[bytes]) -> Transaction:
        return Transaction(
            inputs=[
                TxInput(
                    txid=inp.coin.outpoint.txid,
                    vout=inp.coin.outpoint.vout,
                    script_sig=script_sig,
                    sequence=inp.sequence,
                )
                for inp, script_sig in zip(self.inputs, script_sigs, strict=True)
            ],
            outputs=[
                TxOutput(value=change if out.amount is None else out.amount, script=out.script)
                for out in self.outputs
            ],
            version=self.version,
            locktime=self.locktime,
            network=self.network,
        )

    def estimate_size(self) -> int:
        """Size of the transaction with placeholder unlocking scripts and zero change."""
        skeleton = self._transaction(
            change=0,
            script_sigs=[placeholder_unlocking_script(inp.coin) for inp in self.inputs],
        )
        return skeleton.size()

    def resolve_fees(self, estimated_size: int, allow_overpay: bool = False) -> FeeResolution:
        """
        Compute fee and change and apply the sanity policies.

        Raises:
            InsufficientFundsError: Inputs don't cover the outputs and fee
            DustError: The change output would be below the dust threshold
            OverpayError: Without change, the implicit fee is unreasonably
                high and allow_overpay is False
        """
        settings = self.settings
        fee = estimated_size * settings.fee_rate
        total_in = sum(inp.coin.amount for inp in self.inputs)
        total_out = sum(out.amount for out in self.outputs if out.amount is not None)

        if total_out > total_in:
            logger.warning(f"Outputs ({total_out}) exceed inputs ({total_in})")
            raise InsufficientFundsError()

        change: int | None = None
        if self.has_change:
            change = total_in - total_out - fee
            if change < settings.dust_threshold:
                logger.warning(f"Change {change} is below dust threshold {settings.dust_threshold}")
                raise DustError()
        else:
            surplus = total_in - total_out
            if surplus < fee:
                logger.warning(f"Surplus {surplus} doesn't cover fee {fee}")
                raise InsufficientFundsError()
            if surplus > settings.max_fee_multiplier * fee:
                if not allow_overpay:
                    logger.warning(
                        f"Fee {surplus} exceeds {settings.max_fee_multiplier}x the "
                        f"minimum fee {fee} for {estimated_size} bytes"
                    )
                    raise OverpayError()
                logger.info(f"Overpaying by request: fee {surplus} for {estimated_size} bytes")
            fee = surplus

        return FeeResolution(
            estimated_size=estimated_size,
            fee=fee,
            total_in=total_in,
            total_out=total_out,
            change=change,
        )

    def build(self, allow_overpay: bool = False) -> Transaction:
        """
        Build and sign the transaction.

        Args:
            allow_overpay: Skip the unreasonably-high-fee check

        Returns:
            The final signed transaction
        """
        self._check_not_frozen()
        self._frozen = True

        if not self.inputs:
            raise ConfigurationError("Transaction has no inputs")
        if not self.outputs:
            raise ConfigurationError("Transaction has no outputs")

        # Phase 1: estimate
        estimated_size = self.estimate_size()
        resolution = self.resolve_fees(estimated_size, allow_overpay)
        logger.debug(
            f"Estimated size {estimated_size} bytes, fee {resolution.fee}, "
            f"change {resolution.change}"
        )

        # Phase 2: finalize against fixed outputs
        tx = self._transaction(
            change=resolution.change or 0,
            script_sigs=[b""] * len(self.inputs),
        )
        for index, inp in enumerate(self.inputs):
            ctx = SigningContext(tx, index, inp.coin)
            script_sig = inp.signer.unlock(ctx)
            if not isinstance(script_sig, bytes):
                raise SigningError(
                    f"Signer for input {index} returned {type(script_sig).__name__}, not bytes"
                )
            tx.inputs[index].script_sig = script_sig
            logger.debug(f"Input {index}: unlocking script {len(script_sig)} bytes")

        final_size = tx.size()
        if final_size > estimated_size:
            raise SigningError(
                f"Final size {final_size} exceeds estimated size {estimated_size}; "
                "an unlocking parameter is longer than its slot allows for"
            )
        if final_size < estimated_size:
            logger.debug(
                f"Final size {final_size} is {estimated_size - final_size} bytes "
                "below the estimate; fee rate is slightly above policy"
            )

        logger.info(f"Built transaction {tx.id()}: {final_size} bytes, fee {resolution.fee}")
        return tx
