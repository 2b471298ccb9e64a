"""
Exceptions raised while assembling and signing transactions.
"""

from __future__ import annotations


class TxBuilderError(Exception):
    """Base class for all transaction builder errors."""

    pass


class ConfigurationError(TxBuilderError):
    """Invalid builder usage detected at registration or resolution time."""

    pass


class DuplicateChangeOutputError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("Only one change output is allowed.")


class BuilderFrozenError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("Builder has already been used; create a new one.")


class ChallengeError(ConfigurationError):
    """Unlocking parameters don't match the coin's declared challenges."""

    def __init__(self, message: str, name: str) -> None:
        super().__init__(message)
        self.name = name


class MissingParameterError(ChallengeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Missing challenge parameter: {name}", name)


class UnknownParameterError(ChallengeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown challenge parameter: {name}", name)


class MalformedParameterError(ChallengeError):
    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Malformed challenge parameter {name}: {reason}", name)
        self.reason = reason


class PolicyError(TxBuilderError):
    """Fee or change amount rejected by the builder's sanity policy."""

    pass


class OverpayError(PolicyError):
    def __init__(self) -> None:
        super().__init__("Fee is unreasonably high.")


class DustError(PolicyError):
    def __init__(self) -> None:
        super().__init__("Change output is below dust level.")


class InsufficientFundsError(PolicyError):
    def __init__(self) -> None:
        super().__init__("Insufficient funds.")


class SigningError(TxBuilderError):
    """Digest or signature could not be produced for an input."""

    pass


class DecodeError(TxBuilderError):
    """Malformed transaction or address encoding."""

    pass
