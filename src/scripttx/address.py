"""
Legacy base58check addresses.

Supports:
- P2PKH (version 0x00 mainnet, 0x6F testnet/regtest)
- P2SH (version 0x05 mainnet, 0xC4 testnet/regtest)
"""

from __future__ import annotations

import base58

from scripttx.errors import DecodeError
from scripttx.models import NetworkType
from scripttx.script import hash160, is_p2pkh, is_p2sh, p2pkh_script, p2sh_script

P2PKH_VERSIONS = {
    NetworkType.MAINNET: 0x00,
    NetworkType.TESTNET: 0x6F,
    NetworkType.REGTEST: 0x6F,
}

P2SH_VERSIONS = {
    NetworkType.MAINNET: 0x05,
    NetworkType.TESTNET: 0xC4,
    NetworkType.REGTEST: 0xC4,
}


def address_to_script(address: str, network: NetworkType = NetworkType.MAINNET) -> bytes:
    """Convert a legacy address to its locking script, checking it belongs to network."""
    try:
        decoded = base58.b58decode_check(address)
    except ValueError as e:
        raise DecodeError(f"Invalid address {address}: {e}") from e

    if len(decoded) != 21:
        raise DecodeError(f"Invalid address payload length: {len(decoded)}")

    version = decoded[0]
    payload = decoded[1:]

    if version == P2PKH_VERSIONS[network]:
        return p2pkh_script(payload)
    if version == P2SH_VERSIONS[network]:
        return p2sh_script(payload)

    raise DecodeError(f"Address version {version:#04x} is not valid for {network.value}")


def script_to_address(script: bytes, network: NetworkType = NetworkType.MAINNET) -> str:
    if is_p2pkh(script):
        payload = bytes([P2PKH_VERSIONS[network]]) + script[3:23]
    elif is_p2sh(script):
        payload = bytes([P2SH_VERSIONS[network]]) + script[2:22]
    else:
        raise DecodeError(f"Script has no address form: {script.hex()}")
    return base58.b58encode_check(payload).decode("ascii")


def pubkey_to_address(public_key: bytes, network: NetworkType = NetworkType.MAINNET) -> str:
    return script_to_address(p2pkh_script(hash160(public_key)), network)
