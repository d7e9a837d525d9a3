"""
Output, UTXO and coin selection data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"


class AddressType(str, Enum):
    P2PKH = "p2pkh"
    P2WPKH = "p2wpkh"
    P2TR = "p2tr"
    P2SH_P2WPKH = "p2sh_p2wpkh"
    P2WSH = "p2wsh"
    P2SH = "p2sh"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Output:
    """Any transaction output, spendable or not"""

    txid: str
    vout: int
    value: int
    script_pk: str

    @property
    def outpoint(self) -> tuple[str, int]:
        return (self.txid, self.vout)


@dataclass(frozen=True)
class Utxo(Output):
    """
    Spendable output with address information.

    Data-carrier (OP_RETURN) outputs are never represented as a Utxo,
    they stay a plain Output.
    """

    address: str = ""
    address_type: AddressType = AddressType.UNKNOWN


@dataclass(frozen=True)
class TxAddressOutput:
    address: str
    value: int


@dataclass
class CollectResult:
    """Result of coin selection"""

    utxos: list[Utxo] = field(default_factory=list)
    satoshi: int = 0
    exceed_satoshi: int = 0
