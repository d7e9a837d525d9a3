"""
btcquery - UTXO query and collection for RGB++ BTC transactions

Looks up outputs, lists UTXOs and collects satoshis through the BTC Assets API.
"""

__version__ = "0.1.0"

from btcquery.cache import DataCache, MemoCache
from btcquery.errors import (
    AssetsApiError,
    ErrorCode,
    InsufficientUtxoError,
    TxBuildError,
    UnconfirmedOutputError,
    UnspendableOutputError,
    UnsupportedAddressError,
)
from btcquery.models import (
    AddressType,
    CollectResult,
    NetworkType,
    Output,
    TxAddressOutput,
    Utxo,
)
from btcquery.service import AssetsService, BtcAssetsApi
from btcquery.source import DataSource

__all__ = [
    "AddressType",
    "AssetsApiError",
    "AssetsService",
    "BtcAssetsApi",
    "CollectResult",
    "DataCache",
    "DataSource",
    "ErrorCode",
    "InsufficientUtxoError",
    "MemoCache",
    "NetworkType",
    "Output",
    "TxAddressOutput",
    "TxBuildError",
    "UnconfirmedOutputError",
    "UnspendableOutputError",
    "UnsupportedAddressError",
    "Utxo",
]
