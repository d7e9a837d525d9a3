"""
Assets API service implementations.

Available services:
- BtcAssetsApi: HTTP client for the RGB++ BTC Assets API
"""

from btcquery.service.api import BtcAssetsApi
from btcquery.service.base import (
    AssetsService,
    BtcApiTransaction,
    BtcApiTransactionStatus,
    BtcApiUtxo,
    BtcApiUtxoParams,
    BtcApiVout,
    RgbppCell,
    RgbppPaymasterInfo,
)

__all__ = [
    "AssetsService",
    "BtcApiTransaction",
    "BtcApiTransactionStatus",
    "BtcApiUtxo",
    "BtcApiUtxoParams",
    "BtcApiVout",
    "BtcAssetsApi",
    "RgbppCell",
    "RgbppPaymasterInfo",
]
