"""
Base Assets API service interface and response records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

HEX_PATTERN = r"^(?:[0-9a-fA-F]{2})*$"


class ApiRecord(BaseModel):
    """Response records keep unknown fields so newer API versions still decode"""

    model_config = ConfigDict(extra="allow")


class BtcApiTransactionStatus(ApiRecord):
    confirmed: bool
    block_height: int | None = None
    block_hash: str | None = None
    block_time: int | None = None


class BtcApiVout(ApiRecord):
    scriptpubkey: str = Field(..., pattern=HEX_PATTERN)
    value: int = Field(..., ge=0)
    scriptpubkey_asm: str | None = None
    scriptpubkey_type: str | None = None
    scriptpubkey_address: str | None = None


class BtcApiVinPrevout(ApiRecord):
    scriptpubkey: str = Field(..., pattern=HEX_PATTERN)
    value: int
    scriptpubkey_address: str | None = None


class BtcApiVin(ApiRecord):
    txid: str
    vout: int
    prevout: BtcApiVinPrevout | None = None
    is_coinbase: bool = False
    sequence: int | None = None


class BtcApiTransaction(ApiRecord):
    txid: str
    vin: list[BtcApiVin] = Field(default_factory=list)
    vout: list[BtcApiVout]
    status: BtcApiTransactionStatus
    version: int | None = None
    locktime: int | None = None
    weight: int | None = None
    size: int | None = None
    fee: int | None = None


class BtcApiUtxo(ApiRecord):
    txid: str
    vout: int = Field(..., ge=0)
    value: int = Field(..., ge=0)
    status: BtcApiTransactionStatus


class BtcApiUtxoParams(BaseModel):
    min_satoshi: int | None = None
    only_confirmed: bool | None = None
    no_cache: bool | None = None

    def to_query(self) -> dict[str, Any]:
        return {
            key: str(value).lower() if isinstance(value, bool) else value
            for key, value in self.model_dump(exclude_none=True).items()
        }


class BtcApiBalance(ApiRecord):
    address: str
    satoshi: int
    pending_satoshi: int
    dust_satoshi: int
    utxo_count: int


class BtcApiBlockchainInfo(ApiRecord):
    chain: str
    blocks: int
    headers: int | None = None
    bestblockhash: str | None = None
    difficulty: float | None = None
    mediantime: int | None = None


class RgbppCell(ApiRecord):
    """A CKB cell bound to a BTC UTXO (an RGB++ asset binding)"""

    out_point: dict[str, Any] | None = None
    output: dict[str, Any] | None = None
    data: str | None = None


class RgbppPaymasterInfo(ApiRecord):
    btc_address: str
    fee: int = Field(..., ge=0)


class AssetsService(ABC):
    """
    Abstract Assets API interface.

    Absence of a transaction or paymaster is a None result, every other
    failure is raised as AssetsApiError (or the transport error).
    """

    @abstractmethod
    async def get_btc_transaction(self, txid: str) -> BtcApiTransaction | None:
        """Get a transaction by txid"""

    @abstractmethod
    async def get_btc_utxos(
        self, address: str, params: BtcApiUtxoParams | None = None
    ) -> list[BtcApiUtxo]:
        """Get the unspent outputs of an address"""

    @abstractmethod
    async def get_rgbpp_assets_by_btc_utxo(self, txid: str, vout: int) -> list[RgbppCell]:
        """Get the RGB++ asset cells bound to an output, empty if unbound"""

    @abstractmethod
    async def get_rgbpp_paymaster_info(self) -> RgbppPaymasterInfo | None:
        """Get the paymaster address and fee, None if no paymaster is configured"""

    async def close(self) -> None:
        """Close service connection"""
        pass
