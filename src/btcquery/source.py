"""
DataSource: output lookup, UTXO listing and coin selection over the Assets API.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from btcquery.address import (
    address_to_script_pubkey_hex,
    get_address_type,
    is_op_return_script,
    script_pubkey_to_address,
)
from btcquery.cache import DataCache
from btcquery.errors import (
    AssetsApiError,
    ErrorCode,
    InsufficientUtxoError,
    UnconfirmedOutputError,
    UnspendableOutputError,
)
from btcquery.models import CollectResult, NetworkType, Output, TxAddressOutput, Utxo
from btcquery.service.base import AssetsService, BtcApiUtxoParams


def remove_0x(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


class DataSource:
    """
    Query layer between transaction builders and the Assets API.

    Each DataSource owns its own cache; UTXO lists are only cached when a
    caller passes an internal cache key, asset binding checks are always
    cached by outpoint.
    """

    def __init__(self, service: AssetsService, network: NetworkType = NetworkType.MAINNET):
        self.service = service
        self.network = network
        self.cache = DataCache()

    async def get_utxo(
        self, txid: str, vout: int, require_confirmed: bool = False
    ) -> Utxo | None:
        """
        Query a UTXO from the service.

        Raises:
            UnspendableOutputError: If the output is a data-carrier output
            UnconfirmedOutputError: If require_confirmed is set and the tx is unconfirmed
        """
        output = await self.get_output(txid, vout, require_confirmed)
        if output is not None and not isinstance(output, Utxo):
            raise UnspendableOutputError.with_comment(f"hash: {txid}, index: {vout}")
        return output

    async def get_output(
        self, txid: str, vout: int, require_confirmed: bool = False
    ) -> Output | Utxo | None:
        """
        Query an output from the service, spendable or not.

        Returns None if the transaction or the output index does not exist.
        """
        tx_id = remove_0x(txid)
        tx = await self.service.get_btc_transaction(tx_id)
        if tx is None:
            return None
        if require_confirmed and not tx.status.confirmed:
            raise UnconfirmedOutputError.with_comment(f"hash: {txid}, index: {vout}")
        if vout < 0 or vout >= len(tx.vout):
            return None

        out = tx.vout[vout]
        address = None
        if not is_op_return_script(out.scriptpubkey):
            address = out.scriptpubkey_address or script_pubkey_to_address(
                out.scriptpubkey, self.network
            )
        if not address:
            return Output(txid=tx_id, vout=vout, value=out.value, script_pk=out.scriptpubkey)

        return Utxo(
            txid=tx_id,
            vout=vout,
            value=out.value,
            script_pk=out.scriptpubkey,
            address=address,
            address_type=get_address_type(address),
        )

    async def is_transaction_confirmed(self, txid: str) -> bool:
        tx = await self.service.get_btc_transaction(remove_0x(txid))
        if tx is None:
            raise AssetsApiError.with_comment(
                f"transaction {txid}", code=ErrorCode.ASSETS_API_RESOURCE_NOT_FOUND
            )
        return tx.status.confirmed

    async def get_utxos(
        self,
        address: str,
        min_satoshi: int | None = None,
        only_confirmed: bool | None = None,
        no_cache: bool | None = None,
    ) -> list[Utxo]:
        """
        Get the UTXOs of an address, oldest first.

        Sorted by (block height, vout); unconfirmed UTXOs have no height
        and sort as height 0.
        """
        params = BtcApiUtxoParams(
            min_satoshi=min_satoshi, only_confirmed=only_confirmed, no_cache=no_cache
        )
        rows = await self.service.get_btc_utxos(address, params)

        script_pk = address_to_script_pubkey_hex(address, self.network)
        address_type = get_address_type(address)
        rows = sorted(rows, key=lambda row: (row.status.block_height or 0, row.vout))
        return [
            Utxo(
                txid=row.txid,
                vout=row.vout,
                value=row.value,
                script_pk=script_pk,
                address=address,
                address_type=address_type,
            )
            for row in rows
        ]

    async def collect_satoshi(
        self,
        address: str,
        target_amount: int,
        min_utxo_satoshi: int | None = None,
        allow_insufficient: bool = False,
        only_non_rgbpp_utxos: bool = False,
        only_confirmed_utxos: bool = False,
        no_assets_api_cache: bool = False,
        internal_cache_key: str | None = None,
        exclude_utxos: Iterable[tuple[str, int]] = (),
    ) -> CollectResult:
        """
        Collect UTXOs of an address until their value reaches target_amount.

        Greedy and order-driven: candidates are taken in get_utxos() order,
        skipping excluded outpoints and (optionally) outputs bound to
        RGB++ assets.

        Raises:
            InsufficientUtxoError: If the target is not reached and
                allow_insufficient is not set
        """
        utxos = await self.cache.optional_cache_utxos(
            internal_cache_key,
            lambda: self.get_utxos(
                address,
                min_satoshi=min_utxo_satoshi,
                only_confirmed=only_confirmed_utxos,
                no_cache=no_assets_api_cache,
            ),
        )
        excluded = {(remove_0x(txid), vout) for txid, vout in exclude_utxos}

        collected: list[Utxo] = []
        collected_amount = 0
        for utxo in utxos:
            if collected_amount >= target_amount:
                break
            if utxo.outpoint in excluded:
                logger.debug(f"Skipping excluded UTXO {utxo.txid}:{utxo.vout}")
                continue
            if only_non_rgbpp_utxos and await self.has_rgbpp_assets(utxo):
                logger.debug(f"Skipping RGB++ bound UTXO {utxo.txid}:{utxo.vout}")
                continue
            collected.append(utxo)
            collected_amount += utxo.value

        if not allow_insufficient and collected_amount < target_amount:
            raise InsufficientUtxoError(expected=target_amount, actual=collected_amount)

        logger.debug(
            f"Collected {len(collected)} UTXOs ({collected_amount} sats) "
            f"for target {target_amount} from {address}"
        )
        return CollectResult(
            utxos=collected,
            satoshi=collected_amount,
            exceed_satoshi=collected_amount - target_amount,
        )

    async def has_rgbpp_assets(self, utxo: Output) -> bool:
        """Check (cached per outpoint) whether an output carries RGB++ assets"""

        async def fetch() -> bool:
            cells = await self.service.get_rgbpp_assets_by_btc_utxo(utxo.txid, utxo.vout)
            return len(cells) > 0

        return await self.cache.optional_cache_has_rgbpp_assets(f"{utxo.txid}:{utxo.vout}", fetch)

    async def get_paymaster_output(self) -> TxAddressOutput | None:
        """Get the paymaster output, None if the service has no paymaster"""
        info = await self.service.get_rgbpp_paymaster_info()
        if info is None:
            return None
        return TxAddressOutput(address=info.btc_address, value=info.fee)

    async def close(self) -> None:
        await self.service.close()
