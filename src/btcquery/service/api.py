"""
BTC Assets API HTTP client.

Implements AssetsService on top of the RGB++ BTC Assets API REST endpoints.
Requests are authorized with a bearer token, which is either supplied up
front or generated on first use from an app name and a domain.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from btcquery.errors import ERROR_MESSAGES, AssetsApiError, ErrorCode
from btcquery.service.base import (
    AssetsService,
    BtcApiBalance,
    BtcApiBlockchainInfo,
    BtcApiTransaction,
    BtcApiUtxo,
    BtcApiUtxoParams,
    RgbppCell,
    RgbppPaymasterInfo,
)

T = TypeVar("T")

DEFAULT_TIMEOUT = 30.0

DOMAIN_PATTERN = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))*\.[A-Za-z]{2,63}$"
)


def is_domain(domain: str) -> bool:
    return bool(DOMAIN_PATTERN.match(domain))


class BtcAssetsApi(AssetsService):
    """
    HTTP client for the BTC Assets API.

    Either pass a token, or an app name and domain so a token can be
    generated via /token/generate when the first authorized request is made.
    """

    def __init__(
        self,
        url: str,
        app: str | None = None,
        domain: str | None = None,
        origin: str | None = None,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self.app = app
        self.domain = domain
        self.origin = origin
        self._token = token
        self._token_lock = asyncio.Lock()

        if self.domain and not is_domain(self.domain) and self.domain != "localhost":
            raise AssetsApiError(
                f"{ERROR_MESSAGES[ErrorCode.ASSETS_API_INVALID_PARAM]}: domain",
                code=ErrorCode.ASSETS_API_INVALID_PARAM,
            )

        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_token(cls, url: str, token: str, origin: str | None = None, **kwargs) -> BtcAssetsApi:
        return cls(url, token=token, origin=origin, **kwargs)

    @property
    def has_token(self) -> bool:
        return self._token is not None

    async def init(self, force: bool = False) -> None:
        """Generate a token unless one is already set (or force is given)"""
        async with self._token_lock:
            if self._token and not force:
                return
            data = await self.generate_token()
            self._token = data["token"]
            logger.debug(f"Generated Assets API token for app {self.app}")

    async def generate_token(self) -> dict[str, Any]:
        if not self.app or not self.domain:
            raise AssetsApiError(
                f"{ERROR_MESSAGES[ErrorCode.ASSETS_API_INVALID_PARAM]}: app, domain",
                code=ErrorCode.ASSETS_API_INVALID_PARAM,
            )
        data = await self.request(
            "POST",
            "/token/generate",
            json={"app": self.app, "domain": self.domain},
            require_token=False,
        )
        if not isinstance(data, dict) or not isinstance(data.get("token"), str):
            raise AssetsApiError(code=ErrorCode.ASSETS_API_RESPONSE_DECODE_ERROR, status_code=200)
        return data

    async def request(
        self,
        method: str,
        route: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        require_token: bool = True,
    ) -> Any:
        """
        Make an API call and return the decoded JSON body.

        Raises:
            AssetsApiError: On non-success responses or undecodable bodies
            httpx.HTTPError: On connection/timeout errors
        """
        if require_token and not self._token and not (self.app and self.domain):
            raise AssetsApiError(
                f"{ERROR_MESSAGES[ErrorCode.ASSETS_API_INVALID_PARAM]}: app, domain",
                code=ErrorCode.ASSETS_API_INVALID_PARAM,
            )
        if require_token and not self._token:
            await self.init()

        headers: dict[str, str] = {}
        if self.origin:
            headers["origin"] = self.origin
        if require_token and self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = await self.client.request(
                method, f"{self.url}{route}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"Assets API call failed: {method} {route} - {e}")
            raise

        return self._decode_response(route, response)

    def _decode_response(self, route: str, response: httpx.Response) -> Any:
        status = response.status_code

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and "ok" in body:
            ok = bool(body["ok"])
        else:
            ok = response.is_success

        if status == 401:
            raise AssetsApiError(code=ErrorCode.ASSETS_API_UNAUTHORIZED, status_code=status)
        if status == 404:
            raise AssetsApiError.with_comment(
                route, code=ErrorCode.ASSETS_API_RESOURCE_NOT_FOUND, status_code=status
            )

        if body is None:
            if status == 200:
                raise AssetsApiError(
                    code=ErrorCode.ASSETS_API_RESPONSE_DECODE_ERROR, status_code=status
                )
            text = response.text
            raise AssetsApiError(
                f"{ERROR_MESSAGES[ErrorCode.ASSETS_API_RESPONSE_ERROR]}"
                f"({status}){': ' + text if text else ''}",
                status_code=status,
            )

        if not ok:
            message = None
            if isinstance(body, dict):
                inner = body.get("error")
                if isinstance(inner, dict) and isinstance(inner.get("error"), dict):
                    inner = inner["error"]
                    message = f"({inner.get('code')}) {inner.get('message')}"
                message = body.get("message") or message
            raise AssetsApiError.with_comment(message or str(body), status_code=status)

        return body

    def _parse(self, record_type: type[T] | Any, data: Any) -> T:
        try:
            return TypeAdapter(record_type).validate_python(data)
        except ValidationError as e:
            logger.error(f"Unexpected Assets API response shape: {e}")
            raise AssetsApiError.with_comment(
                str(e), code=ErrorCode.ASSETS_API_RESPONSE_DECODE_ERROR
            ) from e

    async def get_blockchain_info(self) -> BtcApiBlockchainInfo:
        data = await self.request("GET", "/bitcoin/v1/info")
        return self._parse(BtcApiBlockchainInfo, data)

    async def get_btc_balance(self, address: str, min_satoshi: int | None = None) -> BtcApiBalance:
        params = {"min_satoshi": min_satoshi} if min_satoshi is not None else None
        data = await self.request("GET", f"/bitcoin/v1/address/{address}/balance", params=params)
        return self._parse(BtcApiBalance, data)

    async def get_btc_utxos(
        self, address: str, params: BtcApiUtxoParams | None = None
    ) -> list[BtcApiUtxo]:
        data = await self.request(
            "GET",
            f"/bitcoin/v1/address/{address}/unspent",
            params=params.to_query() if params else None,
        )
        return self._parse(list[BtcApiUtxo], data)

    async def get_btc_transaction(self, txid: str) -> BtcApiTransaction | None:
        try:
            data = await self.request("GET", f"/bitcoin/v1/transaction/{txid}")
        except AssetsApiError as e:
            if e.is_not_found:
                return None
            raise
        return self._parse(BtcApiTransaction, data)

    async def get_rgbpp_assets_by_btc_utxo(self, txid: str, vout: int) -> list[RgbppCell]:
        data = await self.request("GET", f"/rgbpp/v1/assets/{txid}/{vout}")
        return self._parse(list[RgbppCell], data)

    async def get_rgbpp_paymaster_info(self) -> RgbppPaymasterInfo | None:
        try:
            data = await self.request("GET", "/rgbpp/v1/paymaster/info")
        except AssetsApiError as e:
            if e.is_not_found:
                return None
            raise
        return self._parse(RgbppPaymasterInfo, data)

    async def close(self) -> None:
        await self.client.aclose()
