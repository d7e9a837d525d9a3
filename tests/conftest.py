"""
Test fixtures for btcquery tests.
"""

from __future__ import annotations

import pytest
from fakes import TESTNET_P2WPKH, FakeAssetsService, make_utxo

from btcquery.errors import AssetsApiError, ErrorCode
from btcquery.models import NetworkType
from btcquery.service.base import BtcApiUtxo
from btcquery.source import DataSource


@pytest.fixture
def address() -> str:
    return TESTNET_P2WPKH


@pytest.fixture
def service() -> FakeAssetsService:
    return FakeAssetsService()


@pytest.fixture
def source(service: FakeAssetsService) -> DataSource:
    return DataSource(service, NetworkType.TESTNET)


@pytest.fixture
def sample_utxos(service: FakeAssetsService, address: str) -> list[BtcApiUtxo]:
    """Three UTXOs in remote order: (100,0,5000), (100,1,3000), (90,0,2000)"""
    rows = [
        make_utxo("aa" * 32, 0, 5000, height=100),
        make_utxo("bb" * 32, 1, 3000, height=100),
        make_utxo("cc" * 32, 0, 2000, height=90),
    ]
    service.utxos[address] = rows
    return rows


@pytest.fixture
def unauthorized_error() -> AssetsApiError:
    return AssetsApiError(code=ErrorCode.ASSETS_API_UNAUTHORIZED, status_code=401)
