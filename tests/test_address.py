"""
Tests for address decoding, address type detection and script helpers.
"""

import pytest

from btcquery.address import (
    BECH32_CHARSET,
    BECH32M_CONST,
    address_to_script_pubkey,
    address_to_script_pubkey_hex,
    base58check_decode,
    bech32_create_checksum,
    convertbits,
    decode_segwit_address,
    encode_segwit_address,
    get_address_type,
    is_op_return_script,
    script_pubkey_to_address,
)
from btcquery.errors import ErrorCode, UnsupportedAddressError
from btcquery.models import AddressType, NetworkType

# Genesis block coinbase address
GENESIS_P2PKH = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"
GENESIS_HASH160 = "62e907b15cbf27d5425399ebf6f0fb50ebb88f18"
P2SH_ADDRESS = "3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy"


class TestAddressType:
    def test_p2pkh(self):
        assert get_address_type(GENESIS_P2PKH) == AddressType.P2PKH

    def test_p2sh_reported_as_p2sh_p2wpkh(self):
        assert get_address_type(P2SH_ADDRESS) == AddressType.P2SH_P2WPKH

    def test_p2wpkh(self):
        for hrp in ("bc", "tb", "bcrt"):
            assert get_address_type(encode_segwit_address(hrp, 0, bytes(20))) == AddressType.P2WPKH

    def test_p2wsh(self):
        address = encode_segwit_address("bc", 0, bytes(32))
        assert get_address_type(address) == AddressType.P2WSH

    def test_p2tr(self):
        address = encode_segwit_address("tb", 1, bytes(range(32)))
        assert address.startswith("tb1p")
        assert get_address_type(address) == AddressType.P2TR

    def test_uppercase_bech32(self):
        address = encode_segwit_address("bc", 0, bytes(20)).upper()
        assert get_address_type(address) == AddressType.P2WPKH

    def test_unknown(self):
        assert get_address_type("") == AddressType.UNKNOWN
        assert get_address_type("not-an-address") == AddressType.UNKNOWN
        # Future witness version
        assert get_address_type(encode_segwit_address("bc", 2, bytes(16))) == AddressType.UNKNOWN

    def test_bad_checksum(self):
        address = encode_segwit_address("bc", 0, bytes(20))
        corrupted = address[:-1] + ("q" if address[-1] != "q" else "p")
        assert decode_segwit_address(corrupted) is None
        assert get_address_type(corrupted) == AddressType.UNKNOWN

        assert base58check_decode(GENESIS_P2PKH[:-1] + "b") is None

    def test_v0_with_bech32m_checksum_rejected(self):
        data = [0] + convertbits(bytes(20), 8, 5)
        checksum = bech32_create_checksum("bc", data, BECH32M_CONST)
        address = "bc1" + "".join(BECH32_CHARSET[d] for d in data + checksum)
        assert decode_segwit_address(address) is None


class TestScriptPubKey:
    def test_p2pkh(self):
        script = address_to_script_pubkey(GENESIS_P2PKH)
        assert script.hex() == "76a914" + GENESIS_HASH160 + "88ac"

    def test_p2sh(self):
        script = address_to_script_pubkey(P2SH_ADDRESS)
        assert len(script) == 23
        assert script[:2] == bytes([0xA9, 0x14])
        assert script[-1] == 0x87

    def test_p2wpkh(self):
        address = encode_segwit_address("tb", 0, bytes(20))
        assert address_to_script_pubkey_hex(address, NetworkType.TESTNET) == "0014" + "00" * 20

    def test_p2tr(self):
        program = bytes(range(32))
        address = encode_segwit_address("bcrt", 1, program)
        assert address_to_script_pubkey(address, NetworkType.REGTEST) == b"\x51\x20" + program

    def test_wrong_network(self):
        address = encode_segwit_address("tb", 0, bytes(20))
        with pytest.raises(UnsupportedAddressError) as exc_info:
            address_to_script_pubkey(address, NetworkType.MAINNET)
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_ADDRESS_TYPE

        with pytest.raises(UnsupportedAddressError):
            address_to_script_pubkey(GENESIS_P2PKH, NetworkType.TESTNET)

    def test_invalid_address(self):
        with pytest.raises(UnsupportedAddressError, match="garbage"):
            address_to_script_pubkey("garbage")

    def test_script_to_address(self):
        assert script_pubkey_to_address("76a914" + GENESIS_HASH160 + "88ac") == GENESIS_P2PKH
        assert script_pubkey_to_address(address_to_script_pubkey(P2SH_ADDRESS)) == P2SH_ADDRESS

        program = bytes(range(32))
        script = b"\x51\x20" + program
        assert script_pubkey_to_address(script, NetworkType.SIGNET) == encode_segwit_address(
            "tb", 1, program
        )

    def test_script_to_address_nonstandard(self):
        assert script_pubkey_to_address("6a0100") is None
        assert script_pubkey_to_address("") is None
        # v0 program of invalid length
        assert script_pubkey_to_address("0010" + "00" * 16) is None


class TestOpReturn:
    def test_detects_op_return(self):
        assert is_op_return_script("6a0b48656c6c6f20776f726c64") is True
        assert is_op_return_script(bytes([0x6A])) is True

    def test_regular_scripts(self):
        assert is_op_return_script("0014" + "00" * 20) is False
        assert is_op_return_script("") is False
