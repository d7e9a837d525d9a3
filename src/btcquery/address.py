"""
Bitcoin address utilities.

UTXO records from the Assets API carry an address, the address type and
scriptPubKey are derived locally from it. Transaction outputs carry a
scriptPubKey, the address is derived from it when the API omits one.
"""

from __future__ import annotations

import hashlib

from btcquery.errors import UnsupportedAddressError
from btcquery.models import AddressType, NetworkType

BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

BECH32_CONST = 1
BECH32M_CONST = 0x2BC830A3

OP_RETURN = 0x6A

# Base58 version bytes: (p2pkh, p2sh)
BASE58_VERSIONS = {
    NetworkType.MAINNET: (0x00, 0x05),
    NetworkType.TESTNET: (0x6F, 0xC4),
    NetworkType.SIGNET: (0x6F, 0xC4),
    NetworkType.REGTEST: (0x6F, 0xC4),
}

BECH32_HRPS = {
    NetworkType.MAINNET: "bc",
    NetworkType.TESTNET: "tb",
    NetworkType.SIGNET: "tb",
    NetworkType.REGTEST: "bcrt",
}


def bech32_polymod(values: list[int]) -> int:
    """Bech32 checksum polymod"""
    gen = [0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3]
    chk = 1
    for v in values:
        b = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ v
        for i in range(5):
            chk ^= gen[i] if ((b >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> list[int]:
    """Expand HRP for bech32"""
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def bech32_decode(address: str) -> tuple[str, list[int], int] | None:
    """
    Split a bech32/bech32m string into (hrp, data, checksum constant).

    Returns None if the string is not valid bech32 or bech32m.
    """
    if address.lower() != address and address.upper() != address:
        return None
    address = address.lower()
    pos = address.rfind("1")
    if pos < 1 or pos + 7 > len(address) or len(address) > 90:
        return None
    if any(c not in BECH32_CHARSET for c in address[pos + 1 :]):
        return None

    hrp = address[:pos]
    data = [BECH32_CHARSET.find(c) for c in address[pos + 1 :]]
    const = bech32_polymod(bech32_hrp_expand(hrp) + data)
    if const not in (BECH32_CONST, BECH32M_CONST):
        return None
    return hrp, data[:-6], const


def convertbits(data: list[int] | bytes, frombits: int, tobits: int, pad: bool = True) -> list[int]:
    """Convert between bit groups"""
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1

    for value in data:
        if value < 0 or (value >> frombits):
            raise ValueError("Invalid value")
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)

    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        raise ValueError("Invalid bits")

    return ret


def decode_segwit_address(address: str) -> tuple[str, int, bytes] | None:
    """
    Decode a segwit address into (hrp, witness version, witness program).
    BIP173 (v0, bech32) and BIP350 (v1+, bech32m).
    """
    decoded = bech32_decode(address)
    if decoded is None:
        return None
    hrp, data, const = decoded
    if not data or data[0] > 16:
        return None

    try:
        program = bytes(convertbits(data[1:], 5, 8, pad=False))
    except ValueError:
        return None

    version = data[0]
    if len(program) < 2 or len(program) > 40:
        return None
    if version == 0 and len(program) not in (20, 32):
        return None
    if (version == 0) != (const == BECH32_CONST):
        return None
    return hrp, version, program


def base58check_decode(address: str) -> bytes | None:
    """Decode a base58check string, returns payload including version byte"""
    n = 0
    for c in address:
        index = BASE58_ALPHABET.find(c)
        if index < 0:
            return None
        n = n * 58 + index

    raw = n.to_bytes((n.bit_length() + 7) // 8, "big") if n else b""
    leading_zeros = len(address) - len(address.lstrip("1"))
    raw = b"\x00" * leading_zeros + raw

    if len(raw) < 5:
        return None
    payload, checksum = raw[:-4], raw[-4:]
    if hashlib.sha256(hashlib.sha256(payload).digest()).digest()[:4] != checksum:
        return None
    return payload


def get_address_type(address: str) -> AddressType:
    """
    Detect the address type from an address string.

    P2SH addresses are reported as P2SH_P2WPKH, the only P2SH form
    spendable by this library's consumers.
    """
    segwit = decode_segwit_address(address)
    if segwit is not None:
        _, version, program = segwit
        if version == 0 and len(program) == 20:
            return AddressType.P2WPKH
        if version == 0 and len(program) == 32:
            return AddressType.P2WSH
        if version == 1 and len(program) == 32:
            return AddressType.P2TR
        return AddressType.UNKNOWN

    payload = base58check_decode(address)
    if payload is not None and len(payload) == 21:
        version = payload[0]
        if version in (0x00, 0x6F):
            return AddressType.P2PKH
        if version in (0x05, 0xC4):
            return AddressType.P2SH_P2WPKH

    return AddressType.UNKNOWN


def address_to_script_pubkey(address: str, network: NetworkType = NetworkType.MAINNET) -> bytes:
    """
    Convert an address of the given network to its scriptPubKey.

    Raises:
        UnsupportedAddressError: If the address cannot be decoded for the network
    """
    segwit = decode_segwit_address(address)
    if segwit is not None:
        hrp, version, program = segwit
        if hrp != BECH32_HRPS[network]:
            raise UnsupportedAddressError.with_comment(f"{address} is not a {network.value} address")
        # OP_0 or OP_1..OP_16, then a single push of the witness program
        op = 0x00 if version == 0 else 0x50 + version
        return bytes([op, len(program)]) + program

    payload = base58check_decode(address)
    if payload is not None and len(payload) == 21:
        p2pkh_version, p2sh_version = BASE58_VERSIONS[network]
        if payload[0] == p2pkh_version:
            # OP_DUP OP_HASH160 <20 bytes> OP_EQUALVERIFY OP_CHECKSIG
            return bytes([0x76, 0xA9, 0x14]) + payload[1:] + bytes([0x88, 0xAC])
        if payload[0] == p2sh_version:
            # OP_HASH160 <20 bytes> OP_EQUAL
            return bytes([0xA9, 0x14]) + payload[1:] + bytes([0x87])

    raise UnsupportedAddressError.with_comment(address)


def address_to_script_pubkey_hex(address: str, network: NetworkType = NetworkType.MAINNET) -> str:
    return address_to_script_pubkey(address, network).hex()


def is_op_return_script(script: bytes | str) -> bool:
    """Check whether a scriptPubKey is a data-carrier (OP_RETURN) script"""
    if isinstance(script, str):
        script = bytes.fromhex(script)
    return len(script) > 0 and script[0] == OP_RETURN


def bech32_create_checksum(hrp: str, data: list[int], const: int = BECH32_CONST) -> list[int]:
    """Create bech32/bech32m checksum"""
    values = bech32_hrp_expand(hrp) + data
    polymod = bech32_polymod(values + [0, 0, 0, 0, 0, 0]) ^ const
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def encode_segwit_address(hrp: str, version: int, program: bytes) -> str:
    """Encode a witness program, bech32 for v0 and bech32m for v1+"""
    const = BECH32_CONST if version == 0 else BECH32M_CONST
    data = [version] + convertbits(program, 8, 5)
    combined = data + bech32_create_checksum(hrp, data, const)
    return hrp + "1" + "".join(BECH32_CHARSET[d] for d in combined)


def base58check_encode(payload: bytes) -> str:
    """Encode payload (including version byte) as base58check"""
    data = payload + hashlib.sha256(hashlib.sha256(payload).digest()).digest()[:4]
    n = int.from_bytes(data, "big")
    result = ""
    while n > 0:
        n, r = divmod(n, 58)
        result = BASE58_ALPHABET[r] + result

    for byte in data:
        if byte == 0:
            result = "1" + result
        else:
            break
    return result


def script_pubkey_to_address(
    script: bytes | str, network: NetworkType = NetworkType.MAINNET
) -> str | None:
    """
    Convert a standard scriptPubKey to its address.

    Supports P2PKH, P2SH and witness programs (P2WPKH, P2WSH, P2TR).
    Returns None for any other script.
    """
    if isinstance(script, str):
        script = bytes.fromhex(script)

    # OP_0..OP_16 <2-40 byte program>
    if (
        4 <= len(script) <= 42
        and (script[0] == 0x00 or 0x51 <= script[0] <= 0x60)
        and script[1] == len(script) - 2
    ):
        version = 0 if script[0] == 0x00 else script[0] - 0x50
        if version == 0 and script[1] not in (20, 32):
            return None
        return encode_segwit_address(BECH32_HRPS[network], version, script[2:])

    p2pkh_version, p2sh_version = BASE58_VERSIONS[network]
    if (
        len(script) == 25
        and script[:3] == bytes([0x76, 0xA9, 0x14])
        and script[23:] == bytes([0x88, 0xAC])
    ):
        return base58check_encode(bytes([p2pkh_version]) + script[3:23])

    if len(script) == 23 and script[:2] == bytes([0xA9, 0x14]) and script[22] == 0x87:
        return base58check_encode(bytes([p2sh_version]) + script[2:22])

    return None
