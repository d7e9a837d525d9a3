"""
Error types raised while querying outputs and collecting UTXOs.
"""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    UNKNOWN = 0
    INSUFFICIENT_UTXO = 1
    UNSPENDABLE_OUTPUT = 2
    UNCONFIRMED_UTXO = 3
    UNSUPPORTED_ADDRESS_TYPE = 4
    ASSETS_API_RESPONSE_ERROR = 5
    ASSETS_API_UNAUTHORIZED = 6
    ASSETS_API_INVALID_PARAM = 7
    ASSETS_API_RESPONSE_DECODE_ERROR = 8
    ASSETS_API_RESOURCE_NOT_FOUND = 9


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.UNKNOWN: "Unknown error",
    ErrorCode.INSUFFICIENT_UTXO: "Insufficient UTXO",
    ErrorCode.UNSPENDABLE_OUTPUT: "Target output is not an UTXO",
    ErrorCode.UNCONFIRMED_UTXO: "Unconfirmed UTXO",
    ErrorCode.UNSUPPORTED_ADDRESS_TYPE: "Unsupported address type",
    ErrorCode.ASSETS_API_RESPONSE_ERROR: "Assets API returned an error",
    ErrorCode.ASSETS_API_UNAUTHORIZED: "Unauthorized access to Assets API, please check the token",
    ErrorCode.ASSETS_API_INVALID_PARAM: "Invalid param(s) were provided to the Assets API",
    ErrorCode.ASSETS_API_RESPONSE_DECODE_ERROR: "Failed to decode the response of Assets API",
    ErrorCode.ASSETS_API_RESOURCE_NOT_FOUND: "Resource not found on the Assets API",
}


class TxBuildError(Exception):
    """Base error, carries an ErrorCode"""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str | None = None, code: ErrorCode | None = None):
        if code is not None:
            self.code = code
        super().__init__(message or ERROR_MESSAGES[self.code])

    @classmethod
    def with_comment(cls, comment: str | None = None, **kwargs) -> TxBuildError:
        code = kwargs.pop("code", None) or cls.code
        message = ERROR_MESSAGES[code]
        if comment:
            message = f"{message}: {comment}"
        return cls(message, code=code, **kwargs)


class UnspendableOutputError(TxBuildError):
    code = ErrorCode.UNSPENDABLE_OUTPUT


class UnconfirmedOutputError(TxBuildError):
    code = ErrorCode.UNCONFIRMED_UTXO


class UnsupportedAddressError(TxBuildError):
    code = ErrorCode.UNSUPPORTED_ADDRESS_TYPE


class InsufficientUtxoError(TxBuildError):
    """Coin selection could not reach the target amount"""

    code = ErrorCode.INSUFFICIENT_UTXO

    def __init__(self, expected: int, actual: int, message: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message or f"{ERROR_MESSAGES[self.code]}: expected: {expected}, actual: {actual}",
        )

    @classmethod
    def with_comment(
        cls, comment: str | None = None, *, expected: int = 0, actual: int = 0
    ) -> InsufficientUtxoError:
        message = f"{ERROR_MESSAGES[cls.code]}: expected: {expected}, actual: {actual}"
        if comment:
            message = f"{message}, {comment}"
        return cls(expected, actual, message)


class AssetsApiError(TxBuildError):
    """Any failure reported by (or while talking to) the Assets API"""

    code = ErrorCode.ASSETS_API_RESPONSE_ERROR

    def __init__(
        self,
        message: str | None = None,
        code: ErrorCode | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, code=code)

    @property
    def is_not_found(self) -> bool:
        return self.code == ErrorCode.ASSETS_API_RESOURCE_NOT_FOUND
