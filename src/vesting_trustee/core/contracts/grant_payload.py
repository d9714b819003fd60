"""
Grant instructions attached to a deposit.

A self-funded grant is requested by calling ``transfer_and_call`` on the
reserve token with a payload shaped like a contract call to
``grant(address,uint256,uint256,uint256,uint256,bool)``: the 4-byte
selector followed by the ABI encoding of the beneficiary and schedule. The
granted value is the amount deposited, so it is not part of the payload.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector, is_address

from ..exceptions import InvalidPayloadError

GRANT_SIGNATURE = "grant(address,uint256,uint256,uint256,uint256,bool)"
GRANT_SELECTOR = function_signature_to_4byte_selector(GRANT_SIGNATURE)
GRANT_ARG_TYPES = ["address", "uint256", "uint256", "uint256", "uint256", "bool"]


@dataclass(frozen=True)
class GrantPayload:
    to: str
    start: int
    cliff: int
    end: int
    installment_length: int
    revokable: bool


def encode_grant_payload(
    to: str,
    start: int,
    cliff: int,
    end: int,
    installment_length: int,
    revokable: bool = False,
) -> bytes:
    """
    Build the data for a deposit-triggered grant.

    Raises:
        InvalidPayloadError: If a field cannot be ABI encoded
    """
    if not is_address(to):
        raise InvalidPayloadError(f"Not an address: {to!r}", details={"to": to})
    try:
        body = encode(
            GRANT_ARG_TYPES,
            [to.lower(), start, cliff, end, installment_length, bool(revokable)],
        )
    except (EncodingError, TypeError) as exc:
        raise InvalidPayloadError(f"Cannot encode grant payload: {exc}") from exc
    return GRANT_SELECTOR + body


def decode_grant_payload(data: bytes) -> GrantPayload:
    """
    Parse the data attached to a deposit.

    Raises:
        InvalidPayloadError: If the selector is wrong or the body is malformed
    """
    data = bytes(data)
    if data[:4] != GRANT_SELECTOR:
        raise InvalidPayloadError(
            f"Unexpected selector 0x{data[:4].hex()} (expected 0x{GRANT_SELECTOR.hex()})",
            details={"selector": data[:4].hex()},
        )
    try:
        to, start, cliff, end, installment_length, revokable = decode(GRANT_ARG_TYPES, data[4:])
    except DecodingError as exc:
        raise InvalidPayloadError(f"Malformed grant payload: {exc}") from exc
    return GrantPayload(
        to=to.lower(),
        start=start,
        cliff=cliff,
        end=end,
        installment_length=installment_length,
        revokable=revokable,
    )
