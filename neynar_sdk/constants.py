"""
Fixed protocol constants.

The EIP-712 domain and type schema must match the on-chain
``SignedKeyRequestValidator`` exactly, otherwise the API rejects the
signed key request.
"""

from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address

DEFAULT_BASE_URL = "https://api.neynar.com"
V1_PREFIX = "/v1/farcaster"
V2_PREFIX = "/v2/farcaster"

# Signed key requests are valid for one day unless the caller says otherwise.
SIGNED_KEY_REQUEST_TTL = 86400

SIGNED_KEY_REQUEST_VALIDATOR = to_checksum_address(
    "0x00000000fc700472606ed4fa22623acf62c60553"
)

SIGNED_KEY_REQUEST_VALIDATOR_EIP_712_DOMAIN: dict[str, Any] = {
    "name": "Farcaster SignedKeyRequestValidator",
    "version": "1",
    "chainId": 10,
    "verifyingContract": SIGNED_KEY_REQUEST_VALIDATOR,
}

SIGNED_KEY_REQUEST_TYPE: list[dict[str, str]] = [
    {"name": "requestFid", "type": "uint256"},
    {"name": "key", "type": "bytes"},
    {"name": "deadline", "type": "uint256"},
]

SIGNED_KEY_REQUEST_PRIMARY_TYPE = "SignedKeyRequest"

BULK_USERS_LIMIT = 100
