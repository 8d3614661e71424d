"""
Account derivation and EIP-712 typed-data signing.

Both helpers are pure: no network I/O, no shared state.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from eth_account import Account
from eth_account.hdaccount.mnemonic import Mnemonic
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from eth_utils import ValidationError, is_address, is_hexstr

from neynar_sdk.errors import InvalidMnemonicError, InvalidPayloadError

Account.enable_unaudited_hdwallet_features()

# from_mnemonic would accept any BIP-39 wordlist; only English is supported
_ENGLISH = Mnemonic()

_UINT_RE = re.compile(r"^uint(\d{0,3})$")
_INT_RE = re.compile(r"^int(\d{0,3})$")
_BYTES_RE = re.compile(r"^bytes(\d{0,2})$")

# EIP-712 domain fields, in their canonical order
_DOMAIN_FIELD_TYPES = (
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
)


def derive_account(mnemonic: str) -> LocalAccount:
    """Derive the custody account for an English BIP-39 seed phrase.

    Uses the default Ethereum path ``m/44'/60'/0'/0/0``, so the same phrase
    always yields the same address.

    Raises:
        InvalidMnemonicError: If the phrase is empty or does not validate.
    """
    if not mnemonic or not mnemonic.strip():
        raise InvalidMnemonicError("Mnemonic is empty")
    phrase = " ".join(mnemonic.split())
    try:
        english = _ENGLISH.is_mnemonic_valid(phrase)
    except (ValidationError, ValueError, LookupError):
        english = False
    if not english:
        raise InvalidMnemonicError("Mnemonic is not a valid English BIP-39 phrase")
    try:
        return Account.from_mnemonic(phrase)
    except (ValidationError, ValueError):
        # The upstream message quotes the phrase; do not chain it
        raise InvalidMnemonicError("Mnemonic is not a valid BIP-39 phrase") from None


def _check_field(
    types: Mapping[str, list[dict[str, str]]],
    struct: str,
    name: str,
    type_: str,
    value: Any,
) -> None:
    where = f"{struct}.{name}"

    if type_ in types:
        if not isinstance(value, Mapping):
            raise InvalidPayloadError(f"{where}: expected a mapping for struct {type_}")
        validate_message(types, type_, value)
        return

    m = _UINT_RE.match(type_) or _INT_RE.match(type_)
    if m:
        # bool is an int subclass; refuse it rather than signing 0/1
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidPayloadError(
                f"{where}: expected int for {type_}, got {type(value).__name__}"
            )
        bits = int(m.group(1) or 256)
        if type_.startswith("uint"):
            if not 0 <= value < 2**bits:
                raise InvalidPayloadError(f"{where}: {value} out of range for {type_}")
        elif not -(2 ** (bits - 1)) <= value < 2 ** (bits - 1):
            raise InvalidPayloadError(f"{where}: {value} out of range for {type_}")
        return

    m = _BYTES_RE.match(type_)
    if m:
        if isinstance(value, (bytes, bytearray)):
            size = len(value)
        elif isinstance(value, str) and value.startswith("0x") and is_hexstr(value):
            size = (len(value) - 2 + 1) // 2
        else:
            raise InvalidPayloadError(
                f"{where}: expected 0x-prefixed hex or bytes for {type_}"
            )
        if m.group(1) and size != int(m.group(1)):
            raise InvalidPayloadError(f"{where}: expected {m.group(1)} bytes, got {size}")
        return

    if type_ == "address":
        if not isinstance(value, str) or not is_address(value):
            raise InvalidPayloadError(f"{where}: expected an address")
        return
    if type_ == "bool":
        if not isinstance(value, bool):
            raise InvalidPayloadError(f"{where}: expected bool")
        return
    if type_ == "string":
        if not isinstance(value, str):
            raise InvalidPayloadError(f"{where}: expected str")
        return

    raise InvalidPayloadError(f"{where}: unsupported type {type_}")


def validate_message(
    types: Mapping[str, list[dict[str, str]]],
    primary_type: str,
    message: Mapping[str, Any],
) -> None:
    """Check that ``message`` matches ``types[primary_type]`` field for field.

    Raises:
        InvalidPayloadError: On an unknown primary type, a missing or extra
            field, or a value whose runtime type does not fit its schema type.
    """
    if primary_type not in types:
        raise InvalidPayloadError(f"Primary type {primary_type!r} is not in the type schema")

    fields = types[primary_type]
    expected = {f["name"] for f in fields}
    missing = expected - set(message)
    extra = set(message) - expected
    if missing or extra:
        raise InvalidPayloadError(
            f"{primary_type}: missing fields {sorted(missing)}, unexpected fields {sorted(extra)}"
        )

    for field in fields:
        _check_field(types, primary_type, field["name"], field["type"], message[field["name"]])


def sign_typed_data(
    account: LocalAccount,
    domain: Mapping[str, Any],
    types: Mapping[str, list[dict[str, str]]],
    primary_type: str,
    message: Mapping[str, Any],
) -> str:
    """Sign an EIP-712 structured message.

    Args:
        account: Local account holding the private key.
        domain: EIP-712 domain descriptor.
        types: Type schema, without ``EIP712Domain``.
        primary_type: Key in ``types`` describing ``message``.
        message: Field values. Integers stay Python ints (arbitrary precision),
            bytes are ``0x``-prefixed hex strings.

    Returns:
        ``0x``-prefixed hex signature.
    """
    validate_message(types, primary_type, message)

    message_types = {name: list(fields) for name, fields in types.items() if name != "EIP712Domain"}
    domain_fields = [
        {"name": name, "type": type_}
        for name, type_ in _DOMAIN_FIELD_TYPES
        if name in domain
    ]

    signable = encode_typed_data(
        full_message={
            "types": {"EIP712Domain": domain_fields, **message_types},
            "primaryType": primary_type,
            "domain": dict(domain),
            "message": dict(message),
        }
    )
    signed = account.sign_message(signable)

    sig_hex = signed.signature.hex()
    if not sig_hex.startswith("0x"):
        sig_hex = "0x" + sig_hex
    return sig_hex
