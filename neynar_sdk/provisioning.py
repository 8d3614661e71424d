"""
Signer provisioning: create a signer and register a signed key request for it.

Steps, each depending on the previous one::

    START -> SIGNER_CREATED -> OPERATOR_RESOLVED -> SIGNATURE_PRODUCED -> REGISTERED

Any failure ends in FAILED and the error propagates unchanged. Nothing is
rolled back: a signer created before the failure stays in ``generated``
state on the server, which is harmless until someone approves it.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Protocol

from eth_account.signers.local import LocalAccount
from pydantic import ValidationError

from neynar_sdk.constants import (
    SIGNED_KEY_REQUEST_PRIMARY_TYPE,
    SIGNED_KEY_REQUEST_TTL,
    SIGNED_KEY_REQUEST_TYPE,
    SIGNED_KEY_REQUEST_VALIDATOR_EIP_712_DOMAIN,
)
from neynar_sdk.errors import InvalidPayloadError
from neynar_sdk.signing import derive_account, sign_typed_data
from neynar_sdk.types import SignedKeyRequest, Signer, UserResponse


class ProvisioningState(str, Enum):
    START = "start"
    SIGNER_CREATED = "signer_created"
    OPERATOR_RESOLVED = "operator_resolved"
    SIGNATURE_PRODUCED = "signature_produced"
    REGISTERED = "registered"
    FAILED = "failed"


class SignerRegistry(Protocol):
    async def create_signer(self) -> Signer: ...

    async def register_signed_key(
        self, signer_uuid: str, fid: int, deadline: int, signature: str
    ) -> Signer: ...


class UserDirectory(Protocol):
    async def lookup_user_by_custody_address(self, custody_address: str) -> UserResponse: ...


def build_signed_key_request(fid: int, key: str, deadline: int) -> SignedKeyRequest:
    """Build the (frozen) signed key request triple."""
    try:
        return SignedKeyRequest(request_fid=fid, key=key, deadline=deadline)
    except ValidationError as e:
        raise InvalidPayloadError(f"Invalid signed key request: {e}") from e


def sign_signed_key_request(account: LocalAccount, request: SignedKeyRequest) -> str:
    """Sign ``request`` against the SignedKeyRequestValidator domain."""
    return sign_typed_data(
        account,
        domain=SIGNED_KEY_REQUEST_VALIDATOR_EIP_712_DOMAIN,
        types={SIGNED_KEY_REQUEST_PRIMARY_TYPE: SIGNED_KEY_REQUEST_TYPE},
        primary_type=SIGNED_KEY_REQUEST_PRIMARY_TYPE,
        message=request.to_message(),
    )


class SignerProvisioner:
    """Drives a new signer from ``generated`` to ``pending_approval``.

    Holds no per-call state, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        registry: SignerRegistry,
        directory: UserDirectory,
        *,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry
        self._directory = directory
        self._logger = logger or logging.getLogger(__name__)
        self._clock = clock

    def default_deadline(self) -> int:
        return int(self._clock()) + SIGNED_KEY_REQUEST_TTL

    async def provision(self, mnemonic: str, deadline: int | None = None) -> Signer:
        """Create a signer and register a signed key request for it.

        Args:
            mnemonic: Seed phrase of the app's custody account.
            deadline: Unix seconds after which the request is invalid.
                Defaults to 24 hours from now.

        Returns:
            The :class:`Signer` in ``pending_approval`` state, carrying
            ``signer_approval_url``.

        Raises:
            RemoteApiError: The API rejected one of the three calls.
            TransportError: No response for one of the three calls.
            InvalidMnemonicError: The seed phrase does not validate.
            InvalidPayloadError: The signed key request could not be built.
            InvalidResponseError: A response had an unexpected shape.
        """
        state = ProvisioningState.START
        try:
            # Derived here, ahead of SIGNER_CREATED, although the account is first
            # used for operator lookup; a bad phrase must not orphan a signer
            account = derive_account(mnemonic)

            signer = await self._registry.create_signer()
            state = self._advance(state, ProvisioningState.SIGNER_CREATED, signer.signer_uuid)

            operator = await self._directory.lookup_user_by_custody_address(account.address)
            fid = operator.user.fid
            state = self._advance(state, ProvisioningState.OPERATOR_RESOLVED, signer.signer_uuid)

            # Computed once: the submitted deadline must be the signed one
            request = build_signed_key_request(
                fid,
                signer.public_key,
                deadline if deadline is not None else self.default_deadline(),
            )
            signature = sign_signed_key_request(account, request)
            state = self._advance(state, ProvisioningState.SIGNATURE_PRODUCED, signer.signer_uuid)

            registered = await self._registry.register_signed_key(
                signer.signer_uuid,
                request.request_fid,
                request.deadline,
                signature,
            )
            self._advance(state, ProvisioningState.REGISTERED, signer.signer_uuid)
            return registered
        except Exception as e:
            self._logger.warning(
                "Signer provisioning %s -> %s: %s",
                state.value, ProvisioningState.FAILED.value, e,
            )
            raise

    def _advance(
        self,
        current: ProvisioningState,
        nxt: ProvisioningState,
        signer_uuid: str,
    ) -> ProvisioningState:
        self._logger.debug(
            "Signer %s: %s -> %s", signer_uuid, current.value, nxt.value
        )
        return nxt
