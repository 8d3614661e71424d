"""
Neynar SDK for Python.

Async client for the Neynar Farcaster API (v1 and v2), with helpers to
provision a signer for an app through a signed key request.

Example::

    from neynar_sdk import NeynarAPIClient

    async with NeynarAPIClient("NEYNAR_API_KEY") as client:
        signer = await client.create_signer_and_register_signed_key(mnemonic)
        print(signer.signer_approval_url)

        # later, once the user approved it
        signer = await client.lookup_signer(signer.signer_uuid)
        await client.publish_cast(signer.signer_uuid, "gm")
"""

from neynar_sdk.client import NeynarAPIClient
from neynar_sdk.errors import (
    NeynarError,
    InvalidMnemonicError,
    InvalidPayloadError,
    InvalidResponseError,
    RemoteApiError,
    TransportError,
)
from neynar_sdk.provisioning import (
    ProvisioningState,
    SignerProvisioner,
    build_signed_key_request,
    sign_signed_key_request,
)
from neynar_sdk.signing import derive_account, sign_typed_data
from neynar_sdk.types import (
    ClientConfig,
    SignerStatus,
    Signer,
    SignedKeyRequest,
    User,
    UserResponse,
    BulkUsersResponse,
    UserV1,
    CustodyAddress,
    Cast,
    CastV1,
    Embed,
    PostCastResponseCast,
    ReactionType,
    OperationResponse,
    BulkFollowResponse,
    Channel,
)

__all__ = [
    "NeynarAPIClient",
    "NeynarError",
    "InvalidMnemonicError",
    "InvalidPayloadError",
    "InvalidResponseError",
    "RemoteApiError",
    "TransportError",
    "ProvisioningState",
    "SignerProvisioner",
    "build_signed_key_request",
    "sign_signed_key_request",
    "derive_account",
    "sign_typed_data",
    "ClientConfig",
    "SignerStatus",
    "Signer",
    "SignedKeyRequest",
    "User",
    "UserResponse",
    "BulkUsersResponse",
    "UserV1",
    "CustodyAddress",
    "Cast",
    "CastV1",
    "Embed",
    "PostCastResponseCast",
    "ReactionType",
    "OperationResponse",
    "BulkFollowResponse",
    "Channel",
]

__version__ = "0.1.0"
