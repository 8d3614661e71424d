"""
Pydantic models for the Neynar SDK.

v2 responses are already snake_case; v1 responses are camelCase and are
mapped to snake_case attributes through field aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from neynar_sdk.constants import DEFAULT_BASE_URL


# ============================================================
#  Configuration
# ============================================================


class ClientConfig(BaseModel):
    """Settings for :class:`~neynar_sdk.client.NeynarAPIClient`."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    strict_provisioning: bool = False

    @field_validator("api_key")
    @classmethod
    def _require_api_key(cls, v: str) -> str:
        if not v:
            raise ValueError(
                "Attempt to use an authenticated API method without first providing an api key"
            )
        return v

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


# ============================================================
#  Signers
# ============================================================


class SignerStatus(str, Enum):
    GENERATED = "generated"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REVOKED = "revoked"


class Signer(BaseModel):
    """Snapshot of a delegated signing key as the API reports it.

    The authoritative state lives remotely; re-fetch with
    ``lookup_signer`` to observe approval or revocation.
    """

    signer_uuid: str
    public_key: str
    status: SignerStatus
    signer_approval_url: str | None = None
    fid: int | None = None

    model_config = {"extra": "ignore"}


class SignedKeyRequest(BaseModel):
    """The EIP-712 message authorising ``key`` to act for ``request_fid``."""

    request_fid: int = Field(gt=0)
    key: str
    deadline: int = Field(ge=0)

    model_config = {"frozen": True, "strict": True}

    @field_validator("key")
    @classmethod
    def _hex_key(cls, v: str) -> str:
        if not v.startswith("0x"):
            raise ValueError("key must be 0x-prefixed hex")
        return v

    def to_message(self) -> dict[str, Any]:
        """EIP-712 message fields, keyed by their on-chain names."""
        return {
            "requestFid": self.request_fid,
            "key": self.key,
            "deadline": self.deadline,
        }


# ============================================================
#  Users
# ============================================================


class UserProfileBio(BaseModel):
    text: str | None = None


class UserProfile(BaseModel):
    bio: UserProfileBio | None = None


class User(BaseModel):
    """Farcaster user (v2)."""

    fid: int
    username: str | None = None
    display_name: str | None = None
    custody_address: str | None = None
    pfp_url: str | None = None
    profile: UserProfile | None = None
    follower_count: int | None = None
    following_count: int | None = None
    verifications: list[str] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class UserResponse(BaseModel):
    user: User


class BulkUsersResponse(BaseModel):
    users: list[User] = Field(default_factory=list)


class UserV1(BaseModel):
    """Farcaster user (v1, camelCase on the wire)."""

    fid: int
    username: str | None = None
    display_name: str | None = Field(None, alias="displayName")
    custody_address: str | None = Field(None, alias="custodyAddress")
    follower_count: int | None = Field(None, alias="followerCount")
    following_count: int | None = Field(None, alias="followingCount")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class CustodyAddress(BaseModel):
    fid: int
    custody_address: str = Field(alias="custodyAddress")

    model_config = {"populate_by_name": True, "extra": "ignore"}


# ============================================================
#  Casts
# ============================================================


class Embed(BaseModel):
    url: str | None = None
    cast_id: dict[str, Any] | None = None


class CastAuthor(BaseModel):
    fid: int

    model_config = {"extra": "ignore"}


class Cast(BaseModel):
    """Cast (v2)."""

    hash: str
    text: str = ""
    author: CastAuthor | None = None
    parent_hash: str | None = None
    thread_hash: str | None = None
    timestamp: str | None = None
    embeds: list[Embed] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class CastV1(BaseModel):
    """Cast (v1, camelCase on the wire)."""

    hash: str
    text: str = ""
    parent_hash: str | None = Field(None, alias="parentHash")
    thread_hash: str | None = Field(None, alias="threadHash")
    timestamp: str | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}


class PostCastResponseCast(BaseModel):
    hash: str
    text: str = ""
    author: CastAuthor | None = None


class PostCastResponse(BaseModel):
    success: bool = True
    cast: PostCastResponseCast


class ReactionType(str, Enum):
    LIKE = "like"
    RECAST = "recast"


class OperationResponse(BaseModel):
    success: bool


class FollowResult(BaseModel):
    success: bool
    target_fid: int

    model_config = {"extra": "ignore"}


class BulkFollowResponse(BaseModel):
    success: bool
    details: list[FollowResult] = Field(default_factory=list)


# ============================================================
#  Channels
# ============================================================


class Channel(BaseModel):
    id: str
    url: str | None = None
    name: str | None = None
    description: str | None = None
    image_url: str | None = None
    follower_count: int | None = None

    model_config = {"extra": "ignore"}


class ChannelResponse(BaseModel):
    channel: Channel
