"""
Neynar API client for Python.

Async HTTP client for the Neynar Farcaster API, built on ``httpx``. One
umbrella client routes each call to a v1 (read-only) or v2 (read/write)
sub-client, and adds signer provisioning on top.

Usage::

    from neynar_sdk import NeynarAPIClient

    async with NeynarAPIClient("NEYNAR_API_KEY") as client:
        signer = await client.create_signer_and_register_signed_key(
            "your app custody mnemonic ..."
        )
        print(signer.signer_approval_url)
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from neynar_sdk.constants import BULK_USERS_LIMIT, V1_PREFIX, V2_PREFIX
from neynar_sdk.errors import InvalidResponseError, RemoteApiError, TransportError
from neynar_sdk.provisioning import SignerProvisioner
from neynar_sdk.types import (
    BulkFollowResponse,
    BulkUsersResponse,
    Cast,
    CastV1,
    Channel,
    ChannelResponse,
    ClientConfig,
    CustodyAddress,
    Embed,
    OperationResponse,
    PostCastResponse,
    PostCastResponseCast,
    ReactionType,
    Signer,
    UserResponse,
    UserV1,
)

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


def _parse(model: type[_M], data: Any) -> _M:
    """Validate a response body, turning shape mismatches into InvalidResponseError."""
    if not isinstance(data, dict):
        raise InvalidResponseError(
            f"Expected a JSON object for {model.__name__}, got {type(data).__name__}"
        )
    try:
        return model(**data)
    except ValidationError as e:
        raise InvalidResponseError(f"Malformed {model.__name__} response: {e}") from e


def _cast_hash(cast_or_hash: Cast | CastV1 | str) -> str:
    return cast_or_hash if isinstance(cast_or_hash, str) else cast_or_hash.hash


class _HttpClient:
    """Thin wrapper around httpx for API requests.

    Remote failures are classified here, once: an error status becomes
    :class:`RemoteApiError`, a missing response becomes :class:`TransportError`.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {"api_key": api_key, "accept": "application/json"}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body."""
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = await self._client.request(
                method=method,
                url=f"{self.base_url}{path}",
                params=query or None,
                json=body,
                headers=self._headers,
            )
        except httpx.TransportError as e:
            raise TransportError(
                f"No response for {method} {path}: {str(e) or type(e).__name__}",
                method=method,
                path=path,
            ) from e

        logger.debug("%s %s -> %d", method, path, response.status_code)

        if response.status_code >= 400:
            try:
                err_body: Any = response.json()
            except ValueError:
                err_body = response.text
            raise RemoteApiError(response.status_code, err_body, method=method, path=path)

        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Non-JSON response for {method} {path}") from e

    async def close(self) -> None:
        # Injected clients belong to the caller
        if self._owns_client:
            await self._client.aclose()


# ============================================================
#  Version clients
# ============================================================


class _NeynarV1Client:
    """v1 read-only endpoints. Every v1 response is wrapped in ``result``."""

    def __init__(self, http: _HttpClient) -> None:
        self._http = http

    async def _get_result(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        data = await self._http.request("GET", f"{V1_PREFIX}{path}", params=params)
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise InvalidResponseError(f"v1 response for {path} has no result object")
        return result

    async def lookup_user_by_fid(self, fid: int, viewer_fid: int | None = None) -> UserV1:
        result = await self._get_result("/user", {"fid": fid, "viewerFid": viewer_fid})
        return _parse(UserV1, result.get("user"))

    async def lookup_user_by_username(
        self, username: str, viewer_fid: int | None = None
    ) -> UserV1:
        result = await self._get_result(
            "/user-by-username", {"username": username, "viewerFid": viewer_fid}
        )
        return _parse(UserV1, result.get("user"))

    async def lookup_custody_address_for_user(self, fid: int) -> CustodyAddress:
        result = await self._get_result("/custody-address", {"fid": fid})
        return _parse(CustodyAddress, result)

    async def lookup_cast_by_hash(self, hash: str, viewer_fid: int | None = None) -> CastV1:
        result = await self._get_result("/cast", {"hash": hash, "viewerFid": viewer_fid})
        return _parse(CastV1, result.get("cast"))


class _NeynarV2Client:
    """v2 endpoints: signer registry, user directory, and signer-gated writes."""

    def __init__(self, http: _HttpClient) -> None:
        self._http = http

    # -- Signer ---------------------------------------------------------------

    async def create_signer(self) -> Signer:
        data = await self._http.request("POST", f"{V2_PREFIX}/signer")
        return _parse(Signer, data)

    async def lookup_signer(self, signer_uuid: str) -> Signer:
        data = await self._http.request(
            "GET", f"{V2_PREFIX}/signer", params={"signer_uuid": signer_uuid}
        )
        return _parse(Signer, data)

    async def register_signed_key(
        self, signer_uuid: str, fid: int, deadline: int, signature: str
    ) -> Signer:
        data = await self._http.request(
            "POST",
            f"{V2_PREFIX}/signer/signed_key",
            body={
                "signer_uuid": signer_uuid,
                "app_fid": fid,
                "deadline": deadline,
                "signature": signature,
            },
        )
        return _parse(Signer, data)

    # -- User -----------------------------------------------------------------

    async def lookup_user_by_custody_address(self, custody_address: str) -> UserResponse:
        data = await self._http.request(
            "GET",
            f"{V2_PREFIX}/user/custody-address",
            params={"custody_address": custody_address},
        )
        return _parse(UserResponse, data)

    async def fetch_bulk_users(
        self, fids: list[int], viewer_fid: int | None = None
    ) -> BulkUsersResponse:
        if not fids:
            raise ValueError("fids must not be empty")
        if len(fids) > BULK_USERS_LIMIT:
            raise ValueError(f"At most {BULK_USERS_LIMIT} fids per request, got {len(fids)}")
        data = await self._http.request(
            "GET",
            f"{V2_PREFIX}/user/bulk",
            params={"fids": ",".join(str(f) for f in fids), "viewer_fid": viewer_fid},
        )
        return _parse(BulkUsersResponse, data)

    async def follow_user(self, signer_uuid: str, target_fids: list[int]) -> BulkFollowResponse:
        data = await self._http.request(
            "POST",
            f"{V2_PREFIX}/user/follow",
            body={"signer_uuid": signer_uuid, "target_fids": list(target_fids)},
        )
        return _parse(BulkFollowResponse, data)

    async def unfollow_user(self, signer_uuid: str, target_fids: list[int]) -> BulkFollowResponse:
        data = await self._http.request(
            "DELETE",
            f"{V2_PREFIX}/user/follow",
            body={"signer_uuid": signer_uuid, "target_fids": list(target_fids)},
        )
        return _parse(BulkFollowResponse, data)

    async def update_user(
        self,
        signer_uuid: str,
        bio: str | None = None,
        pfp_url: str | None = None,
        url: str | None = None,
        username: str | None = None,
        display_name: str | None = None,
    ) -> OperationResponse:
        fields = {
            "bio": bio,
            "pfp_url": pfp_url,
            "url": url,
            "username": username,
            "display_name": display_name,
        }
        changes = {k: v for k, v in fields.items() if v is not None}
        if not changes:
            raise ValueError("update_user needs at least one field to change")
        data = await self._http.request(
            "PATCH", f"{V2_PREFIX}/user", body={"signer_uuid": signer_uuid, **changes}
        )
        return _parse(OperationResponse, data)

    async def publish_verification(
        self, signer_uuid: str, address: str, block_hash: str, eth_signature: str
    ) -> OperationResponse:
        data = await self._http.request(
            "POST",
            f"{V2_PREFIX}/user/verification",
            body={
                "signer_uuid": signer_uuid,
                "address": address,
                "block_hash": block_hash,
                "eth_signature": eth_signature,
            },
        )
        return _parse(OperationResponse, data)

    async def delete_verification(self, signer_uuid: str, address: str) -> OperationResponse:
        data = await self._http.request(
            "DELETE",
            f"{V2_PREFIX}/user/verification",
            body={"signer_uuid": signer_uuid, "address": address},
        )
        return _parse(OperationResponse, data)

    # -- Cast -----------------------------------------------------------------

    async def publish_cast(
        self,
        signer_uuid: str,
        text: str,
        embeds: list[Embed] | None = None,
        reply_to: str | None = None,
        channel_id: str | None = None,
    ) -> PostCastResponseCast:
        payload: dict[str, Any] = {"signer_uuid": signer_uuid, "text": text}
        if embeds:
            payload["embeds"] = [e.model_dump(exclude_none=True) for e in embeds]
        if reply_to:
            payload["parent"] = reply_to
        if channel_id:
            payload["channel_id"] = channel_id
        data = await self._http.request("POST", f"{V2_PREFIX}/cast", body=payload)
        return _parse(PostCastResponse, data).cast

    async def delete_cast(self, signer_uuid: str, cast_or_hash: Cast | str) -> OperationResponse:
        data = await self._http.request(
            "DELETE",
            f"{V2_PREFIX}/cast",
            body={"signer_uuid": signer_uuid, "target_hash": _cast_hash(cast_or_hash)},
        )
        return _parse(OperationResponse, data)

    # -- Reaction -------------------------------------------------------------

    async def _react(
        self,
        method: str,
        signer_uuid: str,
        reaction: ReactionType,
        cast_or_hash: Cast | str,
    ) -> OperationResponse:
        data = await self._http.request(
            method,
            f"{V2_PREFIX}/reaction",
            body={
                "signer_uuid": signer_uuid,
                "reaction_type": ReactionType(reaction).value,
                "target": _cast_hash(cast_or_hash),
            },
        )
        return _parse(OperationResponse, data)

    async def publish_reaction_to_cast(
        self, signer_uuid: str, reaction: ReactionType, cast_or_hash: Cast | str
    ) -> OperationResponse:
        return await self._react("POST", signer_uuid, reaction, cast_or_hash)

    async def delete_reaction_from_cast(
        self, signer_uuid: str, reaction: ReactionType, cast_or_hash: Cast | str
    ) -> OperationResponse:
        return await self._react("DELETE", signer_uuid, reaction, cast_or_hash)

    # -- Channel --------------------------------------------------------------

    async def lookup_channel(self, channel_id: str) -> Channel:
        data = await self._http.request("GET", f"{V2_PREFIX}/channel", params={"id": channel_id})
        return _parse(ChannelResponse, data).channel


# ============================================================
#  Umbrella client
# ============================================================


class NeynarAPIClient:
    """
    The main Neynar API client.

    Routes each method to the v1 or v2 sub-client (also reachable as
    ``client.v1`` / ``client.v2``) and provides
    :meth:`create_signer_and_register_signed_key`.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
        strict_provisioning: bool = False,
    ) -> None:
        settings: dict[str, Any] = {
            "api_key": api_key,
            "timeout": timeout,
            "strict_provisioning": strict_provisioning,
        }
        if base_url:
            settings["base_url"] = base_url
        self.config = ClientConfig(**settings)
        self._logger = logger or logging.getLogger(__name__)

        self._http = _HttpClient(
            self.config.base_url,
            self.config.api_key,
            timeout=self.config.timeout,
            client=http_client,
        )
        self.v1 = _NeynarV1Client(self._http)
        self.v2 = _NeynarV2Client(self._http)
        self._provisioner = SignerProvisioner(self.v2, self.v2, logger=self._logger)

    async def __aenter__(self) -> NeynarAPIClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.close()

    # ============ v1 APIs ============

    async def lookup_user_by_fid(self, fid: int, viewer_fid: int | None = None) -> UserV1:
        return await self.v1.lookup_user_by_fid(fid, viewer_fid)

    async def lookup_user_by_username(
        self, username: str, viewer_fid: int | None = None
    ) -> UserV1:
        return await self.v1.lookup_user_by_username(username, viewer_fid)

    async def lookup_custody_address_for_user(self, fid: int) -> CustodyAddress:
        return await self.v1.lookup_custody_address_for_user(fid)

    async def lookup_cast_by_hash(self, hash: str, viewer_fid: int | None = None) -> CastV1:
        return await self.v1.lookup_cast_by_hash(hash, viewer_fid)

    # ============ v2 APIs ============

    # ---- Signer ----

    async def create_signer(self) -> Signer:
        """Create a signer in ``generated`` state."""
        return await self.v2.create_signer()

    async def lookup_signer(self, signer_uuid: str) -> Signer:
        """Fetch the current state of a signer."""
        return await self.v2.lookup_signer(signer_uuid)

    async def register_signed_key(
        self, signer_uuid: str, fid: int, deadline: int, signature: str
    ) -> Signer:
        """Register an app fid, deadline and signature for a signer.

        Args:
            signer_uuid: UUID of the signer.
            fid: The app's fid.
            deadline: Unix seconds until which the signed key request is valid.
            signature: EIP-712 signature over (fid, signer public key, deadline)
                by the app's custody address.
        """
        return await self.v2.register_signed_key(signer_uuid, fid, deadline, signature)

    # ---- User ----

    async def lookup_user_by_custody_address(self, custody_address: str) -> UserResponse:
        return await self.v2.lookup_user_by_custody_address(custody_address)

    async def fetch_bulk_users(
        self, fids: list[int], viewer_fid: int | None = None
    ) -> BulkUsersResponse:
        """Fetch up to 100 users by fid."""
        return await self.v2.fetch_bulk_users(fids, viewer_fid)

    async def follow_user(self, signer_uuid: str, target_fids: list[int]) -> BulkFollowResponse:
        return await self.v2.follow_user(signer_uuid, target_fids)

    async def unfollow_user(self, signer_uuid: str, target_fids: list[int]) -> BulkFollowResponse:
        return await self.v2.unfollow_user(signer_uuid, target_fids)

    async def update_user(
        self,
        signer_uuid: str,
        bio: str | None = None,
        pfp_url: str | None = None,
        url: str | None = None,
        username: str | None = None,
        display_name: str | None = None,
    ) -> OperationResponse:
        """Update the profile of the user behind an approved signer."""
        return await self.v2.update_user(
            signer_uuid,
            bio=bio,
            pfp_url=pfp_url,
            url=url,
            username=username,
            display_name=display_name,
        )

    async def publish_verification(
        self, signer_uuid: str, address: str, block_hash: str, eth_signature: str
    ) -> OperationResponse:
        """Add a verified Ethereum address to the user behind an approved signer.

        Args:
            signer_uuid: UUID of an approved signer.
            address: Ethereum address being verified.
            block_hash: Block hash the verification claim was signed against.
            eth_signature: Signature over the claim by ``address``.
        """
        return await self.v2.publish_verification(signer_uuid, address, block_hash, eth_signature)

    async def delete_verification(self, signer_uuid: str, address: str) -> OperationResponse:
        return await self.v2.delete_verification(signer_uuid, address)

    # ---- Cast ----

    async def publish_cast(
        self,
        signer_uuid: str,
        text: str,
        embeds: list[Embed] | None = None,
        reply_to: str | None = None,
        channel_id: str | None = None,
    ) -> PostCastResponseCast:
        """Publish a cast, optionally as a reply or into a channel."""
        return await self.v2.publish_cast(
            signer_uuid, text, embeds=embeds, reply_to=reply_to, channel_id=channel_id
        )

    async def delete_cast(self, signer_uuid: str, cast_or_hash: Cast | str) -> OperationResponse:
        return await self.v2.delete_cast(signer_uuid, cast_or_hash)

    # ---- Reaction ----

    async def publish_reaction_to_cast(
        self, signer_uuid: str, reaction: ReactionType, cast_or_hash: Cast | str
    ) -> OperationResponse:
        return await self.v2.publish_reaction_to_cast(signer_uuid, reaction, cast_or_hash)

    async def delete_reaction_from_cast(
        self, signer_uuid: str, reaction: ReactionType, cast_or_hash: Cast | str
    ) -> OperationResponse:
        return await self.v2.delete_reaction_from_cast(signer_uuid, reaction, cast_or_hash)

    # ---- Channel ----

    async def lookup_channel(self, channel_id: str) -> Channel:
        return await self.v2.lookup_channel(channel_id)

    # ============ Utilities ============

    async def create_signer_and_register_signed_key(
        self,
        mnemonic: str,
        deadline: int | None = None,
        *,
        strict: bool | None = None,
    ) -> Signer | None:
        """Create a signer and register a signed key request for it.

        The returned signer is in ``pending_approval`` state; show its
        ``signer_approval_url`` (e.g. as a QR code) so the user can approve it.

        Args:
            mnemonic: Seed phrase of the app's custody account.
            deadline: Unix seconds after which the signed key request expires.
                Defaults to 24 hours from now.
            strict: Raise on failure instead of logging and returning ``None``.
                Defaults to ``config.strict_provisioning``.

        Returns:
            The pending signer, or ``None`` if provisioning failed in
            lenient mode.
        """
        if strict is None:
            strict = self.config.strict_provisioning
        try:
            return await self._provisioner.provision(mnemonic, deadline)
        except Exception as e:
            if strict:
                raise
            if isinstance(e, RemoteApiError):
                self._logger.error(
                    "Signer provisioning rejected by API (%d): %s", e.status_code, e.body
                )
            else:
                self._logger.exception("Signer provisioning failed")
            return None
