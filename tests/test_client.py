"""
Unit tests for the Neynar Python SDK client.

Uses respx to mock HTTP requests to the API - no network or API key
required. Tests verify that the client correctly serialises requests,
deserialises responses, and classifies failures.
"""

from __future__ import annotations

import json

import pytest
import httpx
import respx

from neynar_sdk.client import NeynarAPIClient, _HttpClient
from neynar_sdk.errors import InvalidResponseError, RemoteApiError, TransportError
from neynar_sdk.types import Cast, Embed, ReactionType, SignerStatus


BASE_URL = "http://localhost:4022"
API_KEY = "NEYNAR_TEST_KEY"


# ============================================================
#  HTTP Client
# ============================================================


@pytest.mark.asyncio
async def test_http_client_get() -> None:
    """HTTP client sends GET with the api_key header and query params."""
    with respx.mock:
        route = respx.get(url__startswith=f"{BASE_URL}/v2/farcaster/signer").mock(
            return_value=httpx.Response(200, json={"signer_uuid": "uuid-1"})
        )
        client = _HttpClient(BASE_URL, API_KEY)
        data = await client.request(
            "GET", "/v2/farcaster/signer", params={"signer_uuid": "uuid-1", "unused": None}
        )
        await client.close()

        assert route.called
        request = route.calls.last.request
        assert request.headers["api_key"] == API_KEY
        assert request.url.params["signer_uuid"] == "uuid-1"
        assert "unused" not in request.url.params
        assert data["signer_uuid"] == "uuid-1"


@pytest.mark.asyncio
async def test_http_client_post() -> None:
    """HTTP client sends POST with JSON body."""
    with respx.mock:
        route = respx.post(f"{BASE_URL}/v2/farcaster/cast").mock(
            return_value=httpx.Response(200, json={"success": True})
        )
        client = _HttpClient(BASE_URL, API_KEY)
        data = await client.request("POST", "/v2/farcaster/cast", body={"text": "gm"})
        await client.close()

        assert route.called
        assert json.loads(route.calls.last.request.content) == {"text": "gm"}
        assert data["success"] is True


@pytest.mark.asyncio
async def test_http_client_no_content() -> None:
    with respx.mock:
        respx.delete(f"{BASE_URL}/v2/farcaster/cast").mock(return_value=httpx.Response(204))
        client = _HttpClient(BASE_URL, API_KEY)
        assert await client.request("DELETE", "/v2/farcaster/cast") == {}
        await client.close()


@pytest.mark.asyncio
async def test_http_client_error_status_is_remote_api_error() -> None:
    """Error statuses become RemoteApiError carrying the upstream body verbatim."""
    body = {"code": "NotFound", "message": "User not found"}
    with respx.mock:
        respx.get(url__startswith=f"{BASE_URL}/v2/farcaster/user/custody-address").mock(
            return_value=httpx.Response(404, json=body)
        )
        client = _HttpClient(BASE_URL, API_KEY)
        with pytest.raises(RemoteApiError) as exc_info:
            await client.request("GET", "/v2/farcaster/user/custody-address")
        await client.close()

    err = exc_info.value
    assert err.status_code == 404
    assert err.body == body
    assert err.method == "GET"
    assert "User not found" in str(err)


@pytest.mark.asyncio
async def test_http_client_error_with_text_body() -> None:
    with respx.mock:
        respx.post(f"{BASE_URL}/v2/farcaster/signer").mock(
            return_value=httpx.Response(502, text="Bad Gateway")
        )
        client = _HttpClient(BASE_URL, API_KEY)
        with pytest.raises(RemoteApiError) as exc_info:
            await client.request("POST", "/v2/farcaster/signer")
        await client.close()

    assert exc_info.value.status_code == 502
    assert exc_info.value.body == "Bad Gateway"


@pytest.mark.asyncio
async def test_http_client_connection_failure_is_transport_error() -> None:
    """No response at all is a TransportError, not a RemoteApiError."""
    with respx.mock:
        respx.post(f"{BASE_URL}/v2/farcaster/signer").mock(
            side_effect=httpx.ConnectError("connection refused")
        )
        client = _HttpClient(BASE_URL, API_KEY)
        with pytest.raises(TransportError) as exc_info:
            await client.request("POST", "/v2/farcaster/signer")
        await client.close()

    assert not isinstance(exc_info.value, RemoteApiError)
    assert exc_info.value.path == "/v2/farcaster/signer"


@pytest.mark.asyncio
async def test_http_client_does_not_close_injected_client() -> None:
    injected = httpx.AsyncClient()
    client = _HttpClient(BASE_URL, API_KEY, client=injected)
    await client.close()

    assert not injected.is_closed
    await injected.aclose()


# ============================================================
#  Configuration
# ============================================================


def test_empty_api_key_rejected() -> None:
    with pytest.raises(ValueError):
        NeynarAPIClient("")


def test_base_url_trailing_slash_stripped() -> None:
    client = NeynarAPIClient(API_KEY, base_url=f"{BASE_URL}/")
    assert client.config.base_url == BASE_URL
    assert client.config.strict_provisioning is False


def test_default_base_url() -> None:
    client = NeynarAPIClient(API_KEY)
    assert client.config.base_url == "https://api.neynar.com"


# ============================================================
#  v1
# ============================================================


@pytest.mark.asyncio
async def test_lookup_user_by_fid_v1() -> None:
    """v1 responses are unwrapped from ``result`` and camelCase is mapped."""
    with respx.mock:
        route = respx.get(url__startswith=f"{BASE_URL}/v1/farcaster/user").mock(
            return_value=httpx.Response(
                200,
                json={
                    "result": {
                        "user": {
                            "fid": 194,
                            "username": "rish",
                            "displayName": "rish",
                            "custodyAddress": "0xabc",
                            "followerCount": 10,
                        }
                    }
                },
            )
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            user = await client.lookup_user_by_fid(194, viewer_fid=3)

        assert route.called
        assert route.calls.last.request.url.params["viewerFid"] == "3"
        assert user.fid == 194
        assert user.display_name == "rish"
        assert user.custody_address == "0xabc"


@pytest.mark.asyncio
async def test_lookup_custody_address_for_user() -> None:
    with respx.mock:
        respx.get(url__startswith=f"{BASE_URL}/v1/farcaster/custody-address").mock(
            return_value=httpx.Response(
                200, json={"result": {"fid": 194, "custodyAddress": "0xabc"}}
            )
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            result = await client.lookup_custody_address_for_user(194)

        assert result.custody_address == "0xabc"


@pytest.mark.asyncio
async def test_v1_missing_result_is_invalid_response() -> None:
    with respx.mock:
        respx.get(url__startswith=f"{BASE_URL}/v1/farcaster/cast").mock(
            return_value=httpx.Response(200, json={"cast": {"hash": "0x1"}})
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            with pytest.raises(InvalidResponseError):
                await client.lookup_cast_by_hash("0x1")


# ============================================================
#  v2 - Signer
# ============================================================


@pytest.mark.asyncio
async def test_create_and_lookup_signer() -> None:
    with respx.mock:
        respx.post(f"{BASE_URL}/v2/farcaster/signer").mock(
            return_value=httpx.Response(
                200,
                json={"signer_uuid": "uuid-1", "public_key": "0xdead", "status": "generated"},
            )
        )
        respx.get(url__startswith=f"{BASE_URL}/v2/farcaster/signer").mock(
            return_value=httpx.Response(
                200,
                json={
                    "signer_uuid": "uuid-1",
                    "public_key": "0xdead",
                    "status": "approved",
                    "fid": 3,
                },
            )
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            created = await client.create_signer()
            looked_up = await client.lookup_signer("uuid-1")

        assert created.status is SignerStatus.GENERATED
        assert created.signer_approval_url is None
        assert looked_up.status is SignerStatus.APPROVED
        assert looked_up.fid == 3


@pytest.mark.asyncio
async def test_register_signed_key_body() -> None:
    with respx.mock:
        route = respx.post(f"{BASE_URL}/v2/farcaster/signer/signed_key").mock(
            return_value=httpx.Response(
                200,
                json={
                    "signer_uuid": "uuid-1",
                    "public_key": "0xdead",
                    "status": "pending_approval",
                    "signer_approval_url": "https://client.warpcast.com/deeplinks/signed-key-request?token=t",
                },
            )
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            signer = await client.register_signed_key("uuid-1", 194, 1700000000, "0xsig")

        assert json.loads(route.calls.last.request.content) == {
            "signer_uuid": "uuid-1",
            "app_fid": 194,
            "deadline": 1700000000,
            "signature": "0xsig",
        }
        assert signer.status is SignerStatus.PENDING_APPROVAL


@pytest.mark.asyncio
async def test_malformed_signer_is_invalid_response() -> None:
    with respx.mock:
        respx.post(f"{BASE_URL}/v2/farcaster/signer").mock(
            return_value=httpx.Response(200, json={"signer_uuid": "uuid-1"})
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            with pytest.raises(InvalidResponseError):
                await client.create_signer()


# ============================================================
#  v2 - Users
# ============================================================


@pytest.mark.asyncio
async def test_lookup_user_by_custody_address() -> None:
    with respx.mock:
        route = respx.get(url__startswith=f"{BASE_URL}/v2/farcaster/user/custody-address").mock(
            return_value=httpx.Response(
                200, json={"user": {"fid": 194, "username": "rish", "extra_field": 1}}
            )
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            result = await client.lookup_user_by_custody_address("0xabc")

        assert route.calls.last.request.url.params["custody_address"] == "0xabc"
        assert result.user.fid == 194


@pytest.mark.asyncio
async def test_fetch_bulk_users() -> None:
    with respx.mock:
        route = respx.get(url__startswith=f"{BASE_URL}/v2/farcaster/user/bulk").mock(
            return_value=httpx.Response(200, json={"users": [{"fid": 2}, {"fid": 3}]})
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            result = await client.fetch_bulk_users([2, 3], viewer_fid=19960)

        params = route.calls.last.request.url.params
        assert params["fids"] == "2,3"
        assert params["viewer_fid"] == "19960"
        assert [u.fid for u in result.users] == [2, 3]


@pytest.mark.asyncio
async def test_fetch_bulk_users_limits() -> None:
    async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
        with pytest.raises(ValueError):
            await client.fetch_bulk_users([])
        with pytest.raises(ValueError):
            await client.fetch_bulk_users(list(range(1, 102)))


@pytest.mark.asyncio
async def test_follow_and_unfollow() -> None:
    with respx.mock:
        follow_route = respx.post(f"{BASE_URL}/v2/farcaster/user/follow").mock(
            return_value=httpx.Response(
                200,
                json={"success": True, "details": [{"success": True, "target_fid": 3}]},
            )
        )
        unfollow_route = respx.delete(f"{BASE_URL}/v2/farcaster/user/follow").mock(
            return_value=httpx.Response(200, json={"success": True, "details": []})
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            followed = await client.follow_user("uuid-1", [3])
            await client.unfollow_user("uuid-1", [3])

        assert json.loads(follow_route.calls.last.request.content) == {
            "signer_uuid": "uuid-1",
            "target_fids": [3],
        }
        assert unfollow_route.called
        assert followed.details[0].target_fid == 3


@pytest.mark.asyncio
async def test_update_user_sends_only_given_fields() -> None:
    with respx.mock:
        route = respx.patch(f"{BASE_URL}/v2/farcaster/user").mock(
            return_value=httpx.Response(200, json={"success": True})
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            result = await client.update_user("uuid-1", bio="New bio", display_name="Rish")

        assert json.loads(route.calls.last.request.content) == {
            "signer_uuid": "uuid-1",
            "bio": "New bio",
            "display_name": "Rish",
        }
        assert result.success is True


@pytest.mark.asyncio
async def test_update_user_requires_a_change() -> None:
    async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
        with pytest.raises(ValueError):
            await client.update_user("uuid-1")


@pytest.mark.asyncio
async def test_publish_and_delete_verification() -> None:
    with respx.mock:
        publish_route = respx.post(f"{BASE_URL}/v2/farcaster/user/verification").mock(
            return_value=httpx.Response(200, json={"success": True})
        )
        delete_route = respx.delete(f"{BASE_URL}/v2/farcaster/user/verification").mock(
            return_value=httpx.Response(200, json={"success": True})
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            added = await client.publish_verification(
                "uuid-1", "0x1ea99cbed57e4020314ba3fadd7c692d2de34d5f", "0xblock", "0xethsig"
            )
            removed = await client.delete_verification(
                "uuid-1", "0x1ea99cbed57e4020314ba3fadd7c692d2de34d5f"
            )

        assert json.loads(publish_route.calls.last.request.content) == {
            "signer_uuid": "uuid-1",
            "address": "0x1ea99cbed57e4020314ba3fadd7c692d2de34d5f",
            "block_hash": "0xblock",
            "eth_signature": "0xethsig",
        }
        assert json.loads(delete_route.calls.last.request.content) == {
            "signer_uuid": "uuid-1",
            "address": "0x1ea99cbed57e4020314ba3fadd7c692d2de34d5f",
        }
        assert added.success and removed.success


# ============================================================
#  v2 - Casts & reactions
# ============================================================


@pytest.mark.asyncio
async def test_publish_cast_reply_in_channel() -> None:
    with respx.mock:
        route = respx.post(f"{BASE_URL}/v2/farcaster/cast").mock(
            return_value=httpx.Response(
                200,
                json={"success": True, "cast": {"hash": "0xnew", "text": "gm", "author": {"fid": 194}}},
            )
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            cast = await client.publish_cast(
                "uuid-1",
                "gm",
                embeds=[Embed(url="https://example.com")],
                reply_to="0xparent",
                channel_id="neynar",
            )

        assert json.loads(route.calls.last.request.content) == {
            "signer_uuid": "uuid-1",
            "text": "gm",
            "embeds": [{"url": "https://example.com"}],
            "parent": "0xparent",
            "channel_id": "neynar",
        }
        assert cast.hash == "0xnew"
        assert cast.author is not None and cast.author.fid == 194


@pytest.mark.asyncio
async def test_delete_cast_accepts_cast_object() -> None:
    with respx.mock:
        route = respx.delete(f"{BASE_URL}/v2/farcaster/cast").mock(
            return_value=httpx.Response(200, json={"success": True})
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            await client.delete_cast("uuid-1", Cast(hash="0xold", text="bye"))

        assert json.loads(route.calls.last.request.content)["target_hash"] == "0xold"


@pytest.mark.asyncio
async def test_reactions() -> None:
    with respx.mock:
        post_route = respx.post(f"{BASE_URL}/v2/farcaster/reaction").mock(
            return_value=httpx.Response(200, json={"success": True})
        )
        delete_route = respx.delete(f"{BASE_URL}/v2/farcaster/reaction").mock(
            return_value=httpx.Response(200, json={"success": True})
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            await client.publish_reaction_to_cast("uuid-1", ReactionType.LIKE, "0xc1")
            await client.delete_reaction_from_cast("uuid-1", ReactionType.RECAST, "0xc1")

        assert json.loads(post_route.calls.last.request.content) == {
            "signer_uuid": "uuid-1",
            "reaction_type": "like",
            "target": "0xc1",
        }
        assert json.loads(delete_route.calls.last.request.content)["reaction_type"] == "recast"


# ============================================================
#  v2 - Channels
# ============================================================


@pytest.mark.asyncio
async def test_lookup_channel() -> None:
    with respx.mock:
        route = respx.get(url__startswith=f"{BASE_URL}/v2/farcaster/channel").mock(
            return_value=httpx.Response(
                200, json={"channel": {"id": "neynar", "name": "Neynar", "follower_count": 5}}
            )
        )

        async with NeynarAPIClient(API_KEY, base_url=BASE_URL) as client:
            channel = await client.lookup_channel("neynar")

        assert route.calls.last.request.url.params["id"] == "neynar"
        assert channel.name == "Neynar"
