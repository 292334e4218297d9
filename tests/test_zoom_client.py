"""Tests for the Zoom admin API client."""

import httpx
import pytest

from panelwatch.config import ZoomConfig
from panelwatch.zoom.client import ZoomAdminClient, ZoomAPIError, ZoomAuthError


def make_client(handler, **config):
    config.setdefault("access_token", "static-token")
    return ZoomAdminClient(ZoomConfig(**config), transport=httpx.MockTransport(handler))


class TestRequests:
    async def test_list_webinars(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"webinars": [{"id": 1}], "next_page_token": ""})

        client = make_client(handler)
        try:
            resp = await client.list_webinars()
        finally:
            await client.close()

        assert resp["webinars"] == [{"id": 1}]
        request = seen[0]
        assert request.url.path == "/v2/users/me/webinars"
        assert request.url.params["page_size"] == "300"
        assert "next_page_token" not in request.url.params
        assert request.headers["authorization"] == "Bearer static-token"

    async def test_list_webinars_passes_page_token(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"webinars": []})

        client = make_client(handler, user_id="host@example.com", page_size=50)
        try:
            await client.list_webinars(next_page_token="abc")
        finally:
            await client.close()

        assert seen[0].url.path == "/v2/users/host@example.com/webinars"
        assert seen[0].url.params["next_page_token"] == "abc"
        assert seen[0].url.params["page_size"] == "50"

    async def test_list_webinar_panelists(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v2/webinars/987/panelists"
            return httpx.Response(
                200,
                json={"total_records": 1, "panelists": [{"id": "p1", "email": "a@x.com"}]},
            )

        client = make_client(handler)
        try:
            resp = await client.list_webinar_panelists("987")
        finally:
            await client.close()
        assert resp["panelists"] == [{"id": "p1", "email": "a@x.com"}]


class TestErrors:
    async def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"code": 3001, "message": "Webinar does not exist"})

        client = make_client(handler)
        try:
            with pytest.raises(ZoomAPIError) as exc_info:
                await client.list_webinar_panelists("1")
        finally:
            await client.close()

        assert exc_info.value.status_code == 404
        assert exc_info.value.path == "/webinars/1/panelists"
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        try:
            with pytest.raises(ZoomAPIError) as exc_info:
                await client.list_webinars()
        finally:
            await client.close()
        assert exc_info.value.status_code is None


class TestOAuth:
    async def test_account_credentials_exchange(self):
        token_calls = []
        api_auth = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "zoom.us":
                token_calls.append(request)
                return httpx.Response(200, json={"access_token": "oauth-token", "expires_in": 3600})
            api_auth.append(request.headers["authorization"])
            return httpx.Response(200, json={"webinars": []})

        client = make_client(
            handler,
            access_token="",
            account_id="acct",
            client_id="cid",
            client_secret="secret",
        )
        try:
            await client.list_webinars()
            await client.list_webinars()
        finally:
            await client.close()

        assert len(token_calls) == 1
        token_request = token_calls[0]
        assert token_request.method == "POST"
        assert token_request.url.path == "/oauth/token"
        assert token_request.url.params["grant_type"] == "account_credentials"
        assert token_request.url.params["account_id"] == "acct"
        assert token_request.headers["authorization"].startswith("Basic ")
        assert api_auth == ["Bearer oauth-token", "Bearer oauth-token"]

    async def test_expired_token_is_refreshed(self):
        token_calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "zoom.us":
                token_calls.append(request)
                # Shorter than the refresh margin, so it is stale immediately
                return httpx.Response(200, json={"access_token": "t", "expires_in": 1})
            return httpx.Response(200, json={"webinars": []})

        client = make_client(
            handler, access_token="", account_id="a", client_id="c", client_secret="s"
        )
        try:
            await client.list_webinars()
            await client.list_webinars()
        finally:
            await client.close()
        assert len(token_calls) == 2

    async def test_missing_credentials(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        client = make_client(handler, access_token="")
        try:
            with pytest.raises(ZoomAuthError):
                await client.list_webinars()
        finally:
            await client.close()

    async def test_token_exchange_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"reason": "Invalid client_id or client_secret"})

        client = make_client(
            handler, access_token="", account_id="a", client_id="c", client_secret="s"
        )
        try:
            with pytest.raises(ZoomAuthError) as exc_info:
                await client.list_webinars()
        finally:
            await client.close()
        assert exc_info.value.status_code == 401
