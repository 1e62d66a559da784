"""
Integration tests for the API endpoints using httpx AsyncClient.

These tests exercise the full FastAPI request → endpoint → form pipeline with
the real session store.  The remote investor API is the MockTransport-backed
client from conftest, injected via ``dependency_overrides``.
"""

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from investor_forms.api.deps import get_api_client
from investor_forms.core.exceptions import add_exception_handlers
from investor_forms.core.sessions import form_sessions

from .conftest import (
    CREATE_URL,
    GET_URL,
    INVESTOR_ID,
    PNG_BYTES,
    UPDATE_URL,
    UPLOAD_URL,
    json_body,
    make_record,
    upload_ok,
)

PREFIX = "/api/v1"

# ────────────────────────────────────────────────────────────────────────────
# Test app factory
# ────────────────────────────────────────────────────────────────────────────


def _make_test_app(api) -> FastAPI:
    """The real routers, no lifespan; the remote client is overridden."""
    from investor_forms.api.v1.api import api_router

    app = FastAPI()
    add_exception_handlers(app)
    app.include_router(api_router, prefix=PREFIX)
    app.dependency_overrides[get_api_client] = lambda: api
    return app


@pytest.fixture()
def client(api) -> AsyncClient:
    # ASGITransport holds no connections, so the client needs no closing.
    return AsyncClient(transport=ASGITransport(app=_make_test_app(api)), base_url="http://test")


async def _open_create(client) -> str:
    resp = await client.post(f"{PREFIX}/forms/create")
    assert resp.status_code == 201
    return resp.json()["id"]


async def _fill_required(client, form_id: str) -> None:
    for field, value in [
        ("name", "Blue Harbor Ventures"),
        ("website", "https://blueharbor.vc"),
        ("description", "Early-stage fund"),
        ("checkSize", "$250k - $1M"),
        ("headquarter", "Lisbon"),
        ("contactLink", "https://blueharbor.vc/contact"),
    ]:
        resp = await client.patch(
            f"{PREFIX}/forms/{form_id}/fields", json={"field": field, "value": value}
        )
        assert resp.status_code == 200


# ────────────────────────────────────────────────────────────────────────────
# Opening / closing
# ────────────────────────────────────────────────────────────────────────────


class TestFormLifecycle:
    @pytest.mark.asyncio
    async def test_open_create_form(self, client):
        resp = await client.post(f"{PREFIX}/forms/create")

        assert resp.status_code == 201
        body = resp.json()
        assert body["kind"] == "create"
        assert body["investor_id"] is None
        assert body["submission_state"] == "idle"
        assert body["draft"]["image"] == {
            "mode": "url",
            "value": "",
            "preview": "",
            "pending": False,
            "error": "",
        }
        assert body["id"] in form_sessions

    @pytest.mark.asyncio
    async def test_get_and_close(self, client):
        form_id = await _open_create(client)

        assert (await client.get(f"{PREFIX}/forms/{form_id}")).status_code == 200
        assert (await client.delete(f"{PREFIX}/forms/{form_id}")).status_code == 204

        resp = await client.get(f"{PREFIX}/forms/{form_id}")
        assert resp.status_code == 404
        assert resp.json()["error"] is True

    @pytest.mark.asyncio
    async def test_open_update_form_loads_record(self, client, remote):
        remote.on("GET", GET_URL, httpx.Response(200, json={"investor": make_record()}))

        resp = await client.post(f"{PREFIX}/forms/update/{INVESTOR_ID}")

        assert resp.status_code == 201
        body = resp.json()
        assert body["kind"] == "update"
        assert body["investor_id"] == INVESTOR_ID
        assert body["draft"]["name"] == "Blue Harbor Ventures"
        assert body["draft"]["image"]["mode"] == "url"
        assert body["draft"]["portfolio_companies"][1]["logo"]["mode"] == "upload"

    @pytest.mark.asyncio
    async def test_update_form_opens_even_when_fetch_fails(self, client, remote):
        remote.on("GET", GET_URL, httpx.Response(500))

        resp = await client.post(f"{PREFIX}/forms/update/{INVESTOR_ID}")

        assert resp.status_code == 201
        assert resp.json()["error"] == "Failed to fetch investor data."
        assert resp.json()["draft"]["name"] == ""


# ────────────────────────────────────────────────────────────────────────────
# Editing
# ────────────────────────────────────────────────────────────────────────────


class TestEditing:
    @pytest.mark.asyncio
    async def test_unknown_scalar_is_422(self, client):
        form_id = await _open_create(client)
        resp = await client.patch(
            f"{PREFIX}/forms/{form_id}/fields", json={"field": "email", "value": "x"}
        )
        assert resp.status_code == 422
        assert resp.json()["error"] is True

    @pytest.mark.asyncio
    async def test_toggle_and_remove_tag(self, client):
        form_id = await _open_create(client)
        url = f"{PREFIX}/forms/{form_id}/tags/sectorInterested"

        await client.post(url, json={"value": "AI/ML"})
        resp = await client.post(url, json={"value": "Fintech"})
        assert resp.json()["draft"]["sector_interested"] == ["AI/ML", "Fintech"]

        resp = await client.delete(url, params={"value": "AI/ML"})
        assert resp.status_code == 200
        assert resp.json()["draft"]["sector_interested"] == ["Fintech"]

    @pytest.mark.asyncio
    async def test_tag_outside_vocabulary_is_422(self, client):
        form_id = await _open_create(client)
        resp = await client.post(
            f"{PREFIX}/forms/{form_id}/tags/business_model", json={"value": "Pyramid"}
        )
        assert resp.status_code == 422
        assert "B2B" in resp.json()["details"]["allowed"]

    @pytest.mark.asyncio
    async def test_portfolio_add_edit_remove(self, client):
        form_id = await _open_create(client)
        base = f"{PREFIX}/forms/{form_id}/portfolio"

        assert (await client.post(base)).status_code == 201
        await client.post(base)
        await client.patch(f"{base}/0", json={"field": "name", "value": "Ledgerly"})
        await client.patch(f"{base}/1", json={"field": "name", "value": "Quanta"})

        resp = await client.delete(f"{base}/0")

        companies = resp.json()["draft"]["portfolio_companies"]
        assert [c["name"] for c in companies] == ["Quanta"]

    @pytest.mark.asyncio
    async def test_portfolio_index_out_of_range_is_422(self, client):
        form_id = await _open_create(client)
        resp = await client.delete(f"{PREFIX}/forms/{form_id}/portfolio/3")
        assert resp.status_code == 422


# ────────────────────────────────────────────────────────────────────────────
# Images
# ────────────────────────────────────────────────────────────────────────────


class TestImages:
    @pytest.mark.asyncio
    async def test_url_then_switch_mode_clears(self, client):
        form_id = await _open_create(client)
        base = f"{PREFIX}/forms/{form_id}/image"

        resp = await client.put(f"{base}/url", json={"value": "https://x.com/a.png"})
        assert resp.json()["draft"]["image"]["preview"] == "https://x.com/a.png"

        resp = await client.put(f"{base}/mode", json={"mode": "upload"})
        image = resp.json()["draft"]["image"]
        assert image["mode"] == "upload"
        assert image["value"] == ""
        assert image["preview"] == ""

    @pytest.mark.asyncio
    async def test_upload_profile_image(self, client, remote):
        remote.on("POST", UPLOAD_URL, upload_ok("https://cdn.test/me.png"))
        form_id = await _open_create(client)
        base = f"{PREFIX}/forms/{form_id}/image"
        await client.put(f"{base}/mode", json={"mode": "upload"})

        resp = await client.post(
            f"{base}/upload", files={"file": ("me.png", PNG_BYTES, "image/png")}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["draft"]["image"]["value"] == "https://cdn.test/me.png"
        assert body["success"] == "Image uploaded successfully!"

    @pytest.mark.asyncio
    async def test_upload_rejected_is_502(self, client, remote):
        remote.on("POST", UPLOAD_URL, httpx.Response(200, json={"status": False}))
        form_id = await _open_create(client)
        base = f"{PREFIX}/forms/{form_id}/image"
        await client.put(f"{base}/mode", json={"mode": "upload"})

        resp = await client.post(
            f"{base}/upload", files={"file": ("me.png", PNG_BYTES, "image/png")}
        )

        assert resp.status_code == 502
        assert resp.json()["message"] == "Image upload failed. Please try again."
        state = (await client.get(f"{PREFIX}/forms/{form_id}")).json()
        assert state["error"] == "Image upload failed. Please try again."
        assert state["draft"]["image"]["value"] == ""

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected_before_remote_call(self, client, remote, monkeypatch):
        from investor_forms.core.config import settings

        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 8)
        remote.on("POST", UPLOAD_URL, upload_ok("https://cdn.test/me.png"))
        form_id = await _open_create(client)
        base = f"{PREFIX}/forms/{form_id}/image"
        await client.put(f"{base}/mode", json={"mode": "upload"})

        resp = await client.post(
            f"{base}/upload", files={"file": ("me.png", b"x" * 9, "image/png")}
        )

        assert resp.status_code == 422
        assert "too large" in resp.json()["message"]
        assert remote.requests == []
        image = (await client.get(f"{PREFIX}/forms/{form_id}")).json()["draft"]["image"]
        assert image["pending"] is False
        assert image["value"] == ""

    @pytest.mark.asyncio
    async def test_upload_at_limit_is_accepted(self, client, remote, monkeypatch):
        from investor_forms.core.config import settings

        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", len(PNG_BYTES))
        remote.on("POST", UPLOAD_URL, upload_ok("https://cdn.test/me.png"))
        form_id = await _open_create(client)
        base = f"{PREFIX}/forms/{form_id}/image"
        await client.put(f"{base}/mode", json={"mode": "upload"})

        resp = await client.post(
            f"{base}/upload", files={"file": ("me.png", PNG_BYTES, "image/png")}
        )

        assert resp.status_code == 200
        request = remote.calls("POST", UPLOAD_URL)[0]
        assert PNG_BYTES in request.content

    @pytest.mark.asyncio
    async def test_logo_url_and_upload(self, client, remote):
        remote.on("POST", UPLOAD_URL, upload_ok("https://cdn.test/logo.png"))
        form_id = await _open_create(client)
        base = f"{PREFIX}/forms/{form_id}/portfolio"
        await client.post(base)
        await client.post(base)

        resp = await client.post(
            f"{base}/1/logo/upload", files={"file": ("logo.png", PNG_BYTES, "image/png")}
        )
        assert resp.status_code == 200

        await client.put(f"{base}/0/logo/mode", json={"mode": "url"})
        resp = await client.put(f"{base}/0/logo/url", json={"value": "https://x.com/l0.png"})

        logos = [c["logo"] for c in resp.json()["draft"]["portfolio_companies"]]
        assert logos[0]["value"] == "https://x.com/l0.png"
        assert logos[0]["mode"] == "url"
        assert logos[1]["value"] == "https://cdn.test/logo.png"
        assert logos[1]["mode"] == "upload"

    @pytest.mark.asyncio
    async def test_logo_for_missing_entry_is_422(self, client):
        form_id = await _open_create(client)
        resp = await client.put(
            f"{PREFIX}/forms/{form_id}/portfolio/0/logo/mode", json={"mode": "url"}
        )
        assert resp.status_code == 422


# ────────────────────────────────────────────────────────────────────────────
# Submit
# ────────────────────────────────────────────────────────────────────────────


class TestSubmit:
    @pytest.mark.asyncio
    async def test_missing_fields_is_422_without_remote_call(self, client, remote):
        form_id = await _open_create(client)

        resp = await client.post(f"{PREFIX}/forms/{form_id}/submit")

        assert resp.status_code == 422
        body = resp.json()
        assert body["message"] == "Please fill out all required fields."
        assert {d["field"] for d in body["details"]} >= {"name", "website"}
        assert remote.requests == []

    @pytest.mark.asyncio
    async def test_create_success_redirects_and_closes(self, client, remote):
        remote.on("POST", CREATE_URL, httpx.Response(200, json={"ok": True}))
        form_id = await _open_create(client)
        await _fill_required(client, form_id)

        resp = await client.post(f"{PREFIX}/forms/{form_id}/submit")

        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"]["state"] == "success"
        assert body["outcome"]["redirect_to"] == "/investors"
        assert body["form"]["draft"]["name"] == ""
        assert json_body(remote.calls("POST", CREATE_URL)[0])["checkSize"] == "$250k - $1M"
        assert (await client.get(f"{PREFIX}/forms/{form_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_update_success_keeps_session(self, client, remote):
        remote.on("GET", GET_URL, httpx.Response(200, json={"investor": make_record()}))
        remote.on("PUT", UPDATE_URL, httpx.Response(200, json={"ok": True}))
        form_id = (await client.post(f"{PREFIX}/forms/update/{INVESTOR_ID}")).json()["id"]

        resp = await client.post(f"{PREFIX}/forms/{form_id}/submit")

        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"]["redirect_to"] is None
        assert body["form"]["success"] == "Investor updated successfully!"
        assert (await client.get(f"{PREFIX}/forms/{form_id}")).status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "rejection, expected",
        [
            (httpx.Response(400, json={"message": "Website already used"}), "Website already used"),
            (httpx.Response(500, json={}), "An error occurred while updating the investor."),
        ],
    )
    async def test_update_rejection_is_502(self, client, remote, rejection, expected):
        remote.on("GET", GET_URL, httpx.Response(200, json={"investor": make_record()}))
        remote.on("PUT", UPDATE_URL, rejection)
        form_id = (await client.post(f"{PREFIX}/forms/update/{INVESTOR_ID}")).json()["id"]

        resp = await client.post(f"{PREFIX}/forms/{form_id}/submit")

        assert resp.status_code == 502
        assert resp.json()["message"] == expected
        state = (await client.get(f"{PREFIX}/forms/{form_id}")).json()
        assert state["error"] == expected
        assert state["draft"]["name"] == "Blue Harbor Ventures"

    @pytest.mark.asyncio
    async def test_server_error_is_502_with_message(self, client, remote):
        remote.on("POST", CREATE_URL, httpx.Response(400, json={"message": "Name taken"}))
        form_id = await _open_create(client)
        await _fill_required(client, form_id)

        resp = await client.post(f"{PREFIX}/forms/{form_id}/submit")

        assert resp.status_code == 502
        assert resp.json()["message"] == "Server error: Name taken"
        state = (await client.get(f"{PREFIX}/forms/{form_id}")).json()
        assert state["draft"]["name"] == "Blue Harbor Ventures"
        assert state["submission_state"] == "idle"

    @pytest.mark.asyncio
    async def test_network_error_is_503(self, client, remote):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        remote.on("POST", CREATE_URL, refuse)
        form_id = await _open_create(client)
        await _fill_required(client, form_id)

        resp = await client.post(f"{PREFIX}/forms/{form_id}/submit")

        assert resp.status_code == 503
        assert resp.json()["message"] == "Network error: Please check your internet connection."

    @pytest.mark.asyncio
    async def test_submit_while_in_flight_is_409(self, client, api):
        from investor_forms.services.forms import CreateForm
        from investor_forms.services.submission import SubmissionState

        form = form_sessions.add(CreateForm(api))
        form.submission.state = SubmissionState.SUBMITTING

        resp = await client.post(f"{PREFIX}/forms/{form.id}/submit")

        assert resp.status_code == 409


# ────────────────────────────────────────────────────────────────────────────
# Vocabulary
# ────────────────────────────────────────────────────────────────────────────


class TestVocabulary:
    @pytest.mark.asyncio
    async def test_lists_options(self, client):
        resp = await client.get(f"{PREFIX}/vocabulary")

        assert resp.status_code == 200
        body = resp.json()
        assert "Fintech" in body["tags"]["sector_interested"]
        assert "Venture Capital" in body["selects"]["investor_type"]
