"""
Shared pytest fixtures for unit tests.

The remote investor API is replaced by an ``httpx.MockTransport`` routed
through :class:`RemoteStub`, so no network I/O happens and every request the
code under test makes can be inspected.
"""

import os

# Keep test runs from writing rotating log files into the project.
os.environ.setdefault("LOG_TO_FILE", "false")

import json  # noqa: E402
from typing import Callable, Dict, List, Tuple, Union  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from investor_forms.core.sessions import form_sessions  # noqa: E402
from investor_forms.services.api_client import InvestorApiClient  # noqa: E402
from investor_forms.services.forms import CreateForm, InvestorForm, UpdateForm  # noqa: E402

BASE_URL = "https://investors.test"
UPLOAD_URL = "https://files.test/api/fileUpload"
INVESTOR_ID = "65f1c0ffee00000000000001"

CREATE_URL = f"{BASE_URL}/api/create-investor"
GET_URL = f"{BASE_URL}/api/get-investor/{INVESTOR_ID}"
UPDATE_URL = f"{BASE_URL}/api/update-investor/{INVESTOR_ID}"

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-bytes"

Route = Union[httpx.Response, Callable[[httpx.Request], object]]


# ────────────────────────────────────────────────────────────────────────────
# Remote API stub
# ────────────────────────────────────────────────────────────────────────────


class RemoteStub:
    """
    Programmable stand-in for the remote investor API.

    Register answers with :meth:`on`; a route may be a ready ``httpx.Response``
    or a (sync or async) callable taking the request.  Unrouted requests get
    a 404 so a missing stub shows up as a server error, not a hang.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Route] = {}

    def on(self, method: str, url: str, route: Route) -> None:
        self._routes[(method, url)] = route

    def calls(self, method: str, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and str(r.url) == url]

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        route = self._routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404, json={"message": "no such route"})
        if callable(route):
            return route(request)
        return route


def json_body(request: httpx.Request) -> dict:
    return json.loads(request.content)


def upload_ok(url: str) -> httpx.Response:
    return httpx.Response(200, json={"status": True, "data": [{"url": url}]})


# ────────────────────────────────────────────────────────────────────────────
# Factory helpers
# ────────────────────────────────────────────────────────────────────────────


def make_record(**overrides) -> dict:
    """An investor as the remote API returns it (camelCase, with ``_id``)."""
    record = {
        "_id": INVESTOR_ID,
        "name": "Blue Harbor Ventures",
        "website": "https://blueharbor.vc",
        "image": "https://cdn.test/blueharbor.png",
        "description": "Early-stage fund backing B2B software.",
        "geography": "Europe",
        "investmentStages": "Seed",
        "businessModel": ["B2B", "SaaS"],
        "investorType": "Venture Capital",
        "sectorInterested": ["Fintech", "AI/ML"],
        "checkSize": "$250k - $1M",
        "headquarter": "Lisbon",
        "contactLink": "https://blueharbor.vc/contact",
        "portfolioCompanies": [
            {"name": "Ledgerly", "logo": "https://cdn.test/ledgerly.png", "link": "https://ledgerly.io"},
            {"name": "Quanta", "logo": "", "link": "https://quanta.ai"},
        ],
        "__v": 0,
    }
    record.update(overrides)
    return record


def fill_required(form: InvestorForm) -> InvestorForm:
    """Fill every field a create form requires."""
    form.fields.set_scalar("name", "Blue Harbor Ventures")
    form.fields.set_scalar("website", "https://blueharbor.vc")
    form.fields.set_scalar("description", "Early-stage fund backing B2B software.")
    form.fields.set_scalar("check_size", "$250k - $1M")
    form.fields.set_scalar("headquarter", "Lisbon")
    form.fields.set_scalar("contact_link", "https://blueharbor.vc/contact")
    return form


# ────────────────────────────────────────────────────────────────────────────
# Pytest fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def remote() -> RemoteStub:
    return RemoteStub()


@pytest.fixture()
def http_client(remote) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(remote))


@pytest.fixture()
def api(http_client) -> InvestorApiClient:
    return InvestorApiClient(http_client, base_url=BASE_URL, upload_url=UPLOAD_URL)


@pytest.fixture()
def create_form(api) -> CreateForm:
    return CreateForm(api)


@pytest.fixture()
def update_form(api) -> UpdateForm:
    return UpdateForm(api, INVESTOR_ID)


@pytest.fixture(autouse=True)
def _clear_form_sessions():
    """Close every global form session around each test."""
    form_sessions.clear()
    yield
    form_sessions.clear()
