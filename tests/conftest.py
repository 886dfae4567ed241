"""Shared fixtures for the tenancy verifier test suite."""

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from tenancy.config import VerifierConfig
from tenancy.extractor import ExtractionBackend
from tenancy.models import UserClaim


# ═══════════════════════════════════════════════════
# Fake extraction backend
# ═══════════════════════════════════════════════════

class FakeBackend(ExtractionBackend):
    """Returns a canned completion (or raises) and records every call."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def complete(self, system_prompt, user_prompt, timeout):
        self.calls.append({"system": system_prompt, "user": user_prompt, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def make_backend():
    """Factory: make_backend(response=..., error=...) -> FakeBackend."""
    return FakeBackend


# ═══════════════════════════════════════════════════
# Local chat completions endpoint
# ═══════════════════════════════════════════════════

class _ChatCompletionsHandler(BaseHTTPRequestHandler):
    """Records each POST, then answers with the server's status after its delay."""

    def do_POST(self):
        self.server.posts.append(self.path)
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        if self.server.delay:
            time.sleep(self.server.delay)
        body = json.dumps({"error": {"message": "upstream unavailable", "type": "server_error"}})
        try:
            self.send_response(self.server.status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body.encode("utf-8"))
        except (BrokenPipeError, ConnectionResetError):
            # Client already gave up (timeout tests)
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def chat_server(monkeypatch):
    """
    Threaded HTTP server on 127.0.0.1 standing in for the OpenAI API.

    ``server.posts`` lists request paths; set ``server.status`` and
    ``server.delay`` to shape the reply. ``server.base_url`` goes to
    OpenAIBackend(base_url=...).
    """
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")

    server = ThreadingHTTPServer(("127.0.0.1", 0), _ChatCompletionsHandler)
    server.daemon_threads = True
    server.posts = []
    server.status = 500
    server.delay = 0.0
    server.base_url = f"http://127.0.0.1:{server.server_address[1]}/v1"

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


# ═══════════════════════════════════════════════════
# Claims and documents
# ═══════════════════════════════════════════════════

@pytest.fixture
def claim():
    return UserClaim(
        full_name="Jane Doe",
        address="1 High St",
        rent="1200",
        start_date="2024-01-01",
        end_date="2024-12-31",
    )


@pytest.fixture
def agreement_text():
    """Agreement containing every claimed value verbatim, plus a deposit."""
    return (
        "ASSURED SHORTHOLD TENANCY AGREEMENT\n"
        "Tenant: Jane Doe\n"
        "Property: 1 High St, London\n"
        "Rent: 1200 per calendar month\n"
        "Start date: 2024-01-01\n"
        "End date: 2024-12-31\n"
        "Deposit: £1,500.00 protected by the Deposit Protection Service\n"
    )


@pytest.fixture
def agreement_text_no_deposit():
    return (
        "ASSURED SHORTHOLD TENANCY AGREEMENT\n"
        "Tenant: Jane Doe\n"
        "Property: 1 High St, London\n"
        "Rent: 1200 per calendar month\n"
        "Start date: 2024-01-01\n"
        "End date: 2024-12-31\n"
    )


@pytest.fixture
def extraction_payload():
    """Well-formed extraction response matching the claim fixture."""
    return {
        "tenants": [{"fullName": "Jane Doe"}],
        "property": {"address": "1 High St, London"},
        "rent": {
            "amount": 1200.00,
            "currency": "GBP",
            "dueDay": "1",
            "frequency": "monthly",
            "paymentDetails": None,
        },
        "tenancy": {"startDate": "2024-01-01", "endDate": "2024-12-31", "durationMonths": 12},
        "deposit": {"amount": 1500.00, "currency": "GBP", "protectedBy": "DPS"},
        "landlord": {"name": "John Smith", "agent": {"name": "Acme Lettings", "address": "2 Low Rd"}},
    }


@pytest.fixture
def extraction_json(extraction_payload):
    return json.dumps(extraction_payload)


# ═══════════════════════════════════════════════════
# Configs
# ═══════════════════════════════════════════════════

@pytest.fixture
def direct_config():
    return VerifierConfig(strategy="direct")


@pytest.fixture
def fallback_config():
    return VerifierConfig(strategy="structured-with-fallback", extraction_timeout_ms=2000)


@pytest.fixture
def structured_config():
    return VerifierConfig(strategy="structured", extraction_timeout_ms=2000)
