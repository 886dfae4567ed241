"""Tests for tenancy.verifier: strategy selection and end-to-end scenarios.

Covers:
  - direct strategy: all-true agreement, missing deposit
  - structured strategy: record comparison, partial records, deposit source
  - fallback: timeouts and malformed responses with and without fallback
  - empty documents and invalid claims
"""

import json

import pytest

from tenancy.config import VerifierConfig
from tenancy.exceptions import ExtractionError, ValidationError, VerificationUnavailable
from tenancy.models import CLAIM_FIELDS, UserClaim
from tenancy.report import DEPOSIT_ISSUE, NO_TEXT_ISSUE
from tenancy.extractor import OpenAIBackend
from tenancy.verifier import TenancyVerifier

ALL_TRUE = {name: True for name in CLAIM_FIELDS}


# ═══════════════════════════════════════════════════
# Direct strategy
# ═══════════════════════════════════════════════════

class TestDirectStrategy:

    def test_all_fields_and_deposit_match(self, claim, agreement_text, direct_config):
        report = TenancyVerifier(direct_config).verify(claim, agreement_text)
        assert report.match == ALL_TRUE
        assert report.extracted_deposit == "1,500.00"
        assert report.issues == ()
        assert report.success is True
        assert report.extracted is None
        assert report.strategy == "direct"

    def test_missing_deposit(self, claim, agreement_text_no_deposit, direct_config):
        report = TenancyVerifier(direct_config).verify(claim, agreement_text_no_deposit)
        assert report.issues == (DEPOSIT_ISSUE,)
        assert report.success is False
        assert report.match == ALL_TRUE

    def test_no_backend_built(self, direct_config):
        assert TenancyVerifier(direct_config).extractor is None

    def test_case_insensitive(self, claim, agreement_text, direct_config):
        verifier = TenancyVerifier(direct_config)
        assert (verifier.verify(claim, agreement_text)
                == verifier.verify(claim, agreement_text.upper()))


# ═══════════════════════════════════════════════════
# Structured strategy
# ═══════════════════════════════════════════════════

class TestStructuredStrategy:

    def test_structured_match(self, claim, agreement_text, structured_config,
                              make_backend, extraction_json):
        backend = make_backend(response=extraction_json)
        report = TenancyVerifier(structured_config, backend=backend).verify(claim, agreement_text)
        assert report.match == ALL_TRUE
        assert report.success is True
        assert report.strategy == "structured"
        assert report.extracted.landlord.name == "John Smith"
        assert report.extracted_deposit == "1500.00"
        assert len(backend.calls) == 1
        assert backend.calls[0]["timeout"] == 2.0

    def test_exponent_deposit_rendered_plain(self, claim, agreement_text, structured_config,
                                             make_backend, extraction_payload):
        raw = json.dumps(extraction_payload).replace('"amount": 1500.0', '"amount": 1.5e3')
        assert "1.5e3" in raw
        backend = make_backend(response=raw)
        report = TenancyVerifier(structured_config, backend=backend).verify(claim, agreement_text)
        assert report.extracted_deposit == "1500.00"

    def test_non_finite_amounts_do_not_raise(self, claim, agreement_text, structured_config,
                                             make_backend, extraction_payload):
        raw = (json.dumps(extraction_payload)
               .replace('"amount": 1200.0', '"amount": NaN')
               .replace('"amount": 1500.0', '"amount": Infinity'))
        backend = make_backend(response=raw)
        report = TenancyVerifier(structured_config, backend=backend).verify(claim, agreement_text)
        assert report.strategy == "structured"
        assert report.match["rent"] is False
        assert report.extracted_deposit == "1,500.00"
        json.dumps(report.to_dict(), allow_nan=False)

    def test_missing_end_date_is_mismatch(self, claim, agreement_text, structured_config,
                                          make_backend, extraction_payload):
        del extraction_payload["tenancy"]["endDate"]
        backend = make_backend(response=json.dumps(extraction_payload))
        report = TenancyVerifier(structured_config, backend=backend).verify(claim, agreement_text)
        assert report.match["endDate"] is False
        assert report.issues == ("Mismatch on endDate",)

    def test_deposit_falls_back_to_text(self, claim, agreement_text, structured_config,
                                        make_backend, extraction_payload):
        extraction_payload["deposit"] = {"amount": None}
        backend = make_backend(response=json.dumps(extraction_payload))
        report = TenancyVerifier(structured_config, backend=backend).verify(claim, agreement_text)
        assert report.extracted_deposit == "1,500.00"
        assert report.success is True

    def test_no_deposit_anywhere(self, claim, agreement_text_no_deposit, structured_config,
                                 make_backend, extraction_payload):
        del extraction_payload["deposit"]
        backend = make_backend(response=json.dumps(extraction_payload))
        report = TenancyVerifier(structured_config, backend=backend).verify(
            claim, agreement_text_no_deposit)
        assert report.issues == (DEPOSIT_ISSUE,)

    def test_rent_with_pence(self, agreement_text, structured_config, make_backend,
                             extraction_json):
        claim = UserClaim("Jane Doe", "1 High St", "1200.00", "2024-01-01", "2024-12-31")
        backend = make_backend(response=extraction_json)
        report = TenancyVerifier(structured_config, backend=backend).verify(claim, agreement_text)
        assert report.match["rent"] is True

    def test_code_fences_without_fallback(self, claim, agreement_text, structured_config,
                                          make_backend, extraction_json):
        backend = make_backend(response=f"```json\n{extraction_json}\n```")
        verifier = TenancyVerifier(structured_config, backend=backend)
        with pytest.raises(VerificationUnavailable) as excinfo:
            verifier.verify(claim, agreement_text)
        assert isinstance(excinfo.value.__cause__, ExtractionError)


# ═══════════════════════════════════════════════════
# Fallback
# ═══════════════════════════════════════════════════

class TestFallback:

    def test_timeout_falls_back_to_direct(self, claim, agreement_text, fallback_config,
                                          make_backend):
        backend = make_backend(error=TimeoutError("backend too slow"))
        report = TenancyVerifier(fallback_config, backend=backend).verify(claim, agreement_text)
        assert report.strategy == "direct"
        assert report.match == ALL_TRUE
        assert report.extracted is None
        assert report.success is True
        assert len(backend.calls) == 1

    def test_malformed_response_falls_back(self, claim, agreement_text_no_deposit,
                                           fallback_config, make_backend):
        backend = make_backend(response="not json")
        report = TenancyVerifier(fallback_config, backend=backend).verify(
            claim, agreement_text_no_deposit)
        assert report.strategy == "direct"
        assert report.issues == (DEPOSIT_ISSUE,)

    def test_no_mode_switch_between_requests(self, claim, agreement_text, fallback_config,
                                             make_backend, extraction_json):
        backend = make_backend(error=ExtractionError("quota exceeded"))
        verifier = TenancyVerifier(fallback_config, backend=backend)
        assert verifier.verify(claim, agreement_text).strategy == "direct"

        backend.error = None
        backend.response = extraction_json
        assert verifier.verify(claim, agreement_text).strategy == "structured"
        assert len(backend.calls) == 2

    def test_missing_api_key_falls_back(self, claim, agreement_text, fallback_config,
                                        monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        report = TenancyVerifier(fallback_config).verify(claim, agreement_text)
        assert report.strategy == "direct"
        assert report.success is True

    def test_failing_endpoint_called_once_then_direct(self, claim, agreement_text,
                                                      fallback_config, chat_server):
        backend = OpenAIBackend(api_key="sk-test", base_url=chat_server.base_url)
        report = TenancyVerifier(fallback_config, backend=backend).verify(claim, agreement_text)
        assert report.strategy == "direct"
        assert report.success is True
        assert len(chat_server.posts) == 1

    def test_default_strategy_is_fallback(self):
        assert VerifierConfig().strategy == "structured-with-fallback"


# ═══════════════════════════════════════════════════
# Edge cases
# ═══════════════════════════════════════════════════

class TestEdgeCases:

    @pytest.mark.parametrize("text", ["", "   \n\f  ", None])
    def test_empty_document(self, claim, text, fallback_config, make_backend):
        backend = make_backend(response="{}")
        report = TenancyVerifier(fallback_config, backend=backend).verify(claim, text)
        assert report.match == {name: False for name in CLAIM_FIELDS}
        assert report.issues[-2:] == (DEPOSIT_ISSUE, NO_TEXT_ISSUE)
        assert report.success is False
        assert backend.calls == []

    def test_empty_claim_field_rejected(self, agreement_text, direct_config):
        claim = UserClaim("", "1 High St", "1200", "2024-01-01", "2024-12-31")
        with pytest.raises(ValidationError):
            TenancyVerifier(direct_config).verify(claim, agreement_text)

    def test_claim_validated_before_backend_call(self, agreement_text, fallback_config,
                                                 make_backend):
        backend = make_backend(response="{}")
        claim = UserClaim("Jane Doe", "1 High St", "twelve hundred", "2024-01-01", "2024-12-31")
        with pytest.raises(ValidationError):
            TenancyVerifier(fallback_config, backend=backend).verify(claim, agreement_text)
        assert backend.calls == []
