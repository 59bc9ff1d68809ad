"""
Tests for API models: credential masking, token records, job status decoding.
"""

import pytest

from metal_batch.api.models import (
    Credential,
    JobFailed,
    JobPending,
    JobSucceeded,
    JobUnknown,
    TokenRecord,
    decode_job_status,
)


class TestCredential:
    def test_value_is_kept(self):
        assert Credential(" key-1 ").value == "key-1"

    def test_masked_in_repr_and_str(self):
        cred = Credential("super-secret")
        assert "super-secret" not in repr(cred)
        assert "super-secret" not in str(cred)
        assert "super-secret" not in f"{cred}"

    @pytest.mark.parametrize("bad", ["", "   ", None])
    def test_rejects_empty(self, bad):
        with pytest.raises(ValueError):
            Credential(bad)

    def test_equality(self):
        assert Credential("a") == Credential("a")
        assert Credential("a") != Credential("b")


class TestTokenRecord:
    def test_full_entry(self):
        record = TokenRecord.from_wire({
            "id": "t1",
            "address": "0xabc",
            "name": "Acme Token",
            "symbol": "A0",
            "totalSupply": 1_000_000,
            "startingAppSupply": 500_000,
            "remainingAppSupply": 400_000,
            "merchantSupply": 100_000,
            "merchantAddress": "0xmerchant",
            "price": 0.05,
        })
        assert record == TokenRecord(
            id="t1", address="0xabc", name="Acme Token", symbol="A0",
            total_supply=1_000_000, starting_app_supply=500_000,
            remaining_app_supply=400_000, merchant_supply=100_000,
            merchant_address="0xmerchant", price=0.05,
        )

    def test_optional_fields_default(self):
        record = TokenRecord.from_wire({"address": "0xabc", "totalSupply": "lots"})
        assert record.name == ""
        assert record.total_supply == 0
        assert record.price == 0.0

    def test_missing_address_is_rejected(self):
        assert TokenRecord.from_wire({"name": "x"}) is None
        assert TokenRecord.from_wire({"address": ""}) is None

    def test_frozen(self):
        record = TokenRecord.from_wire({"address": "0xabc"})
        with pytest.raises(Exception):
            record.name = "changed"


class TestDecodeJobStatus:
    @pytest.mark.parametrize("tag", ["pending", "PENDING", "queued", "processing", "in_progress"])
    def test_pending(self, tag):
        assert decode_job_status(f'{{"status": "{tag}"}}') == JobPending()

    def test_success_reads_data(self):
        status = decode_job_status('{"status": "success", "data": {"name": "Acme Token", "address": "0xabc"}}')
        assert status == JobSucceeded(result_name="Acme Token", result_address="0xabc")

    def test_success_falls_back_to_top_level(self):
        status = decode_job_status('{"status": "completed", "name": "N", "address": "0xdef"}')
        assert status == JobSucceeded(result_name="N", result_address="0xdef")

    def test_failure_reason(self):
        assert decode_job_status('{"status": "failed", "error": "symbol taken"}') == JobFailed("symbol taken")
        assert decode_job_status('{"status": "error", "message": "boom"}') == JobFailed("boom")
        assert decode_job_status('{"status": "failed"}') == JobFailed("failed")

    def test_unknown_tag(self):
        assert decode_job_status('{"status": "paused"}') == JobUnknown("paused")
        assert decode_job_status('{"error": "not found"}') == JobUnknown("")

    def test_malformed_body_is_failure(self):
        status = decode_job_status("<html>502</html>")
        assert isinstance(status, JobFailed)
        assert status.reason.startswith("decode_error")

    def test_non_object_body_is_failure(self):
        assert isinstance(decode_job_status("[]"), JobFailed)
