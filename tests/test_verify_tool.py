"""Tests for the offline chain verifier (tools/verify.py)."""

import json

import pytest

from tools.verify import (
    EXIT_CODES,
    VerificationResult,
    main,
    verify_chain_data,
)


@pytest.fixture
def exported(ledger, owner_keys, register):
    private_key, address = owner_keys
    register(ledger, private_key, address, {"story": "one"})
    register(ledger, private_key, address, {"story": "two"})
    return ledger.export_chain()


@pytest.fixture
def write_chain(tmp_path):
    def _write(data, name="chain.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


class TestVerifyChainData:

    def test_clean_export_verifies(self, exported):
        report = verify_chain_data(exported)
        assert report.result == VerificationResult.VERIFIED
        assert report.record_count == 3
        assert report.findings == []

    def test_tampered_payload(self, exported):
        exported[1]["payload"] = b'{"forged":true}'.hex()
        report = verify_chain_data(exported)
        assert report.result == VerificationResult.TAMPERED
        assert [f.position for f in report.findings] == [1]

    def test_empty_export_is_tampered(self):
        report = verify_chain_data([])
        assert report.result == VerificationResult.TAMPERED
        assert report.findings[0].kind.value == "EMPTY_CHAIN"

    def test_not_a_list(self):
        report = verify_chain_data({"position": 0})
        assert report.result == VerificationResult.INVALID_FORMAT
        assert "JSON list" in report.error

    def test_missing_fields(self, exported):
        del exported[1]["digest"]
        report = verify_chain_data(exported)
        assert report.result == VerificationResult.INVALID_FORMAT

    def test_report_serializes(self, exported):
        exported[2]["previous_digest"] = "0" * 64
        data = verify_chain_data(exported).to_dict()
        assert data["result"] == "TAMPERED"
        assert {f["kind"] for f in data["findings"]} == {"TAMPERED_BODY", "BROKEN_LINK"}
        json.dumps(data)


class TestMain:

    def test_exit_codes(self):
        assert EXIT_CODES[VerificationResult.VERIFIED] == 0
        assert EXIT_CODES[VerificationResult.TAMPERED] == 1
        assert EXIT_CODES[VerificationResult.INVALID_FORMAT] == 3

    def test_valid_file(self, exported, write_chain, capsys):
        assert main([str(write_chain(exported))]) == 0
        assert "VERIFIED" in capsys.readouterr().out

    def test_tampered_file(self, exported, write_chain):
        exported[2]["timestamp"] += 1
        assert main([str(write_chain(exported))]) == 1

    def test_json_output(self, exported, write_chain, capsys):
        assert main([str(write_chain(exported)), "--json"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["result"] == "VERIFIED"
        assert out["record_count"] == 3

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "nope.json")]) == 3

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert main([str(path)]) == 3

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert main([str(path)]) == 3

    def test_directory_path(self, tmp_path, capsys):
        assert main([str(tmp_path), "--json"]) == 3
        out = json.loads(capsys.readouterr().out)
        assert out["result"] == "INVALID_FORMAT"
        assert out["error"].startswith("Cannot read file")
