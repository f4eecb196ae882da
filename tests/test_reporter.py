"""Tests for report rendering and parse-back."""

import json

import pytest
import yaml

from pathdoctor.engine import DiagnosticsEngine
from pathdoctor.models import AccessRequest, TargetHint
from pathdoctor.reporter import (
    SCHEMA_VERSION,
    parse_structured,
    render,
    report_from_dict,
    report_to_dict,
)


@pytest.fixture
def report(fake_fs, config, bob):
    """Report with a link chain, mixed severities and suggestions."""
    fake_fs.add_dir("/data", mode=0o700)
    fake_fs.add_file("/data/target.txt", owner="root", group="staff", mode=0o640, nlink=2)
    fake_fs.add_link("/data/link", "target.txt")
    engine = DiagnosticsEngine(
        config, filesystem=fake_fs, principal_provider=lambda: bob, environ={"PATH": "/usr/bin"}
    )
    return engine.diagnose(AccessRequest("/data/link", TargetHint.PATH))


@pytest.fixture
def missing_report(fake_fs, config, bob):
    engine = DiagnosticsEngine(
        config, filesystem=fake_fs, principal_provider=lambda: bob, environ={"PATH": ""}
    )
    return engine.diagnose(AccessRequest("/nowhere"))


class TestStructured:
    def test_byte_identical(self, report):
        assert render(report, "structured") == render(report, "structured")

    def test_json_alias(self, report):
        assert render(report, "json") == render(report, "structured")

    def test_stable_fields(self, report):
        data = json.loads(render(report, "structured"))
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["target"] == "/data/link"
        assert data["principal"]["groups"] == ["bob", "staff"]
        assert data["file_state"]["kind"] == "symlink"
        assert data["link_chain"]["status"] == "resolved_file"
        assert [f["code"] for f in data["findings"]] == report.codes
        assert data["summary"] == {
            "counts": {"error": 1, "info": 2, "warning": 2},
            "exit_status": 1,
        }

    def test_round_trip(self, report):
        assert parse_structured(render(report, "structured")) == report

    def test_round_trip_missing_target(self, missing_report):
        assert report_from_dict(report_to_dict(missing_report)) == missing_report

    def test_unknown_schema(self, report):
        data = report_to_dict(report)
        data["schema_version"] = "99"
        with pytest.raises(ValueError):
            report_from_dict(data)

    def test_missing_field(self, report):
        data = report_to_dict(report)
        del data["principal"]
        with pytest.raises(ValueError):
            report_from_dict(data)


class TestYaml:
    def test_same_payload(self, report):
        assert yaml.safe_load(render(report, "yaml")) == report_to_dict(report)


class TestText:
    def test_sections_in_order(self, report):
        text = render(report, "text")
        headings = ["Target:", "Principal:", "File state", "Link chain", "Findings", "Suggestions", "Result:"]
        positions = [text.index(h) for h in headings]
        assert positions == sorted(positions)

    def test_findings_in_report_order(self, report):
        text = render(report, "text")
        positions = [text.index(f"] {code}:") for code in report.codes]
        assert positions == sorted(positions)

    def test_result_line(self, report, missing_report):
        assert render(report, "text").rstrip().endswith("exit status 1")
        assert "Result: FAIL (1 error, 0 warnings, 0 info)" in render(missing_report, "text")

    def test_pure(self, report):
        assert render(report, "text") == render(report, "text")


def test_unknown_format(report):
    with pytest.raises(ValueError):
        render(report, "xml")
