"""CLI parser behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

import manifestgen.cli as cli_module
from manifestgen.cli import _build_flags, _build_parser
from manifestgen.models import TypeDescriptor
from manifestgen.orchestrator import Orchestrator
from tests._fixtures.fake_gateway import FakeGateway, record


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "build"])
    assert args.verbose is True
    assert args.command == "build"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["build", "--verbose"])
    assert args.verbose is True
    assert args.command == "build"


def test_cli_build_flags_default_to_unset() -> None:
    parser = _build_parser()
    args = parser.parse_args(["build"])
    assert _build_flags(args) == {
        "excludemanaged": None,
        "apiversion": None,
        "quickfilter": None,
        "outputfile": None,
    }


def test_cli_build_accepts_manifest_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["build", "-x", "-a", "58.0", "-q", "CustomObject,ApexClass", "-f", "out/package.xml"]
    )
    assert _build_flags(args) == {
        "excludemanaged": True,
        "apiversion": "58.0",
        "quickfilter": "CustomObject,ApexClass",
        "outputfile": "out/package.xml",
    }


def test_cli_fields_requires_names() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["fields"])
    args = parser.parse_args(["fields", "Account.Name", "Account.Rating__c"])
    assert args.names == ["Account.Name", "Account.Rating__c"]


def test_cli_build_writes_manifest(tmp_path: Path, monkeypatch, capsys) -> None:
    gateway = FakeGateway(
        [TypeDescriptor("ApexClass")],
        {("ApexClass", None): record("ApexClass", "Service")},
    )
    monkeypatch.setattr(
        cli_module.Orchestrator, "from_config", classmethod(lambda cls, config: Orchestrator(gateway))
    )
    output = tmp_path / "package.xml"

    cli_module.main(["build", str(tmp_path), "--outputfile", str(output)])

    assert "<members>Service</members>" in output.read_text(encoding="utf-8")
    assert "Manifest with 2 types" in capsys.readouterr().out
    assert gateway.closed is True


def test_cli_build_reports_catalog_failure(tmp_path: Path, monkeypatch) -> None:
    gateway = FakeGateway(describe_error=RuntimeError("boom"))
    monkeypatch.setattr(
        cli_module.Orchestrator, "from_config", classmethod(lambda cls, config: Orchestrator(gateway))
    )

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["build", str(tmp_path), "--outputfile", str(tmp_path / "p.xml")])

    assert excinfo.value.code == 1
    assert not (tmp_path / "p.xml").exists()


def test_cli_build_takes_project_path_positionally() -> None:
    parser = _build_parser()
    assert parser.parse_args(["build"]).path == "."
    assert parser.parse_args(["build", "project", "-x"]).path == "project"


def test_cli_fields_takes_project_path_as_option() -> None:
    parser = _build_parser()
    args = parser.parse_args(["fields", "-p", "project", "Account.Name", "Account.Rating__c"])
    assert args.path == "project"
    assert args.names == ["Account.Name", "Account.Rating__c"]


def test_cli_log_file_records_skipped_listings(tmp_path: Path, monkeypatch) -> None:
    gateway = FakeGateway(
        [TypeDescriptor("ApexClass"), TypeDescriptor("ApexPage")],
        {("ApexClass", None): record("ApexClass", "Service")},
        failing_listings=[("ApexPage", None)],
    )
    monkeypatch.setattr(
        cli_module.Orchestrator, "from_config", classmethod(lambda cls, config: Orchestrator(gateway))
    )
    log_file = tmp_path / "logs" / "build.log"

    cli_module.main(
        ["--log-file", str(log_file), "build", str(tmp_path), "-f", str(tmp_path / "package.xml")]
    )

    text = log_file.read_text(encoding="utf-8")
    assert "DEBUG manifestgen.manifest: Catalog describes 2 types" in text
    assert "ApexPage" in text and "skipping its members" in text
