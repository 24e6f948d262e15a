"""Tests for manifestgen.orchestrator."""

from __future__ import annotations

import asyncio
from pathlib import Path

from manifestgen.config import ManifestDefaults, ManifestGenConfig, OrgConfig
from manifestgen.gateway import HttpMetadataGateway
from manifestgen.models import TypeDescriptor
from manifestgen.orchestrator import Orchestrator
from manifestgen.retriever import LocalComponentIndex
from tests._fixtures.fake_gateway import FakeGateway, record


def test_build_manifest_defaults_to_org_api_version(tmp_path: Path) -> None:
    gateway = FakeGateway(
        [TypeDescriptor("ApexClass")],
        {("ApexClass", None): record("ApexClass", "Service")},
        api_version="61.0",
    )
    orchestrator = Orchestrator(gateway)

    document = asyncio.run(
        orchestrator.build_manifest({"outputfile": str(tmp_path / "package.xml")})
    )

    assert gateway.describe_calls == ["61.0"]
    assert document.api_version == "61.0"
    assert "<version>61.0</version>" in document.xml


def test_build_manifest_prefers_configured_version(tmp_path: Path) -> None:
    gateway = FakeGateway([TypeDescriptor("ApexClass")], api_version="61.0")
    orchestrator = Orchestrator(gateway)
    defaults = ManifestDefaults(api_version="55.0", output_file=str(tmp_path / "package.xml"))

    asyncio.run(orchestrator.build_manifest({}, defaults))

    assert gateway.describe_calls == ["55.0"]
    assert gateway.list_calls == [("ApexClass", "55.0", None)]


def test_check_fields_shares_the_run_cache() -> None:
    gateway = FakeGateway(
        query_rows=[
            ("QualifiedApiName = 'Account'", [{"DurableId": "Account", "QualifiedApiName": "Account"}]),
            ("EntityDefinitionId = 'Account'", [{"Id": "f1", "QualifiedApiName": "Name"}]),
        ]
    )
    local = LocalComponentIndex({"CustomField": ["Account.Draft__c"]})
    orchestrator = Orchestrator(gateway, local_components=local)

    results = asyncio.run(
        orchestrator.check_fields(["Account.Name", "Account.Draft__c", "Account.Nope__c", "Account.Name"])
    )

    assert results == {"Account.Name": True, "Account.Draft__c": True, "Account.Nope__c": False}
    assert orchestrator.fields.is_cached("Account")
    field_queries = [soql for soql, _ in gateway.query_calls if "FieldDefinition" in soql]
    assert len(field_queries) <= 2


def test_separate_orchestrators_do_not_share_caches() -> None:
    gateway = FakeGateway()

    first = Orchestrator(gateway)
    second = Orchestrator(gateway)

    assert first.fields is not second.fields
    assert first.entities is not second.entities


def test_from_config_builds_http_gateway() -> None:
    config = ManifestGenConfig(
        root=Path("."),
        org=OrgConfig(instance_url="https://example.my.salesforce.com", access_token="t", request_timeout=5),
        manifest=ManifestDefaults(api_version="58.0"),
    )

    orchestrator = Orchestrator.from_config(config)

    assert isinstance(orchestrator.gateway, HttpMetadataGateway)
    assert orchestrator.gateway.api_version == "58.0"
    assert orchestrator.gateway.request_timeout == 5
    assert orchestrator.manifest_defaults is config.manifest


def test_build_manifest_falls_back_to_stored_defaults(tmp_path: Path) -> None:
    gateway = FakeGateway(
        [TypeDescriptor("ApexClass"), TypeDescriptor("CustomObject")],
        {("ApexClass", None): record("ApexClass", "Service")},
    )
    defaults = ManifestDefaults(quick_filters=["ApexClass"], output_file=str(tmp_path / "m.xml"))
    orchestrator = Orchestrator(gateway, manifest_defaults=defaults)

    document = asyncio.run(orchestrator.build_manifest({}))

    assert document.path == tmp_path / "m.xml"
    assert document.types == {"ApexClass": ["Service"]}
    assert gateway.list_calls == [("ApexClass", "59.0", None)]
