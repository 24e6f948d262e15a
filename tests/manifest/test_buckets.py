"""Tests for member bucketing and managed package filtering."""

from __future__ import annotations

from manifestgen.manifest import ManagedPackageFilter, MemberBuckets, bucket_key
from tests._fixtures.fake_gateway import record


def test_add_or_create_returns_the_same_list() -> None:
    buckets = MemberBuckets()

    first = buckets.add_or_create("ApexClass")
    first.append("Service")

    assert buckets.add_or_create("ApexClass") is first
    assert buckets.get("ApexClass") == ["Service"]
    assert "ApexClass" in buckets
    assert len(buckets) == 1


def test_sorted_items_orders_types_and_members() -> None:
    buckets = MemberBuckets()
    buckets.add("Layout", record("Layout", "Account-Layout"))
    buckets.add("ApexClass", record("ApexClass", "b"))
    buckets.add("ApexClass", record("ApexClass", "A"))

    assert list(buckets.sorted_items()) == [
        ("ApexClass", ["A", "b"]),
        ("Layout", ["Account-Layout"]),
    ]


def test_bucket_key_uses_nominal_type_for_regular_files() -> None:
    assert bucket_key("ApexClass", record("ApexClass", "Service", file_name="classes/Service.cls")) == "ApexClass"


def test_bucket_key_recovers_translation_subtype_from_file_name() -> None:
    global_translation = record(
        "StandardValueSetTranslation",
        "Regions-fr",
        file_name="globalValueSetTranslations/Regions-fr.globalValueSetTranslation",
    )
    dotted = record(
        "StandardValueSetTranslation",
        "en_US",
        file_name="en_US.GlobalValueSet.valueSetTranslation",
    )

    assert bucket_key("StandardValueSetTranslation", global_translation) == "GlobalValueSetTranslation"
    assert bucket_key("StandardValueSetTranslation", dotted) == "GlobalValueSet"


def test_bucket_key_falls_back_when_file_name_has_no_segment() -> None:
    undotted = record("GlobalValueSetTranslation", "x", file_name="valueSetTranslations")

    assert bucket_key("GlobalValueSetTranslation", undotted) == "GlobalValueSetTranslation"


def test_managed_filter_pattern_requires_namespace_separator() -> None:
    managed = ManagedPackageFilter(["acme", "sf.com"])

    assert managed.matches_name("acme__Widget__c")
    assert managed.matches_name("sf.com__Thing")
    assert not managed.matches_name("sfxcom__Thing")
    assert not managed.matches_name("acmeWidget__c")
    assert not managed.matches_name("Account")


def test_managed_filter_without_namespaces_never_matches_names() -> None:
    managed = ManagedPackageFilter()

    assert managed.pattern is None
    assert not managed.matches_name("__Anything")
    assert managed.is_managed(record("ApexClass", "Svc", namespace_prefix="ns"))
    assert managed.is_managed(record("ApexClass", "Svc", manageable_state="installed"))
    assert not managed.is_managed(record("ApexClass", "Svc", manageable_state="unmanaged"))


def test_managed_filter_reads_namespaces_from_installed_packages() -> None:
    managed = ManagedPackageFilter.from_records(
        [record("InstalledPackage", "acme"), record("InstalledPackage", "beta", namespace_prefix="beta")]
    )

    assert managed.namespaces == ("acme", "beta")
