"""Tests for folding index files into release metadata."""

from __future__ import annotations

import pytest

from hackage_index.data.metadata import build_metadata, check_consistency, index_metadata
from hackage_index.domain.errors import InvalidHash, ManifestJSONError, RangeParseError
from hackage_index.domain.hashes import EMPTY_SHA256, sha256
from hackage_index.domain.models import PackageInfo, ReleaseInfo
from hackage_index.domain.versions import ANY_VERSION, Version, VersionRange
from hackage_index.storage.cache_file import CacheRecord, encode_cache
from tests.conftest import BASE_TIME, cabal_file, package_json, tarball_bytes

V10 = Version.parse("1.0")
V11 = Version.parse("1.1")


def test_single_release(index_builder) -> None:
    path = index_builder().add_release("acme", "1.0").write()
    meta = index_metadata(path)

    assert list(meta) == ["acme"]
    ri = meta["acme"].versions[V10]
    assert ri == ReleaseInfo(
        revision=0,
        cabal_hash=sha256(cabal_file("acme", "1.0")),
        tarball_hash=sha256(tarball_bytes("acme", "1.0")),
    )
    assert meta["acme"].preferred == ANY_VERSION


def test_revisions_are_counted(index_builder) -> None:
    """Each further .cabal file for the same version is a new revision."""

    builder = index_builder().add_release("acme", "1.0")
    for revision in (1, 2, 3):
        builder.add("acme/1.0/acme.cabal", cabal_file("acme", "1.0", revision))
    meta = index_metadata(builder.write())

    ri = meta["acme"].versions[V10]
    assert ri.revision == 3
    assert ri.cabal_hash == sha256(cabal_file("acme", "1.0", 3))


def test_merge_order_of_cabal_and_package_json(index_builder) -> None:
    """Either file may come first; the resulting release is the same."""

    cabal = cabal_file("acme", "1.0")
    pj = package_json("acme", "1.0", tarball_bytes("acme", "1.0"))

    cabal_first = index_builder("a.tar").add("acme/1.0/acme.cabal", cabal).add("acme/1.0/package.json", pj)
    json_first = index_builder("b.tar").add("acme/1.0/package.json", pj).add("acme/1.0/acme.cabal", cabal)

    a = index_metadata(cabal_first.write())
    b = index_metadata(json_first.write())
    assert a == b
    assert a["acme"].versions[V10].revision == 0


def test_package_json_placeholder_then_revisions(index_builder) -> None:
    """
    A package.json seen first leaves a revision-0 placeholder; the first
    .cabal file fills it and later ones bump the revision.
    """

    builder = (
        index_builder()
        .add("acme/1.0/package.json", package_json("acme", "1.0", tarball_bytes("acme", "1.0")))
        .add("acme/1.0/acme.cabal", cabal_file("acme", "1.0"))
        .add("acme/1.0/acme.cabal", cabal_file("acme", "1.0", 1))
    )
    ri = index_metadata(builder.write())["acme"].versions[V10]
    assert ri.revision == 1
    assert ri.cabal_hash == sha256(cabal_file("acme", "1.0", 1))


def test_later_package_json_only_replaces_tarball_hash(index_builder) -> None:
    builder = (
        index_builder()
        .add_release("acme", "1.0")
        .add("acme/1.0/acme.cabal", cabal_file("acme", "1.0", 1))
        .add("acme/1.0/package.json", package_json("acme", "1.0", b"re-uploaded"))
    )
    ri = index_metadata(builder.write())["acme"].versions[V10]
    assert ri.revision == 1
    assert ri.cabal_hash == sha256(cabal_file("acme", "1.0", 1))
    assert ri.tarball_hash == sha256(b"re-uploaded")


def test_preferred_versions(index_builder) -> None:
    builder = (
        index_builder()
        .add_release("acme", "1.0")
        .add_release("acme", "1.1")
        .add("acme/preferred-versions", b"acme <1.1 || >1.1")
    )
    pi = index_metadata(builder.write())["acme"]
    assert pi.preferred == VersionRange.parse("<1.1 || >1.1")
    assert set(pi.versions) == {V10, V11}
    assert set(pi.preferred_versions()) == {V10}


def test_preferred_versions_before_any_release(index_builder) -> None:
    builder = index_builder().add("acme/preferred-versions", b"acme ==1.0")
    meta = index_metadata(builder.write())
    assert meta["acme"] == PackageInfo(versions={}, preferred=VersionRange.parse("==1.0"))


def test_empty_preferred_versions_is_ignored(index_builder) -> None:
    builder = (
        index_builder()
        .add("acme/preferred-versions", b"acme ==1.0")
        .add("acme/preferred-versions", b"")
        .add("other/preferred-versions", b"")
    )
    meta = index_metadata(builder.write())
    assert meta["acme"].preferred == VersionRange.parse("==1.0")
    assert "other" not in meta


def test_bad_preferred_versions_aborts(index_builder) -> None:
    builder = index_builder().add_release("acme", "1.0").add("acme/preferred-versions", b"acme >=>1")
    with pytest.raises(RangeParseError) as excinfo:
        build_metadata(builder.write())
    assert excinfo.value.path == "acme/preferred-versions"


def test_bad_package_json_aborts(index_builder) -> None:
    builder = index_builder().add("acme/1.0/acme.cabal", b"x").add("acme/1.0/package.json", b"{}")
    with pytest.raises(ManifestJSONError) as excinfo:
        build_metadata(builder.write())
    assert excinfo.value.path == "acme/1.0/package.json"


def test_cutoff_ignores_later_entries(index_builder) -> None:
    builder = (
        index_builder()
        .add("acme/1.0/acme.cabal", cabal_file("acme", "1.0"), time=BASE_TIME)
        .add("acme/1.0/package.json", package_json("acme", "1.0", b"t"), time=BASE_TIME)
        .add("acme/1.0/acme.cabal", cabal_file("acme", "1.0", 1), time=BASE_TIME + 100)
        .add("acme/preferred-versions", b"acme <0", time=BASE_TIME + 100)
    )
    path = builder.write()

    past = index_metadata(path, cutoff=BASE_TIME + 50)
    assert past["acme"].versions[V10].revision == 0
    assert past["acme"].preferred == ANY_VERSION

    now = index_metadata(path)
    assert now["acme"].versions[V10].revision == 1


def test_missing_tarball_hash_fails_consistency(index_builder) -> None:
    builder = index_builder().add_release("acme", "1.0").add("acme/1.1/acme.cabal", b"x")
    path = builder.write()

    meta = build_metadata(path)
    assert meta["acme"].versions[V11].tarball_hash == EMPTY_SHA256

    with pytest.raises(InvalidHash) as excinfo:
        index_metadata(path)
    assert (excinfo.value.package, excinfo.value.version, excinfo.value.kind) == ("acme", V11, "tarball")


def test_missing_cabal_hash_fails_consistency() -> None:
    meta = {
        "acme": PackageInfo(
            versions={V10: ReleaseInfo(revision=0, cabal_hash=EMPTY_SHA256, tarball_hash=sha256(b"t"))}
        )
    }
    with pytest.raises(InvalidHash) as excinfo:
        check_consistency(meta)
    assert excinfo.value.kind == "cabal"


def test_folding_twice_is_identical(index_builder) -> None:
    """Two scans of the same archive encode to the same bytes."""

    builder = index_builder().add_release("acme", "1.0").add_release("zeta", "0.1").add_release("acme", "1.1")
    builder.add("acme/preferred-versions", b"acme ^>=1.0")
    path = builder.write()

    first = encode_cache(CacheRecord(size=1, time=2, data=index_metadata(path)))
    second = encode_cache(CacheRecord(size=1, time=2, data=index_metadata(path)))
    assert first == second
