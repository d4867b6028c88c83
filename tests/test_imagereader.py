#!/usr/bin/env python

"""ImageReader tests."""

from pathlib import Path

import pytest

from aci_push_async import ImageReader, ManifestExtractError

from .testutils import get_manifest_json, make_aci

pytestmark = [pytest.mark.asyncio]


@pytest.mark.parametrize("compression", ["", "gz", "bz2", "xz"])
async def test_get_manifest(compression: str, tmp_path: Path):
    """Test that manifests can be extracted from (compressed) images."""
    path = make_aci(tmp_path.joinpath("app.aci"), compression=compression)
    with path.open("rb") as file:
        manifest = await ImageReader().get_manifest(file)
        assert not file.closed
    assert manifest.get_json() == get_manifest_json()
    assert manifest.get_labels()["os"] == "linux"


async def test_get_manifest_dot_slash(tmp_path: Path):
    """Test that a "./manifest" member is found."""
    path = make_aci(tmp_path.joinpath("app.aci"), member="./manifest")
    with path.open("rb") as file:
        manifest = await ImageReader().get_manifest(file)
    assert manifest.get_name() == "example.com/app"


async def test_get_manifest_missing(tmp_path: Path):
    """Test that images without a manifest are rejected."""
    path = make_aci(tmp_path.joinpath("app.aci"), member=None)
    with path.open("rb") as file:
        with pytest.raises(ManifestExtractError) as exception:
            await ImageReader().get_manifest(file)
    assert "missing manifest" in str(exception.value)


async def test_get_manifest_invalid_json(tmp_path: Path):
    """Test that images with an undecodable manifest are rejected."""
    path = make_aci(tmp_path.joinpath("app.aci"), b"{not json")
    with path.open("rb") as file:
        with pytest.raises(ManifestExtractError) as exception:
            await ImageReader().get_manifest(file)
    assert "error decoding image manifest" in str(exception.value)


async def test_get_manifest_not_a_tarball(tmp_path: Path):
    """Test that files that are not images are rejected."""
    path = tmp_path.joinpath("app.aci")
    path.write_bytes(b"this is not a tarball" * 100)
    with path.open("rb") as file:
        with pytest.raises(ManifestExtractError) as exception:
            await ImageReader().get_manifest(file)
    assert "error reading image" in str(exception.value)
