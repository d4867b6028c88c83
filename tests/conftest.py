#!/usr/bin/env python

# pylint: disable=redefined-outer-name

"""Configures execution of pytest."""

from pathlib import Path

import pytest

from .testutils import FakePushServer, make_aci


def pytest_addoption(parser):
    """pytest add option."""
    parser.addoption(
        "--allow-online",
        action="store_true",
        default=False,
        help="Allow execution of online tests.",
    )


def pytest_collection_modifyitems(config, items):
    """pytest collection modifier."""

    skip_online = pytest.mark.skip(
        reason="Execution of online tests requires --allow-online option."
    )
    for item in items:
        if "online" in item.keywords and not config.getoption("--allow-online"):
            item.add_marker(skip_online)


def pytest_configure(config):
    """pytest configuration hook."""
    config.addinivalue_line("markers", "online: allow execution of online tests.")


@pytest.fixture
async def push_server() -> FakePushServer:
    """Provides a running, recording push server."""
    async with FakePushServer().run() as push_server:
        yield push_server


@pytest.fixture
def aci_path(tmp_path: Path) -> Path:
    """Provides the path to a valid ACI."""
    return make_aci(tmp_path.joinpath("app.aci"))


@pytest.fixture
def signature_path(tmp_path: Path) -> Path:
    """Provides the path to a (detached) signature."""
    path = tmp_path.joinpath("app.aci.asc")
    path.write_bytes(b"-----BEGIN PGP SIGNATURE-----\n\nsignature\n-----END PGP SIGNATURE-----\n")
    return path
