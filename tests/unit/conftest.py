"""Pytest configuration for unit tests.

This module blocks network access for unit tests. Every HTTP exchange in a
unit test goes through a FakeTransport or a mocked session; a test that needs
a real socket belongs in integration/.

pytest registers this file as the ``conftest`` module while unit tests are
collected, so the helpers of the main conftest are re-exported here and
``from conftest import ...`` works the same in every unit test module.
"""

import importlib.util
import socket
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add parent tests directory to path to import from main conftest
parent_tests_dir = Path(__file__).parent.parent
if str(parent_tests_dir) not in sys.path:
    sys.path.insert(0, str(parent_tests_dir))

_parent_conftest_path = parent_tests_dir / "conftest.py"
_spec = importlib.util.spec_from_file_location("parent_conftest", _parent_conftest_path)
if _spec is None or _spec.loader is None:
    raise ImportError(f"Could not load conftest from {_parent_conftest_path}")
_parent_conftest = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(_parent_conftest)

build_atom_entry = _parent_conftest.build_atom_entry
build_atom_xml = _parent_conftest.build_atom_xml
build_rss_item = _parent_conftest.build_rss_item
build_rss_xml = _parent_conftest.build_rss_xml
create_test_config = _parent_conftest.create_test_config
FakeTransport = _parent_conftest.FakeTransport
make_outcome = _parent_conftest.make_outcome
TEST_BASE_URL = _parent_conftest.TEST_BASE_URL
TEST_BLOCKING_URL = _parent_conftest.TEST_BLOCKING_URL
TEST_FEED_TITLE = _parent_conftest.TEST_FEED_TITLE
TEST_FEED_URL = _parent_conftest.TEST_FEED_URL
TEST_MEDIA_URL = _parent_conftest.TEST_MEDIA_URL
TEST_MIME_MP4 = _parent_conftest.TEST_MIME_MP4
TEST_MIME_RSS = _parent_conftest.TEST_MIME_RSS
TEST_MIME_XML = _parent_conftest.TEST_MIME_XML
TEST_PARENT_URL = _parent_conftest.TEST_PARENT_URL
TEST_PLAIN_HTTP_BLOCKING_URL = _parent_conftest.TEST_PLAIN_HTTP_BLOCKING_URL
TEST_RELAY_BODY = _parent_conftest.TEST_RELAY_BODY
TEST_RELAY_TEMPLATE = _parent_conftest.TEST_RELAY_TEMPLATE
TEST_SUBFEED_URL = _parent_conftest.TEST_SUBFEED_URL
TEST_THUMBNAIL_URL = _parent_conftest.TEST_THUMBNAIL_URL


class NetworkCallDetectedError(Exception):
    """Raised when a unit test attempts to make a network call."""

    def __init__(self, library_name: str, call_type: str):
        self.library_name = library_name
        self.call_type = call_type
        super().__init__(
            f"Network call detected in unit test: {library_name}.{call_type}()\n"
            f"Unit tests must not make network calls. Use FakeTransport or mocks instead.\n"
            f"If this test needs network access, it should be moved to integration/."
        )


def _create_network_blocker(library_name: str, call_type: str):
    """Create a function that blocks network calls and raises an error."""

    def blocker(*args, **kwargs):
        raise NetworkCallDetectedError(library_name, call_type)

    return blocker


def _is_unit_test(request) -> bool:
    test_file = getattr(request.node, "fspath", None) or getattr(request.node, "path", None)
    return test_file is not None and "unit" in Path(str(test_file)).parts


@pytest.fixture(autouse=True)
def block_network(request):
    """Automatically block outgoing connections in unit tests."""
    if not _is_unit_test(request):
        yield
        return

    import requests

    patchers = [
        patch.object(
            requests.Session, "send", _create_network_blocker("requests.Session", "send")
        ),
        patch.object(
            socket,
            "create_connection",
            side_effect=_create_network_blocker("socket", "create_connection"),
        ),
    ]
    for patcher in patchers:
        patcher.start()

    yield

    for patcher in patchers:
        patcher.stop()
