import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the config overlay and pin rating recomputation to inline mode so
    assertions can read aggregates right after a mutation. Tests that need
    the worker pool build their own settings.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["REVIEWS_RECOMPUTE_MODE"] = "sync"
    os.environ.setdefault("LOG_DIR", str(Path(session.config.rootpath) / ".pytest_logs"))


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
