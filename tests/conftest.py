"""Global pytest configuration and fixtures for all tests."""

import sys
import tempfile
from pathlib import Path
import pytest

# Add parent directory to path to import the main module
sys.path.insert(0, str(Path(__file__).parent.parent))

from helm_template_service.fetcher import build_client
from helm_template_service.pipeline import TemplateService
from helm_template_service.settings import Settings

from charts import FakeEngine


@pytest.fixture(scope="function", autouse=True)
def scratch_root(tmp_path_factory, monkeypatch):
    """Global pre-hook: Point tempfile at an empty per-test directory.

    Every scratch workspace the pipeline creates lands here, so tests can
    assert that nothing is left behind once a request returns.
    """
    root = tmp_path_factory.mktemp("scratch-parent") / "scratch"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    yield root


@pytest.fixture
def settings():
    return Settings(verbose=True)


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def make_service(settings, engine):
    """Factory: TemplateService whose downloads go through the given transport."""
    def _make(transport, service_settings=None):
        service_settings = service_settings or settings
        return TemplateService(
            service_settings,
            engine=engine,
            client_factory=lambda: build_client(service_settings, transport),
        )
    return _make
