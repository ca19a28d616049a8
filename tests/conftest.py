import os
import pytest
import sys
from pathlib import Path

# Ensure src/ is in the python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Keep rich consoles from wrapping long tmp paths in CLI output under test
os.environ.setdefault("COLUMNS", "200")

from hotwire.core.models import HotwireConfig
from hotwire.core.registry import Registry
from hotwire.utils.logger import configure_logging


@pytest.fixture(autouse=True)
def quiet_logging():
    """Only warnings and above reach stderr during tests."""
    configure_logging("WARNING")
    yield
    configure_logging("INFO")


@pytest.fixture
def root_dir(tmp_path):
    """
    Returns a temporary directory to act as the project root for tests.
    Definition and component files are written under it.
    """
    for name in ("commands", "events", "components"):
        (tmp_path / name).mkdir()
    return tmp_path


@pytest.fixture
def config(root_dir):
    return HotwireConfig.from_dict(root_dir, {"commands": {"register_commands": False}})


@pytest.fixture
def registry(config):
    return Registry(config=config)
