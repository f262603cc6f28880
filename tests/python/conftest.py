import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from lifesim.rng import SimulationRng  # noqa: E402


class FixedRng(SimulationRng):
    """Returns the same draw every time: 0.5 means zero jitter and no chance rolls succeed."""

    def __init__(self, value: float = 0.5):
        super().__init__(0)
        self.value = value

    def next_float(self) -> float:
        return self.value


@pytest.fixture
def fixed_rng() -> FixedRng:
    return FixedRng()


@pytest.fixture
def fixed_rng_factory():
    return FixedRng


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-config-tests",
        action="store_true",
        default=False,
        help="run tests that are intended only for configuration changes",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "config_change: marks tests that should only run when configuration files change",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-config-tests"):
        return

    skip_marker = pytest.mark.skip(
        reason="Run only when configuration is modified (use --run-config-tests)",
    )

    for item in items:
        if "config_change" in item.keywords:
            item.add_marker(skip_marker)
