from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Import the package straight from src/ so the tests run without an install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def repressilator():
    from crn_composer import repressilator_network

    return repressilator_network()


@pytest.fixture
def sir():
    from crn_composer import sir_network

    return sir_network()
