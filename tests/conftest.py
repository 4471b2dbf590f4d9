from __future__ import annotations

from pathlib import Path

import pytest

from nativegen.config import GeneratorConfig
from nativegen.orchestrator import Orchestrator


@pytest.fixture
def generator_config(tmp_path: Path) -> GeneratorConfig:
    """Provide default configuration rooted at the pytest tmp_path."""
    return GeneratorConfig.defaults(tmp_path)


@pytest.fixture
def orchestrator(generator_config: GeneratorConfig) -> Orchestrator:
    """Provide an orchestrator writing into the tmp_path output directory."""
    return Orchestrator(generator_config)
