import os
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Point the vocabulary service at the bundled sample files
os.environ["MESH_DESCRIPTOR_FILE"] = str(FIXTURES_DIR / "descriptors.txt")
os.environ["MESH_TREE_FILE"] = str(FIXTURES_DIR / "mtrees.txt")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
