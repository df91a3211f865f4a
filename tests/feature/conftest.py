from pathlib import Path

import pytest

FEATURE_DIR = Path(__file__).parent


def pytest_collection_modifyitems(items):
    for item in items:
        if FEATURE_DIR in item.path.parents:
            item.add_marker(pytest.mark.feature)
