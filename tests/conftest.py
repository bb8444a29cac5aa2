import pathlib
import site

import pytest
from tablemap.descriptor import _describe

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear the descriptor cache before and after each test to ensure test isolation."""
    _describe.cache_clear()
    yield
    _describe.cache_clear()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.sqlite',
    'tests.fixtures.postgres',
]
