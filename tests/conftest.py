import pytest

from i8080_ucode import build_table


@pytest.fixture(scope='session')
def table():
    return build_table()
