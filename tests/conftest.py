import pytest

from tests.helpers import make_rows


@pytest.fixture
def powerball_rows():
    # 40 draws cycling evenly through 1..69; specials cycle through 1..26
    draws = [[(5 * i + j) % 69 + 1 for j in range(5)] for i in range(40)]
    return make_rows(draws, specials=[i % 26 + 1 for i in range(40)])
