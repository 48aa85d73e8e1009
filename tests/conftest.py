import pytest


@pytest.fixture
def alist():
    async def collect(aiterable):
        return [item async for item in aiterable]

    return collect
