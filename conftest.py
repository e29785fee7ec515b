import pytest

from aad_hmm.aad.core.tape import use_tape


@pytest.fixture(autouse=True)
def tape():
    """Every test records on its own empty tape."""
    with use_tape() as t:
        yield t
