import pytest

from printqueue.common.errors import InvalidState
from printqueue.common.states import JobState


def test_parse_accepts_the_three_literals():
    assert [JobState.parse(s) for s in ("new", "printing", "done")] == [
        JobState.NEW,
        JobState.PRINTING,
        JobState.DONE,
    ]


@pytest.mark.parametrize("value", ["Done", "failed", "", None, 1])
def test_parse_rejects_everything_else(value):
    with pytest.raises(InvalidState) as exc:
        JobState.parse(value)
    assert exc.value.value == value
    assert isinstance(exc.value, ValueError)
