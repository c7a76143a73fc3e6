from enum import Enum

from printqueue.common.errors import InvalidState


class JobState(str, Enum):
    NEW = "new"
    PRINTING = "printing"
    DONE = "done"

    @classmethod
    def parse(cls, value) -> "JobState":
        """
        Validate a state coming from a caller.

        Only membership is checked. Any state may follow any other: the printing
        agent owns its retry choreography, the queue only refuses unknown tags.
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidState(value) from None
