from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from printqueue.common.errors import InvalidInput
from printqueue.common.states import JobState


class PrintRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    batch_id: Optional[str] = Field(None, alias="batchId")
    requested_by: Optional[str] = Field(None, alias="requestedBy")
    payload: Optional[str] = None
    jobs: Optional[List[str]] = None

    def payloads(self) -> List[str]:
        """Non-blank `jobs` entries in order, then `payload` if it is non-blank."""
        out = [j for j in (self.jobs or []) if j.strip()]
        if self.payload is not None and self.payload.strip():
            out.append(self.payload)
        if not out:
            raise InvalidInput("No payloads provided")
        return out


class PrintJobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    batch_id: str
    requested_by: str
    payload: str
    state: JobState
    print_count: int
    last_error: Optional[str] = None
    created_at: str
    updated_at: str
