import json
import os
from datetime import datetime, timezone

COMPONENT = os.getenv("PRINT_QUEUE_COMPONENT", "printqueue")


def log_event(event, **fields):
    payload = {
        "event": event,
        "component": COMPONENT,
        "ts": datetime.now(timezone.utc).isoformat(),
        **fields,
    }
    print(json.dumps(payload, default=str), flush=True)
