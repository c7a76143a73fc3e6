from datetime import datetime, timezone


class Clock:
    def now(self):
        return datetime.now(timezone.utc)

    def stamp(self) -> str:
        return self.now().isoformat()
