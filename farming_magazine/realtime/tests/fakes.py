from __future__ import annotations

import json


class FakeTransport:
    """In-memory transport recording everything the registry does to it."""

    def __init__(self, *, fail_sends: bool = False) -> None:
        self.sent: list[str] = []
        self.closed_with: tuple[int, str] | None = None
        self.probes = 0
        self.terminated = False
        self.fail_sends = fail_sends
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def send_text(self, text: str) -> None:
        if self.fail_sends:
            msg = "socket gone"
            raise OSError(msg)
        self.sent.append(text)

    def probe(self) -> None:
        self.probes += 1

    def terminate(self) -> None:
        self.terminated = True
        self._open = False

    def close(self, code: int, reason: str) -> None:
        self.closed_with = (code, reason)
        self._open = False

    @property
    def frames(self) -> list[dict]:
        return [json.loads(text) for text in self.sent]

    def frames_of(self, message_type: str) -> list[dict]:
        return [f for f in self.frames if f["type"] == message_type]
