from __future__ import annotations

from dataclasses import replace
from typing import List

from appforge.schemas.messages import Message


class Transcript:
    """Append-only conversation memory owned by a single worker.

    Timestamps never go backwards: an entry stamped earlier than the last one
    is re-stamped with the previous timestamp on append.
    """

    def __init__(self) -> None:
        self._turns: List[Message] = []

    def reset(self) -> None:
        self._turns = []

    def append(self, message: Message) -> Message:
        if self._turns and message.timestamp < self._turns[-1].timestamp:
            message = replace(message, timestamp=self._turns[-1].timestamp)
        self._turns.append(message)
        return message

    def all(self) -> List[Message]:
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)
