from datetime import timedelta

from appforge.memory.transcript import Transcript
from appforge.schemas.messages import Message, MessageRole


def test_append_keeps_timestamps_non_decreasing():
    transcript = Transcript()
    first = Message(role=MessageRole.USER, content="one")
    earlier = Message(role=MessageRole.ASSISTANT, content="two", timestamp=first.timestamp - timedelta(seconds=5))

    transcript.append(first)
    stored = transcript.append(earlier)

    assert stored.timestamp == first.timestamp
    assert stored.content == "two"
    stamps = [m.timestamp for m in transcript.all()]
    assert stamps == sorted(stamps)


def test_reset_clears_memory():
    transcript = Transcript()
    for i in range(3):
        transcript.append(Message(role=MessageRole.USER, content=str(i)))

    assert [m.content for m in transcript.all()] == ["0", "1", "2"]

    transcript.reset()
    assert len(transcript) == 0
