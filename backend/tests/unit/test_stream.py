"""Unit tests for the data stream channel."""

import asyncio

import pytest

from finsight.domain.chat.stream import DataStream, EventType, StreamEvent


class TestDataStream:
    @pytest.mark.asyncio
    async def test_events_delivered_in_write_order(self):
        stream = DataStream()
        stream.write(EventType.USER_MESSAGE_ID, "m-1")
        stream.write(EventType.TEXT_DELTA, "Hello")
        stream.write_annotation({"messageIdFromServer": "m-2"})
        stream.close()

        events = [event async for event in stream]

        assert [event.type for event in events] == [
            EventType.USER_MESSAGE_ID,
            EventType.TEXT_DELTA,
            EventType.MESSAGE_ANNOTATION,
        ]
        assert events[2].content == {"messageIdFromServer": "m-2"}

    @pytest.mark.asyncio
    async def test_consumer_waits_for_producer(self):
        stream = DataStream()

        async def produce():
            await asyncio.sleep(0)
            stream.write(EventType.FINISH, "")
            stream.close()

        task = asyncio.create_task(produce())
        events = [event async for event in stream]
        await task

        assert events == [StreamEvent(EventType.FINISH, "")]

    def test_write_after_close_raises(self):
        stream = DataStream()
        stream.close()

        with pytest.raises(RuntimeError):
            stream.write(EventType.TEXT_DELTA, "late")

    def test_close_is_idempotent(self):
        stream = DataStream()
        stream.close()
        stream.close()

        assert stream.closed

    def test_detached_stream_drops_writes(self):
        stream = DataStream()
        stream.detach()

        stream.write(EventType.TEXT_DELTA, "nobody is listening")
        stream.write(EventType.FINISH, "")

        assert stream.detached
        assert stream.dropped == 2

    def test_event_to_dict(self):
        event = StreamEvent(EventType.QUERY_LOADING, {"isLoading": True, "taskNames": []})

        assert event.to_dict() == {
            "type": "query-loading",
            "content": {"isLoading": True, "taskNames": []},
        }
