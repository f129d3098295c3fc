"""
Merges keyboard input and two fixed-rate timers into a single ordered stream of events.

The sources run as asyncio tasks on the UI thread and post to one queue. Events are
delivered in the order they were posted, whichever source posted them.
"""
import asyncio
import logging

from portterm.support.mixins import ValueObject
from portterm.support.schedule import PeriodSchedule

logger = logging.getLogger(__name__)


class Event(ValueObject):
    """ base class for events from the EventSource """


class TickEvent(Event):
    """ periodic, non-render work is due """


class RenderEvent(Event):
    """ a frame should be drawn """


class UserEvent(Event):
    """ a key was pressed """

    def __init__(self, key):
        self.key = key


class ErrorEvent(Event):
    """ the keyboard input stream failed. No further user events follow. """

    def __init__(self, error):
        self.error = error


class EventSource:
    """
    Posts TickEvent every tick_interval seconds, RenderEvent every render_interval seconds,
    a UserEvent for each key produced by the keyboard, and an ErrorEvent if the keyboard fails.

    Every timer occurrence is posted, whether or not earlier events have been taken.

    :param keyboard: an async iterable of key names
    """

    def __init__(self, keyboard, tick_interval=0.2, render_interval=1 / 60):
        self.keyboard = keyboard
        self.tick_interval = tick_interval
        self.render_interval = render_interval
        self.event_queue = None
        self._tasks = []

    def start(self):
        """ starts the sources. Must be called with an event loop running. """
        if self._tasks:
            return
        self.event_queue = asyncio.Queue()
        self._tasks = [
            asyncio.ensure_future(self._pump_timer(PeriodSchedule(self.tick_interval), TickEvent)),
            asyncio.ensure_future(self._pump_timer(PeriodSchedule(self.render_interval), RenderEvent)),
            asyncio.ensure_future(self._pump_keys()),
        ]

    async def close(self):
        """ stops the sources. Events already queued are discarded. """
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def next(self) -> Event:
        """ waits for and returns the next event """
        return await self.event_queue.get()

    def __aiter__(self):
        return self

    async def __anext__(self):
        return await self.next()

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _post(self, event):
        self.event_queue.put_nowait(event)

    async def _pump_timer(self, schedule, event_type):
        loop = asyncio.get_running_loop()
        while True:
            delay = schedule(loop.time())
            if delay > 0:
                await asyncio.sleep(delay)
                continue
            self._post(event_type())
            await asyncio.sleep(0)

    async def _pump_keys(self):
        try:
            async for key in self.keyboard:
                self._post(UserEvent(key))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("keyboard input failed")
            self._post(ErrorEvent(e))
            return
        self._post(ErrorEvent(EOFError("keyboard input closed")))
