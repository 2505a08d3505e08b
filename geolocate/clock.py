import asyncio
from abc import ABC, abstractmethod


class Clock(ABC):
    """
    The scheduling tick that drives every multi-step location flow.

    Time is expressed in ticks. A tick is the fixed unit used for timeouts,
    a frame is the finer granularity the streaming loop yields on.
    """

    @abstractmethod
    def time(self) -> float:
        pass

    @abstractmethod
    async def tick(self):
        pass

    @abstractmethod
    async def frame(self):
        pass


class AsyncioClock(Clock):
    """
    Clock backed by the running event loop.

    Args:
        tick_interval (float, optional): Seconds per tick. Defaults to 1.0.
        frame_rate (int, optional): Frames per tick. Defaults to 30.
    """

    def __init__(self, tick_interval: float = 1.0, frame_rate: int = 30):
        if tick_interval <= 0:
            raise ValueError("Tick interval must be positive")
        if frame_rate <= 0:
            raise ValueError("Frame rate must be positive")

        self._tick_interval = tick_interval
        self._frame_rate = frame_rate

    def time(self) -> float:
        return asyncio.get_running_loop().time() / self._tick_interval

    async def tick(self):
        await asyncio.sleep(self._tick_interval)

    async def frame(self):
        await asyncio.sleep(self._tick_interval / self._frame_rate)
