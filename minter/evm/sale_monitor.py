"""
Polls a contract's sale configuration until the public sale window opens.
"""

import asyncio
import inspect
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union
from loguru import logger

from minter.config import SALE_POLL_INTERVAL
from minter.evm.models import SaleConfig


class SaleState(str, Enum):
    WAITING = "waiting"
    OPEN = "open"


def format_time_left(seconds: float) -> str:
    seconds = max(int(seconds), 0)
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m {seconds % 60}s"


class SaleMonitor:
    """
    Single-threaded polling loop over SaleConfig snapshots.

    The monitor starts in WAITING and moves to OPEN, its terminal state, on the
    first tick where start_time <= now <= end_time. Read errors keep it WAITING.
    """

    def __init__(
        self,
        reader,
        poll_interval: float = SALE_POLL_INTERVAL,
        clock: Callable[[], float] = time.time,
        log=None
    ):
        """
        Initialize the sale monitor.

        Args:
            reader: Object with an async read() returning SaleConfig
            poll_interval: Seconds between ticks
            clock: Returns the current unix time
            log: Logger to use, defaults to loguru's logger
        """
        self.reader = reader
        self.poll_interval = poll_interval
        self.clock = clock
        self.log = log or logger
        self.state = SaleState.WAITING
        self.config: Optional[SaleConfig] = None
        self.ticks = 0

    async def tick(self) -> SaleState:
        """Runs one poll and returns the resulting state."""
        if self.state == SaleState.OPEN:
            return self.state

        self.ticks += 1
        try:
            config = await self.reader.read()
        except Exception as e:
            self.log.warning(f"Could not read sale configuration, still waiting: {str(e)}")
            return self.state

        self.config = config
        now = self.clock()

        if config.is_open(now):
            self.state = SaleState.OPEN
        elif now < config.start_time:
            self.log.info(f"Waiting for mint to start, time left: {format_time_left(config.start_time - now)}")
        else:
            self.log.warning(f"Sale window ended at {config.end_time}, still waiting for a new window")

        return self.state

    async def wait_for_open(
        self,
        on_open: Callable[[int], Union[Awaitable[Any], Any]],
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None
    ) -> Any:
        """
        Polls until the sale opens, then calls on_open(price) exactly once.

        Args:
            on_open: Callback receiving the current sale price; may be async
            cancel_event: Stops the loop when set, checked every tick
            timeout: Seconds to wait before giving up

        Returns:
            The callback's result, or None if cancelled or timed out
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None

        while True:
            if cancel_event is not None and cancel_event.is_set():
                self.log.warning("Sale monitoring cancelled")
                return None

            if await self.tick() == SaleState.OPEN:
                self.log.success(f"Sale window is open, price {self.config.price} wei")
                result = on_open(self.config.price)
                if inspect.isawaitable(result):
                    result = await result
                return result

            delay = self.poll_interval
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    self.log.warning(f"Sale window did not open within {timeout} seconds")
                    return None
                delay = min(delay, remaining)

            if cancel_event is None:
                await asyncio.sleep(delay)
                continue

            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
