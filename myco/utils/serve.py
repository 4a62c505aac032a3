import asyncio
from collections.abc import Callable, Iterable
import contextlib
import signal


async def serve_until_signal(
    *,
    stop_callbacks: Iterable[Callable[[], None]] = (),
    on_stop: Iterable[asyncio.Future] = (),
    grace_period: float = 5.0,
) -> None:
    """
    Wait until SIGINT/SIGTERM or any task in on_stop completes naturally, then:
      1) call every stop callback (e.g., simulation.stop)
      2) give the tasks ``grace_period`` seconds to finish, then cancel them
    """
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    tasks = [t for t in on_stop if t is not None]

    def _set() -> None:
        if not stop_event.is_set():
            stop_event.set()

    loop.add_signal_handler(signal.SIGINT, _set)
    loop.add_signal_handler(signal.SIGTERM, _set)

    try:
        waiter = asyncio.create_task(stop_event.wait())
        pending_tasks = [t for t in tasks if not t.done()]
        await asyncio.wait([waiter, *pending_tasks], return_when=asyncio.FIRST_COMPLETED)
        if not waiter.done():
            waiter.cancel()

        for stop in stop_callbacks:
            stop()

        still_running = [t for t in tasks if not t.done()]
        if still_running:
            _, late = await asyncio.wait(still_running, timeout=grace_period)
            for task in late:
                task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.gather(*late, return_exceptions=True)

        # Surface failures of the served tasks
        for task in tasks:
            if task.done() and not task.cancelled() and task.exception() is not None:
                raise task.exception()

    finally:
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)
