"""
Utility functions for the udpcorrelate library
"""
import asyncio
import functools
import sys
from typing import Callable, Any, Awaitable, TypeVar

T = TypeVar("T")


def reuse_pending(method: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Share one in-flight call of a coroutine method between concurrent callers.

    While a call is pending on an instance, further calls on the same instance
    await that call's task instead of starting another one. Once the task has
    finished (successfully or not) the next call starts a fresh one.

    Args:
        method: The coroutine method to wrap
    """
    attr = f"_pending_{method.__name__}"

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs) -> T:
        task = getattr(self, attr, None)
        if task is None:
            task = asyncio.ensure_future(method(self, *args, **kwargs))
            setattr(self, attr, task)

            def forget(done: asyncio.Future) -> None:
                if getattr(self, attr, None) is done:
                    setattr(self, attr, None)
                # Mark the exception as retrieved, every waiter re-raises it anyway
                if not done.cancelled():
                    done.exception()

            task.add_done_callback(forget)
        # A waiter being cancelled must not cancel the shared task
        return await asyncio.shield(task)

    return wrapper


def run_with_keyboard_interrupt(main_func: Callable[[], Any]) -> None:
    """
    Run an async main function with graceful KeyboardInterrupt handling.

    This function wraps asyncio.run() to catch KeyboardInterrupt (Ctrl+C) and
    provide a clean shutdown experience.

    Args:
        main_func: The async main function to run
    """
    try:
        asyncio.run(main_func())
    except KeyboardInterrupt:
        print("\nInterrupted by user (Ctrl+C)")
        print("Shutting down gracefully...")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
