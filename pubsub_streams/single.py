"""
Single-result adapter for one-shot client operations.

Client operations report their outcome through a callback that receives a
value and a status record. The helpers here turn that callback into an
awaitable result, raising StatusError when the status reports a failure.

Usage:
    result = await await_single_result(client.publish_operation(...))
    print(result.value, result.status.category)

    try:
        value = await await_single(operation)
    except StatusError as e:
        if e.retryable:
            ...
"""
import asyncio
import logging
import threading
from typing import Any, Callable, Optional, TypeVar

from .client import Operation
from .config import settings
from .errors import OperationError, StatusError
from .models import Result, Status

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


async def await_single_result(
    operation: Operation[T],
    timeout: Optional[float] = _UNSET,
) -> Result[T]:
    """
    Run an operation and wait for its single terminal callback.

    Only the first callback counts. A second one breaks the client's contract
    and is logged and ignored.

    Args:
        operation: The operation to execute
        timeout: Seconds to wait before cancelling the operation
            (defaults to settings.single_result_timeout; None waits forever)

    Returns:
        Result holding the produced value and the non-error status

    Raises:
        StatusError: If the operation completed with an error status
        OperationError: If the operation could not be started or completed
            without a value
        asyncio.TimeoutError: If the timeout expired
    """
    if timeout is _UNSET:
        timeout = settings.single_result_timeout

    loop = asyncio.get_running_loop()
    loop_thread_id = threading.get_ident()
    future: asyncio.Future = loop.create_future()
    lock = threading.Lock()
    delivered = False

    def complete(value: Optional[T], status: Status) -> None:
        if future.done():
            # Awaiting side was cancelled or timed out
            return
        if status.error:
            future.set_exception(StatusError(status))
        elif value is None:
            future.set_exception(OperationError(
                f"{status.operation or 'Operation'} completed without a value"
            ))
        else:
            future.set_result(Result(value=value, status=status))

    def callback(value: Optional[T], status: Status) -> None:
        nonlocal delivered
        with lock:
            if delivered:
                logger.error(
                    f"Operation {type(operation).__name__} reported a second result "
                    f"({status.category.value}); ignoring it"
                )
                return
            delivered = True

        if threading.get_ident() == loop_thread_id:
            complete(value, status)
            return
        try:
            loop.call_soon_threadsafe(complete, value, status)
        except RuntimeError:
            logger.debug("Event loop closed before the operation result arrived")

    try:
        operation.execute(callback)
    except Exception as e:
        logger.error(f"Error starting operation {type(operation).__name__}: {e}")
        raise OperationError(f"Failed to start operation: {e}") from e

    try:
        if timeout is None:
            return await future
        return await asyncio.wait_for(future, timeout)
    except (asyncio.CancelledError, asyncio.TimeoutError):
        logger.debug(f"Cancelling operation {type(operation).__name__}")
        operation.silent_cancel()
        raise


async def await_single(
    operation: Operation[T],
    timeout: Optional[float] = _UNSET,
) -> T:
    """Run an operation and return only its value."""
    result = await await_single_result(operation, timeout=timeout)
    return result.value


# =============================================================================
# Callback Forms
# =============================================================================


async def run_single(
    operation: Operation[T],
    on_complete: Callable[[T], None],
    on_error: Optional[Callable[[Exception], None]] = None,
    on_status: Optional[Callable[[Status], None]] = None,
    timeout: Optional[float] = _UNSET,
) -> None:
    """
    Run an operation and report the outcome through callbacks.

    On success ``on_complete(value)`` is called, then ``on_status(status)``.
    On a StatusError ``on_error(error)`` is called, then
    ``on_status(error.status)``. Other errors only reach ``on_error``.
    Without ``on_error`` the error is raised instead.

    Args:
        operation: The operation to execute
        on_complete: Receives the produced value
        on_error: Receives the error
        on_status: Receives the terminal status record
        timeout: See await_single_result()
    """
    try:
        result = await await_single_result(operation, timeout=timeout)
    except Exception as e:
        if on_error is None:
            raise
        on_error(e)
        if isinstance(e, StatusError) and on_status is not None:
            on_status(e.status)
        return

    on_complete(result.value)
    if on_status is not None:
        on_status(result.status)


async def run_single_result(
    operation: Operation[T],
    on_complete: Callable[[T, Status], None],
    on_error: Optional[Callable[[Exception], None]] = None,
    timeout: Optional[float] = _UNSET,
) -> None:
    """
    Run an operation and pass ``(value, status)`` to ``on_complete``.

    Errors go to ``on_error``, or are raised when it is not given.
    """
    try:
        result = await await_single_result(operation, timeout=timeout)
    except Exception as e:
        if on_error is None:
            raise
        on_error(e)
        return

    on_complete(result.value, result.status)
