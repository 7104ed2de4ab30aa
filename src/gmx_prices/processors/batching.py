"""Bounded-concurrency batch execution with per-item retries."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generator, Iterable, Sequence, TypeVar

import backoff

from ..logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class BatchPolicy:
    """How a batch of RPC reads is paced and retried.

    Attributes:
        batch_size: Number of operations run concurrently per chunk.
        batch_delay: Seconds slept between chunks (not after the last one).
        max_tries: Total attempts per operation, the first one included.
        backoff_base: Wait before attempt ``k + 1`` is ``k * backoff_base`` seconds.
    """

    batch_size: int = 5
    batch_delay: float = 0.2
    max_tries: int = 3
    backoff_base: float = 1.0


def linear(base: float = 1.0) -> Generator[float, Any, None]:
    """backoff wait generator yielding ``base, 2 * base, 3 * base, ...``."""
    # Advance past initial .send() call
    yield  # type: ignore[misc]
    attempt = 1
    while True:
        yield attempt * base
        attempt += 1


def with_retry(
    fn: Callable[[T], Awaitable[R]],
    policy: BatchPolicy,
    *,
    describe: Callable[[T], str] = str,
) -> Callable[[T], Awaitable[R]]:
    """Wrap ``fn`` with linear-backoff retries.

    The last failure is re-raised once ``policy.max_tries`` attempts are spent.
    Attempts are never cancelled here; a per-attempt timeout has to end the
    call inside its own thread (see ``Web3ChainReader``).
    """

    def _on_backoff(details: Any) -> None:
        logger.debug(
            "Attempt %d for %s failed (%s); retrying in %.2fs",
            details["tries"],
            describe(details["args"][0]),
            details.get("exception"),
            details["wait"],
        )

    @backoff.on_exception(
        linear,
        Exception,
        max_tries=policy.max_tries,
        jitter=None,
        on_backoff=_on_backoff,
        logger=None,
        base=policy.backoff_base,
    )
    async def _attempt(item: T) -> R:
        return await fn(item)

    return _attempt


async def process_batches(
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R | None]],
    policy: BatchPolicy,
) -> list[R]:
    """Run ``fn`` over ``items`` in sequential chunks of ``policy.batch_size``.

    Each chunk runs concurrently and must fully complete before the next one
    starts. ``None`` results are dropped; everything else is returned in the
    original item order. ``fn`` is expected to handle its own failures.
    """
    pending: Sequence[T] = list(items)
    results: list[R] = []
    size = policy.batch_size
    for start in range(0, len(pending), size):
        if start and policy.batch_delay > 0:
            await asyncio.sleep(policy.batch_delay)
        chunk = pending[start : start + size]
        chunk_results = await asyncio.gather(*(fn(item) for item in chunk))
        results.extend(r for r in chunk_results if r is not None)
    return results
