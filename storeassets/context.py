"""
Application context management.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from contextlib import AsyncExitStack
from typing import Optional, Set

import httpx
import structlog

from storeassets.config import Settings
from storeassets.fetcher.http_client import ResourceFetcher

logger = structlog.get_logger()


class AppContext:
    """
    Application context that holds all initialized components and resources.

    This class manages the lifecycle of the fetcher and the worker thread
    used for image decoding and rendering.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport
        self.exit_stack = AsyncExitStack()
        self.thread_pool: Optional[ThreadPoolExecutor] = None
        self.fetcher: Optional[ResourceFetcher] = None  # Will be initialized later
        self.active_tasks: Set[asyncio.Task] = set()

    async def __aenter__(self) -> "AppContext":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    async def initialize(self) -> None:
        """Initialize all components and resources."""
        logger.info("Initializing application context")

        # One worker: rendering is awaited step by step, never in parallel
        self.thread_pool = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="storeassets-render",
        )

        await self._init_fetcher()

        logger.info("Application context initialized")

    async def _init_fetcher(self) -> None:
        """Initialize the resource fetcher."""
        self.fetcher = ResourceFetcher(self.settings.fetcher, transport=self.transport)
        await self.exit_stack.enter_async_context(self.fetcher)
        logger.info(
            "Resource fetcher initialized",
            html_proxies=[p.name for p in self.settings.fetcher.html_proxies],
            image_endpoints=[e.name for e in self.settings.fetcher.image_endpoints],
        )

    async def shutdown(self) -> None:
        """Gracefully shut down all components and resources."""
        logger.info("Shutting down application")

        if self.active_tasks:
            logger.info("Waiting for active batches", count=len(self.active_tasks))
            await asyncio.gather(*self.active_tasks, return_exceptions=True)

        await self.exit_stack.aclose()

        if self.thread_pool:
            self.thread_pool.shutdown(wait=True, cancel_futures=True)

        logger.info("Application shutdown complete")

    def create_task(self, coro) -> asyncio.Task:
        """Create a tracked asyncio task."""
        task = asyncio.create_task(coro)
        self.active_tasks.add(task)
        task.add_done_callback(self.active_tasks.discard)
        return task
