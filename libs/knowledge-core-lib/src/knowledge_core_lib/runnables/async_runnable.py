"""Base class for runnables that only have an asynchronous implementation."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional, TypeVar

from langchain_core.runnables import Runnable, RunnableConfig

RunnableInput = TypeVar("RunnableInput")
RunnableOutput = TypeVar("RunnableOutput")


class AsyncRunnable(Runnable[RunnableInput, RunnableOutput], ABC):
    """Runnable whose synchronous ``invoke`` delegates to ``ainvoke``."""

    @abstractmethod
    async def ainvoke(
        self, chain_input: RunnableInput, config: Optional[RunnableConfig] = None, **kwargs: Any
    ) -> RunnableOutput:
        """Asynchronously run the runnable."""

    def invoke(
        self, chain_input: RunnableInput, config: Optional[RunnableConfig] = None, **kwargs: Any
    ) -> RunnableOutput:
        """Run ``ainvoke`` on a fresh event loop. Not usable from inside a running loop."""
        return asyncio.run(self.ainvoke(chain_input, config, **kwargs))
