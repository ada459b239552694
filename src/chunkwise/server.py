"""FastMCP server entry point for chunkwise.

Run over stdio:

    chunkwise serve
    # or
    python -m chunkwise.server
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP

from chunkwise.config import SummarizerConfig, get_config
from chunkwise.tools import register_summarize_tools
from chunkwise.tools.summarize import OrchestratorFactory

logger = logging.getLogger(__name__)


def create_server(
    config: Optional[SummarizerConfig] = None,
    orchestrator_factory: Optional[OrchestratorFactory] = None,
) -> FastMCP:
    """Create the FastMCP server with all chunkwise tools registered.

    The shared orchestrator (and its worker pool) is closed when the
    server's lifespan ends.
    """
    config = config or get_config()
    holder = None

    @asynccontextmanager
    async def lifespan(_server: FastMCP) -> AsyncIterator[None]:
        try:
            yield
        finally:
            if holder is not None:
                await holder.aclose()

    mcp = FastMCP(config.server_name, lifespan=lifespan)
    holder = register_summarize_tools(mcp, config, orchestrator_factory)
    logger.info(f"Created {config.server_name} server v{config.server_version}")
    return mcp


def main() -> None:
    """Load configuration, set up logging and serve over stdio."""
    config = get_config()
    config.setup_logging()
    create_server(config).run()


if __name__ == "__main__":
    main()
