# snipvault_server/main.py
from fastmcp import FastMCP
from snipvault.di import build_container
from snipvault.logging import configure_logging
from snipvault_server.registry import RequestGate, build_tool_registry, register_into_fastmcp

def create_app() -> FastMCP:
    """
    Build DI container, create FastMCP host, and register tools.
    Keep the server (protocol) separate from tool/service logic.
    """
    container = build_container()
    configure_logging(container.settings.LOG_LEVEL)

    mcp = FastMCP("SnipVault", version="0.1.0")

    # Same registry (and rate limit) as the HTTP transport
    registry = build_tool_registry(container)
    register_into_fastmcp(mcp, registry, gate=RequestGate(container), caller="stdio",
                          data_root=container.guard.root)

    return mcp


def main():
    app = create_app()
    # stdio transport: client (UI/agent) launches this process and speaks JSON-RPC on stdin/stdout
    app.run(transport="stdio")


if __name__ == "__main__":
    main()
