# snipvault_server/registry.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Type
from pydantic import BaseModel

from snipvault.di import Container, build_container
from snipvault.errors import RateLimited, SnipVaultError
from snipvault.logging import log_tool_call
from snipvault.models import dump
from snipvault.services.tree import SNIPPET_ROOT

from snipvault_server.tools.files import (
    ExistsIn, MkdirIn, ReadFileIn, ReaddirIn, RenameIn, RmIn, StatIn, WriteFileIn,
)
from snipvault_server.tools.library import (
    InitialDataIn, ListBoardsIn, MigrateSnippetsIn, SecurityStatsIn,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[BaseModel], Any]


class ToolHandlers:
    """
    Named handlers for each tool (no lambdas).
    Every handler returns plain JSON-ready values.
    """
    def __init__(self, container: Container):
        self.container = container

    # ---- Files
    def read_file(self, args: ReadFileIn) -> Optional[str]:
        return self.container.store.read_text(args.path)

    def write_file(self, args: WriteFileIn) -> str:
        return self.container.store.write(args.path, args.content)

    def rm(self, args: RmIn) -> str:
        return self.container.store.delete(args.path, recursive=args.recursive)

    def rename(self, args: RenameIn) -> str:
        return self.container.store.rename(args.oldPath, args.newPath)

    def mkdir(self, args: MkdirIn) -> str:
        return self.container.store.mkdir(args.path)

    def readdir(self, args: ReaddirIn) -> list:
        return dump(self.container.store.list_dir(args.path))

    def stat(self, args: StatIn) -> Optional[dict]:
        return dump(self.container.store.stat(args.path))

    def exists(self, args: ExistsIn) -> bool:
        return self.container.store.exists(args.path)

    # ---- Library
    def get_initial_data(self, args: InitialDataIn) -> dict:
        c = self.container
        if c.settings.SEED_DEFAULTS:
            c.seeder.seed()
        try:
            c.store.ensure_dir(SNIPPET_ROOT)
            tree = c.tree_builder.build(SNIPPET_ROOT)
        except SnipVaultError as exc:
            logger.error("error getting initial data: %s", exc)
            tree = []
        return {"sidebarTree": dump(tree)}

    def list_boards(self, args: ListBoardsIn) -> dict:
        return {"boards": dump(self.container.tree_builder.list_boards())}

    def migrate_snippets(self, args: MigrateSnippetsIn) -> dict:
        n = self.container.migrator.migrate_text_snippets(args.folder, recursive=args.recursive)
        return {"migrated": n}

    def security_stats(self, args: SecurityStatsIn) -> dict:
        return self.container.audit.stats(months_back=args.monthsBack)


class RequestGate:
    """Per-caller rate limit in front of every tool call; hits are logged as security events."""

    def __init__(self, container: Container):
        self.limiter = container.limiter
        self.audit = container.audit

    def admit(self, caller: str) -> None:
        if self.limiter is None:
            return
        if not self.limiter.allow(caller):
            self.audit.record("rate_limited", {"caller": caller})
            raise RateLimited(caller)


def _schema_from_model(model: Type[BaseModel]) -> Dict[str, Any]:
    return model.model_json_schema()


def build_tool_registry(container: Optional[Container] = None) -> Dict[str, ToolSpec]:
    """
    Build a registry once at startup using DI.
    Transport layers (stdio/HTTP) read from this registry to expose tools.
    """
    handlers = ToolHandlers(container or build_container())

    specs = [
        ToolSpec("readFile", "Read a text file under the data root (null when it does not exist)",
                 ReadFileIn, handlers.read_file),
        ToolSpec("writeFile", "Write a text file under the data root, creating parent folders",
                 WriteFileIn, handlers.write_file),
        ToolSpec("rm", "Delete a file, or a folder with recursive=true; missing paths succeed",
                 RmIn, handlers.rm),
        ToolSpec("rename", "Move a file or folder within the data root",
                 RenameIn, handlers.rename),
        ToolSpec("mkdir", "Create a folder (and its parents) under the data root",
                 MkdirIn, handlers.mkdir),
        ToolSpec("readdir", "List a folder: name, isDirectory, isFile, size and timestamps",
                 ReaddirIn, handlers.readdir),
        ToolSpec("stat", "File metadata, or null when the path does not exist",
                 StatIn, handlers.stat),
        ToolSpec("exists", "Whether a path exists under the data root",
                 ExistsIn, handlers.exists),
        ToolSpec("getInitialData", "Build the sidebar tree of folders, snippets and boards",
                 InitialDataIn, handlers.get_initial_data),
        ToolSpec("listBoards", "List the boards stored under boards/",
                 ListBoardsIn, handlers.list_boards),
        ToolSpec("migrateSnippets", "Rewrite .txt snippets in a folder as .json snippets",
                 MigrateSnippetsIn, handlers.migrate_snippets),
        ToolSpec("securityStats", "Counts and most recent entries of the security event log",
                 SecurityStatsIn, handlers.security_stats),
    ]
    return {spec.name: spec for spec in specs}


def list_tools_payload(registry: Dict[str, ToolSpec]) -> Dict[str, Any]:
    """
    Produce the `tools/list` payload body as per MCP Tools spec.
    """
    tools = []
    for spec in registry.values():
        tools.append({
            "name": spec.name,
            "description": spec.description,
            "inputSchema": _schema_from_model(spec.input_model),
        })
    return {"tools": tools}


def dispatch_tool_call(registry: Dict[str, ToolSpec], name: str, arguments: Dict[str, Any],
                       gate: Optional[RequestGate] = None, caller: str = "local",
                       data_root: Optional[Path] = None) -> Any:
    """
    Rate-limit the caller, validate args with the tool's Pydantic model,
    then invoke the named handler.
    """
    if name not in registry:
        raise KeyError(f"Tool not found: {name}")
    spec = registry[name]
    if gate is not None:
        gate.admit(caller)
    args_obj = spec.input_model.model_validate(arguments or {})
    log_tool_call(logger, name, args_obj.model_dump(), caller=caller, data_root=data_root)
    return spec.handler(args_obj)


def register_into_fastmcp(mcp, registry: Dict[str, ToolSpec], gate: Optional[RequestGate] = None,
                          caller: str = "stdio", data_root: Optional[Path] = None) -> None:
    """
    Register all registry tools into a FastMCP stdio host.
    This keeps stdio and HTTP transports in sync without duplication.
    """
    for spec in registry.values():
        # Create a local closure so each handler binds to its spec
        def make_tool(spec: ToolSpec):
            def tool_handler(input):
                if gate is not None:
                    gate.admit(caller)
                log_tool_call(logger, spec.name, input.model_dump(), caller=caller,
                              data_root=data_root)
                return spec.handler(input)
            # FastMCP reads the input schema from the annotation
            tool_handler.__annotations__ = {"input": spec.input_model, "return": Any}
            tool_handler.__name__ = spec.name
            return tool_handler

        mcp.tool(name=spec.name, description=spec.description)(make_tool(spec))
