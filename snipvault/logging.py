# snipvault/logging.py
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_PLACEHOLDER = "<data-root>"

# Payload fields that are summarized by length instead of logged verbatim.
BULKY_KEYS = {"content", "text"}


def configure_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_str(s: str, data_root: Optional[Path] = None) -> str:
    if data_root is None:
        return s
    root = str(data_root)
    return s.replace(root, ROOT_PLACEHOLDER) if root else s


def redact_args(args: Dict[str, Any], data_root: Optional[Path] = None) -> Dict[str, Any]:
    safe = json.loads(json.dumps(args, default=str))  # shallow copy via JSON
    for k, v in list(safe.items()):
        if isinstance(v, str):
            if k in BULKY_KEYS:
                safe[k] = f"<{len(v)} chars>"
            else:
                safe[k] = redact_str(v, data_root)
    return safe


def log_tool_call(logger: logging.Logger, name: str, args: Dict[str, Any],
                  caller: str = "", data_root: Optional[Path] = None):
    logger.info("tool_call %s caller=%s %s", name, caller or "-", redact_args(args, data_root))
