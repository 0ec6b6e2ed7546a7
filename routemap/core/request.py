"""Inbound Request — the collaborator-supplied view of one HTTP request.

Invariants:
    - query is a private mutable copy: pagination defaults are written into it
    - user is None for anonymous requests
    - transaction_provider is None when the request must run untransacted

Design Decisions:
    - Plain dataclass instead of the framework's Request: the core stays testable
      without an ASGI app, and the shell decides how body/user are parsed
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from routemap.core.protocols import TransactionProvider

RequestLogger = logging.Logger | logging.LoggerAdapter


def _default_logger() -> RequestLogger:
    return logging.getLogger("routemap.request")


@dataclass
class InboundRequest:
    method: str
    path: str
    query: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    user: Any = None
    logger: RequestLogger = field(default_factory=_default_logger)
    transaction_provider: TransactionProvider | None = None
