"""Boundary Protocols — contracts between the core and its collaborators.

Invariants:
    - Core NEVER imports from the shell — dependency arrows point inward only
    - The web framework, the transaction provider and the response writer are
      reached only through these Protocols

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - TransactionProvider.transaction() is an async context manager: commit on
      normal exit, rollback on exception — the handle it yields is opaque to the core
"""

from typing import Any, AsyncContextManager, Awaitable, Callable, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from routemap.core.request import InboundRequest
    from routemap.core.route_map import RouteMap


class ResponseSink(Protocol):
    """Outbound response writer. The responder calls exactly one method, once."""
    def send_status(self, status: int) -> Any: ...
    def send_json(self, status: int, body: Any) -> Any: ...


class TransactionProvider(Protocol):
    """Contract for a transactional scope — implemented by infrastructure/database.py."""
    def transaction(self) -> AsyncContextManager[Any]: ...


class Permission(Protocol):
    """Access-control predicate: return to allow, raise a typed error to deny."""
    async def has_permission(self, request: "InboundRequest") -> None: ...


# A step receives the execution context and the in-progress response sink.
Step = Callable[["RouteMap", ResponseSink], Awaitable[Any]]
