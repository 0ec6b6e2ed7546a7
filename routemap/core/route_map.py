"""RouteMap — the per-request execution context handed to route handlers.

Invariants:
    - One RouteMap per inbound request; never shared, never reused
    - The callstack only shrinks during execution (pure LIFO consumption)
    - make_response runs at most once: PENDING → RUNNING → SUCCEEDED|FAILED → RESPONDED
    - A failure while shaping or sending the success response is routed to the
      failure path, so every outcome still ends in exactly one response
    - A sink that was already used is never written to again: the error propagates
    - Terminal state is exactly one of SUCCEEDED (result) or FAILED (error);
      result keeps the last successful value on failure, for diagnostics only
    - The shared object store is request-scoped and never cleared between steps
    - The transaction handle exists only while make_response is draining

Design Decisions:
    - Handler-facing surface (push, set_permission, serializers, store, factories)
      lives here; the drain loop and response shaping live in sequencer.py and
      responder.py as functions over this object (ADR: functional core)
    - A second set_permission AND-composes with the existing gate instead of
      replacing it: every predicate a handler registers must pass
    - Pagination is derived in the constructor, not at execution time
"""

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from routemap.core import errors, permissions
from routemap.core.events import Event, EventName
from routemap.core.pagination import PageRequest, PaginationDefaults, derive_page_request
from routemap.core.protocols import Permission, ResponseSink, Step
from routemap.core.request import InboundRequest
from routemap.core.responder import failure_record, respond_failure, respond_success
from routemap.core.sequencer import drain

logger = logging.getLogger(__name__)


class ExecutionState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RESPONDED = "responded"


class ResponseMode(str, Enum):
    DEFAULT = "default"
    EMPTY = "empty"
    CUSTOM_STATUS = "custom_status"


class RouteMap:
    """Execution context: callstack, shared store, response flags, event trail."""

    def __init__(
        self,
        request: InboundRequest,
        pagination: PaginationDefaults = PaginationDefaults(),
    ):
        self.request = request
        self._callstack: list[Step] = []
        self._objects: dict[str, Any] = {}
        self._events: list[Event] = []
        self._result: Any = None
        self._error: BaseException | None = None
        self._state = ExecutionState.PENDING
        self._permission_gate: Permission | None = None
        self._response_mode = ResponseMode.DEFAULT
        self._status_override: int | None = None
        self._page_response: Mapping[str, Any] | None = None
        self._transaction: Any = None
        self.page_request: PageRequest | None = derive_page_request(
            request.method, request.query, pagination,
        )
        request.logger.info(
            "Processing request %s %s. Query: %s. Body: %s",
            request.method, request.path, request.query, request.body,
            extra={"method": request.method, "path": request.path},
        )

    # ─── Read-only state ─────────────────────────────────────────

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def result(self) -> Any:
        return self._result

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def events(self) -> tuple[Event, ...]:
        return tuple(self._events)

    @property
    def objects(self) -> dict[str, Any]:
        """Shallow copy of the shared object store."""
        return dict(self._objects)

    @property
    def pending(self) -> int:
        return len(self._callstack)

    @property
    def permission_gate(self) -> Permission | None:
        return self._permission_gate

    @property
    def response_mode(self) -> ResponseMode:
        return self._response_mode

    @property
    def is_empty_response(self) -> bool:
        return self._response_mode is ResponseMode.EMPTY

    @property
    def status_override(self) -> int | None:
        return self._status_override

    @property
    def page_response(self) -> Mapping[str, Any] | None:
        return self._page_response

    @property
    def paginated(self) -> bool:
        return self._page_response is not None

    @property
    def transaction(self) -> Any:
        """Handle yielded by the transaction provider, None outside make_response."""
        return self._transaction

    # ─── Callstack ───────────────────────────────────────────────

    def push(self, step: Step) -> None:
        """Queue a step. The LAST pushed step runs FIRST."""
        self._callstack.append(step)

    def pop(self) -> Step:
        return self._callstack.pop()

    def set_permission(self, permission: Permission) -> None:
        if self._permission_gate is None:
            self._permission_gate = permission
        else:
            self._permission_gate = permissions.and_permission(
                self._permission_gate, permission,
            )

    def add_event(self, name: EventName, payload: dict[str, Any] | None = None) -> None:
        self._events.append(Event(name, payload or {}))

    def record_result(self, value: Any) -> None:
        self._result = value

    # ─── Response shaping ────────────────────────────────────────

    def _set_mode(self, mode: ResponseMode, status: int) -> None:
        if self._status_override is not None:
            logger.warning(
                "Response status overridden twice (%d → %d) for %s %s",
                self._status_override, status, self.request.method, self.request.path,
            )
        self._response_mode = mode
        self._status_override = status

    def set_status(self, status: int) -> None:
        mode = ResponseMode.EMPTY if self.is_empty_response else ResponseMode.CUSTOM_STATUS
        self._set_mode(mode, status)

    def empty_response_serializer(self) -> None:
        self._set_mode(ResponseMode.EMPTY, 204)

    def successful_response_serializer(self) -> None:
        self._set_mode(ResponseMode.EMPTY, 200)

    def created_serializer(self) -> None:
        self._set_mode(ResponseMode.EMPTY, 201)

    def set_page_response_object(self, page_response: Mapping[str, Any]) -> None:
        """Metadata of a paged fetch; the final body becomes {**page_response, results}."""
        self._page_response = page_response

    # ─── Shared object store ─────────────────────────────────────

    def add_or_update_object(self, key: str, value: Any) -> None:
        self._objects[key] = value

    def get_object(self, key: str, required: bool = False) -> Any:
        if key in self._objects:
            return self._objects[key]
        if required:
            raise errors.MissingObjectError(key)
        return None

    def contains_key(self, key: str) -> bool:
        return key in self._objects

    # ─── Execution ───────────────────────────────────────────────

    async def make_response(self, response: ResponseSink) -> Any:
        """Drain the callstack and write exactly one response through `response`.

        Returns whatever the sink returns (e.g. a Starlette Response).
        """
        if self._state is not ExecutionState.PENDING:
            raise errors.ResponseAlreadySentError(
                f"make_response already called ({self._state.value})",
            )
        self._state = ExecutionState.RUNNING
        try:
            await self._run(response)
        except Exception as error:
            outcome = self._fail(response, error)
        else:
            self._state = ExecutionState.SUCCEEDED
            try:
                outcome = respond_success(self, response)
            except errors.ResponseAlreadySentError as error:
                self._error = error
                self._state = ExecutionState.FAILED
                raise
            except Exception as error:
                # the sink call is the last thing respond_success does: nothing was sent
                outcome = self._fail(response, error)
        self._state = ExecutionState.RESPONDED
        return outcome

    def _fail(self, response: ResponseSink, error: Exception) -> Any:
        self._error = error
        self._state = ExecutionState.FAILED
        if not self._events or self._events[-1].name is not EventName.ERROR:
            self.add_event(EventName.ERROR, {})
        return respond_failure(self, response, error)

    async def _run(self, response: ResponseSink) -> None:
        provider = self.request.transaction_provider
        if provider is None:
            await drain(self, response)
            return
        try:
            async with provider.transaction() as transaction:
                self._transaction = transaction
                await drain(self, response)
        finally:
            self._transaction = None

    def dump(self) -> dict[str, Any]:
        """Failure record: request, store, events, result, error and stack."""
        return failure_record(self)

    # ─── Factories (handler-facing) ──────────────────────────────

    def forbidden_error(self, message: str | None = None) -> errors.ForbiddenError:
        return errors.ForbiddenError(message)

    def unauthorized_error(self, message: str | None = None) -> errors.UnauthorizedError:
        return errors.UnauthorizedError(message)

    def not_found_error(self, message: str | None = None) -> errors.NotFoundError:
        return errors.NotFoundError(message)

    def bad_request_error(self, message: str = "Bad Request") -> errors.BadRequestError:
        return errors.BadRequestError(message)

    def email_already_taken_error(
        self, message: str = "Email Already Taken",
    ) -> errors.EmailAlreadyTakenError:
        return errors.EmailAlreadyTakenError(message)

    def authenticated_permission(
        self, options: Mapping[str, Any] | None = None,
    ) -> permissions.AuthenticatedPermission:
        return permissions.AuthenticatedPermission(options)

    def roles_permission(
        self, roles: Iterable[str], require_all: bool = False,
    ) -> permissions.RolesPermission:
        return permissions.RolesPermission(roles, require_all)

    def and_permission(self, first: Permission, second: Permission) -> Permission:
        return permissions.and_permission(first, second)

    def or_permission(self, first: Permission, second: Permission) -> Permission:
        return permissions.or_permission(first, second)
