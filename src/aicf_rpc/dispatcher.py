from __future__ import annotations

import asyncio
import inspect
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from .aicf.models import UNDEFINED
from .errors import (
    ErrorKind,
    RpcAppError,
    context_not_available,
    map_exception,
    method_not_found,
    tool_execution_failed,
    tool_not_found,
)
from .models import Arguments, CanonicalRequest, CanonicalResponse, Operation
from .observability.obs import api as obs
from .session import SessionStore
from .tools.base import ToolDescriptor
from .tools.registry import ContextRegistry, ToolRegistry


PROTOCOL_VERSION = "1.0.0"

Route = Callable[[CanonicalRequest], Awaitable[Any]]


@dataclass
class ServerInfo:
    name: str = "aicf-rpc"
    version: str = "0.1.0"
    metadata: dict[str, Any] = field(default_factory=dict)


def map_arguments(arguments: Arguments | None, descriptor: ToolDescriptor) -> dict[str, Any]:
    """Resolve call arguments to a named mapping.

    - A mapping is used as-is (named arguments from the structured format).
    - A sequence is mapped positionally onto the declared argument order; only
      `min(len(values), len(names))` entries are produced, so unsupplied
      trailing arguments are absent rather than defaulted.
    - A tool without declared arguments accepts a single object argument as
      the whole mapping.
    """
    if arguments is None:
        return {}
    if isinstance(arguments, Mapping):
        return dict(arguments)
    if isinstance(arguments, (str, bytes)):
        raise RpcAppError(ErrorKind.INVALID_PARAMS, "tool arguments must be a list or an object")

    values = list(arguments)
    names = descriptor.arg_names
    if not names:
        if len(values) == 1 and isinstance(values[0], dict):
            return dict(values[0])
        return {}
    return {name: value for name, value in zip(names, values) if value is not UNDEFINED}


@dataclass
class Dispatcher:
    """Turns a CanonicalRequest into a CanonicalResponse; never raises.

    The dispatcher holds no per-call state. It reads the registries and writes
    only to the session store (on handshake).
    """

    tools: ToolRegistry
    contexts: ContextRegistry
    sessions: SessionStore
    server_info: ServerInfo = field(default_factory=ServerInfo)
    default_timeout_s: float | None = None
    _abandoned: set[asyncio.Future[Any]] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        self._routes: dict[Operation, Route] = {
            Operation.HANDSHAKE: self._handshake,
            Operation.LIST_CAPABILITIES: self._list_capabilities,
            Operation.INVOKE_TOOL: self._invoke_tool,
            Operation.GET_TOOL_INFO: self._get_tool_info,
            Operation.GET_CONTEXT: self._get_context,
        }

    async def dispatch(self, req: CanonicalRequest) -> CanonicalResponse:
        op = req.operation.value if isinstance(req.operation, Operation) else str(req.operation)
        with obs.operation(op, req.name):
            try:
                route = self._routes.get(req.operation)
                if route is None:
                    raise method_not_found(op)
                payload = await route(req)
            except Exception as e:
                err = map_exception(e)
                obs.failure(err.kind.value, err.message)
                return CanonicalResponse.failure(req.request_id, err.kind, err.message, err.data)

            obs.event("rpc.success", {"operation": op})
            return CanonicalResponse.success(req.request_id, payload)

    # --- server info ---

    def describe_server(self) -> dict[str, Any]:
        capabilities: list[str] = []
        if len(self.tools) > 0:
            capabilities.append("tool")
        if len(self.contexts) > 0:
            capabilities.append("context")
        info: dict[str, Any] = {
            "name": self.server_info.name,
            "version": self.server_info.version,
            "capabilities": capabilities,
        }
        if self.server_info.metadata:
            info["metadata"] = dict(self.server_info.metadata)
        return info

    # --- operations ---

    async def _handshake(self, req: CanonicalRequest) -> dict[str, Any]:
        client = req.client if isinstance(req.client, Mapping) else {}
        obs.event(
            "rpc.handshake",
            {"client_name": client.get("name"), "client_version": client.get("version")},
        )
        session = self.sessions.create()
        return {
            "version": PROTOCOL_VERSION,
            "server": self.describe_server(),
            "session": session.to_dict(),
        }

    async def _list_capabilities(self, req: CanonicalRequest) -> dict[str, Any]:
        caps = [d.to_capability() for d in self.tools.all_descriptors()]
        caps.extend(d.to_capability() for d in self.contexts.all_descriptors())
        return {"capabilities": caps}

    async def _get_tool_info(self, req: CanonicalRequest) -> dict[str, Any]:
        name = req.name or ""
        entry = self.tools.lookup(name)
        if entry is None:
            raise tool_not_found(name)
        d = entry.descriptor
        return {
            "name": d.name,
            "description": d.description,
            "args": [{"name": a.name, "type": a.type or "any"} for a in d.args],
        }

    async def _invoke_tool(self, req: CanonicalRequest) -> Any:
        name = req.name or ""
        entry = self.tools.lookup(name)
        if entry is None:
            raise tool_not_found(name)

        args = map_arguments(req.arguments, entry.descriptor)
        obs.event("tool.invoke", {"tool": name, "arg_names": list(args.keys())})

        timeout_s = req.timeout_s if req.timeout_s is not None else self.default_timeout_s
        t0 = time.perf_counter()
        try:
            if _is_bounded(timeout_s) and not _is_async_handler(entry.handler):
                # Off the loop so a blocking handler can be abandoned at the deadline.
                result = await self._await_handler(name, asyncio.to_thread(entry.handler, args), timeout_s)
            else:
                try:
                    result = entry.handler(args)
                except (Exception, asyncio.CancelledError) as e:
                    raise _handler_failure(name, e) from e

            if inspect.isawaitable(result):
                result = await self._await_handler(name, result, timeout_s)
        finally:
            obs.metric("tool.latency_ms", (time.perf_counter() - t0) * 1000.0, {"tool": name})
        return result

    async def _get_context(self, req: CanonicalRequest) -> dict[str, Any]:
        name = req.name or ""
        entry = self.contexts.lookup(name)
        if entry is None:
            raise context_not_available(name, {"context": name})

        obs.event("context.get", {"context": name})
        try:
            data = entry.supplier()
            if inspect.isawaitable(data):
                data = await data
        except Exception as e:
            raise context_not_available(
                name,
                {"context": name, "cause": str(e), "exc_type": type(e).__name__},
            ) from e
        return {"context": name, "format": entry.descriptor.format, "data": data}

    # --- handler awaiting ---

    async def _await_handler(self, tool: str, pending: Awaitable[Any], timeout_s: float | None) -> Any:
        # Awaited through a task so a handler raising CancelledError settles as a
        # cancelled task instead of cancelling the dispatch itself.
        task = asyncio.ensure_future(pending)
        done, _ = await asyncio.wait({task}, timeout=timeout_s if _is_bounded(timeout_s) else None)
        if task in done:
            if task.cancelled():
                raise tool_execution_failed(tool, "cancelled", {"tool": tool, "exc_type": "CancelledError"})
            exc = task.exception()
            if exc is not None:
                raise _handler_failure(tool, exc) from exc
            return task.result()

        # Abandon, do not cancel: the handler keeps running and owns its cleanup.
        self._abandoned.add(task)
        task.add_done_callback(self._reap)
        timeout_ms = int(timeout_s * 1000)
        obs.event("tool.timeout", {"tool": tool, "timeout_ms": timeout_ms})
        raise RpcAppError(
            ErrorKind.TIMEOUT,
            f"Tool execution failed: {tool} - timed out after {timeout_ms} ms",
            {"tool": tool, "timeout": True, "timeout_ms": timeout_ms},
        )

    def _reap(self, task: asyncio.Future[Any]) -> None:
        self._abandoned.discard(task)
        if not task.cancelled():
            # Retrieve so late failures are not reported as unhandled.
            task.exception()

    @property
    def abandoned_count(self) -> int:
        return len(self._abandoned)


def _is_bounded(timeout_s: float | None) -> bool:
    return timeout_s is not None and timeout_s > 0


def _is_async_handler(handler: Any) -> bool:
    return inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(getattr(handler, "__call__", None))


def _handler_failure(tool: str, exc: BaseException) -> RpcAppError:
    message = exc.message if isinstance(exc, RpcAppError) else (str(exc) or type(exc).__name__)
    return tool_execution_failed(tool, message, {"tool": tool, "exc_type": type(exc).__name__})
