from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from . import aicf
from .aicf.models import AicfCommand
from .errors import (
    AICF_BAD_REQUEST,
    ErrorKind,
    RpcAppError,
    aicf_code,
    attach_trace_id,
    jsonrpc_code,
    map_exception,
    method_not_found,
)
from .dispatcher import Dispatcher, ServerInfo
from .jsonrpc import codec as jsonrpc
from .jsonrpc.models import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from .models import CanonicalRequest, CanonicalResponse, Operation
from .observability.obs import api as obs
from .observability.trace.context import TraceContext
from .session import DEFAULT_SESSION_TTL_S, SessionStore
from .tools.base import ArgSpec, ContextDescriptor, ContextFormat, ContextSupplier, ToolDescriptor, ToolHandler
from .tools.registry import ContextRegistry, ToolRegistry


@dataclass
class RpcServer:
    """Dual-protocol front door.

    Owns the registries, the session store and the dispatcher, and converts
    between wire text and canonical requests/responses. Callers always get a
    well-formed response in the format they used.
    """

    server_info: ServerInfo = field(default_factory=ServerInfo)
    session_ttl_s: float = DEFAULT_SESSION_TTL_S
    default_timeout_s: float | None = None
    tools: ToolRegistry = field(default_factory=ToolRegistry)
    contexts: ContextRegistry = field(default_factory=ContextRegistry)

    def __post_init__(self) -> None:
        self.sessions = SessionStore(ttl_s=self.session_ttl_s)
        self.dispatcher = Dispatcher(
            tools=self.tools,
            contexts=self.contexts,
            sessions=self.sessions,
            server_info=self.server_info,
            default_timeout_s=self.default_timeout_s,
        )

    # --- registration ---

    def register_tool(
        self,
        name: str,
        description: str,
        args: Iterable[ArgSpec | tuple[str, str] | str] | Mapping[str, Any] | None,
        handler: ToolHandler,
        **meta: Any,
    ) -> ToolDescriptor:
        return self.tools.register_tool(name, description, args, handler, **meta)

    def register_context(
        self,
        name: str,
        description: str,
        format: ContextFormat,
        supplier: ContextSupplier,
    ) -> ContextDescriptor:
        return self.contexts.register_context(name, description, format, supplier)

    def sweep_sessions(self) -> int:
        removed = self.sessions.sweep_expired()
        obs.event("session.sweep", {"removed": removed, "remaining": len(self.sessions)})
        return removed

    # --- format auto-detect ---

    async def handle_line(self, line: str, *, timeout_s: float | None = None) -> str:
        if aicf.is_aicf_format(line):
            return await self.handle_aicf(line, timeout_s=timeout_s)
        return await self.handle_jsonrpc_line(line)

    # --- compact format ---

    async def handle_aicf(self, line: str, *, timeout_s: float | None = None) -> str:
        ctx = TraceContext.new(wire_format="aicf")
        with TraceContext.activate(ctx):
            try:
                return await self._handle_aicf(line, timeout_s)
            except Exception as e:
                err = map_exception(e)
                obs.failure(err.kind.value, err.message)
                return aicf.encode_failure(aicf_code(err.kind), err.message)
            finally:
                ctx.finish()

    async def _handle_aicf(self, line: str, timeout_s: float | None) -> str:
        obs.event("rpc.request", {"format": "aicf"})
        try:
            req = aicf.decode_request(line)
        except aicf.AicfCodecError as e:
            obs.failure(ErrorKind.MALFORMED.value, e.message)
            return aicf.encode_failure(AICF_BAD_REQUEST, e.message)

        if req.command is AicfCommand.LIST:
            resp = await self.dispatcher.dispatch(CanonicalRequest(operation=Operation.LIST_CAPABILITIES))
            if not resp.ok:
                return _aicf_failure(resp)
            names = [c["name"] for c in resp.payload["capabilities"] if c.get("type") == "tool"]
            return aicf.encode_tool_list(names)

        if req.command is AicfCommand.INFO:
            resp = await self.dispatcher.dispatch(CanonicalRequest(operation=Operation.GET_TOOL_INFO, name=req.tool))
            if not resp.ok:
                return _aicf_failure(resp)
            info = resp.payload
            return aicf.encode_tool_info(
                info["name"],
                info["description"],
                [(a["name"], a["type"]) for a in info["args"]],
            )

        resp = await self.dispatcher.dispatch(
            CanonicalRequest(
                operation=Operation.INVOKE_TOOL,
                name=req.tool,
                arguments=list(req.arguments),
                timeout_s=timeout_s,
            )
        )
        if not resp.ok:
            return _aicf_failure(resp)
        return aicf.encode_success(resp.payload)

    # --- structured format ---

    async def handle_jsonrpc_line(self, line: str) -> str:
        try:
            obj = jsonrpc.decode_request(line)
        except jsonrpc.JsonRpcCodecError as e:
            return jsonrpc.encode_error(e.req_id, e.code, e.message, e.data)
        resp = await self.dispatch_jsonrpc(obj)
        try:
            return jsonrpc.encode_response(resp)
        except (TypeError, ValueError) as e:
            # Result not JSON-serializable (non-str keys, cycles).
            return jsonrpc.encode_error(
                resp.id, jsonrpc.INTERNAL_ERROR, "internal error", {"exc_type": type(e).__name__}
            )

    async def handle_jsonrpc(self, obj: Any) -> dict[str, Any]:
        resp = await self.dispatch_jsonrpc(obj)
        return resp.to_dict()

    async def dispatch_jsonrpc(self, obj: Any) -> JsonRpcResponse:
        req_id = jsonrpc.request_id_of(obj)
        ctx = TraceContext.new(wire_format="jsonrpc", request_id=req_id)
        with TraceContext.activate(ctx):
            try:
                return await self._dispatch_jsonrpc(obj)
            except Exception as e:
                return _jsonrpc_failure(req_id, map_exception(e))
            finally:
                ctx.finish()

    async def _dispatch_jsonrpc(self, obj: Any) -> JsonRpcResponse:
        obs.event("rpc.request", {"format": "jsonrpc"})
        if not jsonrpc.is_valid_request(obj):
            obs.failure("invalid_request", "Invalid JSON-RPC request")
            return JsonRpcResponse(
                id=jsonrpc.request_id_of(obj),
                error=JsonRpcError(jsonrpc.INVALID_REQUEST, "Invalid JSON-RPC request"),
            )

        req = jsonrpc.to_request(obj)
        try:
            canonical = canonical_from_jsonrpc(req)
        except RpcAppError as e:
            obs.failure(e.kind.value, e.message)
            return _jsonrpc_failure(req.id, e)

        resp = await self.dispatcher.dispatch(canonical)
        if resp.ok:
            return JsonRpcResponse(id=req.id, result=resp.payload)
        err = resp.error
        return _jsonrpc_failure(req.id, RpcAppError(err.kind, err.message, err.details))


def canonical_from_jsonrpc(req: JsonRpcRequest) -> CanonicalRequest:
    """Route a validated envelope onto the fixed method table."""
    params = req.params if isinstance(req.params, dict) else None

    if req.method == jsonrpc.METHOD_HANDSHAKE:
        client = params.get("client") if params else None
        return CanonicalRequest(
            operation=Operation.HANDSHAKE,
            request_id=req.id,
            client=client if isinstance(client, dict) else None,
        )

    if req.method == jsonrpc.METHOD_CAPABILITIES_LIST:
        return CanonicalRequest(operation=Operation.LIST_CAPABILITIES, request_id=req.id)

    if req.method == jsonrpc.METHOD_TOOL_INVOKE:
        if params is None:
            raise RpcAppError(ErrorKind.INVALID_PARAMS, "Missing params for tool invocation")
        tool = params.get("tool")
        if not isinstance(tool, str) or not tool:
            raise RpcAppError(ErrorKind.INVALID_PARAMS, "Missing tool name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise RpcAppError(ErrorKind.INVALID_PARAMS, "tool arguments must be an object")
        return CanonicalRequest(
            operation=Operation.INVOKE_TOOL,
            request_id=req.id,
            name=tool,
            arguments=arguments,
            timeout_s=_timeout_from_params(params),
        )

    if req.method == jsonrpc.METHOD_CONTEXT_GET:
        if params is None:
            raise RpcAppError(ErrorKind.INVALID_PARAMS, "Missing params for context get")
        context = params.get("context")
        if not isinstance(context, str) or not context:
            raise RpcAppError(ErrorKind.INVALID_PARAMS, "Missing context name")
        return CanonicalRequest(operation=Operation.GET_CONTEXT, request_id=req.id, name=context)

    raise method_not_found(req.method)


def _timeout_from_params(params: Mapping[str, Any]) -> float | None:
    timeout_ms = params.get("timeout")
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)):
        return None
    if timeout_ms <= 0:
        return None
    return timeout_ms / 1000.0


def _aicf_failure(resp: CanonicalResponse) -> str:
    err = resp.error
    return aicf.encode_failure(aicf_code(err.kind), err.message)


def _jsonrpc_failure(req_id: Any | None, err: RpcAppError) -> JsonRpcResponse:
    ctx = TraceContext.current()
    data = attach_trace_id(err.data, ctx.trace_id if ctx else None)
    return JsonRpcResponse(id=req_id, error=JsonRpcError(jsonrpc_code(err.kind), err.message, data))
