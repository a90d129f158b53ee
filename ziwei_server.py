#!/usr/bin/env python3
"""
Ziwei — Zi Wei Dou Shu (紫微斗数) MCP Server

Newline-delimited JSON-RPC over stdio. Each input line is one request,
each answered request is one output line, strictly in order.

Tools:
  - get_current_time: local wall clock, broken into fields
  - calculate_ziwei: natal chart cast on true solar time
  - get_horoscope: the same chart projected onto a target date

Diagnostics go to stderr; stdout carries protocol lines only.
"""

import json
import os
import sys
from typing import Optional

from mcp import types

from ziwei_engine import ChartEngine, ChartError, build_chart, build_horoscope
from ziwei_tools import (
    ToolError,
    birth_spec_from_arguments,
    get_current_time,
    get_tool,
    list_tools,
    target_date_from_arguments,
)

__version__ = "1.0.0"

# ── Config ──
SERVER_NAME = os.environ.get("ZIWEI_SERVER_NAME", "ziwei-mcp-server")
PROTOCOL_VERSION = "2024-11-05"
SERVER_DESCRIPTION = "Zi Wei Dou Shu chart server, charts cast by py-iztro"


# ── Helpers ──

def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _json_text(value) -> str:
    # Clients parse this text back; keep the 2-space layout and raw Unicode.
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _ok(request_id, result: dict) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error(request_id, code: int, message: str) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": _dump(types.ErrorData(code=code, message=message)),
    }


def send_response(response: dict, stdout=None) -> None:
    stdout = stdout or sys.stdout
    stdout.write(json.dumps(response, ensure_ascii=False, separators=(",", ":")) + "\n")
    stdout.flush()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SECTION 1: TOOLS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _run_get_current_time(arguments: dict, engine: Optional[ChartEngine]) -> dict:
    return get_current_time()


def _run_calculate_ziwei(arguments: dict, engine: Optional[ChartEngine]) -> dict:
    """Cast a natal chart.

    Args:
        date: Birth date YYYY-MM-DD (required)
        hour: Clock hour 0-23, default 0
        gender: 'male' (default) or 'female'
        calendarKind: 'solar' (default) or 'lunar'
        isLeapMonth: Lunar leap month, default False
        language: Output language, default zh-CN
        longitude: Birth place longitude, for true solar time
        latitude: Birth place latitude, for true solar time
    """
    spec = birth_spec_from_arguments(arguments)
    try:
        data = build_chart(spec, engine)
    except ChartError as e:
        raise ToolError(f"Calculation error: {e}") from e
    return {"success": True, "data": data}


def _run_get_horoscope(arguments: dict, engine: Optional[ChartEngine]) -> dict:
    """Cast a natal chart and project it onto a target date.

    Args:
        Same as calculate_ziwei, plus
        targetDate: YYYY-MM-DD, defaults to today
    """
    spec = birth_spec_from_arguments(arguments)
    target_date = target_date_from_arguments(arguments)
    try:
        data = build_horoscope(spec, target_date, engine)
    except ChartError as e:
        raise ToolError(f"Horoscope error: {e}") from e
    return {"success": True, "data": data}


TOOL_HANDLERS = {
    "get_current_time": _run_get_current_time,
    "calculate_ziwei": _run_calculate_ziwei,
    "get_horoscope": _run_get_horoscope,
}


def _tool_result(text: str, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


def call_tool(params, engine: Optional[ChartEngine] = None) -> types.CallToolResult:
    """Run one `tools/call`. Failures come back as isError results, never raised."""
    if not isinstance(params, dict):
        return _tool_result("Error: params must be an object", is_error=True)

    name = params.get("name")
    tool = get_tool(name)
    if tool is None:
        return _tool_result(f"Unknown tool: {name}", is_error=True)

    try:
        payload = TOOL_HANDLERS[tool.name](params.get("arguments") or {}, engine)
    except ToolError as e:
        return _tool_result(str(e), is_error=True)
    except Exception as e:
        print(f"[ziwei] {tool.name} failed: {e!r}", file=sys.stderr)
        return _tool_result(f"Internal error in {tool.name}: {e}", is_error=True)

    return _tool_result(_json_text(payload))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SECTION 2: DISPATCH
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def initialize_result() -> types.InitializeResult:
    return types.InitializeResult(
        protocolVersion=PROTOCOL_VERSION,
        capabilities=types.ServerCapabilities(tools=types.ToolsCapability()),
        serverInfo=types.Implementation(name=SERVER_NAME, version=__version__),
        instructions=SERVER_DESCRIPTION,
    )


def handle_request(request: dict, engine: Optional[ChartEngine] = None) -> Optional[dict]:
    """Route one parsed request. Returns None for notifications (no id)."""
    request_id = request.get("id")
    if request_id is None:
        return None

    method = request.get("method")
    params = request.get("params")
    if params is None:
        params = {}

    try:
        if method == "initialize":
            result = _dump(initialize_result())
        elif method == "tools/list":
            result = _dump(types.ListToolsResult(tools=list_tools()))
        elif method == "tools/call":
            result = _dump(call_tool(params, engine))
        else:
            return _error(request_id, types.METHOD_NOT_FOUND, "Method not found")
    except Exception as e:
        print(f"[ziwei] Internal error handling {method!r}: {e!r}", file=sys.stderr)
        return _error(request_id, types.INTERNAL_ERROR, f"Internal error: {e}")

    return _ok(request_id, result)


def handle_line(line: str, engine: Optional[ChartEngine] = None) -> Optional[dict]:
    """Parse and route one input line. Returns the response, or None when none is owed."""
    if not line.strip():
        return None
    try:
        request = json.loads(line)
    except (ValueError, RecursionError):
        return _error(None, types.PARSE_ERROR, "Parse error")
    if not isinstance(request, dict):
        return _error(None, types.INVALID_REQUEST, "Invalid Request")
    return handle_request(request, engine)


def serve(stdin=None, stdout=None, engine: Optional[ChartEngine] = None) -> None:
    """Answer requests line by line until stdin is exhausted."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    for line in stdin:
        response = handle_line(line, engine)
        if response is not None:
            send_response(response, stdout)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def main() -> None:
    # undecodable input reaches the parser as U+FFFD and gets -32700
    if hasattr(sys.stdin, "reconfigure"):
        sys.stdin.reconfigure(encoding="utf-8", errors="replace")
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")

    print(f"[ziwei] {SERVER_NAME} {__version__} listening on stdio", file=sys.stderr)
    serve()
    print("[ziwei] stdin closed, shutting down", file=sys.stderr)


if __name__ == "__main__":
    main()
