"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from lumina.output.console import create_console, get_output, style_for

if TYPE_CHECKING:
    from rich.console import Console

    from lumina.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op == "ask":
        return str(result.data.get("response", ""))

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(key for key in map(_extract_key, items) if key)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_key(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("id", "channel"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _compact(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="lumina.ok"), Text(f"  {result.op}", style="lumina.op"))


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="lumina.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="lumina.id")
    elif key in ("path", "channel"):
        v = Text(str(value), style="lumina.path")
    else:
        v = Text(_compact(value))
    console.print(k, v, sep="")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="lumina.error"),
        Text(f"  {result.op}", style="lumina.op"),
        Text(" — "),
        msg,
        sep="",
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Palette renderers ─────────────────────────────────────────────────


def _render_command_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="lumina.id", no_wrap=True)
    table.add_column("Label", style="lumina.label")
    table.add_column("Type")
    table.add_column("Keywords", style="dim")
    if verbose:
        table.add_column("Icon", style="lumina.path")

    for item in items:
        kind = item.get("type")
        row: list[Any] = [
            str(item.get("id", "")),
            str(item.get("label", "")),
            Text(str(kind or ""), style=style_for("type", kind)),
            str(item.get("keywords", "")),
        ]
        if verbose:
            row.append(str(item.get("icon") or ""))
        table.add_row(*row)

    console.print(table)
    query = result.data.get("query")
    suffix = f" matching {query!r}" if query else ""
    console.print(f"\n{result.data.get('count', len(items))} commands{suffix}")


def _render_run_batch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="lumina.id", no_wrap=True)
    table.add_column("Result")
    table.add_column("Route")
    table.add_column("Detail", style="dim")

    for item in items:
        ok = item.get("ok", False)
        status = Text("ok", style="lumina.ok") if ok else Text("failed", style="lumina.error")
        detail = item.get("error") or item.get("event") or item.get("channel") or ""
        table.add_row(str(item.get("id", "")), status, str(item.get("route") or ""), str(detail))

    console.print(table)
    history = result.data.get("history")
    if history:
        console.print(f"\nhistory: {', '.join(history)}")


# ── Bridge renderers ──────────────────────────────────────────────────


def _render_channels(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Channel", style="lumina.id", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Payload", style="dim")
    for item in items:
        kind = item.get("kind")
        table.add_row(
            str(item.get("channel", "")),
            Text(str(kind or ""), style=style_for("kind", kind)),
            str(item.get("summary", "")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} channels")


def _render_bridge_call(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "channel", result.data.get("channel", ""))
    response = result.data.get("response")
    if isinstance(response, (dict, list)):
        console.print(json.dumps(response, indent=2, default=str), markup=False)
    else:
        _field(console, "response", response)


# ── Assistant renderer ────────────────────────────────────────────────


def _render_ask(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    console.print(str(result.data.get("response", "")), markup=False)
    if verbose:
        console.print()
        _field(console, "model", result.data.get("model") or "(default)")
        _field(console, "chunks", result.data.get("chunks", 0))


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    "list_commands": _render_command_table,
    "run_commands": _render_run_batch,
    "list_channels": _render_channels,
    "bridge_call": _render_bridge_call,
    "ask": _render_ask,
}
