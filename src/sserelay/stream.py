from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Iterable, Iterator, Optional

import httpx
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()


@dataclass
class SSEEvent:
    data: str
    event: str = "message"
    id: Optional[str] = None
    retry: Optional[int] = None


def parse_sse(lines: Iterable[str]) -> Iterator[SSEEvent]:
    """Group SSE lines into events, one per blank-line dispatch."""
    data_lines: list[str] = []
    event: Optional[str] = None
    last_id: Optional[str] = None
    retry: Optional[int] = None

    for line in lines:
        if line == "":
            if data_lines:
                yield SSEEvent(data="\n".join(data_lines), event=event or "message", id=last_id, retry=retry)
            data_lines = []
            event = None
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "data":
            data_lines.append(value)
        elif field == "event":
            event = value
        elif field == "id":
            last_id = value
        elif field == "retry" and value.isdigit():
            retry = int(value)


def _render_event(e: SSEEvent) -> None:
    table = Table(show_header=False, box=None, pad_edge=False)
    if e.id is not None:
        table.add_row("[bold]id[/bold]", escape(e.id))
    table.add_row("[bold]event[/bold]", escape(e.event))
    table.add_row("[bold]data[/bold]", escape(e.data))
    console.print(table)
    console.print("-" * 60)


def stream_events(*, url: str, json_mode: bool = False) -> None:
    console.print(f"Streaming {url} (Ctrl+C to stop)")
    with httpx.Client(timeout=None, follow_redirects=True) as client:
        with client.stream("GET", url, headers={"Accept": "text/event-stream"}) as r:
            if r.status_code != 200:
                r.read()
                console.print(f"[red]{r.status_code}[/red]: {escape(r.text)}")
                r.raise_for_status()
            for e in parse_sse(r.iter_lines()):
                if json_mode:
                    console.print_json(data=asdict(e))
                else:
                    _render_event(e)


def publish_event(*, url: str, data: str, event: Optional[str] = None, timeout_s: float = 10.0) -> httpx.Response:
    payload = {"data": data}
    if event is not None:
        payload["event"] = event
    with httpx.Client(timeout=timeout_s, follow_redirects=True) as client:
        return client.post(url, content=json.dumps(payload), headers={"Content-Type": "application/json"})
