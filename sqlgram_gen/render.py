"""Bounded-concurrency rendering of extracted fragments into HTML diagrams."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from .config import SvgConfig
from .constants import BNF_SUFFIX, HTML_SUFFIX, TOP_STMT
from .exceptions import LoadError, RenderBatchError, RenderError, SqlgramError, UnmatchedSpecError
from .grammar.markup import normalize_to_html
from .grammar.railroad_render import generate_diagram
from .html_fmt import statement_body, top_level_body
from .io import load_specs
from .spec_model import Filter, StmtSpec, index_specs
from .writer import write_text

Renderer = Callable[[str], str]


def render_fragment(ebnf: str) -> str:
    """Default renderer: EBNF text to normalized HTML document."""
    return normalize_to_html(generate_diagram(ebnf))


class AdmissionGate:
    """Counting gate bounding how many jobs are in flight at once."""

    def __init__(self, limit: int):
        self.limit = limit
        self._slots = threading.BoundedSemaphore(limit)
        self._counts = threading.Lock()
        self.in_flight = 0
        self.peak = 0

    def acquire(self) -> None:
        self._slots.acquire()
        with self._counts:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)

    def release(self) -> None:
        with self._counts:
            self.in_flight -= 1
        self._slots.release()


def discover_fragments(bnf_dir: Path) -> list[tuple[str, Path]]:
    """(name, path) for every fragment in bnf_dir, sorted by name."""
    return sorted(
        (path.name[: -len(BNF_SUFFIX)], path)
        for path in bnf_dir.glob(f"*{BNF_SUFFIX}")
        if path.is_file()
    )


def render_one(
    name: str,
    path: Path,
    spec_index: Mapping[str, StmtSpec],
    svg_dir: Path,
    renderer: Renderer = render_fragment,
    quiet: bool = False,
) -> Path:
    if not quiet:
        print(f"generating diagram of {name} ({path})")

    spec: Optional[StmtSpec] = None
    if name != TOP_STMT:
        spec = spec_index.get(name)
        if spec is None:
            raise UnmatchedSpecError(name)

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"failed to read {path}: {e}") from e

    try:
        doc = renderer(text)
    except Exception as e:
        raise RenderError(name, f"render: {e}") from e
    try:
        body = top_level_body(doc) if spec is None else statement_body(doc, spec)
    except SqlgramError as e:
        raise RenderError(name, str(e)) from e

    out = svg_dir / f"{name}{HTML_SUFFIX}"
    write_text(out, body)
    return out


def _admitted(gate: AdmissionGate, job: Callable[[], Path]) -> Path:
    try:
        return job()
    finally:
        gate.release()


def render_all(
    bnf_dir: Path,
    svg_dir: Path,
    specs: Sequence[StmtSpec],
    filter: Filter,
    max_workers: int = 1,
    quiet: bool = False,
    renderer: Renderer = render_fragment,
    gate: Optional[AdmissionGate] = None,
) -> list[Path]:
    """Render every selected fragment with at most `max_workers` jobs in flight.

    All admitted jobs run to completion; failures are then reported together
    as one RenderBatchError.
    """
    spec_index = index_specs(specs)
    gate = gate or AdmissionGate(max_workers)
    items = [(name, path) for name, path in discover_fragments(bnf_dir) if filter.selects(name)]

    written: list[Path] = []
    failures: list[tuple[str, Exception]] = []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures: dict[Future[Path], str] = {}
        for name, path in items:
            gate.acquire()

            def job(name: str = name, path: Path = path) -> Path:
                return render_one(name, path, spec_index, svg_dir, renderer, quiet)

            try:
                futures[pool.submit(_admitted, gate, job)] = name
            except RuntimeError:
                gate.release()
                raise

        for fut in as_completed(futures):
            try:
                written.append(fut.result())
            except Exception as e:
                failures.append((futures[fut], e))

    if failures:
        raise RenderBatchError(failures)
    return sorted(written)


def run_svg(cfg: SvgConfig, renderer: Renderer = render_fragment) -> list[Path]:
    specs = load_specs(cfg.spec)
    return render_all(
        cfg.bnf_dir,
        cfg.svg_dir,
        specs,
        cfg.filter,
        max_workers=cfg.max_workers,
        quiet=cfg.quiet,
        renderer=renderer,
    )
