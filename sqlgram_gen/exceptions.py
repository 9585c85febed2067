from __future__ import annotations


class SqlgramError(Exception):
    """Base class for every fatal error raised by a run."""


class LoadError(SqlgramError):
    """A resource (file or URL) could not be fetched."""


class WriteError(SqlgramError):
    """An output file could not be written."""


class ParseError(SqlgramError):
    """A specification document or grammar source is malformed."""


class FormatError(SqlgramError):
    """An expected structural marker is missing from the grammar source."""


class ConfigError(SqlgramError):
    """Invalid pattern, duplicate statement name or other bad setting."""


class ExtractionError(SqlgramError):
    def __init__(self, name: str, message: str):
        super().__init__(f"{name}: {message}")
        self.name = name


class RenderError(SqlgramError):
    def __init__(self, name: str, message: str):
        super().__init__(f"{name}: {message}")
        self.name = name


class UnmatchedSpecError(SqlgramError):
    def __init__(self, name: str):
        super().__init__(f"unfound spec: {name}")
        self.name = name


class RenderBatchError(SqlgramError):
    """One or more diagram jobs failed; raised after the whole batch finished."""

    def __init__(self, failures: list[tuple[str, Exception]]):
        self.failures = sorted(failures, key=lambda f: f[0])
        lines = [f"{len(self.failures)} diagram job(s) failed:"]
        for name, err in self.failures:
            if getattr(err, "name", None) == name:
                lines.append(f"  {err}")
            else:
                lines.append(f"  {name}: {err}")
        super().__init__("\n".join(lines))
