# sqlgram_gen/validate.py
from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Any, Literal

from .exceptions import ConfigError, ParseError
from .spec_model import StmtSpec

Severity = Literal["error", "warning"]

STRING_FIELDS = ("name", "stmt")
STRING_LIST_FIELDS = ("inline", "unlink", "match", "exclude")
STRING_MAP_FIELDS = ("replace", "regreplace", "relink")
BOOL_FIELDS = ("nosplit",)
KNOWN_FIELDS = STRING_FIELDS + STRING_LIST_FIELDS + STRING_MAP_FIELDS + BOOL_FIELDS

# Codes raised as ConfigError rather than ParseError.
CONFIG_CODES = frozenset({"E_SPEC_DUPLICATE_NAME", "E_SPEC_BAD_PATTERN"})


@dataclass(frozen=True)
class ValidationIssue:
    """Structured validation issue for callers that want more than strings."""

    severity: Severity
    code: str
    message: str
    path: str = ""


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _is_str_map(value: Any) -> bool:
    return isinstance(value, dict) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    )


def validate_specs_issues(doc: Any) -> list[ValidationIssue]:
    """Return structured validation issues for a loaded specification document.

    Patterns in `match`, `exclude` and `regreplace` keys are compiled here so
    that a bad pattern fails the run before any extraction starts.
    """

    issues: list[ValidationIssue] = []

    def emit(severity: Severity, code: str, message: str, path: str = "") -> None:
        issues.append(ValidationIssue(severity=severity, code=code, message=message, path=path))

    if not isinstance(doc, list):
        emit(
            "error",
            "E_SPEC_NOT_LIST",
            f"spec document must be a list, got {type(doc).__name__}",
        )
        return issues

    names_seen: dict[str, int] = {}
    for i, entry in enumerate(doc):
        if not isinstance(entry, dict):
            emit("error", "E_SPEC_NOT_MAPPING", "spec entry must be a mapping", path=f"/{i}")
            continue

        name = entry.get("name")
        if not isinstance(name, str) or not name:
            emit("error", "E_SPEC_MISSING_NAME", "spec entry missing string `name`", path=f"/{i}/name")
        elif name in names_seen:
            emit(
                "error",
                "E_SPEC_DUPLICATE_NAME",
                f"duplicate spec name {name!r} (also at /{names_seen[name]})",
                path=f"/{i}/name",
            )
        else:
            names_seen[name] = i
            if "/" in name or "\\" in name or ".." in name:
                emit(
                    "error",
                    "E_SPEC_NAME_NOT_FILE_SAFE",
                    f"spec name {name!r} is not safe for use as a file name",
                    path=f"/{i}/name",
                )

        for key in sorted(entry, key=str):
            if key not in KNOWN_FIELDS:
                emit(
                    "warning",
                    "W_SPEC_UNKNOWN_FIELD",
                    f"spec {name!r} has unknown field {key!r}; ignoring",
                    path=f"/{i}/{key}",
                )

        for key in KNOWN_FIELDS:
            value = entry.get(key)
            if value is None or key == "name":
                continue
            ok = (
                (key in STRING_FIELDS and isinstance(value, str))
                or (key in STRING_LIST_FIELDS and _is_str_list(value))
                or (key in STRING_MAP_FIELDS and _is_str_map(value))
                or (key in BOOL_FIELDS and isinstance(value, bool))
            )
            if not ok:
                emit(
                    "error",
                    "E_SPEC_FIELD_TYPE",
                    f"spec {name!r} field {key!r} has wrong type {type(value).__name__}",
                    path=f"/{i}/{key}",
                )

        patterns: list[tuple[str, str]] = []
        for key in ("match", "exclude"):
            if _is_str_list(entry.get(key)):
                patterns.extend((key, p) for p in entry[key])
        if _is_str_map(entry.get("regreplace")):
            patterns.extend(("regreplace", p) for p in entry["regreplace"])
        for key, pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                emit(
                    "error",
                    "E_SPEC_BAD_PATTERN",
                    f"spec {name!r} {key} pattern {pattern!r} does not compile: {e}",
                    path=f"/{i}/{key}",
                )

    return issues


def _spec_from_entry(entry: dict[str, Any]) -> StmtSpec:
    def get(key: str, default: Any) -> Any:
        value = entry.get(key)
        return default if value is None else value

    return StmtSpec(
        name=entry["name"],
        stmt=get("stmt", ""),
        inline=tuple(get("inline", [])),
        replace=dict(get("replace", {})),
        regreplace=dict(get("regreplace", {})),
        match=tuple(re.compile(p) for p in get("match", [])),
        exclude=tuple(re.compile(p) for p in get("exclude", [])),
        unlink=tuple(get("unlink", [])),
        relink=dict(get("relink", {})),
        nosplit=get("nosplit", False),
    )


def build_specs(doc: Any, source: str = "<spec>") -> list[StmtSpec]:
    """Validate a specification document and build specs in document order."""
    issues = validate_specs_issues(doc)
    for issue in issues:
        if issue.severity == "warning":
            print(f"warning: {source}{issue.path}: {issue.message}", file=sys.stderr)

    errors = [iss for iss in issues if iss.severity == "error"]
    if errors:
        message = "; ".join(f"{source}{iss.path}: {iss.message}" for iss in errors)
        if any(iss.code in CONFIG_CODES for iss in errors):
            raise ConfigError(message)
        raise ParseError(message)

    return [_spec_from_entry(entry) for entry in doc]
