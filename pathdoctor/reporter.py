"""
Rendering of diagnostic reports.

Formats:
- text: ordered, human-readable sections (same order as the findings)
- structured / json: stable field names, sorted keys, parseable back into
  a DiagnosticReport with parse_structured()
- yaml: the structured payload as YAML

render() is a pure function of the report: no clock, no host lookups, no
terminal detection, so the same report always renders to the same string.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from pathdoctor.models import (
    DiagnosticReport,
    FileKind,
    FileState,
    Finding,
    LinkChain,
    LinkHop,
    LinkStatus,
    Principal,
    Severity,
    Suggestion,
    TargetHint,
)

SCHEMA_VERSION = "1"
FORMATS = ("text", "structured", "json", "yaml")


# ----------------- structured form -----------------


def _principal_to_dict(principal: Principal) -> dict[str, Any]:
    return {
        "username": principal.username,
        "uid": principal.uid,
        "primary_group": principal.primary_group,
        "gid": principal.gid,
        "groups": sorted(principal.groups),
    }


def _state_to_dict(state: FileState | None) -> dict[str, Any] | None:
    if state is None:
        return None
    return {
        "path": state.path,
        "kind": state.kind.value,
        "owner": state.owner,
        "group": state.group,
        "uid": state.uid,
        "gid": state.gid,
        "mode": state.octal,
        "mode_string": state.mode_string,
        "nlink": state.nlink,
        "link_target": state.link_target,
        "link_resolves": state.link_resolves,
    }


def _chain_to_dict(chain: LinkChain | None) -> dict[str, Any] | None:
    if chain is None:
        return None
    return {
        "origin": chain.origin,
        "status": chain.status.value,
        "final_path": chain.final_path,
        "hops": [{"path": h.path, "target": h.target, "exists": h.exists} for h in chain.hops],
    }


def finding_to_dict(finding: Finding) -> dict[str, Any]:
    return {
        "severity": finding.severity.value,
        "code": finding.code,
        "message": finding.message,
        "subject": finding.subject,
        "details": dict(finding.details),
    }


def suggestion_to_dict(suggestion: Suggestion) -> dict[str, Any]:
    return {
        "finding_code": suggestion.finding_code,
        "summary": suggestion.summary,
        "commands": list(suggestion.commands),
    }


def report_to_dict(report: DiagnosticReport) -> dict[str, Any]:
    """Plain-data form of a report with stable field names."""
    return {
        "schema_version": SCHEMA_VERSION,
        "target": report.target,
        "hint": report.hint.value,
        "resolved_path": report.resolved_path,
        "platform": report.platform,
        "security_modules": [
            {"name": name, "status": status} for name, status in report.security_modules
        ],
        "principal": _principal_to_dict(report.principal),
        "file_state": _state_to_dict(report.file_state),
        "link_chain": _chain_to_dict(report.link_chain),
        "findings": [finding_to_dict(f) for f in report.findings],
        "suggestions": [suggestion_to_dict(s) for s in report.suggestions],
        "summary": {"exit_status": report.exit_status, "counts": report.counts()},
    }


def _state_from_dict(data: dict[str, Any] | None) -> FileState | None:
    if data is None:
        return None
    mode = data.get("mode")
    return FileState(
        path=data["path"],
        kind=FileKind(data["kind"]),
        owner=data.get("owner"),
        group=data.get("group"),
        uid=data.get("uid"),
        gid=data.get("gid"),
        mode=int(mode, 8) if mode is not None else None,
        nlink=data.get("nlink"),
        link_target=data.get("link_target"),
        link_resolves=data.get("link_resolves"),
    )


def _chain_from_dict(data: dict[str, Any] | None) -> LinkChain | None:
    if data is None:
        return None
    return LinkChain(
        origin=data["origin"],
        status=LinkStatus(data["status"]),
        hops=tuple(LinkHop(h["path"], h["target"], h["exists"]) for h in data.get("hops", [])),
        final_path=data.get("final_path"),
    )


def report_from_dict(data: dict[str, Any]) -> DiagnosticReport:
    """
    Rebuild a report from report_to_dict() output.

    Raises:
        ValueError: If the schema version is unknown or fields are missing
    """
    version = data.get("schema_version")
    if version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported report schema version: {version!r}")
    try:
        p = data["principal"]
        principal = Principal(
            username=p["username"],
            uid=p["uid"],
            primary_group=p["primary_group"],
            gid=p["gid"],
            groups=frozenset(p.get("groups", [])),
        )
        findings = tuple(
            Finding(
                severity=Severity(f["severity"]),
                code=f["code"],
                message=f["message"],
                subject=f.get("subject", ""),
                details=tuple(sorted((k, str(v)) for k, v in f.get("details", {}).items())),
            )
            for f in data.get("findings", [])
        )
        suggestions = tuple(
            Suggestion(s["finding_code"], s["summary"], tuple(s.get("commands", [])))
            for s in data.get("suggestions", [])
        )
        return DiagnosticReport(
            target=data["target"],
            hint=TargetHint(data["hint"]),
            principal=principal,
            resolved_path=data.get("resolved_path"),
            file_state=_state_from_dict(data.get("file_state")),
            link_chain=_chain_from_dict(data.get("link_chain")),
            findings=findings,
            suggestions=suggestions,
            platform=data.get("platform", ""),
            security_modules=tuple(
                (m["name"], m["status"]) for m in data.get("security_modules", [])
            ),
        )
    except KeyError as e:
        raise ValueError(f"Report is missing field {e}") from e


def parse_structured(text: str) -> DiagnosticReport:
    """Parse render(report, "structured") output back into a report."""
    return report_from_dict(json.loads(text))


# ----------------- text form -----------------


def _section(lines: list[str], title: str) -> None:
    lines.append("")
    lines.append(title)
    lines.append("-" * len(title))


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def render_text(report: DiagnosticReport) -> str:
    p = report.principal
    lines = ["pathdoctor report", "================="]
    lines.append(f"Target:    {report.target} ({report.hint.value})")
    if report.resolved_path and report.resolved_path != report.target:
        lines.append(f"Resolved:  {report.resolved_path}")
    lines.append(
        f"Principal: {p.username} (uid {p.uid}, gid {p.gid}) groups: {', '.join(sorted(p.groups))}"
    )
    platform = report.platform or "unknown"
    if report.security_modules:
        modules = ", ".join(f"{name}: {status}" for name, status in report.security_modules)
        platform = f"{platform} [{modules}]"
    lines.append(f"Platform:  {platform}")

    state = report.file_state
    if state is not None:
        _section(lines, "File state")
        lines.append(f"  kind:  {state.kind.value}")
        if not state.is_missing:
            lines.append(f"  owner: {state.owner}:{state.group}")
            lines.append(f"  mode:  {state.mode_string} ({state.octal})")
            lines.append(f"  links: {state.nlink}")
        if state.link_target is not None:
            lines.append(f"  link target: {state.link_target}")

    chain = report.link_chain
    if chain is not None and chain.is_link:
        _section(lines, "Link chain")
        for hop in chain.hops:
            mark = "" if hop.exists else "  (missing)"
            lines.append(f"  {hop.path} -> {hop.target}{mark}")
        lines.append(f"  status: {chain.status.value} ({chain.final_path})")

    _section(lines, "Findings")
    if not report.findings:
        lines.append("  none")
    for i, finding in enumerate(report.findings, 1):
        lines.append(f"  {i}. [{finding.severity.value.upper()}] {finding.code}: {finding.message}")

    _section(lines, "Suggestions")
    if not report.suggestions:
        lines.append("  none")
    for i, suggestion in enumerate(report.suggestions, 1):
        lines.append(f"  {i}. ({suggestion.finding_code}) {suggestion.summary}")
        for command in suggestion.commands:
            lines.append(f"       $ {command}")

    counts = report.counts()
    verdict = "FAIL" if report.has_errors else "OK"
    lines.append("")
    lines.append(
        f"Result: {verdict} ({_plural(counts['error'], 'error')}, "
        f"{_plural(counts['warning'], 'warning')}, {counts['info']} info) "
        f"exit status {report.exit_status}"
    )
    return "\n".join(lines) + "\n"


def render(report: DiagnosticReport, fmt: str = "text") -> str:
    """
    Render a report.

    Args:
        report: Report to render
        fmt: "text", "structured" (alias "json") or "yaml"

    Raises:
        ValueError: On an unknown format
    """
    fmt = fmt.lower()
    if fmt == "text":
        return render_text(report)
    if fmt in ("structured", "json"):
        return json.dumps(report_to_dict(report), indent=2, sort_keys=True) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(
            report_to_dict(report), sort_keys=True, default_flow_style=False, allow_unicode=True
        )
    raise ValueError(f"Unknown report format: {fmt!r} (expected one of {', '.join(FORMATS)})")
