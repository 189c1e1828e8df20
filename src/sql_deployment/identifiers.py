"""
Naming helpers for human-readable targets and server paths.

Conventions:
- Verbs: format_*, qualify_*.
- Formatted targets are only used in log records and messages, never in SQL.
"""

from __future__ import annotations

from pathlib import PureWindowsPath


def format_database_target(instance_name: str, database_name: str) -> str:
    """Render 'instance/database'."""
    return f"{instance_name}/{database_name}"


def format_publication_target(
    instance_name: str, database_name: str, publication_name: str
) -> str:
    """Render 'instance/database/publication'."""
    return f"{instance_name}/{database_name}/{publication_name}"


def qualify_unc_host(path: str, domain_name: str | None) -> str:
    r"""
    Append `domain_name` to the host of a UNC path whose host is unqualified.

    Examples:
        qualify_unc_host(r"\\sql01\ReplData", "corp.local")
        -> r"\\sql01.corp.local\ReplData"

    Local paths, already-qualified hosts, and a missing domain return `path`
    unchanged.
    """
    if not domain_name:
        return path

    windows_path = PureWindowsPath(path)
    drive = windows_path.drive
    if not drive.startswith("\\\\"):
        return path

    host, _, share = drive[2:].partition("\\")
    if not host or not share or "." in host:
        return path

    qualified_drive = f"\\\\{host}.{domain_name}\\{share}"
    return qualified_drive + path[len(drive):]
