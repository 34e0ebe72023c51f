"""Text rendering for listings, metadata, outcomes and search results."""

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import click

from .filesystem import (
    DisplayClass,
    EntryKind,
    EntryMetadata,
    ErrorKind,
    ListingEntry,
    SearchMatch,
    TreeOperationOutcome,
    octal_mode,
    permission_string,
)

THEME_STYLES: Dict[str, Dict[DisplayClass, dict]] = {
    "default": {
        DisplayClass.DIRECTORY: {"fg": "bright_blue", "bold": True},
        DisplayClass.EXECUTABLE: {"fg": "green"},
        DisplayClass.REGULAR: {"fg": "white"},
    },
    "dark": {
        DisplayClass.DIRECTORY: {"fg": "bright_cyan", "bold": True},
        DisplayClass.EXECUTABLE: {"fg": "bright_yellow", "bold": True},
        DisplayClass.REGULAR: {"fg": "bright_white", "bold": True},
    },
    "light": {
        DisplayClass.DIRECTORY: {"fg": "blue"},
        DisplayClass.EXECUTABLE: {"fg": "green"},
        DisplayClass.REGULAR: {"fg": "black"},
    },
}

ERROR_MESSAGES = {
    ErrorKind.NOT_FOUND: "Pfad existiert nicht",
    ErrorKind.SOURCE_NOT_FOUND: "Quelle existiert nicht",
    ErrorKind.DESTINATION_EXISTS: "Ziel existiert bereits",
    ErrorKind.DESTINATION_IS_FILE: "Ziel existiert bereits als Datei",
    ErrorKind.DESTINATION_INSIDE_SOURCE: "Ziel liegt innerhalb der Quelle",
    ErrorKind.CONFIRMATION_REQUIRED: "Verzeichnis ist nicht leer, Bestätigung erforderlich",
    ErrorKind.DIRECTORY_UNREADABLE: "Verzeichnis nicht lesbar",
    ErrorKind.PERMISSION_DENIED: "Keine Berechtigung",
    ErrorKind.INVALID_MODE: "Ungültige Berechtigung",
    ErrorKind.UNKNOWN_PRINCIPAL: "Unbekannter Benutzer oder Gruppe",
    ErrorKind.INVALID_NAME: "Ungültiger Name",
    ErrorKind.COPY_FAILED: "Kopieren unvollständig",
    ErrorKind.PARTIAL_DELETE_FAILURE: "Löschen unvollständig",
    ErrorKind.COPIED_BUT_SOURCE_RETAINED: "Kopiert, aber Quelle konnte nicht gelöscht werden",
}

SUCCESS_VERBS = {
    "copy": "Kopiert",
    "move": "Verschoben",
    "rename": "Umbenannt",
    "delete": "Gelöscht",
    "batch_copy": "Batch-Kopieren abgeschlossen",
    "batch_move": "Batch-Verschieben abgeschlossen",
    "batch_delete": "Batch-Löschen abgeschlossen",
}


def format_size(size: int) -> str:
    """Format file size in human-readable format."""
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(units) - 1:
        value /= 1024
        unit_index += 1
    if unit_index == 0:
        return f"{size} B"
    return f"{value:.2f} {units[unit_index]}"


def format_mtime(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def format_permissions(metadata: EntryMetadata) -> str:
    text = permission_string(metadata.mode)
    if metadata.kind == EntryKind.SYMLINK:
        text = "l" + text[1:]
    return text


def style_name(entry: ListingEntry, theme: str = "default") -> str:
    """Entry name with suffix (``/`` or ``*``) and theme colour."""
    suffix = ""
    if entry.display_class == DisplayClass.DIRECTORY:
        suffix = "/"
    elif entry.display_class == DisplayClass.EXECUTABLE:
        suffix = "*"
    styles = THEME_STYLES.get(theme, THEME_STYLES["default"])
    return click.style(entry.name + suffix, **styles[entry.display_class])


def render_listing(
    path: Path,
    entries: List[ListingEntry],
    detailed: bool = False,
    theme: str = "default",
) -> str:
    lines = [click.style(f"📁 Aktuelles Verzeichnis: {path}", fg="cyan", bold=True), "=" * 80]

    if detailed:
        lines.append(
            f"{'Permissions':<12}{'Owner':<10}{'Group':<10}{'Size':<12}{'Modified':<20}Name"
        )
        lines.append("-" * 80)

    for entry in entries:
        name = style_name(entry, theme)
        if detailed:
            meta = entry.metadata
            lines.append(
                f"{format_permissions(meta):<12}{meta.owner_name:<10}{meta.group_name:<10}"
                f"{format_size(meta.size):<12}{format_mtime(meta.modified_at):<20}{name}"
            )
        else:
            lines.append(name)

    if not entries:
        lines.append("   (leer)")
    lines.append("")
    lines.append(f"Einträge gesamt: {len(entries)}")
    return "\n".join(lines)


def render_metadata(metadata: EntryMetadata) -> str:
    lines = [
        click.style(f"Berechtigungen für: {metadata.path.name or metadata.path}", bold=True),
        "=" * 50,
        f"Typ:           {metadata.kind.value}",
        f"Berechtigungen: {format_permissions(metadata)}",
        f"Oktal:         {octal_mode(metadata.mode)}",
        f"Besitzer:      {metadata.owner_name}",
        f"Gruppe:        {metadata.group_name}",
        f"Größe:         {format_size(metadata.size)}",
        f"Geändert:      {format_mtime(metadata.modified_at)}",
    ]
    return "\n".join(lines)


def describe_error(error: Optional[ErrorKind]) -> str:
    if error is None:
        return "Unbekannter Fehler"
    return ERROR_MESSAGES.get(error, error.value)


def render_outcome(outcome: TreeOperationOutcome, subject: Optional[Path] = None) -> str:
    """Summarise a tree operation outcome, listing every failure."""
    target = f" {subject}" if subject is not None else ""
    if outcome.destination is not None and outcome.operation in ("copy", "move", "rename"):
        target += f" -> {outcome.destination}"

    if outcome.succeeded:
        verb = SUCCESS_VERBS.get(outcome.operation, outcome.operation)
        return f"✅ {verb}:{target} ({outcome.items_affected} Einträge)"

    lines = [f"❌ {describe_error(outcome.error)}:{target}"]
    if outcome.items_affected:
        lines.append(f"   ℹ️  {outcome.items_affected} Einträge bearbeitet")
    for failure in outcome.failures:
        lines.append(f"   ⚠️  {failure.path}: {failure.reason}")
    return "\n".join(lines)


def render_search(term: str, matches: List[SearchMatch]) -> str:
    if not matches:
        return f"⚠️ Keine Dateien gefunden für: {term}"

    lines = [click.style(f"🔍 Suchergebnisse für '{term}':", fg="green"), "-" * 80]
    for match in matches:
        suffix = "/" if match.kind == EntryKind.DIRECTORY else ""
        lines.append(f"{match.path}{suffix}")
    lines.append("")
    lines.append(f"Treffer gesamt: {len(matches)}")
    return "\n".join(lines)


def render_recent(paths: List[Path]) -> str:
    if not paths:
        return "⚠️ Noch keine zuletzt verwendeten Dateien."
    lines = [click.style("🕘 Zuletzt verwendete Dateien:", fg="cyan", bold=True), "=" * 60]
    for i, path in enumerate(paths, 1):
        lines.append(f"{i}. {path}")
    return "\n".join(lines)
