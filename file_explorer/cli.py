"""CLI interface and interactive shell for the file explorer."""

import logging
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import click

from .archive import create_archive, extract_archive
from .filesystem import (
    EntryKind,
    ErrorKind,
    FileExplorerError,
    batch_copy,
    batch_move,
    batch_remove,
    copy_tree,
    create_directory,
    create_file,
    list_directory,
    move_tree,
    remove_tree,
    rename_entry,
    search_tree,
    set_ownership,
    set_permissions,
    stat_entry,
)
from .render import (
    render_listing,
    render_metadata,
    render_outcome,
    render_recent,
    render_search,
)
from .session import ExplorerSession
from .settings import settings

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]

HELP_TEXT = """Befehle:
  ls [-l] [-a] [pfad]          Verzeichnis anzeigen (-l Details, -a versteckte)
  cd <pfad>                    Verzeichnis wechseln
  up                           Eine Ebene nach oben
  pwd                          Aktuelles Verzeichnis
  touch <name>                 Datei erstellen
  mkdir <name>                 Verzeichnis erstellen
  rm [-r] [-y] <pfad>          Datei/Verzeichnis löschen
  cp <quelle> <ziel>           Kopieren (rekursiv)
  mv <quelle> <ziel>           Verschieben
  rename <pfad> <neuer-name>   Umbenennen
  find <begriff> [pfad]        Rekursiv nach Namen suchen
  stat <pfad>                  Berechtigungen und Details
  chmod <modus> <pfad>         Berechtigungen ändern (oktal, z.B. 755)
  chown <user>[:<gruppe>] <pfad>  Besitzer ändern
  recent                       Zuletzt verwendete Dateien
  batch rm [-r] <pfad>...      Mehrere Elemente löschen
  batch cp <ziel> <pfad>...    Mehrere Elemente kopieren
  batch mv <ziel> <pfad>...    Mehrere Elemente verschieben
  zip <quelle> <archiv>        Zip-Archiv erstellen
  unzip <archiv> [ziel]        Zip-Archiv entpacken
  theme <default|dark|light>   Farbschema wechseln
  sort <name|size|mtime>       Sortierung wechseln
  hidden                       Versteckte Dateien ein/aus
  dirs                         Verzeichnisse zuerst ein/aus
  help                         Diese Hilfe
  exit | quit                  Beenden"""


@dataclass
class CommandResult:
    """Display text of a command plus whether it succeeded."""

    ok: bool
    text: str

    def __str__(self) -> str:
        return self.text


# ============================================================================
# Parsing
# ============================================================================

ALIASES = {
    "dir": "ls",
    "ll": "ls",
    "..": "up",
    "search": "find",
    "del": "rm",
    "copy": "cp",
    "move": "mv",
    "q": "quit",
}


def _split_flags(args: List[str], known: str) -> tuple:
    """Separate short flags (``-la`` style) from positional arguments."""
    flags = set()
    positional = []
    for arg in args:
        if arg.startswith("-") and len(arg) > 1 and all(c in known for c in arg[1:]):
            flags.update(arg[1:])
        else:
            positional.append(arg)
    return flags, positional


def _usage(command: str) -> dict:
    return {"action": "invalid", "message": f"Falsche Argumente für '{command}'. 'help' zeigt die Syntax."}


def parse_command(line: str) -> Optional[dict]:
    """
    Parse one shell line.

    Returns:
        dict with 'action' and parameters, or None for blank/unknown input
    """
    try:
        tokens = shlex.split(line)
    except ValueError as e:
        return {"action": "invalid", "message": f"Eingabe nicht lesbar: {e}"}

    if not tokens:
        return None

    command = tokens[0].lower()
    raw_command = command
    command = ALIASES.get(command, command)
    args = tokens[1:]

    if command == "ls":
        flags, positional = _split_flags(args, "la")
        if len(positional) > 1:
            return _usage(command)
        return {
            "action": "list",
            "path": positional[0] if positional else None,
            "detailed": "l" in flags or raw_command == "ll",
            "all": "a" in flags,
        }

    if command == "cd":
        if len(args) != 1:
            return _usage(command)
        return {"action": "navigate", "path": args[0]}

    if command in ("up", "pwd", "recent", "hidden", "dirs", "help"):
        if args:
            return _usage(command)
        return {"action": command}

    if command in ("exit", "quit"):
        return {"action": "exit"}

    if command in ("touch", "mkdir", "stat"):
        if len(args) != 1:
            return _usage(command)
        action = {"touch": "create_file", "mkdir": "create_dir", "stat": "stat"}[command]
        return {"action": action, "path": args[0]}

    if command == "rm":
        flags, positional = _split_flags(args, "ryf")
        if len(positional) != 1:
            return _usage(command)
        return {
            "action": "delete",
            "path": positional[0],
            "recursive": "r" in flags,
            "yes": "y" in flags or "f" in flags,
        }

    if command in ("cp", "mv"):
        if len(args) != 2:
            return _usage(command)
        return {"action": "copy" if command == "cp" else "move", "source": args[0], "dest": args[1]}

    if command == "rename":
        if len(args) != 2:
            return _usage(command)
        return {"action": "rename", "path": args[0], "new_name": args[1]}

    if command == "find":
        if len(args) not in (1, 2):
            return _usage(command)
        return {"action": "search", "term": args[0], "path": args[1] if len(args) == 2 else None}

    if command == "chmod":
        if len(args) != 2:
            return _usage(command)
        return {"action": "chmod", "mode": args[0], "path": args[1]}

    if command == "chown":
        if len(args) != 2:
            return _usage(command)
        owner, _, group = args[0].partition(":")
        return {"action": "chown", "owner": owner or None, "group": group or None, "path": args[1]}

    if command == "batch":
        if not args:
            return _usage(command)
        operation = args[0].lower()
        if operation == "rm":
            flags, positional = _split_flags(args[1:], "ryf")
            if not positional:
                return _usage(command)
            return {
                "action": "batch_delete",
                "paths": positional,
                "recursive": "r" in flags,
                "yes": "y" in flags or "f" in flags,
            }
        if operation in ("cp", "mv") and len(args) >= 3:
            return {
                "action": "batch_copy" if operation == "cp" else "batch_move",
                "dest": args[1],
                "paths": args[2:],
            }
        return _usage(command)

    if command == "zip":
        if len(args) != 2:
            return _usage(command)
        return {"action": "zip", "source": args[0], "archive": args[1]}

    if command == "unzip":
        if len(args) not in (1, 2):
            return _usage(command)
        return {"action": "unzip", "archive": args[0], "dest": args[1] if len(args) == 2 else "."}

    if command in ("theme", "sort"):
        if len(args) != 1:
            return _usage(command)
        return {"action": command, "value": args[0]}

    return None


# ============================================================================
# Execution
# ============================================================================

def _run_delete(
    session: ExplorerSession,
    cmd: dict,
    confirm: Optional[ConfirmCallback],
) -> CommandResult:
    path = session.resolve(cmd["path"])
    confirmed = bool(cmd.get("yes"))
    outcome = remove_tree(path, allow_recursive=bool(cmd.get("recursive")) or confirmed, confirmed=confirmed)

    if outcome.error == ErrorKind.CONFIRMATION_REQUIRED:
        if confirm is None or not confirm(f"Verzeichnis {path} ist nicht leer. Rekursiv löschen?"):
            return CommandResult(False, "⚠️ Abgebrochen.")
        outcome = remove_tree(path, allow_recursive=True, confirmed=True)

    return CommandResult(outcome.succeeded, render_outcome(outcome, path))


def _run_batch(
    session: ExplorerSession,
    cmd: dict,
    confirm: Optional[ConfirmCallback],
) -> CommandResult:
    action = cmd["action"]
    paths = [session.resolve(p) for p in cmd["paths"]]

    if action == "batch_delete":
        confirmed = bool(cmd.get("yes"))
        if not confirmed:
            if confirm is None or not confirm(f"{len(paths)} Elemente wirklich löschen?"):
                return CommandResult(False, "⚠️ Abgebrochen.")
            confirmed = True
        outcome = batch_remove(paths, allow_recursive=bool(cmd.get("recursive")), confirmed=confirmed)
    elif action == "batch_copy":
        outcome = batch_copy(paths, session.resolve(cmd["dest"]))
    else:
        outcome = batch_move(paths, session.resolve(cmd["dest"]))

    return CommandResult(outcome.succeeded, render_outcome(outcome))


def _remember_file(session: ExplorerSession, path: Path) -> None:
    if path.is_file():
        session.recent.add(path)


def run_command(
    session: ExplorerSession,
    cmd: dict,
    confirm: Optional[ConfirmCallback] = None,
) -> CommandResult:
    """
    Execute a parsed command against a session.

    Args:
        session: Session providing the working directory and preferences
        cmd: Command dict from parse_command
        confirm: Asked before recursive/batch deletions; None means "no"

    Returns:
        CommandResult with display text
    """
    action = cmd.get("action")

    if action == "invalid":
        return CommandResult(False, f"❌ {cmd['message']}")

    if action == "list":
        path = session.resolve(cmd["path"]) if cmd.get("path") else session.current_path
        entries = list_directory(
            path,
            show_hidden=session.show_hidden or cmd.get("all", False),
            sort_by=session.sort_by,
            directories_first=session.directories_first,
        )
        return CommandResult(True, render_listing(path, entries, cmd.get("detailed", False), session.theme))

    if action == "navigate":
        new_dir = session.change_directory(cmd["path"])
        return CommandResult(True, f"✅ Navigiert zu: {new_dir}")

    if action == "up":
        return CommandResult(True, f"✅ Navigiert zu: {session.go_up()}")

    if action == "pwd":
        return CommandResult(True, f"📂 Aktuelles Verzeichnis: {session.current_path}")

    if action == "create_file":
        created = create_file(session.resolve(cmd["path"]))
        session.recent.add(created)
        return CommandResult(True, f"✅ Datei erstellt: {created}")

    if action == "create_dir":
        created = create_directory(session.resolve(cmd["path"]))
        return CommandResult(True, f"✅ Verzeichnis erstellt: {created}")

    if action == "delete":
        return _run_delete(session, cmd, confirm)

    if action in ("copy", "move"):
        source = session.resolve(cmd["source"])
        dest = session.resolve(cmd["dest"])
        operation = copy_tree if action == "copy" else move_tree
        outcome = operation(source, dest)
        if outcome.succeeded and outcome.destination is not None:
            _remember_file(session, outcome.destination)
        return CommandResult(outcome.succeeded, render_outcome(outcome, source))

    if action == "rename":
        source = session.resolve(cmd["path"])
        outcome = rename_entry(source, cmd["new_name"])
        return CommandResult(outcome.succeeded, render_outcome(outcome, source))

    if action == "search":
        root = session.resolve(cmd["path"]) if cmd.get("path") else session.current_path
        matches = search_tree(root, cmd["term"])
        return CommandResult(True, render_search(cmd["term"], matches))

    if action == "stat":
        metadata = stat_entry(session.resolve(cmd["path"]))
        if metadata.kind == EntryKind.FILE:
            session.recent.add(metadata.path)
        return CommandResult(True, render_metadata(metadata))

    if action == "chmod":
        metadata = set_permissions(session.resolve(cmd["path"]), cmd["mode"])
        return CommandResult(True, f"✅ Berechtigungen geändert: {metadata.path} ({oct(metadata.permission_bits)})")

    if action == "chown":
        metadata = set_ownership(session.resolve(cmd["path"]), cmd.get("owner"), cmd.get("group"))
        return CommandResult(
            True, f"✅ Besitzer geändert: {metadata.path} ({metadata.owner_name}:{metadata.group_name})"
        )

    if action == "recent":
        return CommandResult(True, render_recent(session.recent.items()))

    if action in ("batch_delete", "batch_copy", "batch_move"):
        return _run_batch(session, cmd, confirm)

    if action == "zip":
        result = create_archive(session.resolve(cmd["source"]), session.resolve(cmd["archive"]))
        icon = "✅" if result.succeeded else "❌"
        return CommandResult(result.succeeded, f"{icon} {result.message}")

    if action == "unzip":
        result = extract_archive(session.resolve(cmd["archive"]), session.resolve(cmd["dest"]))
        icon = "✅" if result.succeeded else "❌"
        return CommandResult(result.succeeded, f"{icon} {result.message}")

    if action == "theme":
        session.set_theme(cmd["value"])
        return CommandResult(True, f"✅ Theme: {session.theme}")

    if action == "sort":
        session.set_sort(cmd["value"])
        return CommandResult(True, f"✅ Sortierung: {session.sort_by.value}")

    if action == "hidden":
        state = "an" if session.toggle_hidden() else "aus"
        return CommandResult(True, f"✅ Versteckte Dateien: {state}")

    if action == "dirs":
        state = "an" if session.toggle_directories_first() else "aus"
        return CommandResult(True, f"✅ Verzeichnisse zuerst: {state}")

    if action == "help":
        return CommandResult(True, HELP_TEXT)

    return CommandResult(False, f"❌ Unbekannte Aktion: {action}")


def execute_command(
    session: ExplorerSession,
    cmd: dict,
    confirm: Optional[ConfirmCallback] = None,
) -> CommandResult:
    """Run a command, turning rejected requests into error text."""
    try:
        return run_command(session, cmd, confirm)
    except FileExplorerError as e:
        return CommandResult(False, f"❌ {e.message}")
    except ValueError as e:
        return CommandResult(False, f"❌ {e}")
    except Exception as e:
        logger.exception(f"Befehl fehlgeschlagen: {e}")
        return CommandResult(False, f"❌ Fehler: {e}")


# ============================================================================
# Click commands
# ============================================================================

def _click_confirm(question: str) -> bool:
    return click.confirm(question, default=False)


def _emit(ctx: click.Context, cmd: dict, confirm: Optional[ConfirmCallback] = _click_confirm) -> None:
    result = execute_command(ctx.obj, cmd, confirm)
    click.echo(result.text, err=not result.ok)
    if not result.ok:
        sys.exit(1)


@click.group()
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, dir_okay=True),
    default=None,
    help="Start directory (defaults to the current directory)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (overrides EXPLORER_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx, cwd, log_level):
    """File Explorer - list, inspect and modify directory trees."""
    logging.basicConfig(
        level=(log_level or settings.logging.level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        ctx.obj = ExplorerSession.create(cwd)
    except FileExplorerError as e:
        raise click.ClickException(e.message)


@cli.command()
@click.pass_context
def shell(ctx):
    """Start the interactive shell."""
    session: ExplorerSession = ctx.obj

    click.echo("🗂️  File Explorer")
    click.echo("=" * 50)
    click.echo("  - 'help' zeigt alle Befehle")
    click.echo("  - 'exit' oder 'quit' zum Beenden")
    click.echo("=" * 50)

    while True:
        try:
            line = input(f"\n{session.current_path} $ ").strip()
        except (EOFError, KeyboardInterrupt):
            click.echo("\nWird beendet...")
            break

        if not line:
            continue

        cmd = parse_command(line)
        if cmd is None:
            click.echo(f"❌ Unbekannter Befehl: {line.split()[0]}. 'help' zeigt alle Befehle.")
            continue

        if cmd["action"] == "exit":
            click.echo("Wird beendet...")
            break

        result = execute_command(session, cmd, _click_confirm)
        click.echo(result.text)


@cli.command("ls")
@click.argument("path", required=False)
@click.option("-l", "--long", "detailed", is_flag=True, help="Show permissions, owner, size and mtime")
@click.option("-a", "--all", "show_all", is_flag=True, help="Include hidden entries")
@click.option(
    "--sort",
    type=click.Choice(["name", "size", "mtime"]),
    default=None,
    help="Sort order",
)
@click.pass_context
def ls_command(ctx, path, detailed, show_all, sort):
    """List a directory."""
    if sort:
        ctx.obj.set_sort(sort)
    _emit(ctx, {"action": "list", "path": path, "detailed": detailed, "all": show_all})


@cli.command("find")
@click.argument("term")
@click.argument("path", required=False)
@click.pass_context
def find_command(ctx, term, path):
    """Search names below PATH (case-insensitive substring)."""
    _emit(ctx, {"action": "search", "term": term, "path": path})


@cli.command("stat")
@click.argument("path")
@click.pass_context
def stat_command(ctx, path):
    """Show permissions and details of PATH."""
    _emit(ctx, {"action": "stat", "path": path})


@cli.command("cp")
@click.argument("source")
@click.argument("dest")
@click.pass_context
def cp_command(ctx, source, dest):
    """Copy a file or directory tree."""
    _emit(ctx, {"action": "copy", "source": source, "dest": dest})


@cli.command("mv")
@click.argument("source")
@click.argument("dest")
@click.pass_context
def mv_command(ctx, source, dest):
    """Move a file or directory (falls back to copy + delete)."""
    _emit(ctx, {"action": "move", "source": source, "dest": dest})


@cli.command("rm")
@click.argument("path")
@click.option("-r", "--recursive", is_flag=True, help="Allow deleting non-empty directories")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def rm_command(ctx, path, recursive, yes):
    """Delete a file or directory."""
    _emit(ctx, {"action": "delete", "path": path, "recursive": recursive, "yes": yes})


@cli.command("rename")
@click.argument("path")
@click.argument("new_name")
@click.pass_context
def rename_command(ctx, path, new_name):
    """Rename PATH to NEW_NAME in the same directory."""
    _emit(ctx, {"action": "rename", "path": path, "new_name": new_name})


@cli.command("chmod")
@click.argument("mode")
@click.argument("path")
@click.pass_context
def chmod_command(ctx, mode, path):
    """Change permission bits (octal MODE, e.g. 755)."""
    _emit(ctx, {"action": "chmod", "mode": mode, "path": path})


@cli.command("chown")
@click.argument("owner")
@click.argument("path")
@click.pass_context
def chown_command(ctx, owner, path):
    """Change owner (OWNER or OWNER:GROUP or :GROUP)."""
    user, _, group = owner.partition(":")
    _emit(ctx, {"action": "chown", "owner": user or None, "group": group or None, "path": path})


@cli.command("zip")
@click.argument("source")
@click.argument("archive")
@click.pass_context
def zip_command(ctx, source, archive):
    """Pack SOURCE into the zip ARCHIVE."""
    _emit(ctx, {"action": "zip", "source": source, "archive": archive})


@cli.command("unzip")
@click.argument("archive")
@click.argument("dest", required=False, default=".")
@click.pass_context
def unzip_command(ctx, archive, dest):
    """Unpack ARCHIVE into DEST."""
    _emit(ctx, {"action": "unzip", "archive": archive, "dest": dest})


@cli.command()
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind the server to",
)
@click.option(
    "--port",
    default=8000,
    type=int,
    help="Port to run the server on",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload for development",
)
def serve(host, port, reload):
    """Start the HTTP API server.

    Relative paths in requests are resolved against EXPLORER_API_ROOT.

    Beispiel:
        file-explorer serve --port 8000
    """
    click.echo("🚀 Starte File Explorer API Server...")
    click.echo(f"   Host: {host}")
    click.echo(f"   Port: {port}")
    click.echo(f"   Root: {settings.api.root}")
    click.echo(f"   OpenAPI Docs: http://{host}:{port}/docs")
    click.echo()

    try:
        from .api import run_server
        run_server(host=host, port=port, reload=reload)
    except Exception as e:
        click.echo(f"❌ Server-Fehler: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
