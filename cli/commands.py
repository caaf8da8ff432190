"""
CLI subcommand implementations for botracers.

Subcommands::

    botracers status                      Refresh and print the workspace/registry view
    botracers refresh                     Alias of status
    botracers login [--username U] [--token T]
    botracers logout
    botracers configure [--server-url URL] [--target T] [--workspace DIR]
    botracers init [DIR]                  Create a starter bot project and use it
    botracers build BIN
    botracers upload BIN
    botracers reveal BIN
    botracers replace ARTIFACT_ID
    botracers delete ARTIFACT_ID [--yes]
    botracers visibility ARTIFACT_ID
    botracers watch [--interval S]
"""

import argparse
import logging
import sys
from pathlib import Path

from botracers_platform.engine import ReconciliationEngine
from botracers_platform.errors import PreconditionError, WorkbenchError
from botracers_platform.factory import create_engine, reconfigure_engine
from botracers_platform.registry_client import RegistryClientError
from botracers_platform.user_config import (
    default_artifact_target,
    resolve_server_url,
    resolve_workspace_root,
    update_user_config,
)
from botracers_platform.view_state import ViewState
from botracers_platform.watcher import WorkspaceWatcher

from .interface import ConsoleOperator, print_snapshot


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

async def _ready_snapshot(engine: ReconciliationEngine):
    snapshot = await engine.refresh()
    if snapshot.state is not ViewState.READY:
        print_snapshot(snapshot)
        raise PreconditionError(
            f"Workspace is not ready ({snapshot.state.value}/{snapshot.detail})."
        )
    return snapshot


async def _find_binary(engine: ReconciliationEngine, name: str):
    snapshot = await _ready_snapshot(engine)
    binary = snapshot.find_binary(name)
    if binary is None:
        known = ", ".join(b.name for b in snapshot.local_binaries)
        raise PreconditionError(f"Unknown local binary '{name}'. Available: {known}")
    return binary


async def _find_artifact(engine: ReconciliationEngine, artifact_id: int):
    snapshot = await _ready_snapshot(engine)
    artifact = snapshot.find_artifact(artifact_id)
    if artifact is None:
        raise PreconditionError(f"Artifact #{artifact_id} is not in the registry listing.")
    return artifact


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

async def cmd_status(engine: ReconciliationEngine, args):
    snapshot = await engine.refresh()
    print_snapshot(snapshot)


async def cmd_login(engine: ReconciliationEngine, args):
    operator: ConsoleOperator = engine.operator
    if args.token:
        snapshot = await engine.set_session_token(args.token)
        print_snapshot(snapshot)
        return

    username = args.username or await operator.prompt_text(title="BotRacers username")
    if not username:
        print("Cancelled.")
        return
    password = await operator.prompt_secret(title="BotRacers password")
    if not password:
        print("Cancelled.")
        return

    snapshot = await engine.login(username, password)
    print_snapshot(snapshot)


async def cmd_logout(engine: ReconciliationEngine, args):
    snapshot = await engine.logout()
    print_snapshot(snapshot)


async def cmd_configure(engine: ReconciliationEngine, args):
    if args.server_url is None and args.target is None and args.workspace is None:
        print(f"Server URL: {resolve_server_url()}")
        print(f"Artifact target: {default_artifact_target()}")
        root = resolve_workspace_root()
        print(f"Workspace: {root if root is not None else '(none)'}")
        return

    update_user_config(
        server_url=args.server_url,
        artifact_target=args.target,
        workspace_root=args.workspace,
    )
    reconfigure_engine(engine)
    print("✓ Configuration saved.")
    snapshot = await engine.refresh()
    print_snapshot(snapshot)


async def cmd_init(engine: ReconciliationEngine, args):
    if args.directory is None:
        snapshot = await engine.init_workspace()
    else:
        root = Path(args.directory).expanduser().resolve()
        snapshot = await engine.init_workspace(root)
        update_user_config(workspace_root=str(root))
        if snapshot.workspace is None or snapshot.workspace.root != root:
            snapshot = await engine.refresh()
    print_snapshot(snapshot)


async def cmd_build(engine: ReconciliationEngine, args):
    binary = await _find_binary(engine, args.binary)
    path = await engine.build_binary(binary)
    print(f"  Output: {path}")


async def cmd_upload(engine: ReconciliationEngine, args):
    binary = await _find_binary(engine, args.binary)
    outcome = await engine.build_and_upload(binary)
    if outcome is None:
        print("Cancelled.")
        return
    print_snapshot(engine.snapshot)


async def cmd_reveal(engine: ReconciliationEngine, args):
    binary = await _find_binary(engine, args.binary)
    await engine.reveal_build_output(binary)


async def cmd_replace(engine: ReconciliationEngine, args):
    artifact = await _find_artifact(engine, args.artifact_id)
    outcome = await engine.replace_artifact(artifact)
    if outcome is None:
        print("Cancelled.")
        return
    print_snapshot(engine.snapshot)


async def cmd_delete(engine: ReconciliationEngine, args):
    artifact = await _find_artifact(engine, args.artifact_id)
    deleted = await engine.delete_artifact(artifact)
    if not deleted:
        print("Cancelled.")


async def cmd_visibility(engine: ReconciliationEngine, args):
    artifact = await _find_artifact(engine, args.artifact_id)
    await engine.toggle_visibility(artifact)


async def cmd_watch(engine: ReconciliationEngine, args):
    engine.subscribe(lambda: print_snapshot(engine.snapshot))
    await engine.refresh()
    watcher = WorkspaceWatcher(
        engine,
        engine.workspace_root_provider,
        interval_seconds=args.interval,
    )
    print("Watching for workspace changes (Ctrl+C to stop)...")
    try:
        await watcher.run()
    finally:
        await watcher.stop()


COMMANDS = {
    "status": cmd_status,
    "refresh": cmd_status,
    "login": cmd_login,
    "logout": cmd_logout,
    "configure": cmd_configure,
    "init": cmd_init,
    "build": cmd_build,
    "upload": cmd_upload,
    "reveal": cmd_reveal,
    "replace": cmd_replace,
    "delete": cmd_delete,
    "visibility": cmd_visibility,
    "watch": cmd_watch,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="botracers",
        description="Build, upload and manage BotRacers bot artifacts",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show workspace and registry state")
    subparsers.add_parser("refresh", help="Same as status")

    p_login = subparsers.add_parser("login", help="Log in to the registry")
    p_login.add_argument("--username", help="Username (prompted when omitted)")
    p_login.add_argument("--token", help="Store an existing session token instead")

    subparsers.add_parser("logout", help="Forget the stored session token")

    p_configure = subparsers.add_parser("configure", help="Show or change configuration")
    p_configure.add_argument("--server-url", help="Registry base URL")
    p_configure.add_argument("--target", help="Artifact build target triple")
    p_configure.add_argument("--workspace", help="Bot workspace directory")

    p_init = subparsers.add_parser("init", help="Create a starter bot project")
    p_init.add_argument("directory", nargs="?", help="Target directory (default: configured workspace)")

    for name, help_text in (
        ("build", "Build a local binary"),
        ("upload", "Build a local binary and upload it"),
        ("reveal", "Print the build output path of a local binary"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("binary", help="Local binary name")

    p_replace = subparsers.add_parser("replace", help="Replace an owned artifact with a new build")
    p_replace.add_argument("artifact_id", type=int, help="Artifact ID")

    p_delete = subparsers.add_parser("delete", help="Delete an owned artifact")
    p_delete.add_argument("artifact_id", type=int, help="Artifact ID")
    p_delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    p_visibility = subparsers.add_parser("visibility", help="Toggle public/private")
    p_visibility.add_argument("artifact_id", type=int, help="Artifact ID")

    p_watch = subparsers.add_parser("watch", help="Refresh whenever the workspace changes")
    p_watch.add_argument(
        "--interval", type=float, default=1.0,
        help="Polling interval in seconds (default: 1.0)",
    )

    return parser


async def run(args, engine: ReconciliationEngine | None = None) -> int:
    """Run one parsed command; returns the process exit code."""
    if engine is None:
        engine = create_engine(ConsoleOperator(assume_yes=getattr(args, "yes", False)))

    try:
        await COMMANDS[args.command](engine, args)
    except (WorkbenchError, RegistryClientError) as e:
        print(f"Error: {e}")
        return 1
    return 0


async def main():
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    code = await run(args)
    if code:
        sys.exit(code)
