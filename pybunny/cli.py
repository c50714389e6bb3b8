"""CLI interface for Bunny edge storage."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import BunnyStorage
from .cli_progress import UploadProgressDisplay
from .config import config
from .exceptions import (
    BunnyError,
    BunnyInvalidArgumentError,
    BunnyOverwriteRequiredError,
)
from .models import DirectoryEntry, FileEntry
from .output import OutputFormatter
from .sync import (
    DiffEngine,
    PathDifference,
    UploadEngine,
    UploadProgressTracker,
    load_path,
)
from .utils import compute_file_checksum, hex_to_bytes, write_local

logger = logging.getLogger(__name__)

LOCAL_PREFIX = "local:"
REMOTE_PREFIX = "remote:"


def parse_typed_path(path: str) -> tuple[Optional[str], str]:
    """Split an optional ``local:``/``remote:`` prefix off a path.

    Examples:
        >>> parse_typed_path("local:./site")
        ('local', './site')
        >>> parse_typed_path("remote:/docs/")
        ('remote', '/docs/')
        >>> parse_typed_path("index.html")
        (None, 'index.html')
    """
    if path.startswith(LOCAL_PREFIX):
        return "local", path[len(LOCAL_PREFIX) :]
    if path.startswith(REMOTE_PREFIX):
        return "remote", path[len(REMOTE_PREFIX) :]
    return None, path


def get_storage(ctx: Any) -> BunnyStorage:
    """Create a storage client from the global options, env and config file."""
    api_key, storage_zone, region = config.resolve(
        api_key=ctx.obj.get("api_key"),
        storage_zone=ctx.obj.get("storage_zone"),
        region=ctx.obj.get("region"),
    )
    return BunnyStorage(api_key, storage_zone, region)


def _difference_to_dict(tree: PathDifference) -> dict[str, Any]:
    data: dict[str, Any] = tree.value.to_dict()
    data["children"] = [_difference_to_dict(child) for child in tree.children]
    return data


@click.group()
@click.option("--api-key", "-k", help="Storage zone password (BUNNY_API_KEY)")
@click.option("--storage-zone", "-z", help="Storage zone name (BUNNY_STORAGE_ZONE)")
@click.option("--region", help="Storage region, e.g. ny or NEW_YORK (BUNNY_REGION)")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pybunny")
@click.pass_context
def main(
    ctx: Any,
    api_key: Optional[str],
    storage_zone: Optional[str],
    region: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """PyBunny - Compare and upload files to Bunny edge storage."""
    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["storage_zone"] = storage_zone
    ctx.obj["region"] = region
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pybunny").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option("--api-key", "-k", prompt="Storage zone password", hide_input=True)
@click.option("--storage-zone", "-z", prompt="Storage zone name")
@click.option("--region", prompt="Region", default="", show_default=False)
@click.pass_context
def init(ctx: Any, api_key: str, storage_zone: str, region: str) -> None:
    """Initialize pybunny configuration.

    Stores the settings in ~/.config/pybunny/config for future use.
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        out.info("Validating settings...")
        _, _, resolved_region = config.resolve(api_key, storage_zone, region or None)
        try:
            with BunnyStorage(api_key, storage_zone, resolved_region) as storage:
                storage.list("/")
            out.success("✓ Storage zone is accessible")
        except BunnyError as e:
            out.error(f"Validation failed: {e}")
            if not click.confirm("Save settings anyway?", default=False):
                out.warning("Configuration cancelled.")
                ctx.exit(1)

        config_path = config.save(api_key, storage_zone, region or None)
        out.print_summary(
            "Initialization Complete",
            [
                ("Status", "✓ Configuration saved successfully"),
                ("Config file", str(config_path)),
            ],
        )
    except BunnyError as e:
        out.error(f"Initialization failed: {e}")
        ctx.exit(1)


@main.command()
@click.argument("path", default="/")
@click.option("--full-path", is_flag=True, help="Show full remote paths")
@click.pass_context
def ls(ctx: Any, path: str, full_path: bool) -> None:
    """List a remote directory, or describe a single file.

    PATH: Remote path; a trailing '/' lists a directory (default: /)
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        with get_storage(ctx) as storage:
            if path.endswith("/"):
                listing = storage.list(path)
            else:
                listing = [storage.describe(path)]
    except BunnyError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json([entry.to_dict() for entry in listing])
        return

    if not listing:
        out.info("Directory is empty")
    for entry in listing:
        out.print(entry.format(full_path))


@main.command()
@click.argument("path")
@click.option("--checksum", help="Expected SHA-256 (hex) of the content")
@click.pass_context
def cat(ctx: Any, path: str, checksum: Optional[str]) -> None:
    """Write the content of a remote file to stdout.

    PATH: Remote file path
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        expected = hex_to_bytes(checksum) if checksum else None
        with get_storage(ctx) as storage:
            body = storage.download(path, expected)
    except BunnyError as e:
        out.error(str(e))
        ctx.exit(1)

    click.get_binary_stream("stdout").write(body)


@main.command()
@click.argument("local_path", type=click.Path())
@click.argument("remote_path")
@click.option("--recursive", "-r", is_flag=True, help="Compare directories recursively")
@click.option(
    "--workers",
    "-j",
    type=int,
    default=4,
    help="Number of parallel workers hashing local files (default: 4)",
)
@click.pass_context
def diff(
    ctx: Any, local_path: str, remote_path: str, recursive: bool, workers: int
) -> None:
    """Show where a local path and a remote path differ.

    LOCAL_PATH: Local file or directory

    REMOTE_PATH: Remote path; a trailing '/' denotes a directory
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        with get_storage(ctx) as storage:
            engine = DiffEngine(storage, max_workers=workers)
            differences = engine.diff_paths(local_path, remote_path, recursive)
    except BunnyError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(
            {
                "identical": differences is None,
                "differences": _difference_to_dict(differences)
                if differences
                else None,
            }
        )
        return

    if differences is None:
        out.print("Paths identical")
        return
    for line in differences.format(lambda d: d.format()):
        out.print(line)


@main.command()
@click.argument("path")
@click.option("--recursive", "-r", is_flag=True, help="Allow deleting directories")
@click.pass_context
def rm(ctx: Any, path: str, recursive: bool) -> None:
    """Delete a remote file or directory.

    PATH: Remote path; a trailing '/' denotes a directory
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        with get_storage(ctx) as storage:
            entry = load_path(storage, path)
            if isinstance(entry, DirectoryEntry):
                entry.delete(recursive)
            else:
                entry.delete()
    except BunnyError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json({"deleted": path})
    else:
        out.success(f"Deleted {path}")


def _download_file(
    storage: BunnyStorage, remote_path: str, local_path: str, overwrite: bool
) -> tuple[Path, bool]:
    """Download one remote file, verifying its checksum.

    Returns:
        Tuple of (written path, whether content was transferred)
    """
    entry = storage.describe(remote_path)
    if not isinstance(entry, FileEntry):
        raise BunnyInvalidArgumentError(
            f"'{remote_path}' is a directory; only single files can be downloaded"
        )

    target = Path(local_path)
    if target.is_dir():
        target = target / entry.name

    if target.exists():
        if compute_file_checksum(target) == entry.checksum:
            logger.debug(f"Skipping {target}: identical to {entry.path}")
            return target, False
        if not overwrite:
            raise BunnyOverwriteRequiredError(str(target))

    write_local(target, entry.download(verify_checksum=True))
    return target, True


@main.command()
@click.argument("source")
@click.argument("destination")
@click.option("--recursive", "-r", is_flag=True, help="Copy directories recursively")
@click.option(
    "--overwrite", is_flag=True, help="Replace destination files that differ"
)
@click.option(
    "--workers",
    "-j",
    type=int,
    default=1,
    help="Number of parallel uploads (default: 1)",
)
@click.option("--no-progress", is_flag=True, help="Disable progress display")
@click.pass_context
def cp(
    ctx: Any,
    source: str,
    destination: str,
    recursive: bool,
    overwrite: bool,
    workers: int,
    no_progress: bool,
) -> None:
    """Copy between local and remote paths, transferring only changes.

    SOURCE: Path with optional 'local:' or 'remote:' prefix (default: local)

    DESTINATION: Path with optional 'local:' or 'remote:' prefix
    (default: remote)
    """
    out: OutputFormatter = ctx.obj["out"]

    source_type, source_path = parse_typed_path(source)
    destination_type, destination_path = parse_typed_path(destination)
    source_type = source_type or "local"
    destination_type = destination_type or "remote"

    try:
        if source_type == "remote" and destination_type == "local":
            with get_storage(ctx) as storage:
                target, transferred = _download_file(
                    storage, source_path, destination_path, overwrite
                )
            if out.json_output:
                out.output_json({"path": str(target), "changed": transferred})
            elif transferred:
                out.success(f"Downloaded {source_path} to {target}")
            else:
                out.info(f"{target} is already up to date")
            return

        if not (source_type == "local" and destination_type == "remote"):
            raise BunnyInvalidArgumentError(
                f"Cannot copy from {source_type} path to {destination_type} path"
            )

        with get_storage(ctx) as storage:
            if no_progress or out.quiet or out.json_output:
                tracker = UploadProgressTracker()
                engine = UploadEngine(storage, tracker, max_workers=workers)
                entries = engine.upload_path(
                    source_path, destination_path, recursive, overwrite
                )
            else:
                with UploadProgressDisplay() as display:
                    tracker = display.create_tracker()
                    engine = UploadEngine(storage, tracker, max_workers=workers)
                    entries = engine.upload_path(
                        source_path, destination_path, recursive, overwrite
                    )
    except BunnyError as e:
        out.error(str(e))
        ctx.exit(1)

    stats = tracker.stats()
    if out.json_output:
        out.output_json(
            {
                "uploaded": stats["changed"],
                "unchanged": stats["unchanged"],
                "bytes_uploaded": stats["bytes_uploaded"],
                "files": [entry.to_dict() for entry in entries],
            }
        )
        return

    out.print_summary(
        "Upload Complete",
        [
            ("Uploaded", str(stats["changed"])),
            ("Unchanged", str(stats["unchanged"])),
            ("Transferred", out.format_size(stats["bytes_uploaded"])),
        ],
    )


if __name__ == "__main__":
    main()
