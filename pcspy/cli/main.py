"""PCS CLI - Main commands."""
import asyncio
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from pcspy.core.exceptions import PCSException
from pcspy.core.utils import format_size, join_remote

app = typer.Typer(
    name="pcs",
    help="PCS cloud storage CLI",
    add_completion=False
)
console = Console()

state = {"token": None}


@app.callback()
def configure(
    token: Optional[str] = typer.Option(
        None, "--token", envvar="PCS_ACCESS_TOKEN", help="Access token"
    ),
):
    """PCS cloud storage CLI."""
    state["token"] = token


def get_client():
    """Build a client from the --token option or PCS_ACCESS_TOKEN."""
    from pcspy import PCSClient

    if not state["token"]:
        console.print("[red]No access token. Use --token or set PCS_ACCESS_TOKEN.[/red]")
        raise typer.Exit(1)
    return PCSClient(state["token"])


def run_async(coro):
    """Run async function, reporting client errors and exiting with status 1."""
    try:
        return asyncio.run(coro)
    except PCSException as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def parse_range(value: str) -> Tuple[int, int]:
    try:
        start, end = (int(part) for part in value.split("-", 1))
    except ValueError:
        raise typer.BadParameter(f"expected START-END, got {value!r}")
    return start, end


def format_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")


@app.command()
def quota():
    """Show used and total space."""
    async def show_quota():
        async with get_client() as pcs:
            info = await pcs.get_quota()
            console.print(f"Used: {format_size(info.used)} / {format_size(info.quota)} "
                          f"({info.used_percent:.1f}%)")
            console.print(f"Free: {format_size(info.free)}")

    run_async(show_quota())


@app.command()
def ls(
    path: str = typer.Argument(..., help="Remote directory"),
    long: bool = typer.Option(False, "-l", "--long", help="Long format with details"),
):
    """List a directory."""
    async def list_files():
        async with get_client() as pcs:
            records = await pcs.list_files(path)

            if long:
                table = Table()
                table.add_column("Type", style="cyan")
                table.add_column("Size", justify="right")
                table.add_column("Modified")
                table.add_column("Name")

                for record in records:
                    type_str = "D" if record.is_dir else "F"
                    size_str = "-" if record.is_dir else f"{record.size:,}"
                    table.add_row(type_str, size_str, format_time(record.mtime), record.name)

                console.print(table)
            else:
                for record in records:
                    if record.is_dir:
                        console.print(f"[blue]{record.name}/[/blue]")
                    else:
                        console.print(record.name)

    run_async(list_files())


@app.command()
def meta(
    path: str = typer.Argument(..., help="Remote path"),
):
    """Show file or directory metadata."""
    async def show_meta():
        async with get_client() as pcs:
            record = await pcs.get_meta(path)
            console.print(f"[bold]Path:[/bold] {record.path}")
            console.print(f"[bold]Type:[/bold] {'Directory' if record.is_dir else 'File'}")
            console.print(f"[bold]fs_id:[/bold] {record.fs_id}")
            console.print(f"[bold]Modified:[/bold] {format_time(record.mtime)}")
            if not record.is_dir:
                console.print(f"[bold]Size:[/bold] {record.size:,} bytes")
                console.print(f"[bold]MD5:[/bold] {record.md5}")

    run_async(show_meta())


@app.command()
def mkdir(
    path: str = typer.Argument(..., help="Remote directory to create"),
):
    """Create a directory."""
    async def do_mkdir():
        async with get_client() as pcs:
            record = await pcs.mkdir(path)
            console.print(f"[green]Created:[/green] {record.path}")

    run_async(do_mkdir())


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    dest: str = typer.Argument(..., help="Remote directory, or full path ending in a file name"),
    strategy: str = typer.Option("auto", "--strategy", "-s", help="auto, direct, rapid or block"),
    overwrite: bool = typer.Option(True, "--overwrite/--new-copy", help="Overwrite or keep both"),
    block_size: int = typer.Option(4, "--block-size", help="Block size in MiB"),
    parallel: int = typer.Option(4, "--parallel", "-p", help="Parallel block uploads"),
):
    """Upload a file."""
    from pcspy.core.upload.models import UploadProgress

    target = join_remote(dest, file_path.name) if dest.endswith("/") else dest

    async def do_upload():
        async with get_client() as pcs:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Uploading {file_path.name}", total=100)

                def on_progress(p: UploadProgress):
                    progress.update(task, completed=p.percentage)

                result = await pcs.upload_file(
                    file_path,
                    target,
                    overwrite=overwrite,
                    strategy=strategy,
                    block_size=block_size * 1024 * 1024,
                    max_concurrent_uploads=parallel,
                    progress_callback=on_progress,
                )

            console.print(f"[green]Uploaded:[/green] {result.path} ({result.strategy.value})")
            console.print(f"Size: {result.size:,} bytes")
            console.print(f"MD5: {result.md5}")

    run_async(do_upload())


@app.command()
def download(
    remote_path: str = typer.Argument(..., help="Remote file path"),
    output: Path = typer.Option(None, "--output", "-o", help="Output file path"),
    resume: bool = typer.Option(False, "--resume", help="Continue a partial download"),
    byte_range: str = typer.Option(None, "--range", help="Only bytes START-END (inclusive)"),
):
    """Download a file."""
    dest = output or Path(remote_path.rstrip("/").rsplit("/", 1)[-1])
    span = parse_range(byte_range) if byte_range else None

    async def do_download():
        async with get_client() as pcs:
            if span:
                start, end = span
                data = await pcs.partial_download(remote_path, start, end)
                dest.write_bytes(data)
                console.print(f"[green]Saved[/green] {len(data):,} bytes to {dest}")
                return

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Downloading {dest.name}", total=None)

                def on_progress(done: int, total: int):
                    progress.update(task, completed=done, total=total or None)

                result = await pcs.download(
                    remote_path, dest, resume=resume, progress_callback=on_progress
                )

            verb = "Resumed" if result.resumed else "Downloaded"
            console.print(f"[green]{verb}:[/green] {result.dest} ({result.size:,} bytes)")

    run_async(do_download())


@app.command()
def rm(
    paths: List[str] = typer.Argument(..., help="Remote paths to delete"),
    force: bool = typer.Option(False, "-f", "--force", help="Skip confirmation"),
):
    """Delete files or directories (moved to the recycle bin)."""
    if not force:
        if not typer.confirm(f"Delete {', '.join(paths)}?"):
            raise typer.Abort()

    async def do_rm():
        async with get_client() as pcs:
            if len(paths) == 1:
                await pcs.delete(paths[0])
            else:
                await pcs.batch_delete(paths)
            for path in paths:
                console.print(f"[green]Deleted:[/green] {path}")

    run_async(do_rm())


@app.command()
def mv(
    source: str = typer.Argument(..., help="Source path"),
    dest: str = typer.Argument(..., help="Destination path"),
):
    """Move or rename a file or directory."""
    async def do_mv():
        async with get_client() as pcs:
            result = await pcs.move(source, dest)
            for src, dst in result.pairs:
                console.print(f"[green]Moved:[/green] {src} -> {dst}")

    run_async(do_mv())


@app.command()
def cp(
    source: str = typer.Argument(..., help="Source path"),
    dest: str = typer.Argument(..., help="Destination path"),
):
    """Copy a file or directory."""
    async def do_cp():
        async with get_client() as pcs:
            result = await pcs.copy(source, dest)
            for src, dst in result.pairs:
                console.print(f"[green]Copied:[/green] {src} -> {dst}")

    run_async(do_cp())


@app.command()
def search(
    word: str = typer.Argument(..., help="Text contained in the file name"),
    path: str = typer.Option("/", "--path", help="Directory to search"),
    recursive: bool = typer.Option(False, "-r", "--recursive", help="Search subdirectories"),
):
    """Search files by name."""
    async def do_search():
        async with get_client() as pcs:
            records = await pcs.search(path, word, recursive=recursive)
            if not records:
                console.print("[yellow]No matches[/yellow]")
            for record in records:
                console.print(f"{record.path}  [dim]{record.size:,}[/dim]")

    run_async(do_search())


@app.command()
def recycle(
    empty: bool = typer.Option(False, "--empty", help="Permanently delete everything"),
):
    """List or empty the recycle bin."""
    if empty and not typer.confirm("Permanently delete everything in the recycle bin?"):
        raise typer.Abort()

    async def do_recycle():
        async with get_client() as pcs:
            if empty:
                await pcs.empty_recycle()
                console.print("[green]Recycle bin emptied[/green]")
                return

            table = Table()
            table.add_column("fs_id", style="dim")
            table.add_column("Size", justify="right")
            table.add_column("Path")
            for record in await pcs.list_recycle():
                table.add_row(str(record.fs_id), f"{record.size:,}", record.path)
            console.print(table)

    run_async(do_recycle())


@app.command()
def restore(
    fs_ids: List[str] = typer.Argument(..., help="fs_id values from 'pcs recycle'"),
):
    """Restore entries from the recycle bin."""
    async def do_restore():
        async with get_client() as pcs:
            if len(fs_ids) == 1:
                result = await pcs.restore(fs_ids[0])
            else:
                result = await pcs.batch_restore(fs_ids)
            for fs_id in result.fs_ids:
                console.print(f"[green]Restored:[/green] {fs_id}")

    run_async(do_restore())


@app.command()
def fingerprint(
    file_path: Path = typer.Argument(..., help="Local file", exists=True, dir_okay=False),
):
    """Show the rapid-upload fingerprint of a local file."""
    from pcspy.core.upload import FingerprintEngine

    result = run_async(FingerprintEngine().compute(file_path))
    console.print(f"length: {result.length}")
    console.print(f"md5: {result.whole_md5}")
    console.print(f"slice-md5: {result.slice_md5}")
    console.print(f"crc32: {result.crc32}")
    if not result.rapid_upload_eligible:
        console.print("[yellow]Too small for rapid upload[/yellow]")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
