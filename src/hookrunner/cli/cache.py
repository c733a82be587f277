"""Cache management commands."""

from rich.table import Table

from . import app
from ._common import console, resolve_settings
from ..store import Store


@app.command("cache-info")
def cache_info():
    """Show cached repositories and environments."""
    settings = resolve_settings()
    root = settings.cache_path

    console.print("[bold cyan]hookrunner cache[/bold cyan]")
    console.print()

    if not root.exists():
        console.print(f"Directory: [blue]{root}[/blue] [dim](empty)[/dim]")
        return

    store = Store(root)
    try:
        stats = store.stats()
        console.print(f"Directory: [blue]{stats['directory']}[/blue]")
        console.print(f"Repositories: [yellow]{stats['repos']}[/yellow]")
        console.print(f"Environments: [yellow]{stats['environments']}[/yellow]")
        console.print(f"Size: [yellow]{stats['volume']} bytes[/yellow]")

        entries = store.entries()
        if not entries:
            return
        console.print()
        table = Table(show_header=True, show_lines=False, pad_edge=True)
        table.add_column("Kind")
        table.add_column("Key")
        table.add_column("Path")
        for entry in entries:
            key = entry.get("repo", entry["key"]) if entry["kind"] == "env" else entry["key"]
            if entry["kind"] == "env":
                key = f"{entry.get('language', '?')} ({key})"
            table.add_row(entry["kind"], key, entry["path"])
        console.print(table)
    finally:
        store.close()


@app.command()
def clean():
    """Delete the whole cache directory."""
    settings = resolve_settings()
    root = settings.cache_path
    if root.exists():
        Store(root).clean()
    console.print(f"Cleaned {root}", markup=False, highlight=False)
