# Rich-based console for thread-safe, colored terminal output.
#
# All GroupHound output goes through this module so that worker threads
# expanding memberships in parallel never interleave their lines.

import threading
from contextlib import contextmanager
from typing import Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

# Global console instance - thread-safe by default
console = Console(highlight=False)

# Lock for complex multi-line output
_output_lock = threading.RLock()


# =============================================================================
# Banner
# =============================================================================

GROUPHOUND_TEAL = "#14B8A6"

BANNER_ART = f"""
[bold {GROUPHOUND_TEAL}] GGG  RRRR   OOO  U   U PPPP  H   H  OOO  U   U N   N DDDD[/]
[bold {GROUPHOUND_TEAL}]G     R   R O   O U   U P   P H   H O   O U   U NN  N D   D[/]
[bold {GROUPHOUND_TEAL}]G  GG RRRR  O   O U   U PPPP  HHHHH O   O U   U N N N D   D[/]
[bold {GROUPHOUND_TEAL}]G   G R  R  O   O U   U P     H   H O   O U   U N  NN D   D[/]
[bold {GROUPHOUND_TEAL}] GGG  R   R  OOO   UUU  P     H   H  OOO   UUU  N   N DDDD[/]
"""


def print_banner():
    """Print the colored GroupHound banner."""
    console.print(BANNER_ART)


# =============================================================================
# Status Messages (thread-safe)
# =============================================================================

def status(msg: str):
    """Print a status message (always visible). Thread-safe."""
    with _output_lock:
        console.print(msg)


def good(msg: str):
    """Print a success message in green. Thread-safe."""
    with _output_lock:
        console.print(f"[green][+][/] {msg}")


def warn(msg: str):
    """Print a warning message in yellow. Thread-safe."""
    with _output_lock:
        console.print(f"[yellow][!][/] {msg}")


def error(msg: str):
    """Print an error message in red. Thread-safe."""
    with _output_lock:
        console.print(f"[red][-][/] {msg}")


def info(msg: str):
    """Print an info message in blue. Thread-safe."""
    with _output_lock:
        console.print(f"[blue][*][/] {msg}")


def debug(msg: str):
    """Print a debug message in dim text. Thread-safe."""
    if not _DEBUG:
        return
    with _output_lock:
        console.print(f"[dim][DEBUG][/] {msg}")


# =============================================================================
# Verbosity Control
# =============================================================================

_DEBUG = False


def set_debug(enabled: bool):
    """Enable or disable debug lines."""
    global _DEBUG
    _DEBUG = enabled


# =============================================================================
# Progress Bar for Parallel Expansion
# =============================================================================

@contextmanager
def expansion_progress(total: int, description: str = "Expanding"):
    """
    Context manager for showing a progress bar while objects are expanded.

    Usage:
        with expansion_progress(len(entries), "Expanding groups") as update:
            for entry in entries:
                process(entry)
                update(entry.distinguished_name)

    Yields:
        update function that takes (current_item, success=True, error_msg=None)
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TextColumn("[dim]{task.fields[status]}"),
        console=console,
        transient=False,
    )

    task_id = progress.add_task(description, total=total, status="")
    stats = {"success": 0, "failed": 0}

    def update(item: str, success: bool = True, error_msg: Optional[str] = None):
        if success:
            stats["success"] += 1
            status_text = f"[green][+][/] {item[:40]}"
        else:
            stats["failed"] += 1
            status_text = f"[red][-][/] {item[:40]}: {error_msg[:30]}" if error_msg else f"[red][-][/] {item[:40]}"

        progress.update(task_id, advance=1, status=status_text)

    try:
        with progress:
            yield update
    finally:
        total_done = stats["success"] + stats["failed"]
        if stats["failed"] > 0:
            console.print(
                f"\n[green][+] {stats['success']}[/] succeeded, "
                f"[red][-] {stats['failed']}[/] failed out of {total_done} objects"
            )


# =============================================================================
# Summary Output
# =============================================================================

def print_membership_summary(edge_counts: Dict[str, int], failed: Dict[str, str]):
    """
    Print edge counts per object type, then the objects that failed.

    Args:
        edge_counts: Dict of {object_type: number_of_edges}
        failed: Dict of {distinguished_name: failure_reason}
    """
    if edge_counts:
        table = Table(
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
            box=None,
        )
        table.add_column("Member Type", style="white", no_wrap=True)
        table.add_column("Edges", justify="right", style="green")

        for object_type in sorted(edge_counts):
            table.add_row(object_type, str(edge_counts[object_type]))

        if len(edge_counts) > 1:
            table.add_section()
            table.add_row("[bold]TOTAL[/]", f"[bold]{sum(edge_counts.values())}[/]")

        console.print()
        console.print(Panel(table, title="[bold]MEMBERSHIP SUMMARY[/]", border_style="cyan"))

    if failed:
        fail_table = Table(
            show_header=True,
            header_style="bold red",
            border_style="dim red",
            box=None,
        )
        fail_table.add_column("Object", style="white", no_wrap=True)
        fail_table.add_column("Reason", style="dim")

        for dn in sorted(failed):
            reason = failed[dn] or "Unknown error"
            if len(reason) > 60:
                reason = reason[:57] + "..."
            fail_table.add_row(dn, reason)

        console.print()
        console.print(
            Panel(
                fail_table,
                title=f"[bold red]FAILED OBJECTS ({len(failed)})[/]",
                border_style="red",
            )
        )

    console.print()


def print_collection_complete(succeeded: int, failed: int, total_time: float, avg_time_ms: float):
    """Print collection completion summary."""
    console.print()
    content_lines = [
        f"  [green][+][/] Expanded: [bold]{succeeded}[/]",
        f"  [red][-][/] Failed: [bold]{failed}[/]",
        f"  [dim]Total time: {total_time:.2f}s[/]",
        f"  [dim]Avg per object: {avg_time_ms:.0f}ms[/]",
    ]
    console.print(
        Panel(
            "\n".join(content_lines),
            title="[bold]COLLECTION COMPLETE[/]",
            border_style="green" if failed == 0 else "yellow",
        )
    )


def print_output_section(path: str, edge_count: int):
    """Print the output file location in a styled panel."""
    console.print()
    console.print(
        Panel(
            f"[green][+][/] Wrote {edge_count} edges to [bold]{path}[/]",
            title="[bold]OUTPUT[/]",
            border_style="dim",
        )
    )
