"""Command-line interface for todo-md."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from .config import ConfigModel, load_config
from .document import GROUP_KINDS, Document, parse_text
from .due_date import DueState
from .filter import FilterError, filter_tasks
from .sort import SortDirection, SortProperty, next_task, sort_tasks
from .task import Task
from .utils.datetime import local_now

console = Console()

DUE_STYLES = {
    DueState.INVALID: "magenta",
    DueState.OVERDUE: "red",
    DueState.DUE: "yellow",
    DueState.NOT_DUE: "blue",
}


def load_document(path: str, config: ConfigModel) -> Document:
    """Read and parse a task file."""
    return parse_text(Path(path).read_text(encoding="utf-8"), config)


def resolve_now(now: Optional[str]) -> datetime:
    """Parse the --now option, defaulting to the current local time."""
    if not now:
        return local_now()
    try:
        return datetime.fromisoformat(now)
    except ValueError:
        console.print(f"[red]Error: Invalid --now value '{now}'. Use ISO format[/red]")
        sys.exit(1)


def format_due(task: Task, now: datetime) -> str:
    """Format the due column for a task."""
    if task.due is None:
        return ""
    status = task.due.status(now)
    style = DUE_STYLES[status.is_due]
    label = status.is_due.value
    if status.is_due == DueState.OVERDUE:
        label = f"overdue {status.overdue_in_days}d"
    elif status.is_due == DueState.NOT_DUE:
        label = f"in {status.days_until_due}d"
    return f"[{style}]{escape(task.due.raw)} ({label})[/{style}]"


def format_task_for_display(task: Task) -> str:
    """Format a task title with its annotations."""
    parts = []
    if task.done:
        parts.append("✅")
    if task.priority:
        parts.append(f"[bold]({task.priority})[/bold]")
    parts.append(escape(task.title))
    if task.tags:
        parts.append(f"[cyan]{' '.join('#' + escape(tag) for tag in task.tags)}[/cyan]")
    if task.projects:
        parts.append(f"[green]{' '.join('+' + escape(project) for project in task.projects)}[/green]")
    if task.contexts:
        parts.append(f"[yellow]{' '.join('@' + escape(context) for context in task.contexts)}[/yellow]")
    if task.count:
        parts.append(f"[dim][{task.count.current}/{task.count.needed}][/dim]")
    return " ".join(parts)


@click.group()
@click.option("--config", type=click.Path(), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config, verbose):
    """todo-md - parse, sort and filter plain-text task files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj['config'] = load_config(Path(config) if config else None)


@main.command(name="list")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--sort", "sort_by", type=click.Choice([p.value for p in SortProperty]),
              default=None, help="Sort property (defaults to the configured sort)")
@click.option("--asc", is_flag=True, help="Reverse the sort order")
@click.option("--filter", "query", default="", help="Filter query, e.g. '#work -$done'")
@click.option("--hide-done", is_flag=True, help="Hide completed tasks")
@click.option("--now", default=None, help="Evaluate due dates at this moment (ISO format)")
@click.pass_context
def list_tasks(ctx, file, sort_by, asc, query, hide_done, now):
    """List tasks from FILE."""
    config: ConfigModel = ctx.obj['config']
    moment = resolve_now(now)
    document = load_document(file, config)

    tasks = document.tasks
    try:
        tasks = filter_tasks(tasks, query, moment)
    except FilterError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if hide_done or not config.show_completed:
        tasks = [t for t in tasks if not t.done]
    if not config.show_recurring_completed:
        tasks = [t for t in tasks if not (t.is_recurring and t.done)]

    try:
        sort_property = SortProperty(sort_by or config.default_sort)
    except ValueError:
        console.print(f"[red]Error: Unknown sort property '{sort_by or config.default_sort}'[/red]")
        sys.exit(1)
    direction = SortDirection.ASC if asc else SortDirection.DESC
    tasks = sort_tasks(tasks, sort_property, moment, direction)

    if not tasks:
        console.print("[yellow]No tasks found.[/yellow]")
        return

    table = Table(title=f"{escape(Path(file).name)} ({len(tasks)} tasks)")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Task")
    table.add_column("Due")
    for task in tasks:
        table.add_row(str(task.line_number + 1), format_task_for_display(task), format_due(task, moment))
    console.print(table)


def _add_nodes(branch: Tree, nodes, moment: datetime) -> None:
    for node in nodes:
        due = format_due(node.task, moment)
        child = branch.add(f"{format_task_for_display(node.task)} {due}".rstrip())
        _add_nodes(child, node.subtasks, moment)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--now", default=None, help="Evaluate due dates at this moment (ISO format)")
@click.pass_context
def tree(ctx, file, now):
    """Show the task hierarchy of FILE."""
    moment = resolve_now(now)
    document = load_document(file, ctx.obj['config'])

    root = Tree(f"[bold]{escape(Path(file).name)}[/bold]")
    _add_nodes(root, document.tasks_as_tree, moment)
    console.print(root)


@main.command(name="next")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--now", default=None, help="Evaluate due dates at this moment (ISO format)")
@click.pass_context
def next_command(ctx, file, now):
    """Show the task to work on next."""
    moment = resolve_now(now)
    document = load_document(file, ctx.obj['config'])

    task = next_task(document.tasks, moment)
    if task is None:
        console.print("[yellow]No tasks[/yellow]")
        return
    console.print(format_task_for_display(task))


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--by", "kind", type=click.Choice(GROUP_KINDS), default="tag", help="Group kind")
@click.pass_context
def groups(ctx, file, kind):
    """Count tasks per tag, project or context."""
    document = load_document(file, ctx.obj['config'])

    grouped = document.group_by(kind)
    if not grouped:
        console.print(f"[yellow]No {kind}s found.[/yellow]")
        return

    table = Table(title=f"Tasks by {kind}")
    table.add_column(kind.capitalize(), style="cyan")
    table.add_column("Tasks", justify="right")
    table.add_column("Open", justify="right")
    for name, tasks in grouped.items():
        table.add_row(escape(name), str(len(tasks)), str(sum(1 for t in tasks if not t.done)))
    console.print(table)


if __name__ == "__main__":
    main()
