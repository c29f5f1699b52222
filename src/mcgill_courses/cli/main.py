"""
CLI Main - Typer command-line interface.
========================================

Commands:
- load: Crawl catalog terms into course JSON files
- seed: Upsert a course JSON file into the store and rebuild the index
- search: Full-text search over stored courses
- course: Show a stored course with its reviews
- info: Show system information
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from mcgill_courses.shared.errors import PipelineError
from mcgill_courses.shared.logging import get_console, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="mcgill-courses",
    help="""📚 McGill Courses - Course catalog ingestion pipeline

Crawls the McGill eCalendar (and optionally the Visual Schedule Builder),
merges the results with previously crawled data and seeds a searchable
course store.

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

COMMANDS OVERVIEW:

  load     Crawl catalog terms into courses-<term>.json files
           -t, --term         Term to crawl (repeatable, e.g. 2023-2024)
           --vsb/--no-vsb     Fetch VSB schedules for the last term

  seed     Upsert a course JSON file into the store
           --db               SQLite database path

  search   Full-text search over stored courses
           -n, --limit        Number of results (default: 10)

  course   Show one course and its reviews

  info     Show system configuration and store status

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

QUICK START:

  mcgill-courses load -t 2023-2024                      # Step 1: Crawl
  mcgill-courses seed data/courses/courses-2023-2024.json  # Step 2: Seed
  mcgill-courses search "COMP 202"                      # Step 3: Search

Use 'mcgill-courses <command> --help' for detailed command options.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = get_console()


def _configure_logging() -> None:
    from mcgill_courses.shared.config import get_settings
    from mcgill_courses.shared.logging import setup_logging

    settings = get_settings()
    setup_logging(
        level=settings.get_effective_log_level(),
        use_rich=settings.logging.rich_console,
        log_file=settings.logging.file or None,
        log_format=settings.logging.format,
        force=True,
    )


def _fail(error: Exception) -> None:
    logger.error(f"{type(error).__name__}: {error}")
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Load Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def load(
    source: Optional[Path] = typer.Argument(
        None,
        help="Output directory (courses-<term>.json per term) or a single JSON file. "
        "Defaults to the configured courses directory.",
    ),
    terms: Optional[List[str]] = typer.Option(
        None,
        "--term", "-t",
        help="Catalog term to crawl, e.g. 2023-2024. Repeatable. Omit for all configured terms.",
    ),
    vsb: Optional[bool] = typer.Option(
        None,
        "--vsb/--no-vsb",
        help="Fetch Visual Schedule Builder schedules for the last term.",
    ),
):
    """
    🌐 Crawl catalog terms into course JSON files.

    Each term is crawled in batches of listing pages, deduplicated, merged
    with the existing file for that term (if any) and written back with the
    derived "leading to" lists filled in.

    Examples:
        mcgill-courses load                       # All configured terms
        mcgill-courses load -t 2023-2024 --vsb    # One term with schedules
        mcgill-courses load courses.json          # Merge every term into one file
    """
    from mcgill_courses.shared.config import get_settings
    from mcgill_courses.shared.utils import ensure_directory
    from mcgill_courses.ingestion.crawler import Loader

    _configure_logging()
    settings = get_settings()

    update: dict = {"user_agent": settings.get_effective_user_agent()}
    if terms:
        update["mcgill_terms"] = terms
    if vsb is not None:
        update["scrape_vsb"] = vsb
    config = settings.loader.model_copy(update=update)

    if source is None:
        source = ensure_directory(settings.resolved_paths.courses_dir)

    console.print(Panel(
        f"[bold]Loader Configuration[/bold]\n"
        f"Source: {config.base_url}\n"
        f"Terms: {', '.join(config.mcgill_terms)}\n"
        f"VSB schedules: {'Yes (' + ', '.join(config.vsb_terms) + ')' if config.scrape_vsb else 'No'}\n"
        f"Batch size: {config.batch_size} pages, {config.workers} workers\n"
        f"Output: {source}",
        title="🌐 Load Courses",
    ))

    try:
        with Loader(config=config) as loader:
            written = loader.run(source)
    except PipelineError as e:
        _fail(e)

    table = Table(title="Written Files")
    table.add_column("Term")
    table.add_column("File")
    for term, path in written.items():
        table.add_row(term, str(path))
    console.print(table)

    console.print(f"\n[bold green]✓ Loaded {len(written)} term(s)[/bold green]")


# ─────────────────────────────────────────────────────────────────────────────
# Seed Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def seed(
    source: Path = typer.Argument(..., help="Course JSON file to seed from."),
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="SQLite database path (defaults to the configured store).",
    ),
):
    """
    🗄️ Upsert courses into the store and rebuild the search index.

    New courses are inserted as-is. Known courses get their prerequisites,
    corequisites, credits, description, faculty URL, restrictions and URL
    overwritten, and their instructors, schedule and terms unioned.
    """
    from mcgill_courses.storage.db import CourseStore

    _configure_logging()

    if not source.exists():
        console.print(f"[red]✗ Source file not found: {source}[/red]")
        raise typer.Exit(1)

    try:
        with CourseStore(db) as store:
            inserted, updated = store.seed_file(source)
            total = store.count
    except (PipelineError, ValueError) as e:
        _fail(e)

    console.print(
        f"[bold green]✓ Seeded {inserted} new and {updated} existing courses "
        f"({total} in store)[/bold green]"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Search Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def search(
    query: str = typer.Argument(..., help="Free-text query, e.g. 'COMP 202'."),
    limit: Optional[int] = typer.Option(
        None,
        "--limit", "-n",
        help="Number of results (defaults to storage.search_limit).",
    ),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path."),
):
    """
    🔍 Search stored courses.

    Identifier, subject and code matches rank above title matches, which
    rank above description matches.
    """
    from mcgill_courses.storage.db import CourseStore

    _configure_logging()

    with CourseStore(db) as store:
        results = store.search(query, limit=limit)

    if not results:
        console.print(f"[yellow]No courses match '{query}'.[/yellow]")
        return

    table = Table(title=f"Results for '{query}'")
    table.add_column("#", justify="right")
    table.add_column("Course")
    table.add_column("Title")
    table.add_column("Credits", justify="right")
    for rank, course in enumerate(results, 1):
        table.add_row(str(rank), f"{course.subject} {course.code}", course.title, course.credits)
    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Course Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def course(
    course_id: str = typer.Argument(..., help="Course identifier, e.g. COMP202."),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path."),
):
    """
    📖 Show a stored course, its requirements and its reviews.
    """
    from mcgill_courses.shared.utils import normalize_course_id
    from mcgill_courses.storage.db import CourseStore

    _configure_logging()

    with CourseStore(db) as store:
        found = store.find_course_by_id(normalize_course_id(course_id))
        reviews = store.find_reviews_by_course_id(found.id) if found else []

    if found is None:
        console.print(f"[red]✗ Course not found: {course_id}[/red]")
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold]{found.subject} {found.code}: {found.title}[/bold] ({found.credits} credits)\n"
        f"{found.faculty} / {found.department} / {found.level}\n"
        f"Terms: {', '.join(found.terms) or 'not offered'}\n\n"
        f"{found.description}\n\n"
        f"Prerequisites: {', '.join(found.prerequisites) or '-'}\n"
        f"Corequisites: {', '.join(found.corequisites) or '-'}\n"
        f"Restrictions: {found.restrictions or '-'}\n"
        f"Leading to: {', '.join(found.leading_to) or '-'}\n"
        f"URL: {found.url}",
        title=f"📖 {found.id}",
    ))

    if found.instructors:
        console.print("\n[bold]Instructors:[/bold]")
        for instructor in found.instructors:
            suffix = f" ({instructor.term})" if instructor.term else ""
            console.print(f"  • {instructor.name}{suffix}")

    if reviews:
        table = Table(title="Reviews")
        table.add_column("Rating", justify="right")
        table.add_column("Instructor")
        table.add_column("Review")
        for review in reviews:
            table.add_row(str(review.rating), review.instructor, review.content)
        console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Info Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def info():
    """
    ℹ️ Show system information and configuration.

    Displays:
      • Version information
      • Configured terms and loader settings
      • Data paths and their existence status
      • Store size
    """
    from mcgill_courses import __version__
    from mcgill_courses.shared.config import get_settings

    settings = get_settings()
    loader = settings.loader

    console.print(Panel(
        f"[bold]McGill Courses[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: config/settings.yaml",
        title="ℹ️ Info",
    ))

    console.print("\n[bold]Loader Settings:[/bold]")
    table = Table()
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("User agent", settings.get_effective_user_agent())
    table.add_row("Terms", f"{loader.mcgill_terms[0]} … {loader.mcgill_terms[-1]}" if loader.mcgill_terms else "-")
    table.add_row("VSB terms", ", ".join(loader.vsb_terms))
    table.add_row("Scrape VSB", "Yes" if loader.scrape_vsb else "No")
    table.add_row("Batch size", str(loader.batch_size))
    table.add_row("Workers", str(loader.workers))
    table.add_row("Retries", f"{loader.retries} (delay {loader.retry_delay}s)")
    console.print(table)

    console.print("\n[bold]Data Paths:[/bold]")
    resolved_paths = settings.resolved_paths
    path_dict = {
        "data_dir": resolved_paths.data_dir,
        "courses_dir": resolved_paths.courses_dir,
        "database": settings.get_effective_database_path(),
    }
    for name, path in path_dict.items():
        exists = "✓" if path.exists() else "✗"
        console.print(f"  {name}: {path} [{exists}]")

    database_path = path_dict["database"]
    if database_path.exists():
        from mcgill_courses.storage.db import CourseStore

        with CourseStore(database_path) as store:
            console.print(f"\n[bold]Store size:[/bold] {store.count} courses")
    else:
        console.print("\n[bold]Store size:[/bold] not seeded yet")


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
