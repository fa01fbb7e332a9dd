#!/usr/bin/env python3
"""
ApplyTrack CLI - Main command-line interface for the job application tracker.
"""

import click
from rich.console import Console
from rich.table import Table

console = Console()

STATUS_CHOICES = ["Applied", "Interviewing", "Offer", "Rejected"]
SOURCE_CHOICES = ["manual", "email", "recommendation", "import"]


def _shorten(value: str, width: int) -> str:
    value = value or ""
    return value[:width - 3] + "..." if len(value) > width else value


def _records_table(title: str, records) -> Table:
    table = Table(title=title)
    table.add_column("Company", style="green")
    table.add_column("Role", style="bold")
    table.add_column("Date Applied", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Location", style="yellow")
    table.add_column("Notes", style="dim")

    for record in records:
        data = record if isinstance(record, dict) else record.to_dict()
        table.add_row(
            data['company'],
            _shorten(data['role'], 40) or "N/A",
            data['date_applied'] or "N/A",
            data['status'],
            data['location'] or "N/A",
            _shorten(data['notes'], 30)
        )
    return table


def _print_errors(errors, max_shown: int):
    if not errors:
        return
    console.print(f"[yellow]{len(errors)} row(s) could not be converted:[/yellow]")
    for error in errors[:max_shown]:
        console.print(f"  [red]• {error}[/red]")
    if len(errors) > max_shown:
        console.print(f"  [dim]+{len(errors) - max_shown} more[/dim]")


def _print_summary(summary):
    from .config import get_config_manager

    table = Table(title="Import Summary")
    table.add_column("Total Rows", style="cyan")
    table.add_column("Imported", style="green")
    table.add_column("Skipped", style="yellow")
    table.add_row(str(summary.total), str(summary.imported), str(summary.skipped))
    console.print(table)

    if summary.skipped_rows:
        console.print(f"[dim]Skipped rows: {', '.join(str(n) for n in summary.skipped_rows)}[/dim]")

    _print_errors(list(summary.errors), get_config_manager().get('cli', 'max_errors_shown'))

    if summary.preview_data:
        console.print(_records_table("Imported Preview", summary.preview_data))


def _print_preview(preview, show_all: bool):
    from .config import get_config_manager

    records = preview.records if show_all else preview.preview_data
    title = f"Sheet Preview - {preview.sheet_name or 'first sheet'} ({len(records)} of {len(preview.records)})"
    console.print(_records_table(title, records))

    console.print(f"[cyan]{len(preview.records)} of {preview.total} rows would be imported[/cyan]")
    if preview.skipped_rows:
        console.print(f"[dim]Skipped rows: {', '.join(str(n) for n in preview.skipped_rows)}[/dim]")
    _print_errors(preview.errors, get_config_manager().get('cli', 'max_errors_shown'))


def _resolve_spreadsheet_id(url_or_id: str) -> str:
    from .sheets import extract_spreadsheet_id

    spreadsheet_id = extract_spreadsheet_id(url_or_id)
    if not spreadsheet_id:
        console.print("[red]Invalid Google Sheets URL. Please provide a valid URL.[/red]")
        raise click.Abort()
    return spreadsheet_id


@click.group()
@click.version_option(version="0.1.0")
def main():
    """ApplyTrack - Job application tracker with spreadsheet import and resume scoring."""
    from .config import get_config_manager

    if not get_config_manager().get('cli', 'color_output'):
        console.no_color = True


@main.group("import")
def import_group():
    """Import job applications from Google Sheets or CSV files."""
    pass


@import_group.command("sheet")
@click.argument("spreadsheet")
@click.option("--user", "user_id", required=True, help="Owner of the imported interviews")
@click.option("--token", "access_token", envvar="APPLYTRACK_GOOGLE_TOKEN", required=True,
              help="Google OAuth access token with spreadsheets.readonly scope")
@click.option("--sheet", "sheet_name", help="Sheet name (defaults to the first sheet)")
def import_sheet(spreadsheet, user_id, access_token, sheet_name):
    """Import a Google Sheet by URL or spreadsheet id."""
    from .importer import get_importer
    from .exceptions import SheetImportError

    spreadsheet_id = _resolve_spreadsheet_id(spreadsheet)

    importer = get_importer()
    try:
        summary = importer.run_import(spreadsheet_id, sheet_name, access_token, user_id)
    except SheetImportError as e:
        console.print(f"[red]Error importing data: {e}[/red]")
        raise click.Abort()
    finally:
        importer.db.close()

    _print_summary(summary)
    if summary.imported:
        console.print(f"[green]Successfully imported {summary.imported} interviews[/green]")
    else:
        console.print("[yellow]No interviews were imported[/yellow]")


@import_group.command("csv")
@click.argument("path", type=click.Path(exists=True))
@click.option("--user", "user_id", required=True, help="Owner of the imported interviews")
@click.option("--sheet", "sheet_name", help="CSV file stem when PATH is a directory")
def import_csv(path, user_id, sheet_name):
    """Import a CSV file (or a directory of CSV files)."""
    from .importer import get_importer
    from .exceptions import SheetImportError
    from .sheets import CsvWorkbook

    importer = get_importer(source=CsvWorkbook(path))
    try:
        summary = importer.run_import(path, sheet_name, None, user_id)
    except SheetImportError as e:
        console.print(f"[red]Error importing data: {e}[/red]")
        raise click.Abort()
    finally:
        importer.db.close()

    _print_summary(summary)
    if summary.imported:
        console.print(f"[green]Successfully imported {summary.imported} interviews[/green]")
    else:
        console.print("[yellow]No interviews were imported[/yellow]")


@import_group.command("preview")
@click.argument("spreadsheet")
@click.option("--token", "access_token", envvar="APPLYTRACK_GOOGLE_TOKEN", required=True,
              help="Google OAuth access token with spreadsheets.readonly scope")
@click.option("--sheet", "sheet_name", help="Sheet name (defaults to the first sheet)")
@click.option("--all", "show_all", is_flag=True, help="Show every mapped row, not just the first few")
def preview_sheet(spreadsheet, access_token, sheet_name, show_all):
    """Preview how a Google Sheet would be imported."""
    from .importer import get_importer
    from .exceptions import SheetImportError

    spreadsheet_id = _resolve_spreadsheet_id(spreadsheet)

    importer = get_importer()
    try:
        preview = importer.preview(spreadsheet_id, sheet_name, access_token)
    except SheetImportError as e:
        console.print(f"[red]Error loading sheet preview: {e}[/red]")
        raise click.Abort()
    finally:
        importer.db.close()

    _print_preview(preview, show_all)


@import_group.command("preview-csv")
@click.argument("path", type=click.Path(exists=True))
@click.option("--sheet", "sheet_name", help="CSV file stem when PATH is a directory")
@click.option("--all", "show_all", is_flag=True, help="Show every mapped row, not just the first few")
def preview_csv(path, sheet_name, show_all):
    """Preview how a CSV file would be imported."""
    from .importer import get_importer
    from .exceptions import SheetImportError
    from .sheets import CsvWorkbook

    importer = get_importer(source=CsvWorkbook(path))
    try:
        preview = importer.preview(path, sheet_name)
    except SheetImportError as e:
        console.print(f"[red]Error loading sheet preview: {e}[/red]")
        raise click.Abort()
    finally:
        importer.db.close()

    _print_preview(preview, show_all)


@main.group()
def interviews():
    """Manage tracked job applications."""
    pass


@interviews.command("list")
@click.option("--user", "user_id", help="Filter by user")
@click.option("--status", type=click.Choice(STATUS_CHOICES),
              help="Filter by status")
@click.option("--limit", type=int, help="Maximum interviews to display")
def list_interviews(user_id, status, limit):
    """List stored interviews."""
    from .config import get_config_manager
    from .db import get_db

    limit = limit or get_config_manager().get('cli', 'default_table_limit')

    try:
        with get_db() as db:
            rows = db.get_interviews(user_id=user_id, status=status)
    except Exception as e:
        console.print(f"[red]Error listing interviews: {e}[/red]")
        raise click.Abort()

    if not rows:
        console.print("[yellow]No interviews found matching criteria[/yellow]")
        return

    display = rows[:limit]
    table = _records_table(f"Interviews ({len(display)} of {len(rows)})", display)
    console.print(table)

    if len(rows) > limit:
        console.print(f"[dim]Showing {limit} of {len(rows)} total interviews. Use --limit to see more.[/dim]")


# option name -> interviews column, shared by add and update
INTERVIEW_FIELD_OPTIONS = (
    ("role", "role"),
    ("date_applied", "date_applied"),
    ("status", "status"),
    ("notes", "notes"),
    ("location", "location"),
    ("next_interview", "next_interview_date"),
    ("salary", "salary"),
    ("platform", "platform"),
    ("source", "source"),
)


def _interview_options(func):
    """Attach the editable interview fields as options."""
    options = [
        click.option("--role", help="Job title"),
        click.option("--date", "date_applied", help="Date applied (any supported format)"),
        click.option("--status", type=click.Choice(STATUS_CHOICES), help="Application status"),
        click.option("--notes", help="Free-text notes"),
        click.option("--location", help="Job location"),
        click.option("--next-interview", "next_interview", help="Date of the next interview"),
        click.option("--salary", help="Salary or range"),
        click.option("--platform", help="Where the job was found"),
        click.option("--source", type=click.Choice(SOURCE_CHOICES), help="How the interview was added"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _interview_fields(**options) -> dict:
    from .normalize import normalize_date

    fields = {column: options[name] for name, column in INTERVIEW_FIELD_OPTIONS if options.get(name) is not None}
    for column in ("date_applied", "next_interview_date"):
        if column in fields:
            fields[column] = normalize_date(fields[column])
    return fields


def _print_interview(row: dict):
    table = Table(title=f"Interview {row['id']}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for key in ("company", "role", "date_applied", "status", "location", "next_interview_date",
                "salary", "platform", "source", "notes", "user_id"):
        table.add_row(key.replace("_", " ").title(), str(row[key] or ""))
    console.print(table)


@interviews.command("show")
@click.argument("interview_id", type=int)
def show_interview(interview_id):
    """Show every field of one interview."""
    from .db import get_db

    with get_db() as db:
        row = db.get_interview(interview_id)

    if not row:
        console.print(f"[red]Interview {interview_id} not found[/red]")
        raise click.Abort()
    _print_interview(row)


@interviews.command("add")
@click.argument("company")
@click.option("--user", "user_id", required=True, help="Owner of the interview")
@_interview_options
def add_interview(company, user_id, **options):
    """Add an interview by hand."""
    from .db import get_db

    fields = _interview_fields(**options)
    fields.setdefault("status", "Applied")
    fields.setdefault("source", "manual")

    try:
        with get_db() as db:
            interview_id = db.add_interview(user_id, company, **fields)
    except ValueError as e:
        console.print(f"[red]Error adding interview: {e}[/red]")
        raise click.Abort()

    console.print(f"[green]✓ Added interview {interview_id} for {company}[/green]")


@interviews.command("update")
@click.argument("interview_id", type=int)
@click.option("--company", help="Company name")
@_interview_options
def update_interview(interview_id, company, **options):
    """Change fields of an existing interview."""
    from .db import get_db

    fields = _interview_fields(**options)
    if company is not None:
        fields["company"] = company
    if not fields:
        console.print("[yellow]Nothing to update. Pass at least one field option.[/yellow]")
        raise click.Abort()

    try:
        with get_db() as db:
            updated = db.update_interview(interview_id, **fields)
            row = db.get_interview(interview_id)
    except ValueError as e:
        console.print(f"[red]Error updating interview: {e}[/red]")
        raise click.Abort()

    if not updated:
        console.print(f"[red]Interview {interview_id} not found[/red]")
        raise click.Abort()

    console.print(f"[green]✓ Updated interview {interview_id}[/green]")
    _print_interview(row)


@interviews.command("delete")
@click.argument("interview_id", type=int)
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def delete_interview(interview_id, force):
    """Delete one interview."""
    if not force and not click.confirm(f"Delete interview {interview_id}?"):
        return

    from .db import get_db

    with get_db() as db:
        deleted = db.delete_interview(interview_id)

    if not deleted:
        console.print(f"[red]Interview {interview_id} not found[/red]")
        raise click.Abort()
    console.print(f"[green]✓ Deleted interview {interview_id}[/green]")


@interviews.command("clean")
@click.option("--user", "user_id", help="Only remove this user's interviews")
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def clean_interviews(user_id, force):
    """Remove interviews from storage."""
    if not force and not click.confirm("Are you sure you want to delete interview data?"):
        return

    from .db import get_db

    try:
        with get_db() as db:
            removed = db.clear_interviews(user_id=user_id)
    except Exception as e:
        console.print(f"[red]Error cleaning interview data: {e}[/red]")
        raise click.Abort()

    console.print(f"[green]Removed {removed} interviews[/green]")


@main.group()
def resume():
    """Parse, score and enhance resumes."""
    pass


def _read_resume(resume_path: str) -> str:
    from .resumes import ResumeTextExtractor

    try:
        return ResumeTextExtractor().extract_text(resume_path)
    except (ValueError, ImportError, OSError) as e:
        console.print(f"[red]Error reading resume: {e}[/red]")
        raise click.Abort()


@resume.command("parse")
@click.argument("resume_path", type=click.Path(exists=True))
def parse_resume(resume_path):
    """Show skills, experience and education found in a resume."""
    from .scoring import parse_resume_text

    parsed = parse_resume_text(_read_resume(resume_path))

    console.print(f"[bold cyan]{parsed.summary}[/bold cyan]")
    console.print(f"\n[bold]Skills ({len(parsed.skills)}):[/bold] {', '.join(parsed.skills) or 'none'}")

    for label, items in (("Experience", parsed.experience), ("Education", parsed.education)):
        console.print(f"\n[bold]{label} ({len(items)}):[/bold]")
        for item in items:
            console.print(f"  • {item.strip()}")


@resume.command("score")
@click.argument("resume_path", type=click.Path(exists=True))
@click.option("--job", "job", required=True, help="Job description text or a .txt/.html file")
def score_resume(resume_path, job):
    """Score a resume against a job description."""
    from .resumes import load_job_description
    from .scoring import score_breakdown

    job_description = load_job_description(job)
    breakdown = score_breakdown(_read_resume(resume_path), job_description)

    table = Table(title="Relevance Score")
    table.add_column("Component", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Matching skills", f"{len(breakdown.matching_skills)} of {breakdown.total_skills}")
    table.add_row("Skill score", f"{breakdown.skill_score:.1f}")
    table.add_row("Keyword hits", str(breakdown.keyword_hits))
    table.add_row("Keyword score", f"{breakdown.keyword_score:.1f}")
    table.add_row("Bonus", str(breakdown.bonus))
    table.add_row("Score", str(breakdown.score), style="bold")
    console.print(table)

    if breakdown.matching_skills:
        console.print(f"[dim]Matched: {', '.join(breakdown.matching_skills)}[/dim]")


@resume.command("enhance")
@click.argument("resume_path", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), help="Write the enhanced resume to a file")
def enhance_resume(resume_path, output):
    """Rewrite a resume with the configured Ollama model."""
    from .resumes import get_resume_enhancer

    try:
        enhanced = get_resume_enhancer().enhance(_read_resume(resume_path))
    except (ValueError, RuntimeError) as e:
        console.print(f"[red]Error enhancing resume: {e}[/red]")
        raise click.Abort()

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(enhanced)
        console.print(f"[green]✓ Enhanced resume written to {output}[/green]")
    else:
        console.print(enhanced)


@main.group()
def config():
    """Manage ApplyTrack configuration."""
    pass


@config.command("show")
@click.option("--section", help="Show only one section")
def show_config(section):
    """Show current configuration."""
    from .config import get_config_manager

    get_config_manager().display_config(section)


@config.command("set")
@click.argument("section")
@click.argument("key")
@click.argument("value")
def set_config(section, key, value):
    """Set a configuration value in applytrack.config.json."""
    from .config import get_config_manager

    config_manager = get_config_manager()

    # Convert value to the type of the current setting
    current = config_manager.get(section, key)
    try:
        if isinstance(current, bool):
            converted = value.lower() in ('true', '1', 'yes', 'on')
        elif isinstance(current, int):
            converted = int(value)
        elif isinstance(current, float):
            converted = float(value)
        else:
            converted = value
    except ValueError:
        console.print(f"[red]Invalid value for {section}.{key}: {value}[/red]")
        raise click.Abort()

    if config_manager.set(section, key, converted):
        console.print(f"[green]✓ Set {section}.{key} = {converted}[/green]")
    else:
        raise click.Abort()


@config.command("env")
@click.argument("key")
@click.argument("value")
def set_env_var(key, value):
    """Set an environment variable in .env."""
    from .config import get_config_manager

    if get_config_manager().set_env_var(key, value):
        console.print(f"[green]✓ Set {key} in .env[/green]")
    else:
        raise click.Abort()


@config.command("unset")
@click.argument("key")
def unset_env_var(key):
    """Remove an environment variable from .env."""
    from .config import get_config_manager

    if get_config_manager().unset_env_var(key):
        console.print(f"[green]✓ Removed {key} from .env[/green]")
    else:
        raise click.Abort()


@config.command("validate")
def validate_config():
    """Validate current configuration."""
    from .config import get_config_manager

    issues = get_config_manager().validate_config()
    if not issues:
        console.print("[green]✓ Configuration is valid[/green]")
        return

    console.print(f"[red]Found {len(issues)} configuration issue(s):[/red]")
    for issue in issues:
        console.print(f"  [red]• {issue}[/red]")
    raise click.Abort()


@config.command("reset")
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt")
def reset_config(confirm):
    """Reset configuration to defaults."""
    from .config import get_config_manager

    if not confirm and not click.confirm("Reset all configuration to defaults?"):
        return

    if get_config_manager().reset_to_defaults():
        console.print("[green]✓ Configuration reset to defaults[/green]")
    else:
        raise click.Abort()


@config.command("template")
@click.option("--output", "-o", help="Template file path")
def export_template(output):
    """Write a .env template with every supported variable."""
    from .config import get_config_manager

    if not get_config_manager().export_env_template(output):
        raise click.Abort()


@main.command("status")
def status():
    """Show system status and statistics."""
    from .config import get_config_manager
    from .db import get_db

    console.print("[bold green]ApplyTrack System Status[/bold green]")

    table = Table(title="System Overview")
    table.add_column("Component", style="cyan", no_wrap=True)
    table.add_column("Status", style="magenta")
    table.add_column("Details", style="green")

    info = get_config_manager().get_connection_info()

    try:
        with get_db() as db:
            total = db.get_interview_count()
            counts = db.get_status_counts()
        table.add_row("Database", "Connected", f"SQLite at {info['database']['path']}")
        table.add_row("Interviews", str(total), ", ".join(f"{k}: {v}" for k, v in counts.items()))
    except Exception as e:
        table.add_row("Database", "Error", f"Connection failed: {str(e)[:50]}")
        table.add_row("Interviews", "Unknown", "Database error")

    table.add_row("Google Sheets", "Configured", f"{info['sheets']['url']} ({info['sheets']['range']})")
    table.add_row("Ollama", "Configured", f"{info['ollama']['url']} model {info['ollama']['model']}")

    console.print(table)


@main.command("serve")
@click.option("--host", help="Host to bind (defaults to webapp.host)")
@click.option("--port", type=int, help="Port to bind (defaults to webapp.port)")
@click.option("--debug", is_flag=True, help="Run Flask in debug mode")
def serve(host, port, debug):
    """Start the JSON web API."""
    from .webapp import run

    run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
