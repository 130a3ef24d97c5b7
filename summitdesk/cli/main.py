#!/usr/bin/env python3
"""
Summit Desk Terminal CLI
Admin command-line interface: the same review operations the admin API
exposes, plus database setup and the API server.
"""

import logging
from dataclasses import asdict

import click
import psycopg2
from pydantic import ValidationError

from summitdesk.config import config
from summitdesk.db.schema import init_schema
from summitdesk.engine import workflow, submissions, analytics, dashboard, library
from summitdesk.engine.kinds import ALL_KINDS, KINDS, get_kind
from summitdesk.logging_config import configure_logging, log_call
from summitdesk.validation import (
    PAYMENT_METHODS, PARTNERSHIP_TIERS, status_update_model, summarize_validation_errors,
)
from summitdesk.api.auth import hash_password

KIND_CHOICE = click.Choice(sorted(KINDS), case_sensitive=False)

# Column shown as the one-line summary of a record in listings
_HEADLINE = {
    'registration': 'full_name',
    'question': 'question',
    'partnership': 'organization_name',
    'exhibitor': 'idea_title',
    'feedback': 'full_name',
}


def _fail(result):
    click.echo(f"Error: {result.error}", err=True)


def _show_counts(title: str, counts: dict):
    click.echo(f"\n{title}")
    click.echo("-" * 40)
    for name, count in counts.items():
        click.echo(f"  {name:<24} {count:>6}")


@click.group()
def cli():
    """Summit Desk - Submission review for the summit team"""
    configure_logging()


# =============================================================================
# SETUP
# =============================================================================

@cli.command('init-db')
@log_call
def init_db():
    """Create tables and indexes (safe to re-run)"""
    try:
        init_schema()
    except psycopg2.Error as e:
        logging.getLogger("summitdesk").error(f"init-db failed: {e}", exc_info=True)
        click.echo(f"Error: could not initialise database: {e}", err=True)
        return
    click.echo("✓ Database schema ready")


@cli.command('serve')
@click.option('--host', default=None, help=f'Bind address (default: {config.API_HOST})')
@click.option('--port', type=int, default=None, help=f'Port (default: {config.API_PORT})')
@click.option('--reload', is_flag=True, help='Reload on code changes (development)')
def serve(host, port, reload):
    """Run the HTTP API"""
    import uvicorn

    uvicorn.run(
        'summitdesk.api.app:app',
        host=host or config.API_HOST,
        port=port or config.API_PORT,
        reload=reload,
    )


@cli.command('hash-password')
def hash_password_cmd():
    """Print a bcrypt hash for ADMIN_PASSWORD_HASH"""
    password = click.prompt("Admin password", hide_input=True, confirmation_prompt=True)
    click.echo(hash_password(password))


# =============================================================================
# REVIEW COMMANDS
# =============================================================================

@cli.command('list')
@click.argument('kind', type=KIND_CHOICE)
@click.option('--status', help='Filter by status')
@click.option('--where', 'where', multiple=True, metavar='COLUMN=VALUE',
              help='Equality filter on a categorical column (repeatable)')
@log_call
def list_cmd(kind, status, where):
    """List submissions of one kind, newest first"""
    entity = get_kind(kind)

    filters = {}
    for item in where:
        column, sep, value = item.partition('=')
        if not sep:
            click.echo(f"Error: --where expects COLUMN=VALUE, got {item!r}", err=True)
            return
        filters[column.strip()] = value.strip()

    result = workflow.list_records(entity, status=status, filters=filters)
    if not result.success:
        _fail(result)
        return

    records = result.data
    if not records:
        click.echo(f"No {entity.plural} found.")
        return

    headline = _HEADLINE[entity.name]
    click.echo(f"\nFound {len(records)} {entity.plural}:\n")
    click.echo(f"{'ID':<38} {'Created':<17} {'Status':<10} {headline.replace('_', ' ').title()}")
    click.echo("-" * 100)
    for r in records:
        created = r.created_at.strftime('%Y-%m-%d %H:%M') if r.created_at else ''
        status_value = getattr(r, entity.status_column)
        click.echo(f"{r.id:<38} {created:<17} {status_value:<10} {str(getattr(r, headline) or '')[:40]}")


@cli.command('show')
@click.argument('kind', type=KIND_CHOICE)
@click.argument('record_id')
@log_call
def show(kind, record_id):
    """Show every field of one submission"""
    entity = get_kind(kind)
    result = workflow.get_record(entity, record_id)
    if not result.success:
        logging.getLogger("summitdesk").warning(f"show | {entity.name} {record_id} not shown: {result.error}")
        _fail(result)
        return

    record = result.data
    fields = asdict(record)
    if entity.name == 'exhibitor':
        fields['sdg_alignment'] = ', '.join(record.sdg_list()) or None

    click.echo(f"\n{'='*80}")
    click.echo(f"{entity.label.upper()} {record.id}")
    click.echo(f"{'='*80}")
    for name, value in fields.items():
        if name == 'id':
            continue
        shown = '(not set)' if value is None or value == '' else value
        click.echo(f"{name.replace('_', ' ').title() + ':':<26} {shown}")
    click.echo()


@cli.command('status')
@click.argument('kind', type=KIND_CHOICE)
@click.argument('record_id')
@click.argument('new_status')
@click.option('--by', 'reviewed_by', help='Reviewer name (answerer for questions)')
@click.option('--method', 'payment_method', type=click.Choice(PAYMENT_METHODS), help='Registration payment method')
@click.option('--reference', 'payment_reference', help='Registration payment reference')
@click.option('--tier', 'partnership_tier', type=click.Choice(PARTNERSHIP_TIERS), help='Partnership tier')
@click.option('--value', 'partnership_value', type=int, help='Partnership value')
@click.option('--follow-up', 'follow_up_date', help='Partnership follow-up date (YYYY-MM-DD)')
@log_call
def status_cmd(kind, record_id, new_status, reviewed_by, **side_fields):
    """Set the status of a submission"""
    entity = get_kind(kind)
    payload = {'status': new_status, 'reviewed_by': reviewed_by}
    payload.update({k: v for k, v in side_fields.items() if v is not None})

    try:
        update = status_update_model(entity.name).model_validate(payload)
    except ValidationError as e:
        click.echo(f"Error: {summarize_validation_errors(e.errors())}", err=True)
        return

    ignored = set(payload) - set(type(update).model_fields)
    if ignored:
        click.echo(f"  (ignoring options not used by {entity.plural}: {', '.join(sorted(ignored))})")

    result = workflow.transition(
        entity, record_id, update.status,
        reviewed_by=update.reviewer(),
        side_fields=update.side_fields(),
    )
    if not result.success:
        _fail(result)
        return
    click.echo(f"✓ {result.message}: {result.data.id} -> {new_status}")


@cli.command('upvote')
@click.argument('question_id')
@log_call
def upvote(question_id):
    """Upvote a question (also marks it reviewed)"""
    result = submissions.upvote_question(question_id)
    if not result.success:
        _fail(result)
        return
    click.echo(f"✓ {result.message} ({result.data.upvotes} votes)")


@cli.command('delete')
@click.argument('kind', type=KIND_CHOICE)
@click.argument('record_id')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@log_call
def delete(kind, record_id, yes):
    """Permanently delete a submission"""
    entity = get_kind(kind)
    if not yes and not click.confirm(f"Permanently delete {entity.label} {record_id}?"):
        click.echo("Cancelled.")
        return

    result = workflow.delete_record(entity, record_id)
    if not result.success:
        _fail(result)
        return
    click.echo(f"✓ {result.message}")


@cli.command('lookup')
@click.argument('email')
@log_call
def lookup(email):
    """Find the latest registration for an email address"""
    result = submissions.find_registration_by_email(email)
    if not result.success:
        _fail(result)
        return
    if result.data is None:
        click.echo(f"No registration for {email}.")
        return
    r = result.data
    click.echo(f"{r.id}  {r.full_name}  payment={r.payment_status}  registered={r.created_at}")


# =============================================================================
# REPORTS
# =============================================================================

@cli.command('stats')
@click.argument('kind', type=KIND_CHOICE, required=False)
@log_call
def stats(kind):
    """Status counts for one kind, or the whole dashboard"""
    if kind:
        entity = get_kind(kind)
        result = workflow.record_stats(entity)
        if not result.success:
            _fail(result)
            return
        _show_counts(entity.plural.upper(), result.data)
        click.echo()
        return

    result = dashboard.get_dashboard_stats()
    if not result.success:
        _fail(result)
        return
    for entity in ALL_KINDS:
        _show_counts(entity.plural.upper(), result.data[entity.plural])
    _show_counts("ANALYTICS", result.data['analytics'])
    click.echo()


@cli.command('analytics')
@click.option('--days', type=int, default=None, help='Show daily counts for the last N days')
@log_call
def analytics_cmd(days):
    """Analytics event counts"""
    if days is None:
        result = analytics.event_type_counts()
        if not result.success:
            _fail(result)
            return
        _show_counts("ANALYTICS EVENTS", result.data)
        click.echo()
        return

    result = analytics.daily_counts(days)
    if not result.success:
        _fail(result)
        return
    if not result.data:
        click.echo(f"No analytics events in the last {days} days.")
        return
    click.echo(f"\n{'Date':<12} {'Event':<24} {'Count':>6}")
    click.echo("-" * 44)
    for row in result.data:
        click.echo(f"{str(row['date']):<12} {row['event_type']:<24} {row['count']:>6}")
    click.echo()


@cli.command('documents')
@click.option('--category', help='Only one library category')
@log_call
def documents(category):
    """List the document library, newest first"""
    result = library.list_documents(category)
    if not result.success:
        _fail(result)
        return
    if not result.data:
        click.echo("No documents found.")
        return
    for doc in result.data:
        click.echo(f"{doc.id:<20} {doc.category:<20} {doc.uploaded_at:%Y-%m-%d}  {doc.original_name} ({doc.size} bytes)")


@cli.command('delete-document')
@click.argument('category')
@click.argument('doc_id')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@log_call
def delete_document(category, doc_id, yes):
    """Remove a file from the document library"""
    if not yes and not click.confirm(f"Delete {doc_id} from {category}?"):
        click.echo("Cancelled.")
        return
    result = library.delete_document(category, doc_id)
    if not result.success:
        _fail(result)
        return
    click.echo(f"✓ {result.message}")


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    cli()
