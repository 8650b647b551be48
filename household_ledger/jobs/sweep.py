"""Periodic erasure of accounts whose deletion grace period has ended."""

import click

from household_ledger.config import settings
from household_ledger.core.logging import configure_logging, get_logger
from household_ledger.database import SessionLocal
from household_ledger.services.lifecycle_service import LifecycleService

logger = get_logger(__name__)


@click.command()
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=settings.SWEEP_BATCH_SIZE,
    show_default=True,
    help="Maximum number of accounts to erase in this run",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="List expired accounts without erasing them",
)
def main(batch_size: int, dry_run: bool) -> None:
    """ledger-sweep - erase accounts pending deletion for 30 days or more."""
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    db = SessionLocal()
    try:
        report = LifecycleService(db).sweep_expired(batch_size=batch_size, dry_run=dry_run)
    finally:
        db.close()

    if dry_run:
        click.echo(f"{report.candidates} expired account(s), nothing erased (dry run)")
    else:
        click.echo(
            f"{report.candidates} expired, erased {len(report.erased)}, "
            f"skipped {len(report.skipped)}, failed {len(report.errors)} "
            f"({report.duration_ms} ms)"
        )
    for error in report.errors:
        click.echo(f"  {error['account_id']}: {error['error']}", err=True)

    if report.errors:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
