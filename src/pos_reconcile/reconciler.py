"""Daily reconciler: fetch a branch's trading day, build and post its journal.

Usage:
    # All branches, today's trading day
    python -m pos_reconcile.reconciler

    # One branch
    python -m pos_reconcile.reconciler PA1

    # A past day, printed instead of posted
    python -m pos_reconcile.reconciler PA1 --date 2025-11-23 --dry-run
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import structlog

from pos_reconcile.clients.optomate import OptomateClient
from pos_reconcile.clients.xero import XeroClient
from pos_reconcile.config.reference import Branch, ReferenceTables
from pos_reconcile.core.journal import ManualJournal, assemble_manual_journal
from pos_reconcile.trading_day import trading_day_window

logger = structlog.get_logger(__name__)


@dataclass
class BranchResult:
    """Outcome of reconciling one branch for one trading day."""

    branch_code: str
    branch_name: str
    success: bool
    journal: ManualJournal | None = None
    response: dict[str, Any] | None = None
    posted: bool = False
    warnings: list[str] = field(default_factory=list)
    error: str | None = None


class DailyReconciler:
    """Runs the fetch, build and post cycle for branches on a trading day."""

    def __init__(
        self,
        optomate: OptomateClient,
        reference: ReferenceTables,
        timezone: str,
        xero: XeroClient | None = None,
        fetch_concurrency: int = 2,
        dry_run: bool = False,
    ):
        if xero is None and not dry_run:
            raise ValueError("A Xero client is required unless dry_run is set")
        self._optomate = optomate
        self._xero = xero
        self._reference = reference
        self._timezone = timezone
        self._dry_run = dry_run
        # Shared across branches: caps in-flight Optomate calls
        self._fetch_limit = asyncio.Semaphore(fetch_concurrency)

    async def _limited(self, coro: Any) -> Any:
        async with self._fetch_limit:
            return await coro

    def resolve_branches(self, branch_codes: list[str] | None = None) -> list[Branch]:
        """Return the branches to process, in reference order for a full run."""
        if not branch_codes:
            return list(self._reference.branches)

        branches: list[Branch] = []
        for code in branch_codes:
            branch = self._reference.branch(code.upper())
            if branch is None:
                valid = ", ".join(b.code for b in self._reference.branches)
                raise ValueError(f"Unknown branch code {code!r}. Valid codes: {valid}")
            branches.append(branch)
        return branches

    async def process_branch(self, branch_code: str, trading_date: date) -> BranchResult | None:
        """Reconcile one branch; returns None when there is nothing to post."""
        branch_name = self._reference.branch_name(branch_code)
        log = logger.bind(branch=branch_code, trading_date=trading_date.isoformat())
        window = trading_day_window(trading_date, self._timezone)

        invoices, receipts = await asyncio.gather(
            self._limited(self._optomate.fetch_invoices(branch_code, window)),
            self._limited(self._optomate.fetch_receipts(branch_code, window)),
        )
        log.info("records_fetched", invoices=len(invoices), receipts=len(receipts))

        assembly = assemble_manual_journal(
            trading_date, branch_name, invoices, receipts, self._reference
        )
        if assembly.journal is None:
            log.info("nothing_to_post", warnings=len(assembly.warnings))
            return None

        result = BranchResult(
            branch_code=branch_code,
            branch_name=branch_name,
            success=True,
            journal=assembly.journal,
            warnings=assembly.warnings,
        )
        if self._dry_run:
            log.info("journal_built", line_count=len(assembly.journal.lines), dry_run=True)
            return result

        assert self._xero is not None
        result.response = await self._xero.create_manual_journal(assembly.journal)
        result.posted = True
        log.info("journal_posted", branch_name=branch_name, line_count=len(assembly.journal.lines))
        return result

    async def run(
        self, trading_date: date, branch_codes: list[str] | None = None
    ) -> list[BranchResult]:
        """Process branches one after another; a failing branch does not stop the run."""
        results: list[BranchResult] = []
        for branch in self.resolve_branches(branch_codes):
            try:
                result = await self.process_branch(branch.code, trading_date)
            except Exception as e:
                logger.exception(
                    "branch_failed",
                    branch=branch.code,
                    branch_name=branch.name,
                    error=str(e),
                )
                results.append(
                    BranchResult(
                        branch_code=branch.code,
                        branch_name=branch.name,
                        success=False,
                        error=str(e),
                    )
                )
                continue
            if result is not None:
                results.append(result)

        succeeded = sum(1 for r in results if r.success)
        failed = len(results) - succeeded
        logger.info(
            "reconciliation_complete",
            trading_date=trading_date.isoformat(),
            succeeded=succeeded,
            failed=failed,
        )
        return results


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    import argparse

    from pydantic import ValidationError

    from pos_reconcile.config import configure_logging, get_settings, load_reference_tables
    from pos_reconcile.trading_day import today_in

    parser = argparse.ArgumentParser(
        description="Post daily POS trading as Xero manual journals",
    )
    parser.add_argument(
        "branch",
        nargs="?",
        help="Branch code to process (default: all branches)",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Trading date YYYY-MM-DD (default: today in the trading time zone)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print journals as JSON instead of posting them",
    )
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error("invalid_configuration", error=str(e))
        return 1

    configure_logging(level=settings.log_level, format=settings.log_format)

    trading_date = args.date or today_in(settings.trading_timezone)
    logger.info("starting_reconciliation", trading_date=trading_date.isoformat(), branch=args.branch)

    try:
        reference = load_reference_tables(settings.reference_tables_path)
        async with OptomateClient() as optomate:
            xero = None if args.dry_run else XeroClient()
            try:
                reconciler = DailyReconciler(
                    optomate,
                    reference,
                    timezone=settings.trading_timezone,
                    xero=xero,
                    fetch_concurrency=settings.fetch_concurrency,
                    dry_run=args.dry_run,
                )
                results = await reconciler.run(
                    trading_date, [args.branch] if args.branch else None
                )
            finally:
                if xero is not None:
                    await xero.close()
    except Exception as e:
        logger.exception("reconciliation_error", error=str(e))
        return 1

    if args.dry_run:
        for result in results:
            if result.journal is not None:
                print(json.dumps(result.journal.to_payload(), indent=2))

    return 0 if all(r.success for r in results) else 1


def cli() -> None:
    """Console script wrapper around main()."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
