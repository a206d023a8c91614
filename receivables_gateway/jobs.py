"""
Daily batch entry point, meant to be driven by cron.

    receivables-jobs sweep    # PENDING -> OVERDUE (originally 02:00 America/Sao_Paulo)
    receivables-jobs accrue   # overdue amounts (originally 02:30 America/Sao_Paulo)
    receivables-jobs daily    # both, sweep first
"""

import argparse
import logging
import sys
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

from receivables_gateway.config import settings
from receivables_gateway.infrastructure.observability.logging import setup_logging
from receivables_gateway.services.accrual import AccrualEngine

SessionFactory = Callable[[], Session]


def run_status_sweep(db: Session) -> int:
    return AccrualEngine(db).status_sweep()


def run_accrual(db: Session) -> int:
    return AccrualEngine(db).run()


# Order matters: accrual only sees installments the sweep marked OVERDUE
JOBS = {
    "sweep": [("sweep", run_status_sweep)],
    "accrue": [("accrue", run_accrual)],
    "daily": [("sweep", run_status_sweep), ("accrue", run_accrual)],
}


def run_jobs(name: str, session_factory: SessionFactory) -> Dict[str, int]:
    """Run the named job set, each step in its own session"""
    results = {}
    for step, job in JOBS[name]:
        db = session_factory()
        try:
            results[step] = job(db)
        finally:
            db.close()
    return results


def main(argv: List[str] | None = None, session_factory: SessionFactory | None = None) -> int:
    parser = argparse.ArgumentParser(prog="receivables-jobs", description="Receivables daily batch jobs")
    parser.add_argument("job", choices=sorted(JOBS), help="Job to run")
    args = parser.parse_args(argv)

    setup_logging(settings.log_level)

    if session_factory is None:
        from receivables_gateway.infrastructure.database.session import SessionLocal

        session_factory = SessionLocal

    try:
        results = run_jobs(args.job, session_factory)
    except Exception as e:
        logging.error(f"Job {args.job} failed: {e}", exc_info=True)
        return 1

    logging.info("Job finished", extra={"job": args.job, "results": results})
    return 0


if __name__ == "__main__":
    sys.exit(main())
