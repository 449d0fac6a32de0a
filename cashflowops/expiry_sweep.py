"""
CLI entrypoint for the subscription expiry sweep. Run from cron, e.g.:

  python -m cashflowops.expiry_sweep

Or hourly: 0 * * * * cd /path/to/cashflowops && .venv/bin/python -m cashflowops.expiry_sweep
"""

import logging
import sys

from cashflowops.core.config import get_settings
from cashflowops.core.database import SessionLocal
from cashflowops.services.expiry_sweep import run_expiry_sweep
from cashflowops.stores.sql import SqlAccountStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run the sweep: downgrade accounts whose subscription has expired."""
    settings = get_settings()
    db = SessionLocal()
    try:
        downgraded = run_expiry_sweep(SqlAccountStore(db), settings)
        logger.info("Expiry sweep completed: accounts_downgraded=%s", downgraded)
        return 0
    except Exception as e:
        logger.exception("Expiry sweep failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
