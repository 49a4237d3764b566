import logging

from motoverse.db.gateway import RemoteGateway
from motoverse.services.session import SessionContext

logger = logging.getLogger(__name__)


def _outcome(error):
    return "Success" if error is None else f"FAILED ({error})"


def run_diagnostics(gateway: RemoteGateway, session: SessionContext) -> str:
    """Check auth, table read/write and storage reachability; returns a printable report."""
    current = session.current
    report = "Diagnostics Report:\n"
    report += f"1. Auth: {f'Logged In ({current.email})' if current else 'NOT Logged In'}\n"
    report += f"2. DB Read: {_outcome(gateway.count_products())}\n"
    if current:
        report += f"3. DB Write: {_outcome(gateway.probe_write())}\n"
    else:
        report += "3. DB Write: Skipped (Not Logged In)\n"
    report += f"4. Storage: {_outcome(gateway.list_buckets())}\n"

    logger.info(report)
    return report
