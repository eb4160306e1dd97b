import uuid
from typing import List, Optional

from chatthreads.db.storage import RedisStore, get_store
from chatthreads.diagnostics.checks import StoreChecks
from chatthreads.diagnostics.schemas import DiagnosticReport, CheckResult, CheckStatus


class DiagnosticService:
    """
    Runs store diagnostic checks.
    """

    def __init__(self, store: Optional[RedisStore] = None):
        self.store = store or get_store()

    def run_diagnostics(self, user_id: Optional[str] = None) -> DiagnosticReport:
        """Run all checks and return a report. Integrity checks need a user."""
        store_checks = StoreChecks(self.store)
        checks: List[CheckResult] = []

        # 1. Store checks
        connection = store_checks.check_connection()
        checks.append(connection)
        checks.append(store_checks.check_store_stats())

        # 2. Integrity checks
        if user_id and connection.status == CheckStatus.PASS:
            checks.append(store_checks.check_children_counts(user_id))

        # Determine overall status
        failed = any(c.status == CheckStatus.FAIL for c in checks)
        warning = any(c.status == CheckStatus.WARNING for c in checks)

        if failed:
            overall = CheckStatus.FAIL
        elif warning:
            overall = CheckStatus.WARNING
        else:
            overall = CheckStatus.PASS

        return DiagnosticReport(
            run_id=str(uuid.uuid4()),
            overall_status=overall,
            checks=checks
        )


# Global instance
diagnostic_service = DiagnosticService()
