from .service import diagnostic_service, DiagnosticService
from .schemas import DiagnosticReport, CheckResult, CheckStatus

__all__ = ["diagnostic_service", "DiagnosticService", "DiagnosticReport", "CheckResult", "CheckStatus"]
