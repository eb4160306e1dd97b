from pydantic import BaseModel, Field
from typing import List, Dict, Any
from enum import Enum
from datetime import datetime

from chatthreads.chat.schemas import utcnow


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    SKIP = "skip"


class CheckResult(BaseModel):
    """Result of a single diagnostic check (e.g., 'Redis Connection')."""
    name: str
    category: str  # 'store', 'integrity'
    status: CheckStatus
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class DiagnosticReport(BaseModel):
    """Complete store health report."""
    run_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    overall_status: CheckStatus
    checks: List[CheckResult]
