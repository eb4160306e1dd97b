import sys
import os
import argparse

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chatthreads.config import STORAGE
from chatthreads.diagnostics import diagnostic_service, CheckStatus

ICONS = {
    CheckStatus.PASS: "✅",
    CheckStatus.WARNING: "⚠️ ",
    CheckStatus.FAIL: "❌",
    CheckStatus.SKIP: "⏭️ ",
}


def check_store(user_id: str = None) -> int:
    target = STORAGE.redis_url or f"{STORAGE.redis_host}:{STORAGE.redis_port}"
    print(f"🔎 Checking chat store at {target} (keys {STORAGE.key_version})")

    report = diagnostic_service.run_diagnostics(user_id=user_id)

    for check in report.checks:
        print(f"   {ICONS[check.status]} {check.name}: {check.message}")
        for chat_id, counts in check.details.get("drift", {}).items():
            print(f"      - {chat_id}: stored={counts['stored']} indexed={counts['indexed']}")
        for rec in check.recommendations:
            print(f"      → {rec}")

    print(f"Overall: {report.overall_status.value}")
    return 1 if report.overall_status == CheckStatus.FAIL else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check chat store health")
    parser.add_argument("--user", help="Also check childrenCount drift for this user's chats")
    args = parser.parse_args()
    sys.exit(check_store(args.user))
