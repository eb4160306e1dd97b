from typing import Dict

from chatthreads.chat.indexes import ChatIndexes
from chatthreads.chat.storage import ChatRepository
from chatthreads.core.exceptions import StoreException
from chatthreads.db.storage import RedisStore
from chatthreads.diagnostics.schemas import CheckResult, CheckStatus
from chatthreads.utils.logger import setup_logger

logger = setup_logger(__name__)


class StoreChecks:
    def __init__(self, store: RedisStore):
        self.store = store
        self.repository = ChatRepository(store)
        self.indexes = ChatIndexes(store)

    def check_connection(self) -> CheckResult:
        """Check that Redis answers PING."""
        if self.store.ping():
            return CheckResult(
                name="Redis Connection",
                category="store",
                status=CheckStatus.PASS,
                message="Redis responded to PING"
            )

        return CheckResult(
            name="Redis Connection",
            category="store",
            status=CheckStatus.FAIL,
            message="Redis did not respond",
            recommendations=[
                "Check that the Redis server is running",
                "Verify CHATTHREADS_REDIS_URL or host/port settings"
            ]
        )

    def check_store_stats(self) -> CheckResult:
        stats = self.store.get_store_stats()
        if not stats.get("available"):
            return CheckResult(
                name="Redis Statistics",
                category="store",
                status=CheckStatus.SKIP,
                message="Statistics unavailable",
                details=stats
            )

        return CheckResult(
            name="Redis Statistics",
            category="store",
            status=CheckStatus.PASS,
            message=f"{stats['total_keys']} keys, {stats['used_memory_human']} used",
            details=stats
        )

    def check_children_counts(self, user_id: str) -> CheckResult:
        """
        Compare each chat's childrenCount with its children index size.

        Reports drift only; counters are not rewritten.
        """
        try:
            chats = self.repository.get_many(self.indexes.all_keys(user_id))
            drift: Dict[str, Dict[str, int]] = {}
            for chat in chats:
                indexed = self.indexes.children_cardinality(chat.id)
                if indexed != chat.children_count:
                    drift[chat.id] = {"stored": chat.children_count, "indexed": indexed}
        except StoreException as e:
            logger.error(f"Children count check failed for user {user_id}: {e}")
            return CheckResult(
                name="Children Counts",
                category="integrity",
                status=CheckStatus.FAIL,
                message=f"Could not read chats: {e}"
            )

        if drift:
            return CheckResult(
                name="Children Counts",
                category="integrity",
                status=CheckStatus.WARNING,
                message=f"{len(drift)} of {len(chats)} chats have a drifting childrenCount",
                details={"drift": drift},
                recommendations=["Counters drift after partially applied batches; inspect the listed chats"]
            )

        return CheckResult(
            name="Children Counts",
            category="integrity",
            status=CheckStatus.PASS,
            message=f"{len(chats)} chats consistent",
            details={"checked": len(chats)}
        )
