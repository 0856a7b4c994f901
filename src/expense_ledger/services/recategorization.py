"""Re-categorization sweep.

Re-applies the current rule set to transactions that are still in the Other
category or have no category. Anything the user (or an earlier rule) put in
a real category is never touched.
"""

import logging
from collections import defaultdict
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.categorization.rules import rule_matches, sort_rules
from expense_ledger.config import settings
from expense_ledger.core.exceptions import ConfigurationError, PersistenceError
from expense_ledger.repositories.category import CategoryRepository
from expense_ledger.repositories.rule import RuleRepository
from expense_ledger.repositories.transaction import TransactionRepository
from expense_ledger.schemas.ingestion import RecategorizeResult, RecategorizeStatus

logger = logging.getLogger(__name__)


class RecategorizationService:
    """Service for sweeping uncategorized transactions into rule categories."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.category_repo = CategoryRepository(db)
        self.rule_repo = RuleRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def recategorize(
        self, user_id: UUID, year: int | None = None, month: int | None = None
    ) -> RecategorizeResult:
        """Run one sweep for a user, optionally limited to a year or month.

        Rules are walked in priority order against the set of still-unresolved
        transactions. A rule only claims transactions no earlier rule claimed,
        so a broad low-priority keyword cannot override a more specific rule.

        Args:
            user_id: Owner of the transactions
            year: Limit to this calendar year
            month: Limit to this month of `year`

        Returns:
            RecategorizeResult; NO_RULES when the user has no applicable rules

        Raises:
            ConfigurationError: If the user has no Other category
            PersistenceError: If the updates could not be committed
        """
        rules = sort_rules(await self.rule_repo.find_applicable_rules(user_id))
        if not rules:
            logger.info("No rules to apply", extra={"user_id": str(user_id)})
            return RecategorizeResult(status=RecategorizeStatus.NO_RULES, updated_count=0)

        other = await self.category_repo.find_other_category(user_id)
        if other is None:
            raise ConfigurationError("CFG_001", {"user_id": str(user_id)})
        other_category_id = other.id

        candidates = await self.transaction_repo.find_uncategorized(
            user_id, other_category_id, year=year, month=month
        )
        unresolved = {txn.id: txn.description for txn in candidates}

        # target category -> transaction ids it claimed
        claims: dict[UUID, list[UUID]] = defaultdict(list)
        for rule in rules:
            if not unresolved:
                break
            claimed = [txn_id for txn_id, description in unresolved.items() if rule_matches(rule, description)]
            for txn_id in claimed:
                del unresolved[txn_id]
            if claimed and rule.category_id != other_category_id:
                claims[rule.category_id].extend(claimed)

        try:
            updated_count = 0
            for category_id, txn_ids in claims.items():
                updated_count += await self.transaction_repo.update_category_where(
                    user_id, txn_ids, other_category_id, category_id
                )
            await self.db.commit()
        except Exception as e:
            if settings.debug:
                logger.exception("Sweep update failed", extra={"error_type": type(e).__name__})
            else:
                logger.error("Sweep update failed", extra={"error_type": type(e).__name__})
            await self.db.rollback()
            raise PersistenceError("DB_001", {"user_id": str(user_id)}) from e

        logger.info(
            "Sweep completed",
            extra={
                "user_id": str(user_id),
                "year": year,
                "month": month,
                "candidates": len(candidates),
                "updated_count": updated_count,
            },
        )
        return RecategorizeResult(status=RecategorizeStatus.COMPLETED, updated_count=updated_count)
