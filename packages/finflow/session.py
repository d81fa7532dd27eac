"""Explicit owner of the transaction and rule collections.

``FinanceSession`` is the single place where state changes. Pipeline functions
(:mod:`finflow.extractors`, :mod:`finflow.normalizers`, :mod:`finflow.rules`)
stay pure; this object feeds them snapshots and swaps in the results.

Rule-set changes trigger a full re-classification of every stored transaction.
The new collection is computed first and assigned in one step, so observers
never see a partially applied rule set.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Literal

from . import store
from .aggregate import SpendingSummary, Totals, category_breakdown, compute_totals
from .logging_setup import get_logger
from .models import AutoRule, Category, MatchMode, Source, Transaction, TransactionType
from .normalizers import new_transaction_id
from .rules import classify, classify_all, make_rule

RuleAction = Literal["category", "ignore"]

_logger = get_logger("finflow.session")


class FinanceSession:
    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        rules: Iterable[AutoRule] = (),
    ) -> None:
        self._transactions: list[Transaction] = list(transactions)
        self._rules: list[AutoRule] = list(rules)

    # ---- Snapshots ----------------------------------------------------------

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    @property
    def rules(self) -> tuple[AutoRule, ...]:
        return tuple(self._rules)

    def get_transaction(self, tx_id: str) -> Transaction:
        return self._transactions[self._index_of(tx_id)]

    # ---- Transactions -------------------------------------------------------

    def import_transactions(self, batch: Iterable[Transaction]) -> list[Transaction]:
        """Classify ``batch`` against the current rules and append it in order."""

        classified = classify_all(batch, self._rules)
        self._transactions = [*self._transactions, *classified]
        _logger.info("session: imported %d transaction(s)", len(classified))
        return classified

    def add_manual(
        self,
        *,
        description: str,
        amount: Decimal,
        category: Category,
        type: TransactionType,
        on: date,
    ) -> Transaction:
        tx = Transaction(
            id=new_transaction_id(Source.MANUAL),
            date=on,
            description=description,
            amount=amount,
            category=category,
            source=Source.MANUAL,
            type=type,
        )
        tx = classify(tx, self._rules)
        self._transactions = [*self._transactions, tx]
        return tx

    def toggle_ignore(self, tx_id: str) -> Transaction:
        i = self._index_of(tx_id)
        current = self._transactions[i]
        updated = current.model_copy(update={"ignored": not current.ignored})
        self._transactions = [*self._transactions[:i], updated, *self._transactions[i + 1 :]]
        return updated

    def delete_transaction(self, tx_id: str) -> Transaction:
        i = self._index_of(tx_id)
        removed = self._transactions[i]
        self._transactions = [*self._transactions[:i], *self._transactions[i + 1 :]]
        return removed

    # ---- Rules --------------------------------------------------------------

    def add_rule(self, rule: AutoRule) -> AutoRule:
        self._set_rules([*self._rules, rule])
        return rule

    def remove_rule(self, rule_id: str) -> AutoRule:
        for i, rule in enumerate(self._rules):
            if rule.id == rule_id:
                self._set_rules([*self._rules[:i], *self._rules[i + 1 :]])
                return rule
        raise KeyError(rule_id)

    def create_rule_from_transaction(
        self, tx_id: str, match_mode: MatchMode, action: RuleAction
    ) -> AutoRule:
        """Turn a transaction into a rule keyed on its full description.

        ``action="category"`` pins the transaction's current category;
        ``action="ignore"`` hides every future match.
        """

        tx = self.get_transaction(tx_id)
        if action == "category":
            rule = make_rule(tx.description, match_mode, target_category=tx.category)
        elif action == "ignore":
            rule = make_rule(tx.description, match_mode, force_ignore=True)
        else:
            raise ValueError(f"unknown rule action: {action!r}")
        return self.add_rule(rule)

    def reclassify(self) -> None:
        self._transactions = classify_all(self._transactions, self._rules)

    def _set_rules(self, rules: Sequence[AutoRule]) -> None:
        new_rules = list(rules)
        reclassified = classify_all(self._transactions, new_rules)
        # Swap both together once the full pass succeeded.
        self._rules, self._transactions = new_rules, reclassified
        _logger.info(
            "session: rules=%d reclassified=%d", len(self._rules), len(self._transactions)
        )

    # ---- Aggregates ---------------------------------------------------------

    def totals(self) -> Totals:
        return compute_totals(self._transactions)

    def category_breakdown(self) -> list[SpendingSummary]:
        return category_breakdown(self._transactions)

    # ---- Persistence --------------------------------------------------------

    @classmethod
    def load(cls, *, database_url: str | None = None) -> FinanceSession:
        transactions, rules = store.load_snapshot(database_url=database_url)
        return cls(transactions, rules)

    def save(self, *, database_url: str | None = None) -> None:
        store.save_snapshot(self._transactions, self._rules, database_url=database_url)

    def _index_of(self, tx_id: str) -> int:
        for i, tx in enumerate(self._transactions):
            if tx.id == tx_id:
                return i
        raise KeyError(tx_id)


__all__ = ["FinanceSession", "RuleAction"]
