"""Rule engine: user ``AutoRule`` list first, built-in keyword map second.

``classify`` is pure. Evaluation order:

1. Scan the user rules in list order. The first rule whose pattern matches
   the lower-cased description (``exact`` equality or ``prefix``) applies its
   ``target_category`` / ``force_ignore`` when set, and evaluation stops there.
2. Only when no rule matched and the category is still ``Other``, the first
   keyword from :data:`DEFAULT_CATEGORY_MAP` contained in the description sets
   the category. The fallback never touches ``ignored``.

A consequence worth knowing: a ``prefix`` rule with an empty pattern matches
every description.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from .models import DEFAULT_CATEGORY, AutoRule, Category, MatchMode, Transaction

# Iteration order is significant: the first contained keyword wins.
DEFAULT_CATEGORY_MAP: tuple[tuple[str, Category], ...] = (
    ("uber", Category.TRANSPORT),
    ("bolt", Category.TRANSPORT),
    ("continente", Category.FOOD),
    ("pingo doce", Category.FOOD),
    ("lidl", Category.FOOD),
    ("auchan", Category.FOOD),
    ("netflix", Category.ENTERTAINMENT),
    ("spotify", Category.ENTERTAINMENT),
    ("amazon", Category.SHOPPING),
    ("zara", Category.SHOPPING),
    ("ikea", Category.SHOPPING),
    ("edp", Category.UTILITIES),
    ("galp", Category.UTILITIES),
    ("vodafone", Category.UTILITIES),
    ("salary", Category.INCOME),
    ("vencimento", Category.INCOME),
    ("refeicao", Category.INCOME),
)


def rule_matches(rule: AutoRule, description_lower: str) -> bool:
    pattern = rule.pattern.lower()
    if rule.match_mode == MatchMode.EXACT:
        return description_lower == pattern
    return description_lower.startswith(pattern)


def find_matching_rule(description_lower: str, rules: Iterable[AutoRule]) -> AutoRule | None:
    """Return the first rule matching ``description_lower``, or ``None``."""

    for rule in rules:
        if rule_matches(rule, description_lower):
            return rule
    return None


def match_keyword(description_lower: str) -> Category | None:
    """Return the category of the first built-in keyword found, or ``None``."""

    for keyword, category in DEFAULT_CATEGORY_MAP:
        if keyword in description_lower:
            return category
    return None


def apply_rule(tx: Transaction, rule: AutoRule) -> Transaction:
    update: dict[str, object] = {}
    if rule.target_category is not None:
        update["category"] = rule.target_category
    if rule.force_ignore is not None:
        update["ignored"] = rule.force_ignore
    return tx.model_copy(update=update) if update else tx


def classify(tx: Transaction, rules: Sequence[AutoRule]) -> Transaction:
    """Return ``tx`` with category/ignored assigned by ``rules`` or the keyword map."""

    desc = tx.description.lower()

    rule = find_matching_rule(desc, rules)
    if rule is not None:
        return apply_rule(tx, rule)

    if tx.category == DEFAULT_CATEGORY:
        category = match_keyword(desc)
        if category is not None:
            return tx.model_copy(update={"category": category})

    return tx


def classify_all(
    transactions: Iterable[Transaction], rules: Sequence[AutoRule]
) -> list[Transaction]:
    """Re-classify a whole collection against ``rules``; returns a new list."""

    rules = list(rules)
    return [classify(tx, rules) for tx in transactions]


def new_rule_id() -> str:
    return f"rule-{uuid.uuid4().hex[:12]}"


def make_rule(
    pattern: str,
    match_mode: MatchMode,
    *,
    target_category: Category | None = None,
    force_ignore: bool | None = None,
) -> AutoRule:
    return AutoRule(
        id=new_rule_id(),
        pattern=pattern,
        match_mode=match_mode,
        target_category=target_category,
        force_ignore=force_ignore,
    )


__all__ = [
    "DEFAULT_CATEGORY_MAP",
    "apply_rule",
    "classify",
    "classify_all",
    "find_matching_rule",
    "make_rule",
    "match_keyword",
    "new_rule_id",
    "rule_matches",
]
