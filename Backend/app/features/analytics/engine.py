"""
Spending aggregation engine.

Pure functions that turn snapshots of expense, category and budget records
into the statistics shown on the dashboard, analytics and budget screens.
Nothing here touches the database, the clock or the logger: callers fetch
and pre-filter the records, then hand them over.

Records are read by attribute, so ORM rows work as well as the snapshot
models in ``app.features.analytics.schemas``.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from app.features.analytics.exceptions import InvalidBudgetConfiguration, InvalidWindow
from app.features.analytics.schemas import (
    AlertLevel,
    BudgetAlert,
    BudgetBand,
    BudgetStatus,
    BudgetSummary,
    CategoryBreakdown,
    ExceededBudget,
    LargestExpense,
    SpendingStatistics,
)
from app.utils.finance_utils import days_in_window, to_decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")

UNCATEGORIZED_LABEL = "Uncategorized"
UNKNOWN_CATEGORY_LABEL = "Unknown Category"
NO_EXPENSES_LABEL = "No expenses"


def _index_categories(categories: Iterable) -> Dict:
    return {category.id: category for category in categories}


def _percentage(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float(part * HUNDRED / whole)


def compute_category_breakdown(expenses: Sequence, categories: Iterable = ()) -> List[CategoryBreakdown]:
    """
    Group expenses by category.

    Percentages are taken against the total of *all* expenses passed in, so
    uncategorized spend leaves a gap in the pie rather than inflating the
    categorized slices. Entries are sorted by total descending; dicts keep
    first-occurrence order and ``sorted`` is stable, which settles ties.
    """
    by_id = _index_categories(categories)
    grand_total = sum((to_decimal(e.amount) for e in expenses), ZERO)

    totals: Dict = {}
    counts: Dict = {}
    for expense in expenses:
        if expense.category_id is None:
            continue
        totals[expense.category_id] = totals.get(expense.category_id, ZERO) + to_decimal(expense.amount)
        counts[expense.category_id] = counts.get(expense.category_id, 0) + 1

    breakdown = []
    for category_id, total in totals.items():
        category = by_id.get(category_id)
        breakdown.append(
            CategoryBreakdown(
                category_id=category_id,
                name=category.name if category else UNKNOWN_CATEGORY_LABEL,
                color=category.color if category else None,
                icon=category.icon if category else None,
                total_amount=total,
                transaction_count=counts[category_id],
                percentage_of_total=_percentage(total, grand_total),
            )
        )

    return sorted(breakdown, key=lambda item: item.total_amount, reverse=True)


def _most_frequent_category(breakdown: List[CategoryBreakdown]) -> str:
    # Walk in breakdown order and only replace on a strictly higher count:
    # the earliest (highest-spend) category wins a tie.
    winner: Optional[CategoryBreakdown] = None
    for item in breakdown:
        if winner is None or item.transaction_count > winner.transaction_count:
            winner = item
    return winner.name if winner else NO_EXPENSES_LABEL


def _largest_expense(expenses: Sequence, by_id: Dict) -> LargestExpense:
    largest = None
    for expense in expenses:
        if largest is None or to_decimal(expense.amount) > to_decimal(largest.amount):
            largest = expense

    if largest is None:
        return LargestExpense()

    if largest.category_id is None:
        category_name = UNCATEGORIZED_LABEL
    else:
        category = by_id.get(largest.category_id)
        category_name = category.name if category else UNKNOWN_CATEGORY_LABEL

    return LargestExpense(
        expense_id=largest.id,
        amount=to_decimal(largest.amount),
        description=largest.description or "",
        category_name=category_name,
    )


def compute_spending_statistics(
    expenses: Sequence,
    window_start: date,
    window_end: date,
    categories: Iterable = (),
) -> SpendingStatistics:
    """Totals, daily average, most frequent category and largest expense over a window."""
    if window_end < window_start:
        raise InvalidWindow(window_start, window_end)

    categories = list(categories)
    by_id = _index_categories(categories)

    total = sum((to_decimal(e.amount) for e in expenses), ZERO)
    days = days_in_window(window_start, window_end)

    return SpendingStatistics(
        total_amount=total,
        transaction_count=len(expenses),
        days_in_window=days,
        average_daily_amount=total / days,
        most_frequent_category_name=_most_frequent_category(
            compute_category_breakdown(expenses, categories)
        ),
        largest_expense=_largest_expense(expenses, by_id),
    )


def classify_budget_usage(percentage_used: float) -> BudgetBand:
    if percentage_used <= 50:
        return BudgetBand.ON_TRACK
    if percentage_used <= 80:
        return BudgetBand.CAUTION
    if percentage_used <= 100:
        return BudgetBand.NEAR_LIMIT
    return BudgetBand.OVER_BUDGET


def compute_budget_status(budget, relevant_expenses: Iterable) -> BudgetStatus:
    """
    Spend against a single budget.

    ``relevant_expenses`` must already be narrowed to the budget: matched by
    category or by direct budget link (whichever rule the caller applies
    everywhere) and dated inside ``[budget.start_date, budget.end_date]``.
    """
    limit = to_decimal(budget.amount)
    if limit <= 0:
        raise InvalidBudgetConfiguration(budget.id, budget.amount)

    spent = sum((to_decimal(e.amount) for e in relevant_expenses), ZERO)
    percentage_used = float(spent * HUNDRED / limit)

    return BudgetStatus(
        budget_id=budget.id,
        name=budget.name,
        category_id=budget.category_id,
        budget_amount=limit,
        spent_amount=spent,
        remaining_amount=max(ZERO, limit - spent),
        percentage_used=percentage_used,
        is_exceeded=spent > limit,
        overage_amount=max(ZERO, spent - limit),
        band=classify_budget_usage(percentage_used),
        start_date=budget.start_date,
        end_date=budget.end_date,
    )


def compute_overall_usage(spent, total_budget) -> float:
    """Share of the combined budget consumed by ``spent``; 0 without any budget."""
    return _percentage(to_decimal(spent), to_decimal(total_budget))


def summarize_budgets(
    budgets: Sequence,
    statuses: Sequence[BudgetStatus],
    categories: Iterable = (),
) -> BudgetSummary:
    by_id = _index_categories(categories)
    status_by_budget = {status.budget_id: status for status in statuses}

    exceeded = []
    for budget in budgets:
        status = status_by_budget.get(budget.id)
        if status is None or not status.is_exceeded:
            continue
        category = by_id.get(budget.category_id)
        exceeded.append(
            ExceededBudget(
                budget_id=budget.id,
                name=budget.name,
                category_name=category.name if category else UNKNOWN_CATEGORY_LABEL,
                spent_amount=status.spent_amount,
                budget_amount=status.budget_amount,
                overage_amount=status.overage_amount,
            )
        )

    return BudgetSummary(
        total_budget=sum((to_decimal(b.amount) for b in budgets), ZERO),
        budgets_exceeded=len(exceeded),
        exceeded_budgets=exceeded,
    )


def evaluate_budget_alert(
    budget,
    status: BudgetStatus,
    warning_threshold: float = 80.0,
) -> Optional[BudgetAlert]:
    if status.percentage_used >= 100:
        return BudgetAlert(
            budget_id=budget.id,
            level=AlertLevel.EXCEEDED,
            title="Budget Exceeded!",
            message=f'You have exceeded your "{budget.name}" budget by {status.overage_amount:,.0f}.',
        )
    if status.percentage_used >= warning_threshold:
        return BudgetAlert(
            budget_id=budget.id,
            level=AlertLevel.WARNING,
            title="Budget Alert",
            message=f'You have used {status.percentage_used:.1f}% of your "{budget.name}" budget.',
        )
    return None
