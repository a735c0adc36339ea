class AggregationError(ValueError):
    """Base class for errors raised by the spending aggregation engine."""


class InvalidBudgetConfiguration(AggregationError):
    """A budget limit that is zero or negative."""

    def __init__(self, budget_id, amount):
        self.budget_id = budget_id
        self.amount = amount
        super().__init__(f"Budget {budget_id} has a non-positive amount ({amount})")


class InvalidWindow(AggregationError):
    """A reporting window whose end falls before its start."""

    def __init__(self, window_start, window_end):
        self.window_start = window_start
        self.window_end = window_end
        super().__init__(f"Window end {window_end} is before window start {window_start}")
