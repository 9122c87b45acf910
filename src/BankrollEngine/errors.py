class BankrollError(ValueError):
    """Base class for operator errors. Raised before any mutation."""


class InvalidResult(BankrollError):
    def __init__(self, value):
        super().__init__(f'result must be "W" or "L". Got {value!r}')
        self.value = value


class InvalidRange(BankrollError):
    def __init__(self, min_odds, max_odds):
        super().__init__(
            f"Bad odds band ({min_odds!r}, {max_odds!r}). Use numbers like min=1.4, max=3.0"
        )
        self.min_odds = min_odds
        self.max_odds = max_odds


class InvalidOdds(BankrollError):
    def __init__(self, odds):
        super().__init__(f"Odds must be a finite decimal greater than 1.0. Got {odds!r}")
        self.odds = odds


class NothingPlanned(BankrollError):
    def __init__(self):
        super().__init__("Nothing planned. Plan a stake first.")


class LedgerStoreError(RuntimeError):
    """Low-level write failure. Caught at the save boundary."""
