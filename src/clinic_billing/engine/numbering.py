"""Invoice number generation."""

import re
import time
from collections.abc import Callable
from datetime import date


class InvoiceNumberGenerator:
    """Generates ``{prefix}-{year}-{suffix}`` invoice numbers.

    The suffix is the trailing ``digits`` digits of the millisecond clock.
    Calls within the same millisecond step the suffix by one, so repeated
    calls never return the same number. A clash with a number already in
    use is resolved by the caller asking again.
    """

    def __init__(
        self,
        prefix: str = "INV",
        digits: int = 6,
        clock_ms: Callable[[], int] | None = None,
    ):
        if digits < 6:
            raise ValueError("Invoice number suffix needs at least 6 digits")
        self.prefix = prefix
        self.digits = digits
        self._clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)
        self._last_value: int | None = None

    def next_number(self, on: date) -> str:
        value = self._clock_ms()
        if self._last_value is not None and value <= self._last_value:
            # Clock has not moved on since the last number
            value = self._last_value + 1
        self._last_value = value
        suffix = value % 10**self.digits
        return f"{self.prefix}-{on.year:04d}-{suffix:0{self.digits}d}"

    def pattern(self) -> re.Pattern[str]:
        """Regex matching numbers produced by this generator."""
        return re.compile(rf"^{re.escape(self.prefix)}-\d{{4}}-\d{{{self.digits},}}$")
