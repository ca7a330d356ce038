"""Invoice number allocation.

Two schemes are supported: a token pattern such as ``INV-{YYYY}-{SEQ}`` and
the legacy ``{prefix}-{year}-{NNN}`` layout. The service is pure: callers pass
the invoice numbers that already exist and persist the result themselves.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional

DRAFT_PREFIX = "DRAFT-"
NUMBER_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SEQ_TOKEN = "{SEQ}"
MIN_PADDING = 2
MAX_PADDING = 8
DEFAULT_PADDING = 3


class NumberingError(RuntimeError):
    pass


def _default_clock() -> date:
    return date.today()


def _default_choice(alphabet: str) -> str:
    return secrets.choice(alphabet)


@dataclass(frozen=True, slots=True)
class NumberingOptions:
    prefix: str = "INV"
    include_year: bool = True
    padding: int = DEFAULT_PADDING
    pattern: str = ""
    enabled: bool = True

    @classmethod
    def from_settings(cls, values: dict) -> "NumberingOptions":
        """Build options from the string-valued business settings map."""

        prefix = (values.get("invoicePrefix") or "").strip() or "INV"
        include_year = str(values.get("invoiceIncludeYear") or "true").lower() != "false"
        try:
            padding = int(values.get("invoiceNumberPadding") or DEFAULT_PADDING)
        except (TypeError, ValueError):
            padding = DEFAULT_PADDING
        if not MIN_PADDING <= padding <= MAX_PADDING:
            padding = DEFAULT_PADDING
        pattern = (values.get("invoiceNumberPattern") or "").strip()
        enabled = str(values.get("invoiceNumberingEnabled") or "true").lower() != "false"
        return cls(
            prefix=prefix,
            include_year=include_year,
            padding=padding,
            pattern=pattern,
            enabled=enabled,
        )

    @property
    def uses_pattern(self) -> bool:
        return bool(self.pattern) and self.enabled

    @property
    def allocates_sequence_on_create(self) -> bool:
        return self.uses_pattern and SEQ_TOKEN in self.pattern


def is_draft_number(invoice_number: Optional[str]) -> bool:
    return bool(invoice_number) and invoice_number.startswith(DRAFT_PREFIX)


class InvoiceNumberService:
    """Renders invoice numbers with an injectable clock and random source."""

    def __init__(
        self,
        *,
        clock: Callable[[], date] | None = None,
        choice: Callable[[str], str] | None = None,
    ) -> None:
        self._clock = clock or _default_clock
        self._choice = choice or _default_choice

    def draft_number(self) -> str:
        return DRAFT_PREFIX + self._random(6)

    def next_number(self, existing: Iterable[str], options: NumberingOptions) -> str:
        today = self._clock()
        numbers = [number for number in existing if number]
        if options.uses_pattern:
            return self._next_from_pattern(numbers, options.pattern, today)
        return self._next_legacy(numbers, options, today)

    def _random(self, length: int) -> str:
        return "".join(self._choice(NUMBER_ALPHABET) for _ in range(length))

    def _render_pattern(self, pattern: str, today: date) -> str:
        yyyy = f"{today.year:04d}"
        mm = f"{today.month:02d}"
        dd = f"{today.day:02d}"
        rendered = (
            pattern.replace("{YYYY}", yyyy)
            .replace("{YY}", yyyy[-2:])
            .replace("{MM}", mm)
            .replace("{DD}", dd)
            .replace("{DATE}", f"{yyyy}{mm}{dd}")
        )
        # each {RAND4} gets its own draw
        while "{RAND4}" in rendered:
            rendered = rendered.replace("{RAND4}", self._random(4), 1)
        return rendered

    def _next_from_pattern(self, numbers: list[str], pattern: str, today: date) -> str:
        rendered = self._render_pattern(pattern, today)
        if SEQ_TOKEN not in rendered:
            return rendered
        static_prefix = rendered.split(SEQ_TOKEN)[0]
        matcher = re.compile(rf"^{re.escape(static_prefix)}(\d+)")
        highest = 0
        for number in numbers:
            match = matcher.match(number)
            if match:
                highest = max(highest, int(match.group(1)))
        return rendered.replace(SEQ_TOKEN, f"{highest + 1:03d}")

    def _next_legacy(self, numbers: list[str], options: NumberingOptions, today: date) -> str:
        base = f"{options.prefix}-{today.year}-" if options.include_year else f"{options.prefix}-"
        matcher = re.compile(rf"^{re.escape(base)}(\d+)$")
        highest = 0
        for number in numbers:
            match = matcher.match(number)
            if match:
                highest = max(highest, int(match.group(1)))
        padding = options.padding
        if not MIN_PADDING <= padding <= MAX_PADDING:
            raise NumberingError(f"padding must be between {MIN_PADDING} and {MAX_PADDING}")
        return f"{base}{highest + 1:0{padding}d}"


def next_invoice_number(
    existing: Iterable[str],
    options: NumberingOptions,
    today: date | None = None,
) -> str:
    """Convenience wrapper around :class:`InvoiceNumberService` for a fixed day."""

    clock = (lambda: today) if today is not None else None
    return InvoiceNumberService(clock=clock).next_number(existing, options)
