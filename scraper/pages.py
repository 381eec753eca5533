"""Small Playwright page helpers shared by the scrapers."""

from __future__ import annotations

from typing import Any

from loguru import logger

TableRows = list[list[str]]

_TABLES_SCRIPT = """
tables => tables.map(table =>
  Array.from(table.rows).map(row =>
    Array.from(row.cells).map(cell => (cell.innerText || cell.textContent || '').trim())
  )
)
"""


def load(page: Any, url: str, *, timeout_ms: int, settle_ms: int) -> None:
    """Navigate and give client-side rendering ``settle_ms`` to finish."""

    logger.info("Loading {}", url)
    page.goto(url, wait_until="networkidle", timeout=timeout_ms)
    if settle_ms:
        page.wait_for_timeout(settle_ms)


def read_text(page: Any) -> str:
    return page.inner_text("body") or ""


def read_tables(page: Any) -> list[TableRows]:
    """Return every rendered table as rows of trimmed cell text."""

    tables = page.eval_on_selector_all("table", _TABLES_SCRIPT)
    return [
        [[str(cell) for cell in row] for row in table]
        for table in tables or []
    ]


__all__ = ["TableRows", "load", "read_tables", "read_text"]
