"""Table layout of the backup format."""

import re
from typing import Pattern

STATEMENT_TABLE = "statements"
TRANSACTION_TABLE = "transactions"

STATEMENT_COLUMNS = (
    'id',
    'file_name',
    'bank_name',
    'account_holder',
    'period',
    'saved_at',
)

TRANSACTION_COLUMNS = (
    'statement_id',
    'date',
    'amount',
    'description',
    'transaction_code',
    'partner_name',
    'partner_account',
    'type',
    'category',
)

PREAMBLE = f"""-- Smart Bank Statement Backup

CREATE TABLE IF NOT EXISTS {STATEMENT_TABLE} (
    id TEXT PRIMARY KEY,
    file_name TEXT,
    bank_name TEXT,
    account_holder TEXT,
    period TEXT,
    saved_at INTEGER
);

CREATE TABLE IF NOT EXISTS {TRANSACTION_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    statement_id TEXT,
    date TEXT,
    amount REAL,
    description TEXT,
    transaction_code TEXT,
    partner_name TEXT,
    partner_account TEXT,
    type TEXT,
    category TEXT,
    FOREIGN KEY(statement_id) REFERENCES {STATEMENT_TABLE}(id)
);

"""


def insert_marker(table: str) -> Pattern:
    """Pattern for the start of an insert's value list; the column list is optional"""
    return re.compile(
        rf"INSERT\s+INTO\s+{re.escape(table)}\s*(?:\([^)]*\))?\s*VALUES",
        re.IGNORECASE,
    )


STATEMENT_MARKER = insert_marker(STATEMENT_TABLE)
TRANSACTION_MARKER = insert_marker(TRANSACTION_TABLE)
