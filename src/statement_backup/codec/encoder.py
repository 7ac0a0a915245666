"""Serialize a statement into backup text."""

import time
from typing import Callable, Iterator, Optional

from ..models.core import StatementRecord, TransactionRecord, TransactionType
from .literals import escape_literal, format_number
from .schema import (
    PREAMBLE,
    STATEMENT_COLUMNS,
    STATEMENT_TABLE,
    TRANSACTION_COLUMNS,
    TRANSACTION_TABLE,
)

ROW_SEPARATOR = ",\n"


class BackupEncoder:
    """Writes the preamble, one statement header row and the transaction rows"""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Args:
            clock: Returns the current time in seconds; defaults to ``time.time``
        """
        self.clock = clock or time.time

    def encode(self, statement: StatementRecord) -> str:
        """Encode a statement into a complete backup document"""
        return "".join(self.iter_encode(statement))

    def iter_encode(self, statement: StatementRecord) -> Iterator[str]:
        """Yield the backup document in chunks, one row at a time.

        A missing id defaults to the current time in milliseconds, a missing
        saved_at to the same timestamp.
        """
        now = int(self.clock() * 1000)
        statement_id = statement.id or str(now)
        saved_at = statement.saved_at if statement.saved_at is not None else now

        yield PREAMBLE
        yield self._statement_insert(statement_id, statement, saved_at)

        if not statement.transactions:
            return

        yield (
            f"INSERT INTO {TRANSACTION_TABLE} ({', '.join(TRANSACTION_COLUMNS)}) VALUES\n"
        )
        quoted_id = escape_literal(statement_id)
        for index, transaction in enumerate(statement.transactions):
            if index:
                yield ROW_SEPARATOR
            yield self._transaction_row(quoted_id, transaction)
        yield ";\n"

    def _statement_insert(self, statement_id: str, statement: StatementRecord,
                          saved_at: int) -> str:
        values = [
            escape_literal(statement_id),
            escape_literal(statement.file_name),
            escape_literal(statement.bank_name),
            escape_literal(statement.account_holder),
            escape_literal(statement.period),
            format_number(int(saved_at)),
        ]
        body = ",\n".join(f"    {value}" for value in values)
        return (
            f"INSERT INTO {STATEMENT_TABLE} ({', '.join(STATEMENT_COLUMNS)}) VALUES (\n"
            f"{body}\n"
            f");\n\n"
        )

    def _transaction_row(self, quoted_id: str, transaction: TransactionRecord) -> str:
        values = [
            quoted_id,
            escape_literal(transaction.date),
            format_number(transaction.amount),
            escape_literal(transaction.description),
            escape_literal(transaction.transaction_code),
            escape_literal(transaction.partner_name),
            escape_literal(transaction.partner_account),
            escape_literal(TransactionType(transaction.type).value),
            escape_literal(transaction.category),
        ]
        return f"({', '.join(values)})"


def encode_statement(statement: StatementRecord) -> str:
    """Encode ``statement`` with the default clock"""
    return BackupEncoder().encode(statement)
