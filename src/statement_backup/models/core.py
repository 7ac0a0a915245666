"""Core data models for statement backups."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionType(Enum):
    """Direction of money flow: CREDIT is money in, DEBIT is money out"""
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


@dataclass
class TransactionRecord:
    """Single row of bank account activity.

    Attributes:
        date: Transaction date as written by the source (format is not interpreted)
        amount: Signed transaction amount
        description: Free-text description from the statement
        transaction_code: Bank reference code
        partner_name: Counterparty name
        partner_account: Counterparty account number
        type: CREDIT or DEBIT
        category: Spending category label
    """
    date: str = ""
    amount: Decimal = Decimal("0")
    description: str = ""
    transaction_code: str = ""
    partner_name: str = ""
    partner_account: str = ""
    type: TransactionType = TransactionType.DEBIT
    category: str = ""


@dataclass
class StatementSummary:
    """Short description of a statement for listings and reports"""
    id: str
    file_name: str
    bank_name: str
    period: str
    saved_at: Optional[int]
    transaction_count: int
    total_credit: Decimal
    total_debit: Decimal

    @property
    def net(self) -> Decimal:
        """Money in minus money out"""
        return self.total_credit - self.total_debit


@dataclass
class StatementRecord:
    """A bank statement: header information plus its transactions.

    ``id`` and ``saved_at`` may be left empty; the encoder fills them in
    from the wall clock when a backup is written.
    """
    id: Optional[str] = None
    file_name: Optional[str] = None
    bank_name: Optional[str] = None
    account_holder: Optional[str] = None
    period: Optional[str] = None
    saved_at: Optional[int] = None
    transactions: List[TransactionRecord] = field(default_factory=list)

    def summary(self) -> StatementSummary:
        """Build a summary with credit/debit totals"""
        total_credit = Decimal("0")
        total_debit = Decimal("0")

        for transaction in self.transactions:
            if transaction.type == TransactionType.CREDIT:
                total_credit += abs(transaction.amount)
            else:
                total_debit += abs(transaction.amount)

        return StatementSummary(
            id=self.id or "",
            file_name=self.file_name or "Unknown File",
            bank_name=self.bank_name or "Unknown Bank",
            period=self.period or "",
            saved_at=self.saved_at,
            transaction_count=len(self.transactions),
            total_credit=total_credit,
            total_debit=total_debit,
        )


@dataclass
class DecodeResult:
    """Outcome of decoding a backup document.

    Attributes:
        statement: The restored statement
        dropped_rows: Transaction tuples skipped for having too few columns
        transaction_blocks: Number of transaction insert statements scanned
        metadata_blocks: Number of statement header inserts found (only the first is used)
    """
    statement: StatementRecord
    dropped_rows: int = 0
    transaction_blocks: int = 0
    metadata_blocks: int = 1


@dataclass
class BackupConfig:
    """Configuration for backup file handling"""
    backup_directory: str = "backups"
    data_directory: str = "data"
    backup_suffix: str = "_backup.sql"
    recovered_file_name: str = "Recovered_Statement"
    log_directory: str = "logs"
    warn_on_dropped_rows: bool = True
