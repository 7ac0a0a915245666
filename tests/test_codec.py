"""Tests for encoding and decoding statement backups."""

from decimal import Decimal

import pytest

from statement_backup.codec import (
    BackupDecoder,
    BackupEncoder,
    BackupFormatError,
    MalformedMetadataError,
    MissingMetadataBlockError,
    decode_statement,
    encode_statement,
)
from statement_backup.models.core import StatementRecord, TransactionRecord, TransactionType


FIXED_NOW = 1700000000.0


def make_transaction(description: str = "Coffee", amount: str = "-45000",
                     tx_type: TransactionType = TransactionType.DEBIT) -> TransactionRecord:
    """Helper to create test transactions"""
    return TransactionRecord(
        date="01/03/2024",
        amount=Decimal(amount),
        description=description,
        transaction_code="FT24061",
        partner_name="Highlands Coffee",
        partner_account="0123456789",
        type=tx_type,
        category="Food",
    )


def make_statement(statement_id: str = "s1", transactions=None) -> StatementRecord:
    """Helper to create a test statement"""
    return StatementRecord(
        id=statement_id,
        file_name="march.pdf",
        bank_name="Bank A",
        account_holder="Jane Doe",
        period="03/2024",
        saved_at=1700000000000,
        transactions=transactions if transactions is not None else [
            make_transaction("Salary", "15000000", TransactionType.CREDIT),
            make_transaction("Coffee", "-45000"),
        ],
    )


class TestBackupEncoder:
    """Test cases for BackupEncoder"""

    def setup_method(self):
        """Set up test fixtures"""
        self.encoder = BackupEncoder(clock=lambda: FIXED_NOW)

    def test_document_layout(self):
        """Test that preamble, header and transaction insert appear in order"""
        text = self.encoder.encode(make_statement())

        create_statements = text.index("CREATE TABLE IF NOT EXISTS statements")
        create_transactions = text.index("CREATE TABLE IF NOT EXISTS transactions")
        header = text.index("INSERT INTO statements (id, file_name, bank_name, account_holder, period, saved_at) VALUES (")
        rows = text.index(
            "INSERT INTO transactions (statement_id, date, amount, description, transaction_code, "
            "partner_name, partner_account, type, category) VALUES\n"
        )
        assert create_statements < create_transactions < header < rows
        assert text.rstrip().endswith(";")

    def test_transaction_rows(self):
        """Test the exact text of the transaction rows"""
        text = self.encoder.encode(make_statement())

        assert (
            "('s1', '01/03/2024', 15000000, 'Salary', 'FT24061', 'Highlands Coffee', "
            "'0123456789', 'CREDIT', 'Food'),\n"
            "('s1', '01/03/2024', -45000, 'Coffee', 'FT24061', 'Highlands Coffee', "
            "'0123456789', 'DEBIT', 'Food');\n"
        ) in text

    def test_preamble_independent_of_input(self):
        """Test that the preamble text does not change with the statement"""
        first = self.encoder.encode(make_statement("a"))
        second = self.encoder.encode(StatementRecord(id="b", bank_name="Other"))

        preamble_end = first.index("INSERT INTO statements")
        assert first[:preamble_end] == second[:second.index("INSERT INTO statements")]

    def test_no_transaction_insert_when_empty(self):
        """Test that an empty statement has no transaction insert"""
        text = self.encoder.encode(make_statement(transactions=[]))
        assert "INSERT INTO transactions" not in text

    def test_defaults_from_clock(self):
        """Test that missing id and saved_at come from the clock"""
        text = self.encoder.encode(StatementRecord(bank_name="Bank A"))

        assert "'1700000000000'" in text
        assert "    1700000000000\n" in text

    def test_missing_text_fields_are_null(self):
        """Test that absent header fields are written as NULL"""
        text = self.encoder.encode(StatementRecord(id="s1", saved_at=1))
        assert "    NULL,\n" in text

    def test_iter_encode_matches_encode(self):
        """Test that the chunked output joins to the full document"""
        statement = make_statement()
        assert "".join(self.encoder.iter_encode(statement)) == self.encoder.encode(statement)

    def test_string_type_accepted(self):
        """Test that a plain string transaction type is encoded"""
        transaction = make_transaction()
        transaction.type = "CREDIT"
        text = self.encoder.encode(make_statement(transactions=[transaction]))
        assert "'CREDIT', 'Food')" in text


class TestBackupDecoder:
    """Test cases for BackupDecoder"""

    def setup_method(self):
        """Set up test fixtures"""
        self.encoder = BackupEncoder(clock=lambda: FIXED_NOW)
        self.decoder = BackupDecoder(clock=lambda: FIXED_NOW)

    def test_round_trip(self):
        """Test that decode(encode(s)) restores the statement"""
        statement = make_statement()
        restored = self.decoder.decode(self.encoder.encode(statement))

        assert restored == statement

    def test_atm_fee_example(self):
        """Test a single debit transaction round trip"""
        statement = StatementRecord(
            id="s1",
            bank_name="Bank A",
            transactions=[TransactionRecord(
                date="01/01/2024",
                amount=-50000,
                description="ATM fee",
                type=TransactionType.DEBIT,
                category="Fees",
            )],
        )
        restored = decode_statement(encode_statement(statement))

        assert len(restored.transactions) == 1
        assert restored.transactions[0].amount == -50000
        assert restored.transactions[0].type == TransactionType.DEBIT
        assert restored.id == "s1"
        assert restored.bank_name == "Bank A"

    def test_quotes_round_trip(self):
        """Test that single and double quotes survive"""
        statement = make_statement(transactions=[make_transaction("O'Brien's \"gift\"")])
        restored = self.decoder.decode(self.encoder.encode(statement))

        assert restored.transactions[0].description == "O'Brien's \"gift\""

    @pytest.mark.parametrize("description", [
        "), (",
        "x; DROP TABLE transactions; --",
        "rent, march, 2024",
        "INSERT INTO transactions VALUES ('a', 'b', 1, 'c', 'd', 'e', 'f', 'CREDIT', 'g');",
    ])
    def test_delimiters_do_not_create_rows(self, description):
        """Test that SQL punctuation inside a value does not split rows"""
        statement = make_statement(transactions=[make_transaction(description), make_transaction("next")])
        restored = self.decoder.decode(self.encoder.encode(statement))

        assert [t.description for t in restored.transactions] == [description, "next"]

    def test_marker_in_header_value(self):
        """Test that insert text inside a header value is not scanned"""
        statement = make_statement()
        statement.file_name = "INSERT INTO transactions VALUES ('x', 'y', 1, 'a', 'b', 'c', 'd', 'CREDIT', 'e');"
        result = self.decoder.decode_with_report(self.encoder.encode(statement))

        assert result.statement.file_name == statement.file_name
        assert len(result.statement.transactions) == 2
        assert result.transaction_blocks == 1

    def test_concatenated_documents(self):
        """Test that rows of several backups are collected in order"""
        first = make_statement("s1", [make_transaction("a"), make_transaction("b")])
        second = make_statement("s2", [make_transaction("c")])
        text = self.encoder.encode(first) + self.encoder.encode(second)

        result = self.decoder.decode_with_report(text)

        assert result.statement.id == "s1"
        assert [t.description for t in result.statement.transactions] == ["a", "b", "c"]
        assert result.transaction_blocks == 2
        assert result.metadata_blocks == 2

    def test_truncated_tuple_dropped(self):
        """Test that a 5-column tuple is dropped and the rest decode"""
        text = self.encoder.encode(make_statement(transactions=[make_transaction("a"), make_transaction("b")]))
        text = text.replace(
            "),\n(",
            "),\n('s1', '02/03/2024', 5, 'short', 'X'),\n(",
        )

        result = self.decoder.decode_with_report(text)

        assert result.dropped_rows == 1
        assert [t.description for t in result.statement.transactions] == ["a", "b"]

    def test_missing_metadata_fails(self):
        """Test that a document without a header fails with one generic error"""
        text = self.encoder.encode(make_statement())
        start = text.index("INSERT INTO statements")
        end = text.index(";", start) + 1
        text = text[:start] + text[end:]

        with pytest.raises(BackupFormatError) as excinfo:
            self.decoder.decode(text)

        assert str(excinfo.value) == "Backup file is corrupt or in the wrong format"
        assert isinstance(excinfo.value.__cause__, MissingMetadataBlockError)

    def test_short_metadata_fails(self):
        """Test that a header with fewer than 6 values fails"""
        text = "INSERT INTO statements (id, file_name) VALUES ('s1', 'f', 'b', 'h', 'p');"

        with pytest.raises(BackupFormatError) as excinfo:
            self.decoder.decode(text)

        assert isinstance(excinfo.value.__cause__, MalformedMetadataError)

    def test_empty_document_fails(self):
        with pytest.raises(BackupFormatError):
            self.decoder.decode("")

    def test_field_defaults(self):
        """Test defaults for NULL fields and unknown type tokens"""
        text = (
            "INSERT INTO statements VALUES ('s1', NULL, NULL, NULL, NULL, NULL);\n"
            "INSERT INTO transactions VALUES "
            "('s1', NULL, NULL, NULL, NULL, NULL, NULL, 'credit', NULL),\n"
            "('s1', '01/03/2024', '12.5', 'quoted amount', '', '', '', 'CREDIT', '');"
        )
        statement = self.decoder.decode(text)

        assert statement.file_name == "Recovered_Statement"
        assert statement.bank_name == ""
        assert statement.saved_at == 1700000000000

        empty = statement.transactions[0]
        assert empty == TransactionRecord()
        assert empty.type == TransactionType.DEBIT

        quoted = statement.transactions[1]
        assert quoted.amount == Decimal("12.5")
        assert quoted.type == TransactionType.CREDIT

    def test_recovered_file_name_setting(self):
        decoder = BackupDecoder(recovered_file_name="restored.sql")
        statement = decoder.decode("INSERT INTO statements VALUES ('s1', '', '', '', '', 5);")

        assert statement.file_name == "restored.sql"
        assert statement.saved_at == 5

    def test_large_statement(self):
        """Test that thousands of rows encode and decode"""
        transactions = [make_transaction(f"row {i}", str(i)) for i in range(5000)]
        restored = self.decoder.decode(self.encoder.encode(make_statement(transactions=transactions)))

        assert len(restored.transactions) == 5000
        assert restored.transactions[4999].description == "row 4999"
        assert restored.transactions[4999].amount == Decimal("4999")

    def test_decode_is_deterministic(self):
        text = self.encoder.encode(make_statement())
        assert self.decoder.decode(text) == self.decoder.decode(text)
