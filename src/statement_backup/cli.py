"""Command-line interface for statement backups."""

import os
import sys
import click
from typing import List, Optional, Dict, Any
import logging

from .codec.exceptions import BackupFormatError
from .models.core import DecodeResult, StatementRecord
from .utils.backup_writer import BackupWriter
from .utils.config_manager import ConfigManager
from .utils.error_handler import (
    ErrorCategory,
    ErrorHandler,
    handle_backup_format_error,
    handle_file_access_error,
    report_decode_warnings,
)


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class StatementBackupCLI:
    """Main CLI class for statement backups"""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize CLI with configuration"""
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        self.error_handler = ErrorHandler(self.config.log_directory)
        self.backup_writer = BackupWriter(self.config)

    def export_csv(self,
                   csv_path: str,
                   output_path: Optional[str] = None,
                   statement_id: Optional[str] = None,
                   file_name: Optional[str] = None,
                   bank_name: Optional[str] = None,
                   account_holder: Optional[str] = None,
                   period: Optional[str] = None) -> Dict[str, Any]:
        """Build a statement from a transaction CSV and write it as a backup"""
        try:
            transactions, row_errors = self.backup_writer.read_transactions_csv(csv_path)
        except (OSError, UnicodeDecodeError) as e:
            handle_file_access_error(self.error_handler, csv_path, e)
            return {'success': False, 'error': f'Cannot read {csv_path}'}
        except ValueError as e:
            self.error_handler.log_error(
                str(e),
                "MISSING_REQUIRED_COLUMNS",
                ErrorCategory.DATA_PARSING,
                file_path=csv_path
            )
            return {'success': False, 'error': str(e)}

        for message in row_errors:
            self.error_handler.log_warning(
                message,
                "CSV_ROW_INVALID",
                ErrorCategory.DATA_PARSING,
                file_path=csv_path
            )

        statement = StatementRecord(
            id=statement_id,
            file_name=file_name or os.path.basename(csv_path),
            bank_name=bank_name,
            account_holder=account_holder,
            period=period,
            transactions=transactions,
        )

        if output_path is None:
            output_path = self.backup_writer.create_unique_filename(
                self.backup_writer.generate_output_path(statement)
            )

        if not self.backup_writer.write_backup(statement, output_path):
            self.error_handler.log_error(
                f"Failed to write backup file {output_path}",
                "FILE_WRITE_ERROR",
                ErrorCategory.FILE_ACCESS,
                file_path=output_path
            )
            return {'success': False, 'error': f'Failed to write backup file {output_path}'}

        validation_errors = self.backup_writer.validate_backup_output(output_path, len(transactions))
        for message in validation_errors:
            self.error_handler.log_warning(
                message,
                "CORRUPT_BACKUP",
                ErrorCategory.BACKUP_FORMAT,
                file_path=output_path
            )

        return {
            'success': True,
            'output_file': output_path,
            'transactions': len(transactions),
            'skipped_rows': len(row_errors),
            'warnings': validation_errors,
        }

    def load_backup(self, backup_path: str) -> Optional[DecodeResult]:
        """Decode a backup file, recording failures; None if it cannot be used"""
        try:
            result = self.backup_writer.read_backup(backup_path)
        except OSError as e:
            handle_file_access_error(self.error_handler, backup_path, e)
            return None
        except BackupFormatError as e:
            handle_backup_format_error(self.error_handler, backup_path, e)
            return None

        if self.config.warn_on_dropped_rows:
            report_decode_warnings(self.error_handler, backup_path, result)
        return result

    def restore_to_csv(self, backup_path: str, output_path: Optional[str] = None) -> Dict[str, Any]:
        """Decode a backup and write its transactions to CSV"""
        result = self.load_backup(backup_path)
        if result is None:
            return {'success': False, 'error': self.error_handler.errors[-1].message}

        statement = result.statement
        if output_path is None:
            stem = os.path.splitext(os.path.basename(backup_path))[0]
            output_path = os.path.join(self.config.data_directory, f"{stem}.csv")

        if not self.backup_writer.write_transactions_csv(statement.transactions, output_path):
            self.error_handler.log_error(
                f"Failed to write CSV file {output_path}",
                "FILE_WRITE_ERROR",
                ErrorCategory.FILE_ACCESS,
                file_path=output_path
            )
            return {'success': False, 'error': f'Failed to write CSV file {output_path}'}

        return {
            'success': True,
            'output_file': output_path,
            'transactions': len(statement.transactions),
            'dropped_rows': result.dropped_rows,
        }

    def merge(self, backup_paths: List[str], output_path: Optional[str] = None) -> Dict[str, Any]:
        """Combine several backups into a single backup file"""
        try:
            result = self.backup_writer.merge_backups(backup_paths)
        except (OSError, UnicodeDecodeError) as e:
            handle_file_access_error(self.error_handler, getattr(e, 'filename', None) or '', e)
            return {'success': False, 'error': str(e)}
        except BackupFormatError as e:
            handle_backup_format_error(self.error_handler, backup_paths[0], e)
            return {'success': False, 'error': str(e)}

        if self.config.warn_on_dropped_rows and result.dropped_rows:
            report_decode_warnings(self.error_handler, backup_paths[0], result)

        statement = result.statement
        if output_path is None:
            output_path = self.backup_writer.create_unique_filename(
                self.backup_writer.generate_output_path(statement)
            )

        if not self.backup_writer.write_backup(statement, output_path):
            self.error_handler.log_error(
                f"Failed to write backup file {output_path}",
                "FILE_WRITE_ERROR",
                ErrorCategory.FILE_ACCESS,
                file_path=output_path
            )
            return {'success': False, 'error': f'Failed to write backup file {output_path}'}

        return {
            'success': True,
            'output_file': output_path,
            'transactions': len(statement.transactions),
            'sources': len(backup_paths),
        }

    def generate_config_template(self, output_path: str) -> bool:
        """Write a configuration template"""
        try:
            self.config_manager.save_config_template(output_path)
            return True
        except OSError as e:
            handle_file_access_error(self.error_handler, output_path, e)
            return False


@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """Statement Backup - archive bank statements as SQL text and restore them"""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj['cli'] = StatementBackupCLI(config)


@cli.command()
@click.argument('csv_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', help='Backup file to write')
@click.option('--id', 'statement_id', help='Statement id (defaults to a timestamp)')
@click.option('--name', 'file_name', help='Original statement file name')
@click.option('--bank', help='Bank name')
@click.option('--holder', help='Account holder')
@click.option('--period', help='Statement period')
@click.pass_context
def export(ctx, csv_file, output, statement_id, file_name, bank, holder, period):
    """Write a backup from a transaction CSV file"""

    cli_instance = ctx.obj['cli']
    result = cli_instance.export_csv(
        csv_file,
        output_path=output,
        statement_id=statement_id,
        file_name=file_name,
        bank_name=bank,
        account_holder=holder,
        period=period
    )

    if not result['success']:
        click.echo(f"✗ Export failed: {result['error']}")
        sys.exit(1)

    click.echo(f"✓ Backup written: {result['output_file']}")
    click.echo(f"  Transactions: {result['transactions']}")
    if result['skipped_rows']:
        click.echo(f"  Rows skipped: {result['skipped_rows']}")
    for warning in result['warnings']:
        click.echo(f"  Warning: {warning}")


@cli.command()
@click.argument('backup_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', help='CSV file to write')
@click.pass_context
def restore(ctx, backup_file, output):
    """Restore the transactions of a backup into a CSV file"""

    cli_instance = ctx.obj['cli']
    result = cli_instance.restore_to_csv(backup_file, output)

    if not result['success']:
        click.echo(f"✗ Restore failed: {result['error']}")
        sys.exit(1)

    click.echo(f"✓ Restored {result['transactions']} transactions to {result['output_file']}")
    if result['dropped_rows']:
        click.echo(f"  Incomplete rows skipped: {result['dropped_rows']}")


@cli.command()
@click.argument('backup_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def inspect(ctx, backup_file):
    """Show the statement stored in a backup"""

    cli_instance = ctx.obj['cli']
    result = cli_instance.load_backup(backup_file)

    if result is None:
        click.echo(f"✗ {cli_instance.error_handler.errors[-1].message}")
        sys.exit(1)

    summary = result.statement.summary()
    click.echo("Statement Backup")
    click.echo("=" * 40)
    click.echo(f"Id: {summary.id}")
    click.echo(f"File name: {summary.file_name}")
    click.echo(f"Bank: {summary.bank_name}")
    click.echo(f"Account holder: {result.statement.account_holder or ''}")
    click.echo(f"Period: {summary.period}")
    click.echo(f"Saved at: {summary.saved_at}")
    click.echo()
    click.echo(f"Transactions: {summary.transaction_count}")
    click.echo(f"Total credit: {summary.total_credit}")
    click.echo(f"Total debit: {summary.total_debit}")
    click.echo(f"Net: {summary.net}")

    if result.transaction_blocks > 1:
        click.echo(f"Insert blocks: {result.transaction_blocks}")
    if result.dropped_rows:
        click.echo(f"Incomplete rows skipped: {result.dropped_rows}")


@cli.command()
@click.argument('backup_files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', help='Combined backup file to write')
@click.pass_context
def merge(ctx, backup_files, output):
    """Merge several backups into one (the first file's header is kept)"""

    cli_instance = ctx.obj['cli']
    result = cli_instance.merge(list(backup_files), output)

    if not result['success']:
        click.echo(f"✗ Merge failed: {result['error']}")
        sys.exit(1)

    click.echo(f"✓ Merged {result['sources']} backups into {result['output_file']}")
    click.echo(f"  Transactions: {result['transactions']}")


@cli.command()
@click.argument('output_path', default='backup_config.json')
@click.option('--format', type=click.Choice(['json', 'yaml']), default='json', help='Configuration file format')
@click.pass_context
def init_config(ctx, output_path, format):
    """Generate configuration template file"""

    cli_instance = ctx.obj['cli']

    if format == 'yaml' and not output_path.endswith(('.yml', '.yaml')):
        output_path = output_path.replace('.json', '.yml')
    elif format == 'json' and not output_path.endswith('.json'):
        output_path = output_path.replace('.yml', '.json').replace('.yaml', '.json')

    if cli_instance.generate_config_template(output_path):
        click.echo(f"✓ Configuration template generated: {output_path}")
    else:
        click.echo("✗ Failed to generate configuration template")
        sys.exit(1)


def main():
    """Entry point for the statement-backup command"""
    cli()


if __name__ == '__main__':
    main()
