"""Statement backup - SQL-style text backups for bank statements"""

__version__ = "0.1.0"
