"""
Pytest configuration and fixtures for wallet ledger tests.
"""

import pytest

from wallet.config import WalletSettings
from wallet.service import Service


@pytest.fixture
def settings(tmp_path):
    """Explicit settings so tests never depend on WALLET_* variables."""
    return WalletSettings(
        worker_count=4,
        dump_dir=str(tmp_path),
        history_records_per_file=3,
        log_level="DEBUG",
        log_json=False,
    )


@pytest.fixture
def service(settings):
    """Empty ledger."""
    return Service(settings=settings)


@pytest.fixture
def funded_account(service):
    """Account 1 with a balance of 1000."""
    account = service.register_account("+992000000000")
    service.deposit(account.id, 1000)
    return account
