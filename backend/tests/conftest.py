"""Shared fixtures for LoanLedger tests."""

import os
import tempfile

# Keep the module-level database out of the user's home directory
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="loanledger-tests-"))

import pytest  # noqa: E402

from backend.db.sqlite import Database  # noqa: E402


@pytest.fixture
def test_db(tmp_path):
    """A fresh SQLite database per test."""
    return Database(db_path=tmp_path / "test.db")


NAVIENT_TEXT = """NAVIENT
Statement Date: 03/20/2024
Account Number: 1234567890

Payment History
Date        Amount    Principal  Interest  Cap Interest  Late Fees  Balance     Comments
03/01/2024  $250.00   $180.00    $70.00    $0.00         $0.00      $15,000.00  Payment received
02/01/2024  $250.00   $178.50    $71.50    $0.00         $0.00      $15,180.00  Payment received

Important Information
Questions? Call 1-888-272-5543
"""

MOHELA_TEXT = """MOHELA
Statement Date: 3/15/2024
Unpaid Principal: $12,345.67
Payments Since Last Bill: $250.00
Past Due Amount: $0.00
Current Amount Due: $250.00
Unpaid Fees: $0.00
Total Balance: $12,400.12
"""

QUICKBOOKS_CSV = """Acme Holdings LLC
Transaction List by Date
Date,Transaction type,Ref no.,Contact,Memo,Total amount
3/1/24,Check,1042,Navient,Student loan payment,(150.00)
3/2/24,Expense,,Staples,Office supplies,(45.10)
3/15/24,Check,1043,MOHELA,,"(1,200.00)"
"""


@pytest.fixture
def navient_text():
    return NAVIENT_TEXT


@pytest.fixture
def mohela_text():
    return MOHELA_TEXT


@pytest.fixture
def quickbooks_csv():
    return QUICKBOOKS_CSV
