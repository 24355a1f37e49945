"""
Guaranteed baseline dataset.

The last stage of the recovery chain.  It is a fixed, versioned set of 41
investors with one investment (and its deposit transaction) each, built
entirely in code so it is available when every file on disk is gone.

Ids are ``uuid5`` values derived from the record position, so two calls
return identical snapshots.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from irm.models.investment import InvestmentStatus
from irm.models.investor import InvestorStatus, KycStatus
from irm.models.transaction import TransactionMode, TransactionStatus, TransactionType
from irm.schemas.backup import (
    BackupSnapshot,
    InvestmentRecord,
    InvestorRecord,
    TransactionRecord,
)
from irm.services.returns_calculator import add_years

BASELINE_VERSION = "2024.1"
BASELINE_TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)
BASELINE_BOND_VALUE = Decimal("2000000.00")

_NAMESPACE = uuid.UUID("6f1c2a7e-4b3d-5e8f-9a10-2b3c4d5e6f70")

# (first, last, city, bonds)
_PEOPLE = (
    ("Aarav", "Sharma", "Mumbai", 1),
    ("Vivaan", "Patel", "Ahmedabad", 2),
    ("Aditya", "Reddy", "Hyderabad", 1),
    ("Vihaan", "Iyer", "Chennai", 3),
    ("Arjun", "Nair", "Kochi", 1),
    ("Sai", "Kumar", "Bengaluru", 2),
    ("Reyansh", "Gupta", "Delhi", 1),
    ("Krishna", "Joshi", "Pune", 1),
    ("Ishaan", "Mehta", "Surat", 2),
    ("Shaurya", "Verma", "Lucknow", 1),
    ("Ananya", "Singh", "Jaipur", 3),
    ("Diya", "Rao", "Mysuru", 1),
    ("Aadhya", "Das", "Kolkata", 2),
    ("Pari", "Bose", "Kolkata", 1),
    ("Anika", "Menon", "Thiruvananthapuram", 1),
    ("Navya", "Pillai", "Kochi", 2),
    ("Myra", "Chopra", "Chandigarh", 1),
    ("Sara", "Kapoor", "Delhi", 3),
    ("Kiara", "Malhotra", "Gurugram", 1),
    ("Riya", "Agarwal", "Kanpur", 1),
    ("Rohan", "Desai", "Vadodara", 2),
    ("Kabir", "Shetty", "Mangaluru", 1),
    ("Ayaan", "Khan", "Bhopal", 1),
    ("Dhruv", "Kulkarni", "Nagpur", 2),
    ("Atharv", "Pandey", "Varanasi", 1),
    ("Meera", "Krishnan", "Coimbatore", 3),
    ("Lakshmi", "Subramanian", "Madurai", 1),
    ("Priya", "Banerjee", "Howrah", 1),
    ("Neha", "Saxena", "Indore", 2),
    ("Pooja", "Mishra", "Patna", 1),
    ("Rahul", "Yadav", "Noida", 1),
    ("Vikram", "Chauhan", "Udaipur", 2),
    ("Karan", "Bhatia", "Amritsar", 1),
    ("Nikhil", "Hegde", "Hubballi", 1),
    ("Siddharth", "Ghosh", "Durgapur", 3),
    ("Tanvi", "Jain", "Jodhpur", 1),
    ("Sneha", "Kamath", "Udupi", 2),
    ("Aishwarya", "Naidu", "Visakhapatnam", 1),
    ("Harish", "Gowda", "Mysuru", 1),
    ("Manoj", "Tiwari", "Prayagraj", 2),
    ("Deepa", "Varghese", "Kottayam", 1),
)


def _uid(kind: str, index: int) -> uuid.UUID:
    return uuid.uuid5(_NAMESPACE, f"baseline-{BASELINE_VERSION}-{kind}-{index}")


def _investment_date(index: int) -> date:
    return date(2020 + index % 4, index % 12 + 1, index % 27 + 1)


def baseline_snapshot() -> BackupSnapshot:
    """Return the baseline as a snapshot stamped ``BASELINE_TIMESTAMP``."""
    investors = []
    investments = []
    transactions = []

    for index, (first, last, city, bonds) in enumerate(_PEOPLE, start=1):
        investor_id = _uid("investor", index)
        investment_id = _uid("investment", index)
        invested_on = _investment_date(index)
        amount = BASELINE_BOND_VALUE * bonds

        investors.append(
            InvestorRecord(
                id=investor_id,
                first_name=first,
                last_name=last,
                email=f"{first}.{last}{index}@example.com".lower(),
                primary_mobile=f"+91 98{index:08d}",
                primary_address=f"{index} MG Road, {city}",
                primary_address_pin=f"{400000 + index * 137:06d}",
                identity_proof_type="PAN",
                identity_proof_number=f"ABCDE{index:04d}F",
                kyc_status=KycStatus.VERIFIED,
                status=InvestorStatus.ACTIVE,
                created_at=BASELINE_TIMESTAMP,
                updated_at=BASELINE_TIMESTAMP,
            )
        )
        investments.append(
            InvestmentRecord(
                id=investment_id,
                investor_id=investor_id,
                investment_date=invested_on,
                invested_amount=amount,
                bonds_purchased=bonds,
                lock_in_expiry=add_years(invested_on, 3),
                maturity_date=add_years(invested_on, 10),
                status=InvestmentStatus.ACTIVE,
                created_at=BASELINE_TIMESTAMP,
            )
        )
        transactions.append(
            TransactionRecord(
                id=_uid("transaction", index),
                investment_id=investment_id,
                type=TransactionType.INVESTMENT,
                amount=amount,
                transaction_date=invested_on,
                mode=TransactionMode.BANK_TRANSFER,
                reference=f"BASE-{index:04d}",
                status=TransactionStatus.COMPLETED,
                notes="Baseline initial investment",
                created_at=BASELINE_TIMESTAMP,
            )
        )

    return BackupSnapshot.build(
        investors,
        investments,
        transactions,
        timestamp=BASELINE_TIMESTAMP,
        label=f"baseline {BASELINE_VERSION}",
    )
