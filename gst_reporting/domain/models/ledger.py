from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class LedgerEntryType(str, Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"


class LedgerEntry(BaseModel):
    id: Optional[str] = None
    date: date
    type: LedgerEntryType
    amount: Decimal = Field(default=Decimal("0"))
    invoice_id: Optional[str] = None
    customer_id: Optional[str] = None
    description: str = ""
