from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TaxBucket(BaseModel):
    taxable_value: Decimal = Field(default=Decimal("0"))
    igst: Decimal = Field(default=Decimal("0"))
    cgst: Decimal = Field(default=Decimal("0"))
    sgst: Decimal = Field(default=Decimal("0"))
    cess: Decimal = Field(default=Decimal("0"))

    @property
    def total_tax(self) -> Decimal:
        return self.igst + self.cgst + self.sgst + self.cess


class ItcBucket(BaseModel):
    igst: Decimal = Field(default=Decimal("0"))
    cgst: Decimal = Field(default=Decimal("0"))
    sgst: Decimal = Field(default=Decimal("0"))
    cess: Decimal = Field(default=Decimal("0"))


class Gstr3bSummary(BaseModel):
    outward_taxable_supplies: TaxBucket = Field(default_factory=TaxBucket)
    outward_zero_rated: TaxBucket = Field(default_factory=TaxBucket)
    inward_reverse_charge: TaxBucket = Field(default_factory=TaxBucket)
    # Not derivable from outward sales data; filled on the portal
    itc_eligible: ItcBucket = Field(default_factory=ItcBucket)

    outward_nil_exempt: Decimal = Field(default=Decimal("0"))
    outward_non_gst: Decimal = Field(default=Decimal("0"))

    # Metadata (optional, for storage/display)
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    total_documents: Optional[int] = None
