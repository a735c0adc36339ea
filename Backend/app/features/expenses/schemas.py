from typing import Optional
from uuid import UUID
from datetime import datetime, date
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator


class ExpenseBase(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount spent")
    description: Optional[str] = Field(None, description="What the money went on")
    notes: Optional[str] = None
    expense_date: date = Field(..., description="Calendar date of the expense")
    category_id: Optional[UUID] = Field(None, description="Leave empty for an uncategorized expense")
    budget_id: Optional[UUID] = None


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = None
    notes: Optional[str] = None
    expense_date: Optional[date] = None
    category_id: Optional[UUID] = None
    budget_id: Optional[UUID] = None

    @field_validator("amount", "expense_date")
    @classmethod
    def reject_null(cls, value):
        # category_id and budget_id may be cleared with null, these may not
        if value is None:
            raise ValueError("must not be null")
        return value


class ExpenseResponse(ExpenseBase):
    id: UUID
    user_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
