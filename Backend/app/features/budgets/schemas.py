from typing import Optional
from uuid import UUID
from datetime import datetime, date
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, model_validator
from app.features.analytics.schemas import BudgetPeriod


class BudgetBase(BaseModel):
    name: str = Field(..., min_length=1, description="Budget name (e.g., 'Groceries')")
    amount: Decimal = Field(..., gt=0, description="Spending limit for the window")
    category_id: UUID
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_window(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetCreate(BudgetBase):
    pass


class BudgetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, gt=0)
    category_id: Optional[UUID] = None
    period: Optional[BudgetPeriod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name", "amount", "category_id", "period", "start_date", "end_date")
    @classmethod
    def reject_null(cls, value):
        # Omit a field to keep it; null is not a valid value for any of these
        if value is None:
            raise ValueError("must not be null")
        return value


class BudgetResponse(BudgetBase):
    id: UUID
    user_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
