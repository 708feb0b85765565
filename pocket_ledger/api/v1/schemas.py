"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


class AccountResponse(BaseModel):
    """Response for GET /v1/accounts/{account_id}"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    currency: str
    initial_balance: float
    current_balance: float


class SplitSchema(BaseModel):
    """Portion of a transaction allocated to a category"""

    model_config = ConfigDict(from_attributes=True)

    category_id: int
    amount: float


class TransactionCreateRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    account_id: int
    amount: float = Field(..., description="Signed amount: positive income, negative expense")
    transaction_type: str = Field(..., description="income | expense | transfer")
    description: Optional[str] = None
    transaction_date: Optional[datetime] = None
    splits: List[SplitSchema] = Field(default_factory=list)


class TransactionUpdateRequest(BaseModel):
    """Request body for PUT /v1/transactions/{transaction_id}"""

    account_id: Optional[int] = None
    amount: Optional[float] = None
    transaction_type: Optional[str] = None
    description: Optional[str] = None
    transaction_date: Optional[datetime] = None
    splits: Optional[List[SplitSchema]] = None


class TransactionResponse(BaseModel):
    """Single ledger transaction"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    amount: float
    transaction_type: str
    description: Optional[str] = None
    transaction_date: datetime
    recurring_id: Optional[int] = None
    splits: List[SplitSchema] = Field(default_factory=list)


class RateCreateRequest(BaseModel):
    """Request body for POST /v1/rates"""

    from_currency: str = Field(..., min_length=1)
    to_currency: str = Field(..., min_length=1)
    rate: float = Field(..., gt=0, description="Units of to_currency per unit of from_currency")
    rate_date: Optional[datetime] = None
    source: str = "manual"


class RateResponse(BaseModel):
    """Stored rate observation"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    from_currency: str
    to_currency: str
    rate: float
    rate_date: datetime
    source: str
    created: bool = True


class RateQuoteSchema(BaseModel):
    """Latest rate from a base currency to one target"""

    to_currency: str
    rate: float
    rate_date: datetime
    source: str


class LatestRatesResponse(BaseModel):
    """Response for GET /v1/rates/latest"""

    base_currency: str
    rates: List[RateQuoteSchema]


class ConversionResponse(BaseModel):
    """Response for GET /v1/rates/convert"""

    from_currency: str
    to_currency: str
    amount: float
    converted_amount: float
    rate: float
    method: str
    path: List[str]


class RecurringCreateRequest(BaseModel):
    """Request body for POST /v1/recurring"""

    account_id: int
    amount: float
    transaction_type: str = Field(..., description="income | expense")
    frequency: str = Field(..., description="daily | weekly | monthly | yearly")
    start_date: datetime
    end_date: Optional[datetime] = None
    category_id: Optional[int] = None
    description: Optional[str] = None


class RecurringResponse(BaseModel):
    """Recurring transaction template"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    category_id: Optional[int] = None
    amount: float
    transaction_type: str
    description: Optional[str] = None
    frequency: str
    start_date: datetime
    end_date: Optional[datetime] = None
    next_occurrence: datetime
    is_active: bool


class ProcessRequest(BaseModel):
    """Request body for POST /v1/recurring/process"""

    now: Optional[datetime] = None


class TemplateFailureSchema(BaseModel):
    template_id: int
    reason: str


class ProcessResponse(BaseModel):
    """Response for POST /v1/recurring/process"""

    run_at: datetime
    due: int
    processed: int
    failed: int
    created_transaction_ids: List[int]
    deactivated_template_ids: List[int]
    failures: List[TemplateFailureSchema]
