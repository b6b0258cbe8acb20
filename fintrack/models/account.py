"""
Account models.

Accounts are where money lives or comes from: cards, cash, bank
accounts. Only credit cards carry a meaningful limit; everything else
surfaces a user-declared balance as-is.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AccountType(str, Enum):
    """Supported account types."""
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    CASH = "cash"
    PIX = "pix"
    BOLETO = "boleto"
    FOOD_VOUCHER = "food_voucher"
    TRANSFER = "transfer"
    EWALLET = "ewallet"
    BANK_ACCOUNT = "bank_account"


ACCOUNT_TYPE_LABELS: dict[AccountType, str] = {
    AccountType.CREDIT_CARD: "Cartão de crédito",
    AccountType.DEBIT_CARD: "Cartão de débito",
    AccountType.CASH: "Dinheiro",
    AccountType.PIX: "Pix",
    AccountType.BOLETO: "Boleto",
    AccountType.FOOD_VOUCHER: "Alimentação",
    AccountType.TRANSFER: "Transferência",
    AccountType.EWALLET: "Carteira digital",
    AccountType.BANK_ACCOUNT: "Conta bancária",
}


def get_account_type_label(account_type: AccountType) -> str:
    return ACCOUNT_TYPE_LABELS.get(account_type, str(account_type))


def is_credit_card(account_type: AccountType) -> bool:
    return account_type == AccountType.CREDIT_CARD


class Account(BaseModel):
    """
    A user account.

    Deleting an account does not touch its transactions; their
    account_id simply dangles and is treated as unlinked.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType
    limit_cents: Optional[int] = Field(
        default=None,
        ge=0,
        description="Credit limit, meaningful mainly for credit cards"
    )
    balance_cents: Optional[int] = Field(
        default=None,
        description="User-declared balance estimate"
    )
    is_active: bool = True
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def is_credit_card(self) -> bool:
        return is_credit_card(self.type)

    @property
    def type_label(self) -> str:
        return get_account_type_label(self.type)


class AccountPatch(BaseModel):
    """Account changes; unset fields are left untouched, None clears."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[AccountType] = None
    limit_cents: Optional[int] = Field(default=None, ge=0)
    balance_cents: Optional[int] = None
    is_active: Optional[bool] = None

    @model_validator(mode='after')
    def reject_cleared_required_fields(self) -> 'AccountPatch':
        for name in ("name", "type", "is_active"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"Field cannot be cleared: {name}")
        return self

    def store_changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
