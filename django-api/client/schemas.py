"""Response schemas. Malformed payloads raise ``SchemaValidationError``."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from client.errors import SchemaValidationError

TransactionStatusValue = Literal["PENDING", "APPROVED", "DECLINED", "VOIDED", "ERROR"]
TERMINAL_STATUSES = frozenset({"APPROVED", "DECLINED", "VOIDED", "ERROR"})


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class CartLine(CamelModel):
    id: str
    item_type: Literal["ticket", "menu"]
    ticket_id: str | None = None
    menu_item_id: str | None = None
    variant_id: str | None = None
    club_id: str
    date: date
    quantity: int = Field(gt=0)
    name: str
    unit_price: Decimal = Field(ge=0)
    subtotal: Decimal = Field(ge=0)
    dynamic_price: Decimal | None = None
    max_per_person: int | None = None
    available: bool = True
    created_at: datetime
    updated_at: datetime


class CartSummary(CamelModel):
    ticket_subtotal: Decimal
    menu_subtotal: Decimal
    total_subtotal: Decimal
    operational_costs: Decimal
    actual_total: Decimal
    item_count: int = Field(ge=0)
    line_count: int = Field(ge=0)


class TransactionLine(CamelModel):
    item_type: Literal["ticket", "menu"]
    ticket_id: str | None = None
    menu_item_id: str | None = None
    variant_id: str | None = None
    club_id: str
    date: date
    name: str
    unit_price: Decimal
    quantity: int = Field(gt=0)
    subtotal: Decimal


class Transaction(CamelModel):
    id: str
    status: TransactionStatusValue
    club_id: str
    buyer_email: str
    provider: str | None = None
    lines: list[TransactionLine]
    ticket_subtotal: Decimal
    menu_subtotal: Decimal
    total_subtotal: Decimal
    operational_costs: Decimal
    actual_total: Decimal
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class StreamEvent(CamelModel):
    type: Literal["connected", "status_update", "error", "ping"]
    status: TransactionStatusValue | None = None
    transaction_id: str | None = None
    timestamp: datetime | None = None
    message: str | None = None
    error: str | None = None


Model = TypeVar("Model", bound=BaseModel)


def parse(model: type[Model], data) -> Model:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise SchemaValidationError(
            f"Invalid {model.__name__} payload", code="SCHEMA_VALIDATION", extra={"errors": exc.errors()}
        ) from exc


def parse_many(model: type[Model], data) -> list[Model]:
    if not isinstance(data, list):
        raise SchemaValidationError(f"Expected a list of {model.__name__}", code="SCHEMA_VALIDATION")
    return [parse(model, item) for item in data]
