# schemas.py
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

CREATE_FAILED = "Missing Fields. Failed to Create Invoice."
UPDATE_FAILED = "Missing Fields. Failed to Update Invoice."

# one message per form field, whatever the underlying check was
FIELD_MESSAGES = {
  "customerId": "Please select a customer.",
  "amount": "Please enter an amount greater than $0.",
  "status": "Please select an invoice status.",
}

FORM_FIELDS = tuple(FIELD_MESSAGES)

# invoices.amount is a 32-bit INTEGER of cents
MAX_AMOUNT_CENTS = 2_147_483_647
MAX_AMOUNT = MAX_AMOUNT_CENTS / 100
AMOUNT_TOO_LARGE = "Please enter an amount no greater than $21,474,836.47."


class InvoiceForm(BaseModel):
  """The caller-supplied part of an invoice. id and date are assigned server-side."""

  model_config = ConfigDict(populate_by_name=True, extra="ignore")

  customer_id: StrictStr = Field(alias="customerId", min_length=1)
  amount: float = Field(gt=0, le=MAX_AMOUNT, allow_inf_nan=False)
  status: Literal["pending", "paid"]


class FormParse(BaseModel):
  success: bool
  data: Optional[InvoiceForm] = None
  errors: Dict[str, List[str]] = Field(default_factory=dict)


def field_errors(exc: ValidationError) -> Dict[str, List[str]]:
  errors: Dict[str, List[str]] = {}
  for err in exc.errors():
    name = str(err["loc"][0]) if err["loc"] else ""
    message = FIELD_MESSAGES.get(name)
    if name == "amount" and err["type"] == "less_than_equal":
      message = AMOUNT_TOO_LARGE
    if message is None:
      continue
    errors.setdefault(name, []).append(message)
  return errors


def _first(form_data: Mapping[str, Any], name: str) -> Any:
  # multi-valued forms: the first submitted value wins
  getlist = getattr(form_data, "getlist", None)
  if getlist is None:
    return form_data.get(name)
  values = getlist(name)
  return values[0] if values else None


def parse_invoice_form(form_data: Mapping[str, Any]) -> FormParse:
  """Validate raw form fields without raising.

  Missing fields are passed through as None so every field is checked and
  all failures are reported together.
  """
  raw = {name: _first(form_data, name) for name in FORM_FIELDS}
  try:
    data = InvoiceForm.model_validate(raw)
  except ValidationError as e:
    return FormParse(success=False, errors=field_errors(e))
  return FormParse(success=True, data=data)


# Results handed back to the caller boundary

class FormState(BaseModel):
  errors: Dict[str, List[str]] = Field(default_factory=dict)
  message: Optional[str] = None

class ValidationFailed(FormState):
  kind: Literal["validation_failed"] = "validation_failed"

class PersistenceFailed(FormState):
  kind: Literal["persistence_failed"] = "persistence_failed"
  cause: str = ""

class Redirect(BaseModel):
  kind: Literal["redirect"] = "redirect"
  to: str

class Deleted(BaseModel):
  kind: Literal["deleted"] = "deleted"
  id: str
  message: str = "Deleted Invoice."


MutationResult = Union[ValidationFailed, PersistenceFailed, Redirect]
DeleteResult = Union[Deleted, PersistenceFailed]
