# models.py
import datetime
from uuid import uuid4
from sqlmodel import SQLModel, Field

def _new_id() -> str:
  return str(uuid4())

class Customer(SQLModel, table=True):
  __tablename__ = "customers"

  id: str = Field(default_factory=_new_id, primary_key=True, index=True)
  name: str
  email: str = ""

class Invoice(SQLModel, table=True):
  __tablename__ = "invoices"

  # default_factory doubles as the column default, so a bare INSERT gets an id
  id: str = Field(default_factory=_new_id, primary_key=True, index=True)
  customer_id: str = Field(index=True)
  amount: int  # cents
  status: str = "pending"  # pending|paid
  date: datetime.date
