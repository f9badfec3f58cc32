# actions.py
import logging
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from effects import INVOICES_PATH, PageCache, page_cache, redirect, revalidate_path
from models import Invoice
from schemas import (
  CREATE_FAILED,
  UPDATE_FAILED,
  DeleteResult,
  Deleted,
  FormState,
  MutationResult,
  PersistenceFailed,
  ValidationFailed,
  parse_invoice_form,
)

logger = logging.getLogger(__name__)


def _today() -> date:
  return datetime.now(timezone.utc).date()

def to_cents(amount: float) -> int:
  # 19.99 * 100 is 1998.999... in binary floating point
  return int(round(amount * 100))


async def _write(session: AsyncSession, stmt, action: str, invoice_id: Optional[str] = None):
  """Run one statement and commit. Returns (rowcount, error)."""
  try:
    result = await session.execute(stmt)
    await session.commit()
  except SQLAlchemyError as e:
    await session.rollback()
    logger.error("%s failed: %s", action, e, extra={"action": action, "invoice_id": invoice_id})
    return 0, e
  return result.rowcount, None


async def create_invoice(
  prev_state: Optional[FormState],
  form_data: Mapping[str, Any],
  session: AsyncSession,
  cache: PageCache = page_cache,
) -> MutationResult:
  parsed = parse_invoice_form(form_data)
  if not parsed.success:
    return ValidationFailed(errors=parsed.errors, message=CREATE_FAILED)

  inv = parsed.data
  stmt = insert(Invoice).values(
    customer_id=inv.customer_id,
    amount=to_cents(inv.amount),
    status=inv.status,
    date=_today(),
  )
  _, err = await _write(session, stmt, "create_invoice")
  if err is not None:
    return PersistenceFailed(message="Database Error: Failed to Create Invoice.", cause=str(err))

  logger.info("invoice created for customer %s", inv.customer_id, extra={"action": "create_invoice"})
  await revalidate_path(INVOICES_PATH, cache)
  return redirect(INVOICES_PATH)


async def update_invoice(
  id: str,
  form_data: Mapping[str, Any],
  session: AsyncSession,
  cache: PageCache = page_cache,
) -> MutationResult:
  parsed = parse_invoice_form(form_data)
  if not parsed.success:
    return ValidationFailed(errors=parsed.errors, message=UPDATE_FAILED)

  inv = parsed.data
  stmt = (
    update(Invoice)
    .where(Invoice.id == id)
    .values(customer_id=inv.customer_id, amount=to_cents(inv.amount), status=inv.status)
  )
  rows, err = await _write(session, stmt, "update_invoice", id)
  if err is not None:
    return PersistenceFailed(message="Database Error: Failed to Update Invoice.", cause=str(err))

  if rows == 0:
    logger.warning("update matched no invoice %s", id, extra={"action": "update_invoice", "invoice_id": id})
  else:
    logger.info("invoice %s updated", id, extra={"action": "update_invoice", "invoice_id": id})
  await revalidate_path(INVOICES_PATH, cache)
  return redirect(INVOICES_PATH)


async def delete_invoice(
  id: str,
  session: AsyncSession,
  cache: PageCache = page_cache,
) -> DeleteResult:
  rows, err = await _write(session, delete(Invoice).where(Invoice.id == id), "delete_invoice", id)
  await revalidate_path(INVOICES_PATH, cache)
  if err is not None:
    return PersistenceFailed(message="Database Error: Failed to Delete Invoice.", cause=str(err))

  if rows == 0:
    logger.warning("delete matched no invoice %s", id, extra={"action": "delete_invoice", "invoice_id": id})
  return Deleted(id=id)
