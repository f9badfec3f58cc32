# invoice_route.py
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import actions
from db import get_session
from effects import INVOICES_PATH, PageCache, page_cache
from models import Customer, Invoice
from schemas import Deleted, PersistenceFailed, Redirect, ValidationFailed

router = APIRouter(prefix="/api", tags=["invoices"])
dashboard = APIRouter(prefix=INVOICES_PATH, tags=["dashboard"])

def get_cache() -> PageCache:
  return page_cache

def _match(q: str, *values: Optional[str]) -> bool:
  ql = q.strip().lower()
  return any(ql in (v or "").lower() for v in values)

def _respond(result):
  if isinstance(result, Redirect):
    # 303 so the browser follows the form POST with a GET
    return RedirectResponse(result.to, status_code=303)
  if isinstance(result, Deleted):
    return {"ok": True, "id": result.id, "message": result.message}
  status_code = 422 if isinstance(result, ValidationFailed) else 500
  content = {"errors": result.errors, "message": result.message}
  if isinstance(result, PersistenceFailed):
    content["ok"] = False
  return JSONResponse(status_code=status_code, content=content)

async def _invoice_rows(session: AsyncSession) -> List[Dict[str, Any]]:
  stmt = (
    select(Invoice, Customer)
    .join(Customer, Customer.id == Invoice.customer_id, isouter=True)
    .order_by(Invoice.date.desc(), Invoice.id)
  )
  rows = (await session.execute(stmt)).all()
  return [
    {
      "id": inv.id,
      "customer_id": inv.customer_id,
      "name": c.name if c else None,
      "email": c.email if c else None,
      "amount": inv.amount,
      "status": inv.status,
      "date": inv.date.isoformat(),
    }
    for inv, c in rows
  ]


# Form actions

@dashboard.post("/create")
async def create_invoice(
  request: Request,
  session: AsyncSession = Depends(get_session),
  cache: PageCache = Depends(get_cache),
):
  form = await request.form()
  return _respond(await actions.create_invoice(None, form, session, cache))

@dashboard.post("/{invoice_id}/edit")
async def update_invoice(
  invoice_id: str,
  request: Request,
  session: AsyncSession = Depends(get_session),
  cache: PageCache = Depends(get_cache),
):
  form = await request.form()
  return _respond(await actions.update_invoice(invoice_id, form, session, cache))

@dashboard.post("/{invoice_id}/delete")
async def delete_invoice(
  invoice_id: str,
  session: AsyncSession = Depends(get_session),
  cache: PageCache = Depends(get_cache),
):
  return _respond(await actions.delete_invoice(invoice_id, session, cache))

@dashboard.get("")
async def invoices_view(
  session: AsyncSession = Depends(get_session),
  cache: PageCache = Depends(get_cache),
):
  cached = await cache.get(INVOICES_PATH)
  if cached is not None:
    return cached
  rows = await _invoice_rows(session)
  await cache.set(INVOICES_PATH, rows)
  return rows


# Reads

@router.get("/invoices")
async def list_invoices(q: Optional[str] = None, session: AsyncSession = Depends(get_session)):
  rows = await _invoice_rows(session)
  if not q:
    return rows
  return [r for r in rows if _match(q, r["id"], r["customer_id"], r["name"], r["status"])]

@router.get("/invoices/{invoice_id}")
async def get_invoice(invoice_id: str, session: AsyncSession = Depends(get_session)):
  inv = await session.get(Invoice, invoice_id)
  if not inv:
    raise HTTPException(status_code=404, detail="Invoice not found")
  # edit form works in major units
  return {
    "id": inv.id,
    "customer_id": inv.customer_id,
    "amount": inv.amount / 100,
    "status": inv.status,
    "date": inv.date.isoformat(),
  }

@router.get("/customers", response_model=List[Customer])
async def list_customers(session: AsyncSession = Depends(get_session)):
  return (await session.execute(select(Customer).order_by(Customer.name))).scalars().all()

@router.post("/seed")
async def seed_if_empty(session: AsyncSession = Depends(get_session)):
  # Seed only if there are no customers yet
  any_customer = (await session.execute(select(Customer).limit(1))).scalars().first()
  if any_customer:
    return {"ok": True, "seeded": False}

  session.add_all([
    Customer(id="CUST-901", name="Apex Retail Pvt Ltd", email="billing@apexretail.example"),
    Customer(id="CUST-902", name="BlueSky Logistics", email="accounts@bluesky.example"),
    Customer(id="CUST-903", name="Nimbus Clinics", email="finance@nimbus.example"),
  ])
  await session.commit()
  return {"ok": True, "seeded": True}
