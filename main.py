import json
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from db import init_db
from effects import page_cache
from invoice_route import dashboard, router

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip()
CORS_ORIGINS = [
  x.strip()
  for x in os.getenv("CORS_ORIGINS", "http://127.0.0.1:5173,http://localhost:5173").split(",")
  if x.strip()
]

logger = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
  def format(self, record: logging.LogRecord) -> str:
    log = {
      "timestamp": datetime.now(timezone.utc).isoformat(),
      "level": record.levelname,
      "logger": record.name,
      "message": record.getMessage(),
    }
    for key in ("action", "invoice_id"):
      val = record.__dict__.get(key)
      if val is not None:
        log[key] = val
    if record.exc_info:
      log["exception"] = self.formatException(record.exc_info)
    return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
  handler = logging.StreamHandler()
  if fmt == "json":
    handler.setFormatter(JSONFormatter())
  else:
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
  logging.root.addHandler(handler)
  logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))


@asynccontextmanager
async def lifespan(app: FastAPI):
  setup_logging(LOG_LEVEL, LOG_FORMAT)
  await init_db()
  logger.info("Invoices backend started")
  yield
  await page_cache.close()


app = FastAPI(title="Invoices Backend", version="1.0.0", lifespan=lifespan)
app.add_middleware(
  CORSMiddleware,
  allow_origins=CORS_ORIGINS,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)

app.include_router(router)
app.include_router(dashboard)


@app.get("/health")
def health():
  return {"ok": True}
