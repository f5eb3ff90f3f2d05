# main.py
import logging

from dotenv import load_dotenv
load_dotenv()

from loyalty_ledger.core.config import settings
from loyalty_ledger.core.database import Base, engine
from loyalty_ledger.main import create_app

# ✅ so SQLAlchemy sees the tables
import loyalty_ledger.models  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# -------------------------
# DB init
# -------------------------
if settings.LEDGER_BACKEND.strip().lower() == "sql":
    Base.metadata.create_all(bind=engine)

app = create_app()
