from datetime import datetime
from typing import Any, Dict

from sqlalchemy import String, JSON, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from storefront.app.core.base import Base


class StoreSettingsRecord(Base):
    """One settings document per store; delivery zones live inside `data`."""
    __tablename__ = 'store_settings'

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Whole settings document: store / shipping (incl. delivery_zones) / payment / notifications
    data: Mapped[Dict[str, Any]] = mapped_column(JSON(), default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
