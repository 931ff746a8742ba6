from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.mysql import DATETIME as MYSQL_DATETIME
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from sql_session_store.db.base import Base


class SessionData(Base):
    """Server-side session record keyed by the externally supplied session id."""

    __tablename__ = "session"

    # Base provides: id, created_at, updated_at
    sid: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    data: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        # millisecond precision on MySQL, whose DATETIME defaults to whole seconds
        DateTime(timezone=True).with_variant(MYSQL_DATETIME(fsp=3), "mysql", "mariadb"),
        nullable=True,
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<SessionData(sid={self.sid!r})>"
