"""SMS log ORM model. Rows are written by the SMS sender and never mutated."""

from __future__ import annotations

from pydantic import BaseModel
from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.db.mysql_client import Base


class SmsLog(Base):
    __tablename__ = "sms_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(10), nullable=False)
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class SmsLogEntry(BaseModel):
    id: int
    phone: str
    code: str
    issued_at: int

    model_config = {"from_attributes": True}
