"""Acquisition channel reference data."""

from __future__ import annotations

from pydantic import BaseModel
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.db.mysql_client import Base


class Channel(Base):
    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)


class ChannelRecord(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}
