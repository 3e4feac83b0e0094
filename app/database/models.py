from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import Column, String, Text, DateTime, func


# Base class for all models
class Base(DeclarativeBase):
    pass


class KeyValueEntry(Base):
    __tablename__ = "key_value_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
