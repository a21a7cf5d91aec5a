"""Task model"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from datetime import datetime
from workplan.core.database import Base


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}  # ids jamais réutilisés

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    followup = Column(Text, nullable=False, default="")

    column_id = Column(String, nullable=False, default="in-progress", index=True)
    position = Column(Integer, nullable=False, default=0)  # rang dans la colonne

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
