# summary_service/models.py
from sqlalchemy import Column, Integer, String, Text

from summary_service.db import Base


class StatusRow(Base):
    __tablename__ = "status_records"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(String(40), nullable=False)
    project_id = Column(String(128), index=True, nullable=False)
    summary = Column(Text, nullable=True)
    key_changes = Column(Text, nullable=True)
    previous_context = Column(Text, nullable=True)
    data_snapshot = Column(Text, nullable=True)
