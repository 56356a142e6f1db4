from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.sql import func
from .db import Base


class RegistryEntity(Base):
    __tablename__ = "registry_entities"

    tx_hash = Column(String, primary_key=True)
    id = Column(String, nullable=True)
    entity_type = Column(String, nullable=True)
    data_json = Column(Text, nullable=True)
    version = Column(String, nullable=True)
    previous_id = Column(String, nullable=True)
    timestamp = Column(String, nullable=True)
    submitter = Column(String, nullable=True)
    tx_url = Column(String, nullable=True)
    chain_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_registry_entities_id", "id"),)
