from sqlalchemy import Column, String, JSON
from models.base import Base, TimestampMixin


class SettingsItem(Base, TimestampMixin):
    """Event configuration, e.g. key "config" -> {"isQuizActive": true}."""
    __tablename__ = "settings"

    config_key = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)


class MetadataItem(Base, TimestampMixin):
    """Collection markers, e.g. key "questions" -> {"lastUpdated": <epoch ms>}."""
    __tablename__ = "metadata"

    meta_key = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
