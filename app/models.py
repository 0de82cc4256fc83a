from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Table, Index, func
from sqlalchemy.orm import relationship
from app.db import Base
from app.config import DEFAULT_TAG_COLOR


def _utcnow():
    return datetime.now(timezone.utc)


contact_tags = Table(
    "contact_tags",
    Base.metadata,
    Column("contact_id", Integer, ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)

    contacts = relationship("Contact", back_populates="owner")
    tags = relationship("Tag", back_populates="owner")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    email = Column(String, index=True, nullable=False)
    phone = Column(String, nullable=False)
    is_favorite = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    owner = relationship("User", back_populates="contacts")
    tags = relationship("Tag", secondary=contact_tags, back_populates="contacts", order_by="Tag.id")


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    color = Column(String(7), nullable=False, default=DEFAULT_TAG_COLOR)
    created_by = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    usage_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="tags")
    contacts = relationship("Contact", secondary=contact_tags, back_populates="tags")


# Final authority on per-owner tag name uniqueness, ignoring case
Index("uq_tags_created_by_name", Tag.__table__.c.created_by, func.lower(Tag.__table__.c.name), unique=True)
