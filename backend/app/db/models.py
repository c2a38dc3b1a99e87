"""
SQLAlchemy ORM Models
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TIMESTAMP,
    Uuid,
    true,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.db.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite test runs)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# ============================================================================
# Enums
# ============================================================================

class SubscriptionPlan(str, enum.Enum):
    FREE = "FREE"
    PRO = "PRO"
    ENTERPRISE = "ENTERPRISE"


class CaseStatus(str, enum.Enum):
    """Administrative state of a case"""
    OPEN = "OPEN"
    PENDING = "PENDING"
    HEARING = "HEARING"
    RESERVED = "RESERVED"
    DISPOSED = "DISPOSED"
    ARCHIVED = "ARCHIVED"
    CLOSED = "CLOSED"


class CaseStage(str, enum.Enum):
    """Procedural phase of litigation"""
    FILING = "FILING"
    NOTICE = "NOTICE"
    APPEARANCE = "APPEARANCE"
    FRAMING_ISSUES = "FRAMING_ISSUES"
    EVIDENCE = "EVIDENCE"
    ARGUMENTS = "ARGUMENTS"
    RESERVED = "RESERVED"
    JUDGMENT = "JUDGMENT"
    APPEAL = "APPEAL"
    EXECUTION = "EXECUTION"


class CasePriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class CaseType(str, enum.Enum):
    GENERAL = "GENERAL"
    CRIMINAL = "CRIMINAL"
    CIVIL = "CIVIL"
    FAMILY = "FAMILY"
    PROPERTY = "PROPERTY"
    CONSUMER = "CONSUMER"
    LABOUR = "LABOUR"
    TAX = "TAX"
    CORPORATE = "CORPORATE"
    WRIT = "WRIT"
    ARBITRATION = "ARBITRATION"
    CHEQUE_BOUNCE = "CHEQUE_BOUNCE"


class ActivityType(str, enum.Enum):
    """Case timeline event types"""
    AI_CHAT = "AI_CHAT"
    DRAFT_CREATED = "DRAFT_CREATED"
    SUMMARY_CREATED = "SUMMARY_CREATED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    HEARING_ADDED = "HEARING_ADDED"
    HEARING_UPDATED = "HEARING_UPDATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    NOTE_ADDED = "NOTE_ADDED"
    RESEARCH_DONE = "RESEARCH_DONE"
    NOTICE_CREATED = "NOTICE_CREATED"
    CLIENT_LINKED = "CLIENT_LINKED"
    CASE_CREATED = "CASE_CREATED"
    CASE_UPDATED = "CASE_UPDATED"


class FeatureType(str, enum.Enum):
    """Subsystem that produced a timeline event"""
    AI_ASSISTANT = "AI_ASSISTANT"
    DOC_GENERATOR = "DOC_GENERATOR"
    JUDGMENT_SUMMARIZER = "JUDGMENT_SUMMARIZER"
    CRM = "CRM"
    ACTS = "ACTS"
    NEWS = "NEWS"
    CASE_TRACKER = "CASE_TRACKER"
    NOTICES = "NOTICES"
    DRAFTS = "DRAFTS"
    RESEARCH = "RESEARCH"


# ============================================================================
# Models
# ============================================================================

class User(Base):
    """Signed-in user (mirrors the hosted auth service's user id)"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    plan = Column(SQLEnum(SubscriptionPlan), nullable=False, default=SubscriptionPlan.FREE)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())

    # Preferences (JSON) - holds client session state such as activeCaseId
    preferences = Column(JSONType, nullable=False, default=dict)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    cases = relationship("Case", back_populates="owner", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")


class Case(Base):
    """Legal case model"""
    __tablename__ = "cases"
    __table_args__ = (
        Index("ix_cases_user_updated", "user_id", "updated_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Case Identification
    title = Column(String(255), nullable=False)
    cnr_number = Column(String(32), nullable=True, index=True)
    case_number = Column(String(100), nullable=True)
    case_type = Column(SQLEnum(CaseType), nullable=False, default=CaseType.GENERAL)

    # Court & Parties
    court = Column(String(255), nullable=True)
    judge = Column(String(255), nullable=True)
    petitioner = Column(Text, nullable=True)
    respondent = Column(Text, nullable=True)

    # Client (weak reference, no ownership)
    client_id = Column(String(64), nullable=True)
    client_name = Column(String(255), nullable=True)

    # Workflow
    status = Column(SQLEnum(CaseStatus), nullable=False, default=CaseStatus.OPEN)
    stage = Column(SQLEnum(CaseStage), nullable=True)
    priority = Column(SQLEnum(CasePriority), nullable=False, default=CasePriority.MEDIUM)

    # Scheduling
    filing_date = Column(TIMESTAMP, nullable=True)
    next_hearing = Column(TIMESTAMP, nullable=True, index=True)

    # Free text
    tags = Column(JSONType, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    ai_summary = Column(Text, nullable=True)
    ai_prediction = Column(Text, nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="cases")


class CaseActivity(Base):
    """
    Append-only timeline event. ``case_id`` carries no foreign key: rows may
    outlive a deleted case as an orphaned audit trail.
    """
    __tablename__ = "case_activities"
    __table_args__ = (
        Index("ix_case_activities_case_created", "case_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, nullable=False)
    user_id = Column(Uuid, nullable=False, index=True)

    type = Column(SQLEnum(ActivityType), nullable=False)
    feature = Column(SQLEnum(FeatureType), nullable=True)
    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False, default="")
    activity_metadata = Column("metadata", JSONType, nullable=True)
    reference_id = Column(String(64), nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class CaseTracker(Base):
    """
    Legacy case rows from before the cases/case_activities split. Read through
    the repository adapter; written only by the activity-log fallback.
    """
    __tablename__ = "case_trackers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    party_name = Column(Text, nullable=True)
    cnr = Column(String(32), nullable=True)
    court = Column(String(255), nullable=True)
    status = Column(String(50), nullable=True)
    next_date = Column(TIMESTAMP, nullable=True)

    # Free-form blob: caseType, respondent, timeline, lastActivity ...
    details = Column(JSONType, nullable=True)

    last_update = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=True)


# ============================================================================
# Generated artifacts
# ``user_id`` is a string: either a user id or an ``ip-<address>`` pseudo-identity.
# ``case_id`` is a weak reference to cases.id.
# ============================================================================

class Draft(Base):
    __tablename__ = "drafts"
    __table_args__ = (
        Index("ix_drafts_user_created", "user_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(80), nullable=False)
    case_id = Column(Uuid, nullable=True, index=True)

    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    inputs = Column(JSONType, nullable=False, default=dict)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class Notice(Base):
    __tablename__ = "notices"
    __table_args__ = (
        Index("ix_notices_user_created", "user_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(80), nullable=False)
    case_id = Column(Uuid, nullable=True, index=True)

    type = Column(String(50), nullable=False, default="legal")
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    recipient = Column(String(255), nullable=False)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class Research(Base):
    __tablename__ = "research"
    __table_args__ = (
        Index("ix_research_user_created", "user_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(80), nullable=False)
    case_id = Column(Uuid, nullable=True, index=True)

    query = Column(String(500), nullable=False)
    result = Column(Text, nullable=False)
    type = Column(String(30), nullable=False, default="all")

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class Summary(Base):
    __tablename__ = "summaries"
    __table_args__ = (
        Index("ix_summaries_user_created", "user_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(80), nullable=False)
    case_id = Column(Uuid, nullable=True, index=True)

    title = Column(String(200), nullable=False)
    original_text = Column(Text, nullable=False)
    summary = Column(Text, nullable=False)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class ChatSession(Base):
    """One AI assistant exchange"""
    __tablename__ = "chat_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(80), nullable=False, index=True)
    case_id = Column(Uuid, nullable=True, index=True)

    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class UploadedFile(Base):
    __tablename__ = "uploaded_files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(80), nullable=False, index=True)
    case_id = Column(Uuid, nullable=True, index=True)

    filename = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=True)
    size_bytes = Column(Integer, nullable=False, default=0)
    s3_bucket = Column(String(100), nullable=False)
    s3_key = Column(String(500), nullable=False, unique=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    link = Column(String(500), nullable=True)
    read = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="notifications")
