"""Database schema definition and ORM models.

One ORM model per table. Models expose ``to_row()`` so the store hands
plain dictionaries to the rest of the application instead of ORM
instances bound to a session.
"""

import logging
from typing import Any, Dict, Type

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from intake.utils.timestamps import ensure_utc, utc_now

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)


class RowMixin:
    """Conversion from ORM instance to a plain row dictionary."""

    def to_row(self) -> Dict[str, Any]:
        """Return every mapped column as a dict.

        Datetimes come back timezone-aware UTC regardless of what the
        backend returned.
        """
        row = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(column.type, DateTime):
                value = ensure_utc(value)
            row[column.key] = value
        return row


Base = declarative_base(cls=RowMixin)


class NewsletterSubscriptionModel(Base):
    """ORM model for newsletter_subscriptions. One row per email address."""

    __tablename__ = "newsletter_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class DealSourcingLeadModel(Base):
    """ORM model for deal_sourcing_waitlist. One row per email address."""

    __tablename__ = "deal_sourcing_waitlist"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    investment_amount = Column(Text, nullable=False)
    experience_level = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class ContactSubmissionModel(Base):
    """ORM model for contact_submissions (append-only)."""

    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(String(320), nullable=False)
    phone = Column(String(50), nullable=True)
    investment_amount = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    interest = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class InflationCalculationModel(Base):
    """ORM model for inflation_calculations (append-only calculator runs)."""

    __tablename__ = "inflation_calculations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    initial_amount = Column(Float, nullable=False)
    years = Column(Integer, nullable=False)
    inflation_rate = Column(Float, nullable=False)
    final_amount = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class LearningProgressModel(Base):
    """ORM model for learning_progress. One row per (user, module)."""

    __tablename__ = "learning_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    module_id = Column(String(255), nullable=False)
    completed = Column(String(10), nullable=False, default="false")
    score = Column(String(50), nullable=True)
    time_spent = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_learning_progress_user_module"),
    )


class AchievementModel(Base):
    """ORM model for achievements. One row per (user, badge)."""

    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    badge_id = Column(String(255), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    earned_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_achievements_user_badge"),
    )


class QuizResultModel(Base):
    """ORM model for quiz_results (append-only)."""

    __tablename__ = "quiz_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    quiz_id = Column(String(255), nullable=False)
    score = Column(String(50), nullable=False)
    total_questions = Column(String(50), nullable=False)
    answers = Column(Text, nullable=False)  # JSON string
    completed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (Index("idx_quiz_results_user", "user_id"),)


class PendingEmailModel(Base):
    """ORM model for pending_emails, the durable retry queue.

    Rows are created when every sender identity failed and are drained by
    the retry job. Ascending id is enqueue order.
    """

    __tablename__ = "pending_emails"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_email = Column(String(320), nullable=False)
    recipient_name = Column(Text, nullable=True)
    subject = Column(Text, nullable=False)
    html_content = Column(Text, nullable=False)
    email_type = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    error_details = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_pending_emails_status", "status", "id"),)


TABLES: Dict[str, Type[Base]] = {
    model.__tablename__: model
    for model in (
        NewsletterSubscriptionModel,
        DealSourcingLeadModel,
        ContactSubmissionModel,
        InflationCalculationModel,
        LearningProgressModel,
        AchievementModel,
        QuizResultModel,
        PendingEmailModel,
    )
}


def get_model(table: str) -> Type[Base]:
    """Look up the ORM model for a table name.

    Raises:
        PersistenceError: If the table is not part of the schema
    """
    try:
        return TABLES[table]
    except KeyError:
        raise PersistenceError(f"Unknown table: {table}") from None


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes that do not exist yet (idempotent).

    Args:
        engine: SQLAlchemy engine instance
    """
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
