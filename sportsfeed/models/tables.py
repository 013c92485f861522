"""
Local persistence tables for ingested fight results.

Column names mirror the upstream upsert tables (ufc_fighters, ufc_events,
ufc_fights, ufc_fight_stats) so the same flat rows can be written either
through the REST upsert endpoint or through Session.merge().
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, PrimaryKeyConstraint
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class Fighter(Base):
    """Participant, keyed by the upstream athlete id."""
    __tablename__ = "ufc_fighters"

    fighter_id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False, default="Unknown")
    nickname = Column(String(200), nullable=False, default="")
    country = Column(String(100), nullable=False, default="")
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class FightEvent(Base):
    """Event (fight card), keyed by the upstream event id."""
    __tablename__ = "ufc_events"

    event_id = Column(String(32), primary_key=True)
    event_name = Column(String(300), nullable=False, default="")
    event_date = Column(String(40), nullable=False, default="")
    venue = Column(String(200), nullable=False, default="")
    city = Column(String(100), nullable=False, default="")
    country = Column(String(100), nullable=False, default="")
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Fight(Base):
    """Outcome of a head-to-head event (1:1 with FightEvent)."""
    __tablename__ = "ufc_fights"

    fight_id = Column(String(32), primary_key=True)
    event_id = Column(String(32), nullable=False, index=True)
    fighter1_id = Column(String(32), nullable=False)
    fighter2_id = Column(String(32), nullable=False)
    winner_id = Column(String(32), nullable=True)
    weight_class = Column(String(100), nullable=False, default="")
    method = Column(String(20), nullable=False, default="Decision")
    round_finished = Column(Integer, nullable=False, default=3)
    time_finished = Column(String(10), nullable=False, default="5:00")
    is_title_fight = Column(Boolean, nullable=False, default=False)
    fight_order = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class FightStats(Base):
    """Per-fighter counters for one fight."""
    __tablename__ = "ufc_fight_stats"

    fight_id = Column(String(32), nullable=False)
    fighter_id = Column(String(32), nullable=False)
    significant_strikes_landed = Column(Integer, nullable=False, default=0)
    significant_strikes_attempted = Column(Integer, nullable=False, default=0)
    total_strikes_landed = Column(Integer, nullable=False, default=0)
    total_strikes_attempted = Column(Integer, nullable=False, default=0)
    takedowns_landed = Column(Integer, nullable=False, default=0)
    takedowns_attempted = Column(Integer, nullable=False, default=0)
    submission_attempts = Column(Integer, nullable=False, default=0)
    knockdowns = Column(Integer, nullable=False, default=0)
    control_time_seconds = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        PrimaryKeyConstraint('fight_id', 'fighter_id'),
    )
