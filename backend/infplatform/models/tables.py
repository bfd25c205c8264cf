from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    func,
    text,
    true,
    false,
)
from sqlalchemy.orm import declarative_base, relationship

from ..config import settings

Base = declarative_base()
metadata = Base.metadata


class Events(Base):
    __tablename__ = 'events'
    __table_args__ = (
        CheckConstraint("phase_mode IN ('manual', 'date-based')", name='ck_events_phase_mode'),
        CheckConstraint('current_phase IN (0, 1, 2)', name='ck_events_current_phase'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    date = Column(Date)
    location = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())

    # Phase configuration
    phase_mode = Column(Text, nullable=False, default='manual', server_default=text("'manual'"))
    current_phase = Column(Integer, nullable=False, default=0, server_default=text('0'))
    phase1_start_date = Column(DateTime)
    phase1_end_date = Column(DateTime)
    phase2_start_date = Column(DateTime)
    phase2_end_date = Column(DateTime)
    phase1_max_bookings = Column(
        Integer,
        nullable=False,
        default=lambda: settings.default_phase1_max_bookings,
        server_default=text('3'),
    )
    phase2_max_bookings = Column(
        Integer,
        nullable=False,
        default=lambda: settings.default_phase2_max_bookings,
        server_default=text('6'),
    )

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    participants = relationship('EventParticipants', back_populates='event', cascade='all', passive_deletes=True)
    sessions = relationship('RecruitingSessions', back_populates='event', cascade='all', passive_deletes=True)
    offers = relationship('Offers', back_populates='event')


class Companies(Base):
    __tablename__ = 'companies'

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    participations = relationship('EventParticipants', back_populates='company', cascade='all', passive_deletes=True)
    offers = relationship('Offers', back_populates='company')
    slots = relationship('EventSlots', back_populates='company')


class EventParticipants(Base):
    __tablename__ = 'event_participants'
    __table_args__ = (
        UniqueConstraint('event_id', 'company_id'),
        CheckConstraint('slot_capacity IS NULL OR slot_capacity >= 1', name='ck_participants_capacity'),
    )

    id = Column(Integer, primary_key=True)
    event_id = Column(ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
    company_id = Column(ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    slot_capacity = Column(Integer)  # overrides session capacity for this company

    event = relationship('Events', back_populates='participants')
    company = relationship('Companies', back_populates='participations')


class Offers(Base):
    __tablename__ = 'offers'

    id = Column(Integer, primary_key=True)
    company_id = Column(ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    event_id = Column(ForeignKey('events.id', ondelete='SET NULL'))  # NULL = general offer
    title = Column(Text, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    company = relationship('Companies', back_populates='offers')
    event = relationship('Events', back_populates='offers')


class Students(Base):
    __tablename__ = 'students'

    id = Column(Integer, primary_key=True)
    full_name = Column(Text, nullable=False)
    email = Column(Text, unique=True)
    is_deprioritized = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    bookings = relationship('Bookings', back_populates='student')


class RecruitingSessions(Base):
    __tablename__ = 'speed_recruiting_sessions'
    __table_args__ = (
        CheckConstraint('start_time < end_time', name='valid_time_range'),
        CheckConstraint('interview_duration_minutes > 0', name='positive_duration'),
        CheckConstraint('buffer_minutes >= 0', name='positive_buffer'),
        CheckConstraint('slots_per_time > 0', name='positive_capacity'),
    )

    id = Column(Integer, primary_key=True)
    event_id = Column(ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    interview_duration_minutes = Column(Integer, nullable=False, default=15, server_default=text('15'))
    buffer_minutes = Column(Integer, nullable=False, default=5, server_default=text('5'))
    slots_per_time = Column(Integer, nullable=False, default=2, server_default=text('2'))  # capacity per slot
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    event = relationship('Events', back_populates='sessions')
    slots = relationship('EventSlots', back_populates='session', cascade='all', passive_deletes=True)


class EventSlots(Base):
    __tablename__ = 'event_slots'
    __table_args__ = (
        UniqueConstraint('session_id', 'company_id', 'start_time'),
        CheckConstraint('start_time < end_time', name='ck_slots_time_range'),
        CheckConstraint('capacity >= 1', name='ck_slots_capacity'),
        # last line of defence for the capacity invariant
        CheckConstraint('booked_count >= 0 AND booked_count <= capacity', name='ck_slots_booked_count'),
        Index('ix_event_slots_company_event', 'company_id', 'event_id'),
    )

    id = Column(Integer, primary_key=True)
    event_id = Column(ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
    session_id = Column(ForeignKey('speed_recruiting_sessions.id', ondelete='CASCADE'), index=True)
    company_id = Column(ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    offer_id = Column(ForeignKey('offers.id', ondelete='SET NULL'))
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    capacity = Column(Integer, nullable=False, default=2, server_default=text('2'))
    booked_count = Column(Integer, nullable=False, default=0, server_default=text('0'))  # confirmed bookings
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    session = relationship('RecruitingSessions', back_populates='slots')
    company = relationship('Companies', back_populates='slots')
    offer = relationship('Offers')
    bookings = relationship('Bookings', back_populates='slot', cascade='all', passive_deletes=True)


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        CheckConstraint("status IN ('confirmed', 'cancelled')", name='ck_bookings_status'),
        # one confirmed booking per (slot, student); cancelled rows are history
        Index(
            'uq_bookings_slot_student_confirmed',
            'slot_id',
            'student_id',
            unique=True,
            sqlite_where=text("status = 'confirmed'"),
            postgresql_where=text("status = 'confirmed'"),
        ),
        Index('ix_bookings_student_status', 'student_id', 'status'),
    )

    id = Column(Integer, primary_key=True)
    slot_id = Column(ForeignKey('event_slots.id', ondelete='CASCADE'), nullable=False)
    student_id = Column(ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    offer_id = Column(ForeignKey('offers.id', ondelete='SET NULL'))
    status = Column(Text, nullable=False, default='confirmed', server_default=text("'confirmed'"))
    booking_phase = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    cancelled_at = Column(DateTime)

    slot = relationship('EventSlots', back_populates='bookings')
    student = relationship('Students', back_populates='bookings')
    offer = relationship('Offers')
