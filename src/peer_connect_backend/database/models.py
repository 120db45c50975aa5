from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Enum, ForeignKeyConstraint, Index, Integer, JSON, Numeric, PrimaryKeyConstraint, SmallInteger, String, Text, Time, UniqueConstraint, Uuid, false, func, true
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import datetime
import decimal
import uuid

from .db_enums import (
    UserRole,
    CampusLocation,
    AcademicLevel,
    LearningStyle,
    StudentLevel,
    SessionStatus,
    NotificationType,
)


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


# Python-side defaults are set alongside server defaults so that freshly flushed
# rows never need a refresh (which would be implicit IO under AsyncSession).
user_role_enum = Enum(*UserRole.get_all_names(), name='user_role')
campus_location_enum = Enum(*CampusLocation.get_all_names(), name='campus_location_enum')
learning_style_enum = Enum(*LearningStyle.get_all_names(), name='learning_style_enum')
session_status_enum = Enum(*SessionStatus.get_all_names(), name='session_status_enum')


class Users(Base):
    __tablename__ = 'users'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='users_pkey'),
        UniqueConstraint('email', name='users_email_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255))
    password: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(user_role_enum)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    first_name: Mapped[Optional[str]] = mapped_column(Text)
    last_name: Mapped[Optional[str]] = mapped_column(Text)

    # common profile fields
    campus_location: Mapped[Optional[str]] = mapped_column(campus_location_enum)
    bio: Mapped[Optional[str]] = mapped_column(Text)
    profile_picture: Mapped[Optional[str]] = mapped_column(Text)
    profile_completed: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    profile_completed_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    notifications: Mapped[list['Notifications']] = relationship(
        'Notifications',
        back_populates='user',
        cascade='all, delete-orphan'
    )

    # role is the discriminator: a row is a Students or a Tutors, never both
    __mapper_args__ = {'polymorphic_on': 'role'}

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class Students(Users):
    __tablename__ = 'students'
    __table_args__ = (
        ForeignKeyConstraint(['id'], ['users.id'], ondelete='CASCADE', name='students_id_fkey'),
        PrimaryKeyConstraint('id', name='students_pkey')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    school: Mapped[Optional[str]] = mapped_column(Text)
    academic_level: Mapped[Optional[str]] = mapped_column(Enum(*AcademicLevel.get_all_names(), name='academic_level_enum'))
    preferred_learning_style: Mapped[Optional[str]] = mapped_column(learning_style_enum)

    subjects_of_interest: Mapped[list['StudentSubjectsOfInterest']] = relationship(
        'StudentSubjectsOfInterest',
        back_populates='student',
        cascade='all, delete-orphan',
        lazy='selectin'
    )
    sessions: Mapped[list['TutoringSessions']] = relationship(
        'TutoringSessions',
        back_populates='student',
        foreign_keys='[TutoringSessions.student_id]'
    )

    __mapper_args__ = {'polymorphic_identity': UserRole.STUDENT.value}


class Tutors(Users):
    __tablename__ = 'tutors'
    __table_args__ = (
        CheckConstraint('hourly_rate >= 0', name='tutors_hourly_rate_check'),
        CheckConstraint('years_experience >= 0', name='tutors_years_experience_check'),
        CheckConstraint('average_rating >= 0 AND average_rating <= 5', name='tutors_average_rating_check'),
        ForeignKeyConstraint(['id'], ['users.id'], ondelete='CASCADE', name='tutors_id_fkey'),
        PrimaryKeyConstraint('id', name='tutors_pkey')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    preferred_student_level: Mapped[Optional[str]] = mapped_column(Enum(*StudentLevel.get_all_names(), name='student_level_enum'))
    hourly_rate: Mapped[decimal.Decimal] = mapped_column(Numeric(10, 2), default=decimal.Decimal('0.00'), server_default='0')
    years_experience: Mapped[int] = mapped_column(Integer, default=0, server_default='0')
    average_rating: Mapped[decimal.Decimal] = mapped_column(Numeric(3, 2), default=decimal.Decimal('0.00'), server_default='0')
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, server_default='0')
    is_verified_tutor: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    # Bumped by every booking/reschedule; the UPDATE takes the row lock that
    # serializes schedule writes for this tutor.
    booking_sequence: Mapped[int] = mapped_column(Integer, default=0, server_default='0')

    specializations: Mapped[list['TutorSpecializations']] = relationship(
        'TutorSpecializations',
        back_populates='tutor',
        cascade='all, delete-orphan',
        lazy='selectin'
    )
    teaching_styles: Mapped[list['TutorTeachingStyles']] = relationship(
        'TutorTeachingStyles',
        back_populates='tutor',
        cascade='all, delete-orphan',
        lazy='selectin'
    )
    availability: Mapped[list['TutorAvailability']] = relationship(
        'TutorAvailability',
        back_populates='tutor',
        cascade='all, delete-orphan'
    )
    sessions: Mapped[list['TutoringSessions']] = relationship(
        'TutoringSessions',
        back_populates='tutor',
        foreign_keys='[TutoringSessions.tutor_id]'
    )

    __mapper_args__ = {'polymorphic_identity': UserRole.TUTOR.value}


class StudentSubjectsOfInterest(Base):
    __tablename__ = 'student_subjects_of_interest'
    __table_args__ = (
        ForeignKeyConstraint(['user_id'], ['students.id'], ondelete='CASCADE', name='student_subjects_of_interest_user_id_fkey'),
        PrimaryKeyConstraint('id', name='student_subjects_of_interest_pkey'),
        UniqueConstraint('user_id', 'subject', name='student_subjects_of_interest_user_id_subject_key'),
        Index('idx_student_subjects_of_interest_user_id', 'user_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    subject: Mapped[str] = mapped_column(Text)

    student: Mapped['Students'] = relationship('Students', back_populates='subjects_of_interest')


class TutorSpecializations(Base):
    __tablename__ = 'tutor_specializations'
    __table_args__ = (
        ForeignKeyConstraint(['tutor_id'], ['tutors.id'], ondelete='CASCADE', name='tutor_specializations_tutor_id_fkey'),
        PrimaryKeyConstraint('id', name='tutor_specializations_pkey'),
        UniqueConstraint('tutor_id', 'subject', name='tutor_specializations_tutor_id_subject_key'),
        Index('idx_tutor_specializations_tutor_id', 'tutor_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tutor_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    subject: Mapped[str] = mapped_column(Text)

    tutor: Mapped['Tutors'] = relationship('Tutors', back_populates='specializations')


class TutorTeachingStyles(Base):
    __tablename__ = 'tutor_teaching_styles'
    __table_args__ = (
        ForeignKeyConstraint(['tutor_id'], ['tutors.id'], ondelete='CASCADE', name='tutor_teaching_styles_tutor_id_fkey'),
        PrimaryKeyConstraint('id', name='tutor_teaching_styles_pkey'),
        UniqueConstraint('tutor_id', 'teaching_style', name='tutor_teaching_styles_tutor_id_teaching_style_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tutor_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    teaching_style: Mapped[str] = mapped_column(learning_style_enum)

    tutor: Mapped['Tutors'] = relationship('Tutors', back_populates='teaching_styles')


class TutorAvailability(Base):
    __tablename__ = 'tutor_availability'
    __table_args__ = (
        CheckConstraint('start_time IS NULL OR end_time IS NULL OR end_time > start_time', name='tutor_availability_time_bounds_check'),
        ForeignKeyConstraint(['tutor_id'], ['tutors.id'], ondelete='CASCADE', name='tutor_availability_tutor_id_fkey'),
        PrimaryKeyConstraint('id', name='tutor_availability_pkey'),
        UniqueConstraint('tutor_id', 'date', name='tutor_availability_tutor_id_date_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tutor_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    date: Mapped[datetime.date] = mapped_column(Date)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    start_time: Mapped[Optional[datetime.time]] = mapped_column(Time)
    end_time: Mapped[Optional[datetime.time]] = mapped_column(Time)

    tutor: Mapped['Tutors'] = relationship('Tutors', back_populates='availability')


class LearningSubjects(Base):
    __tablename__ = 'learning_subjects'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='learning_subjects_pkey'),
        UniqueConstraint('name', name='learning_subjects_name_key')
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text)


class TutoringSessions(Base):
    __tablename__ = 'tutoring_sessions'
    __table_args__ = (
        CheckConstraint('end_time > start_time', name='tutoring_sessions_time_order_check'),
        CheckConstraint('(subject_id IS NULL) <> (custom_subject IS NULL)', name='tutoring_sessions_one_subject_check'),
        CheckConstraint('total_cost >= 0', name='tutoring_sessions_total_cost_check'),
        ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE', name='tutoring_sessions_student_id_fkey'),
        ForeignKeyConstraint(['tutor_id'], ['tutors.id'], ondelete='CASCADE', name='tutoring_sessions_tutor_id_fkey'),
        ForeignKeyConstraint(['subject_id'], ['learning_subjects.id'], ondelete='RESTRICT', name='tutoring_sessions_subject_id_fkey'),
        PrimaryKeyConstraint('id', name='tutoring_sessions_pkey'),
        Index('idx_tutoring_sessions_tutor_date', 'tutor_id', 'session_date'),
        Index('idx_tutoring_sessions_student_id', 'student_id'),
        Index('idx_tutoring_sessions_status', 'status')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    tutor_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    subject_id: Mapped[Optional[int]] = mapped_column(Integer)
    custom_subject: Mapped[Optional[str]] = mapped_column(Text)
    session_date: Mapped[datetime.date] = mapped_column(Date)
    start_time: Mapped[datetime.time] = mapped_column(Time)
    end_time: Mapped[datetime.time] = mapped_column(Time)
    hourly_rate: Mapped[decimal.Decimal] = mapped_column(Numeric(10, 2))
    total_cost: Mapped[decimal.Decimal] = mapped_column(Numeric(10, 2))
    status: Mapped[str] = mapped_column(session_status_enum, default=SessionStatus.PENDING.value, server_default=SessionStatus.PENDING.value)
    has_review: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    student: Mapped['Students'] = relationship('Students', back_populates='sessions', foreign_keys=[student_id])
    tutor: Mapped['Tutors'] = relationship('Tutors', back_populates='sessions', foreign_keys=[tutor_id])
    subject: Mapped[Optional['LearningSubjects']] = relationship('LearningSubjects')
    review: Mapped[Optional['SessionReviews']] = relationship(
        'SessionReviews',
        back_populates='session',
        uselist=False
    )

    @property
    def subject_name(self) -> Optional[str]:
        """The catalog subject's name, or the free-text subject. Needs `subject` loaded."""
        if self.subject is not None:
            return self.subject.name
        return self.custom_subject


class SessionReviews(Base):
    __tablename__ = 'session_reviews'
    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='session_reviews_rating_check'),
        CheckConstraint("length(trim(comment)) > 0", name='session_reviews_comment_check'),
        ForeignKeyConstraint(['session_id'], ['tutoring_sessions.id'], ondelete='CASCADE', name='session_reviews_session_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE', name='session_reviews_student_id_fkey'),
        ForeignKeyConstraint(['tutor_id'], ['tutors.id'], ondelete='CASCADE', name='session_reviews_tutor_id_fkey'),
        PrimaryKeyConstraint('id', name='session_reviews_pkey'),
        UniqueConstraint('session_id', name='session_reviews_session_id_key'),
        Index('idx_session_reviews_tutor_id', 'tutor_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    tutor_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    rating: Mapped[int] = mapped_column(SmallInteger)
    comment: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    session: Mapped['TutoringSessions'] = relationship('TutoringSessions', back_populates='review')
    student: Mapped['Students'] = relationship('Students', foreign_keys=[student_id])


class Notifications(Base):
    __tablename__ = 'notifications'
    __table_args__ = (
        ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE', name='notifications_user_id_fkey'),
        PrimaryKeyConstraint('id', name='notifications_pkey'),
        Index('idx_notifications_user_id_is_read', 'user_id', 'is_read')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    type: Mapped[str] = mapped_column(Enum(*NotificationType.get_all_names(), name='notification_type_enum'))
    title: Mapped[str] = mapped_column(Text)
    message: Mapped[str] = mapped_column(Text)
    data: Mapped[dict] = mapped_column(JSON().with_variant(JSONB(), 'postgresql'), default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    user: Mapped['Users'] = relationship('Users', back_populates='notifications')
