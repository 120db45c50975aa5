'''
Static enums mirroring the PostgreSQL ENUM types of the schema.
The ORM stores their .value strings.
'''
import enum


# --- Base Enum Class ---
class ListableEnum(str, enum.Enum):
    """A custom Enum base class that can list all member values."""
    @classmethod
    def get_all_names(cls) -> list[str]:
        return [member.value for member in cls]


class UserRole(ListableEnum):
    STUDENT = 'student'
    TUTOR = 'tutor'


class CampusLocation(ListableEnum):
    MAIN_CAMPUS = 'main_campus'
    PUCU = 'pucu'


class AcademicLevel(ListableEnum):
    HIGH_SCHOOL = 'high_school'
    SHS = 'shs'
    UNDERGRADUATE_FRESHMAN = 'undergraduate_freshman'
    UNDERGRADUATE_SOPHOMORE = 'undergraduate_sophomore'
    UNDERGRADUATE_JUNIOR = 'undergraduate_junior'
    UNDERGRADUATE_SENIOR = 'undergraduate_senior'


class LearningStyle(ListableEnum):
    """Used both for a student's preferred style and a tutor's teaching styles."""
    VISUAL = 'visual'
    AUDITORY = 'auditory'
    KINESTHETIC = 'kinesthetic'
    READING_WRITING = 'reading_writing'
    MIXED = 'mixed'


class StudentLevel(ListableEnum):
    """The level of students a tutor prefers to teach."""
    SHS = 'shs'
    COLLEGE = 'college'


class SessionStatus(ListableEnum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    REJECTED = 'rejected'

    @classmethod
    def terminal(cls) -> set['SessionStatus']:
        return {cls.COMPLETED, cls.CANCELLED, cls.REJECTED}

    @classmethod
    def blocking(cls) -> set['SessionStatus']:
        """Statuses that occupy the tutor's calendar."""
        return {cls.PENDING, cls.CONFIRMED}


class NotificationType(ListableEnum):
    SESSION_REQUEST = 'session_request'
    SESSION_BOOKED = 'session_booked'
    SESSION_CONFIRMED = 'session_confirmed'
    SESSION_REJECTED = 'session_rejected'
    SESSION_CANCELLED = 'session_cancelled'
    SESSION_RESCHEDULED = 'session_rescheduled'
    SESSION_COMPLETED = 'session_completed'
    REVIEW_RECEIVED = 'review_received'


# Which student academic levels each tutor preference admits
LEVELS_ADMITTED_BY = {
    StudentLevel.SHS: {AcademicLevel.HIGH_SCHOOL, AcademicLevel.SHS},
    StudentLevel.COLLEGE: {
        AcademicLevel.UNDERGRADUATE_FRESHMAN,
        AcademicLevel.UNDERGRADUATE_SOPHOMORE,
        AcademicLevel.UNDERGRADUATE_JUNIOR,
        AcademicLevel.UNDERGRADUATE_SENIOR,
    },
}
