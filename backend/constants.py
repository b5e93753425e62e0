"""
Application-wide constants and configuration keys.

This module centralizes all magic strings and numbers used throughout the application
to improve maintainability and reduce duplication.
"""
from enum import Enum


class UserRole(str, Enum):
    """Roles a marketplace account can hold."""

    HOMEOWNER = 'homeowner'
    COMPANY_ADMIN = 'company_admin'
    PROFESSIONAL = 'professional'
    ADMIN = 'admin'

    @classmethod
    def providers(cls) -> tuple['UserRole', ...]:
        """Roles that submit quotes and receive inquiries"""
        return (cls.COMPANY_ADMIN, cls.PROFESSIONAL)


class ProfessionalType(str, Enum):
    """Professional specialisations offered at sign-up (stored with role=professional)"""

    CONTRACTOR = 'contractor'
    INTERIOR_DESIGNER = 'interior-designer'
    RENOVATOR = 'renovator'
    ARCHITECT = 'architect'


class RequirementStatus(str, Enum):
    OPEN = 'open'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class RequirementPriority(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'


class QuoteStatus(str, Enum):
    SUBMITTED = 'submitted'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    WITHDRAWN = 'withdrawn'


class InquiryStatus(str, Enum):
    """
    Inquiry lifecycle.

    pending → in_progress → completed
       ↘           ↘
        cancelled   cancelled

    COMPLETED and CANCELLED are terminal.
    """

    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    @classmethod
    def allowed_transitions(cls, current: 'InquiryStatus') -> set['InquiryStatus']:
        """Get the statuses an inquiry may move to from its current status"""
        transitions = {
            cls.PENDING: {cls.IN_PROGRESS, cls.COMPLETED, cls.CANCELLED},
            cls.IN_PROGRESS: {cls.COMPLETED, cls.CANCELLED},
            cls.COMPLETED: set(),
            cls.CANCELLED: set(),
        }
        return transitions.get(current, set())


class PreferredContact(str, Enum):
    CALL = 'call'
    EMAIL = 'email'
    WHATSAPP = 'whatsapp'


class ProjectStatus(str, Enum):
    """Status of a showcase or portfolio project"""

    PLANNING = 'planning'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    ON_HOLD = 'on_hold'


class NotificationType(str, Enum):
    QUOTE_RECEIVED = 'quote_received'
    QUOTE_ACCEPTED = 'quote_accepted'
    QUOTE_REJECTED = 'quote_rejected'
    INQUIRY_RECEIVED = 'inquiry_received'
    INQUIRY_UPDATED = 'inquiry_updated'
    ACCOUNT_VERIFIED = 'account_verified'


class SocketEvent:
    """Realtime event names exchanged over the WebSocket endpoint"""

    # Client → server
    JOIN = 'join'
    SEND_MESSAGE = 'sendMessage'
    TYPING = 'typing'
    STOP_TYPING = 'stopTyping'

    # Server → client
    CONNECTION = 'connection'
    NEW_MESSAGE = 'newMessage'
    MESSAGE_SENT = 'messageSent'
    MESSAGE_ERROR = 'messageError'
    USER_TYPING = 'userTyping'
    USER_STOP_TYPING = 'userStopTyping'
    JOINED = 'joined'
    NOTIFICATION = 'notification'

    # Broadcasts
    PROFESSIONAL_CREATED = 'professionalCreated'
    PROFESSIONAL_UPDATED = 'professionalUpdated'
    PROFESSIONAL_DELETED = 'professionalDeleted'
    PROFESSIONAL_VERIFIED = 'professionalVerified'


class ChatConfig:
    """Chat limits"""

    MAX_MESSAGE_LENGTH = 5000
    TYPING_TIMEOUT_SECONDS = 5.0
    TYPING_SWEEP_INTERVAL_SECONDS = 1.0
    SEND_QUEUE_SIZE = 1000


class QuoteConfig:
    VALIDITY_DAYS = 30
    MAX_MILESTONE_PERCENT = 100.0


class BudgetConfig:
    # Largest rupee amount a budget column stores (64-bit integer)
    MAX_AMOUNT = 2 ** 63 - 1


class UploadConfig:
    """Accepted upload content types and their file extensions"""

    IMAGE_TYPES = {
        'image/jpeg': '.jpg',
        'image/png': '.png',
        'image/gif': '.gif',
        'image/webp': '.webp',
    }
    URL_PREFIX = '/uploads'
    CHUNK_SIZE = 1024 * 1024


class AnalyticsRange:
    """Time ranges accepted by the professional analytics endpoint, in days"""

    DAYS = {
        '7d': 7,
        '30d': 30,
        '90d': 90,
        '1y': 365,
    }
    DEFAULT = '30d'
    GROWTH_MONTHS = 6


class Pagination:
    DEFAULT_LIMIT = 12
    MAX_LIMIT = 100


class HTTPStatus:
    """HTTP status codes for API responses"""

    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    REQUEST_ENTITY_TOO_LARGE = 413
    INTERNAL_SERVER_ERROR = 500


class ServiceType(str, Enum):
    """Services a homeowner can request quotes for"""

    INTERIOR_DESIGN = 'interior-design'
    CONSTRUCTION = 'construction'
    RENOVATION = 'renovation'
    ARCHITECTURE = 'architecture'
