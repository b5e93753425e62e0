"""
Repository layer for data access abstraction.

This package contains repository classes that encapsulate database queries
and provide a clean interface for data access operations.
"""

from .base_repository import BaseRepository
from .user_repository import UserRepository
from .company_repository import CompanyRepository
from .professional_repository import (
    ProfessionalRepository,
    ProfessionalCompanyRepository,
    ProfessionalProjectRepository,
)
from .project_repository import ProjectRepository, ReviewRepository
from .requirement_repository import RequirementRepository, QuoteRepository
from .inquiry_repository import InquiryRepository
from .conversation_repository import ConversationRepository, MessageRepository
from .notification_repository import NotificationRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "CompanyRepository",
    "ProfessionalRepository",
    "ProfessionalCompanyRepository",
    "ProfessionalProjectRepository",
    "ProjectRepository",
    "ReviewRepository",
    "RequirementRepository",
    "QuoteRepository",
    "InquiryRepository",
    "ConversationRepository",
    "MessageRepository",
    "NotificationRepository",
]
