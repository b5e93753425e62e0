from pydantic import BaseModel, EmailStr, Field, AliasChoices, validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Any, Dict
from datetime import datetime

from constants import RequirementPriority, InquiryStatus, PreferredContact, ProjectStatus


class ApiModel(BaseModel):
    """Base for every request/response body: camelCase on the wire, snake_case in Python"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        use_enum_values = True


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# User Schemas
class UserSummary(ApiModel):
    id: str = Field(alias='_id')
    name: str
    email: str
    avatar: Optional[str] = None


class UserResponse(UserSummary):
    phone: Optional[str] = None
    location: Optional[str] = None
    role: str
    professional_type: Optional[str] = None
    is_verified: bool
    is_active: bool
    created_at: datetime


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(ApiModel):
    name: str
    email: EmailStr
    password: str = Field(min_length=8)
    role: str = 'homeowner'
    phone: Optional[str] = None
    location: Optional[str] = None

    @validator('name')
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Name is required')
        return v.strip()


class AuthResponse(ApiModel):
    token: str
    user: UserResponse


class ProfileUpdate(ApiModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None

    @validator('name')
    def name_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip() if v else v


class VerifyRequest(ApiModel):
    """Set verification explicitly; omitted means toggle"""
    is_verified: Optional[bool] = None


# Company Schemas
class CompanySummary(ApiModel):
    id: str = Field(alias='_id')
    name: str
    logo: Optional[str] = None
    is_verified: bool = False
    rating: float = 0.0


class CompanyBase(ApiModel):
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    services: Optional[List[str]] = None
    specializations: Optional[List[str]] = None
    certifications: Optional[List[str]] = None
    established: Optional[str] = None
    employees: Optional[str] = None
    portfolio_images: Optional[List[str]] = None


class CompanyCreate(CompanyBase):
    name: str

    @validator('name')
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Company name is required')
        return v.strip()


class CompanyUpdate(CompanyBase):
    name: Optional[str] = None


class CompanyResponse(CompanySummary):
    admin_id: str
    description: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    services: List[str] = []
    specializations: List[str] = []
    certifications: List[str] = []
    established: Optional[str] = None
    employees: Optional[str] = None
    portfolio_images: List[str] = []
    review_count: int = 0
    created_at: datetime
    admin: Optional[UserSummary] = None


# Project Schemas
class ProjectBase(ApiModel):
    description: Optional[str] = None
    building_type: Optional[str] = Field(default=None, validation_alias=AliasChoices('buildingType', 'building_type', 'type'))
    location: Optional[str] = None
    size: Optional[int] = Field(default=None, validation_alias=AliasChoices('size', 'area'))
    budget: Optional[int] = None
    completion_date: Optional[str] = None
    features: Optional[List[str]] = None
    images: Optional[List[str]] = None
    status: Optional[ProjectStatus] = None

    @validator('size', 'budget', 'completion_date', pre=True)
    def blank_is_none(cls, v):
        return _blank_to_none(v)


class ProjectCreate(ProjectBase):
    title: str

    @validator('title')
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Title is required')
        return v.strip()


class ProjectUpdate(ProjectBase):
    title: Optional[str] = None


class ProjectResponse(ApiModel):
    id: str = Field(alias='_id')
    company_id: str
    title: str
    description: Optional[str] = None
    building_type: Optional[str] = None
    location: Optional[str] = None
    size: Optional[int] = None
    budget: Optional[int] = None
    budget_range: str
    completion_date: Optional[str] = None
    features: List[str] = []
    images: List[str] = []
    status: str
    views: int = 0
    rating: float = 0.0
    review_count: int = 0
    created_at: datetime
    company: Optional[CompanySummary] = None


class CompanyDetail(CompanyResponse):
    projects: List[ProjectResponse] = []


class ProjectPage(ApiModel):
    projects: List[ProjectResponse]
    total: int
    page: int
    pages: int


# Review Schemas
class ReviewCreate(ApiModel):
    rating: int = Field(ge=1, le=5)
    comment: str
    images: List[str] = []

    @validator('comment')
    def comment_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Please enter a comment')
        return v.strip()


class ReviewResponse(ApiModel):
    id: str = Field(alias='_id')
    project_id: str
    rating: int
    comment: str
    images: List[str] = []
    created_at: datetime
    user: UserSummary


# Professional Schemas
class ProfessionalLocation(ApiModel):
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class ProfessionalProfileUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    services: Optional[List[str]] = None
    specialties: Optional[List[str]] = None
    license: Optional[str] = None
    insurance: Optional[str] = None
    location: Optional[ProfessionalLocation] = None
    business_hours: Optional[Dict[str, Any]] = None
    portfolio_images: Optional[List[str]] = None


class ProfessionalResponse(ApiModel):
    id: str = Field(alias='_id')
    user_id: str
    name: str
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    services: List[str] = []
    specialties: List[str] = []
    license: Optional[str] = None
    insurance: Optional[str] = None
    location: Dict[str, Any] = {}
    business_hours: Dict[str, Any] = {}
    portfolio_images: List[str] = []
    rating: float = 0.0
    review_count: int = 0
    is_verified: bool = False
    created_at: datetime
    user: Optional[UserSummary] = None


class ProfessionalCompanyBase(ApiModel):
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    role: Optional[str] = None


class ProfessionalCompanyCreate(ProfessionalCompanyBase):
    name: str

    @validator('name')
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Company name is required')
        return v.strip()


class ProfessionalCompanyUpdate(ProfessionalCompanyBase):
    name: Optional[str] = None


class ProfessionalCompanyResponse(ApiModel):
    id: str = Field(alias='_id')
    owner_id: str
    name: str
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    role: Optional[str] = None
    created_at: datetime


class ProfessionalProjectBase(ApiModel):
    description: Optional[str] = None
    company_id: Optional[str] = Field(default=None, validation_alias=AliasChoices('companyId', 'company_id', 'company'))
    project_type: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[int] = None
    location: Optional[str] = None
    client_name: Optional[str] = None
    images: Optional[List[str]] = None
    featured_image: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None

    @validator('company_id', 'budget', 'start_date', 'end_date', pre=True)
    def blank_is_none(cls, v):
        return _blank_to_none(v)


class ProfessionalProjectCreate(ProfessionalProjectBase):
    title: str

    @validator('title')
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Title is required')
        return v.strip()


class ProfessionalProjectUpdate(ProfessionalProjectBase):
    title: Optional[str] = None


class ProfessionalProjectResponse(ApiModel):
    id: str = Field(alias='_id')
    owner_id: str
    company_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    project_type: Optional[str] = None
    status: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[int] = None
    location: Optional[str] = None
    client_name: Optional[str] = None
    images: List[str] = []
    featured_image: Optional[str] = None
    tags: List[str] = []
    is_featured: bool = False
    is_public: bool = True
    views: int = 0
    created_at: datetime
    company: Optional[ProfessionalCompanyResponse] = None


# Requirement Schemas
class HomeownerPublic(ApiModel):
    """What providers may see about the homeowner behind an open requirement"""
    name: str
    location: Optional[str] = None


class RequirementTimeline(ApiModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class RequirementSummary(ApiModel):
    id: str = Field(alias='_id')
    title: str
    service_type: str
    location: str
    budget: int
    budget_range: str
    status: str


class RequirementResponse(RequirementSummary):
    homeowner_id: str
    description: str
    building_type: Optional[str] = None
    size: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    features: List[str] = []
    design_preferences: Optional[str] = None
    timeline: RequirementTimeline
    priority: str
    request_multiple_quotes: bool
    attachments: List[str] = []
    selected_quote_id: Optional[str] = None
    quote_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class RequirementWithOwner(RequirementResponse):
    homeowner: UserSummary


class OpenRequirementResponse(RequirementResponse):
    homeowner: HomeownerPublic


# Quote Schemas
class BudgetBreakdown(ApiModel):
    materials: float = 0
    labor: float = 0
    equipment: float = 0
    permits: float = 0
    overhead: float = 0
    profit: float = 0
    other: float = 0


class Milestone(ApiModel):
    name: str
    description: Optional[str] = None
    estimated_date: Optional[str] = None
    percentage: float = Field(default=0, ge=0)


class QuoteTimeline(ApiModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    milestones: List[Milestone] = []


class QuoteTerms(ApiModel):
    payment_schedule: Optional[str] = None
    cancellation_policy: Optional[str] = None
    revision_policy: Optional[str] = None
    warranty: Optional[str] = None


class QuoteCreate(ApiModel):
    requirement: str = Field(validation_alias=AliasChoices('requirement', 'requirementId'))
    design_proposal: str
    estimated_budget: float
    additional_notes: Optional[str] = None
    budget_breakdown: BudgetBreakdown = BudgetBreakdown()
    timeline: QuoteTimeline = QuoteTimeline()
    terms: QuoteTerms = QuoteTerms()

    @validator('design_proposal')
    def proposal_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Design proposal is required')
        return v.strip()


class QuoteResponse(ApiModel):
    id: str = Field(alias='_id')
    requirement_id: str
    provider_id: str
    company_id: Optional[str] = None
    design_proposal: str
    estimated_budget: float
    budget_breakdown: Dict[str, Any] = {}
    timeline: Dict[str, Any] = {}
    additional_notes: Optional[str] = None
    terms: Dict[str, Any] = {}
    status: str
    valid_until: Optional[datetime] = None
    created_at: datetime
    provider: UserSummary
    company: Optional[CompanySummary] = None
    requirement: Optional[RequirementSummary] = None


class SelectQuoteRequest(ApiModel):
    quote_id: str


# Inquiry Schemas
class InquiryCreate(ApiModel):
    company: str = Field(validation_alias=AliasChoices('company', 'companyId'))
    project: Optional[str] = Field(default=None, validation_alias=AliasChoices('project', 'projectId'))
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    message: str
    preferred_contact: PreferredContact = PreferredContact.EMAIL

    @validator('project', 'name', 'email', 'phone', pre=True)
    def blank_is_none(cls, v):
        return _blank_to_none(v)

    @validator('message')
    def message_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Message is required')
        return v.strip()


class InquiryStatusUpdate(ApiModel):
    status: InquiryStatus
    notes: Optional[str] = None


class ProjectSummary(ApiModel):
    id: str = Field(alias='_id')
    title: str


class InquiryResponse(ApiModel):
    id: str = Field(alias='_id')
    name: str
    email: str
    phone: Optional[str] = None
    message: str
    preferred_contact: str
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    user: UserSummary
    company: CompanySummary
    project: Optional[ProjectSummary] = None


# Messaging Schemas
class MessageCreate(ApiModel):
    receiver_id: str
    content: str
    client_message_id: Optional[str] = None
    inquiry_id: Optional[str] = None


class MessageResponse(ApiModel):
    id: str = Field(alias='_id')
    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    client_message_id: Optional[str] = None
    inquiry_id: Optional[str] = None
    read: bool
    created_at: datetime
    sender: Optional[UserSummary] = None


class LastMessage(ApiModel):
    content: str
    created_at: datetime
    sender: str


class ConversationSummary(ApiModel):
    conversation_id: str
    other_user: UserSummary
    company: Optional[CompanySummary] = None
    last_message: Optional[LastMessage] = None
    unread_count: int
    total_messages: int


class ReadReceipt(ApiModel):
    updated: int


# Notification Schemas
class NotificationResponse(ApiModel):
    id: str = Field(alias='_id')
    type: str
    title: str
    message: Optional[str] = None
    link: Optional[str] = None
    is_read: bool
    created_at: datetime


class NotificationList(ApiModel):
    notifications: List[NotificationResponse]
    unread_count: int


# Upload Schemas
class UploadResponse(ApiModel):
    url: str


class MultiUploadResponse(ApiModel):
    urls: List[str]


def dump(schema: type[ApiModel], obj: Any) -> dict:
    """Serialize an ORM object the way it goes over the wire (camelCase, ISO dates)"""
    return schema.model_validate(obj).model_dump(by_alias=True, mode='json')
