from sqlalchemy import Column, String, Integer, Float, Boolean, Text, DateTime, ForeignKey, JSON, CheckConstraint, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from database import Base
from utils.ids import generate_uuid
from utils.budget import format_budget


class User(Base):
    """
    A marketplace account.

    Roles:
    - homeowner: posts requirements, sends inquiries, reviews projects
    - company_admin: owns one Company, publishes showcase projects, quotes
    - professional: owns a Professional profile and portfolio, quotes
    - admin: moderates users, companies, professionals and requirements
    """
    __tablename__ = 'users'

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    phone = Column(String, nullable=True)
    location = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default='homeowner')
    professional_type = Column(String, nullable=True)  # contractor, interior-designer, ... (role=professional only)
    avatar = Column(String, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    company = relationship("Company", back_populates="admin", uselist=False, cascade="all, delete-orphan")
    professional = relationship("Professional", back_populates="user", uselist=False, cascade="all, delete-orphan")
    requirements = relationship("Requirement", back_populates="homeowner", cascade="all, delete-orphan")
    quotes = relationship("Quote", back_populates="provider", cascade="all, delete-orphan")
    inquiries = relationship("Inquiry", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")
    professional_companies = relationship("ProfessionalCompany", back_populates="owner", cascade="all, delete-orphan")
    professional_projects = relationship("ProfessionalProject", back_populates="owner", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("name != ''"),
        CheckConstraint("role IN ('homeowner', 'company_admin', 'professional', 'admin')", name='ck_users_role'),
        Index('idx_users_role', 'role'),
    )


class Company(Base):
    __tablename__ = 'companies'

    id = Column(String, primary_key=True, default=generate_uuid)
    admin_id = Column(String, ForeignKey('users.id'), nullable=False, unique=True)
    name = Column(String, nullable=False)
    description = Column(Text, default='')
    logo = Column(String, nullable=True)
    website = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    whatsapp = Column(String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(String, nullable=True)
    services = Column(JSON, default=list)
    specializations = Column(JSON, default=list)
    certifications = Column(JSON, default=list)
    established = Column(String, nullable=True)
    employees = Column(String, nullable=True)
    portfolio_images = Column(JSON, default=list)
    rating = Column(Float, default=0.0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    admin = relationship("User", back_populates="company")
    projects = relationship("Project", back_populates="company", cascade="all, delete-orphan")
    inquiries = relationship("Inquiry", back_populates="company", cascade="all, delete-orphan")
    quotes = relationship("Quote", back_populates="company")

    __table_args__ = (
        CheckConstraint("name != ''"),
    )


class Professional(Base):
    __tablename__ = 'professionals'

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey('users.id'), nullable=False, unique=True)
    name = Column(String, nullable=False)
    description = Column(Text, default='')
    logo = Column(String, nullable=True)
    website = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    services = Column(JSON, default=list)
    specialties = Column(JSON, default=list)
    license = Column(String, nullable=True)
    insurance = Column(String, nullable=True)
    location = Column(JSON, default=dict)  # {city, state, zipCode}
    business_hours = Column(JSON, default=dict)  # {monday: {open, close}, ...}
    portfolio_images = Column(JSON, default=list)
    rating = Column(Float, default=0.0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="professional")


class Project(Base):
    """A completed or ongoing project a company showcases on the public listings."""
    __tablename__ = 'projects'

    id = Column(String, primary_key=True, default=generate_uuid)
    company_id = Column(String, ForeignKey('companies.id'), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, default='')
    building_type = Column(String, nullable=True)
    location = Column(String, nullable=True)
    size = Column(Integer, nullable=True)  # square feet
    budget = Column(Integer, nullable=True)  # rupees
    completion_date = Column(String, nullable=True)
    features = Column(JSON, default=list)
    images = Column(JSON, default=list)
    status = Column(String, default='completed', nullable=False)
    views = Column(Integer, default=0, nullable=False)
    rating = Column(Float, default=0.0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    company = relationship("Company", back_populates="projects")
    reviews = relationship("Review", back_populates="project", cascade="all, delete-orphan")
    inquiries = relationship("Inquiry", back_populates="project")

    __table_args__ = (
        CheckConstraint("title != ''"),
        Index('idx_projects_company', 'company_id'),
    )

    @property
    def budget_range(self) -> str:
        """Display label for the budget (e.g. '₹45L')"""
        return format_budget(self.budget)


class ProfessionalCompany(Base):
    """A company a professional has worked with, shown on their portfolio."""
    __tablename__ = 'professional_companies'

    id = Column(String, primary_key=True, default=generate_uuid)
    owner_id = Column(String, ForeignKey('users.id'), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, default='')
    logo = Column(String, nullable=True)
    website = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(String, nullable=True)
    role = Column(String, nullable=True)  # the professional's role at this company
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="professional_companies")
    projects = relationship("ProfessionalProject", back_populates="company")


class ProfessionalProject(Base):
    __tablename__ = 'professional_projects'

    id = Column(String, primary_key=True, default=generate_uuid)
    owner_id = Column(String, ForeignKey('users.id'), nullable=False)
    company_id = Column(String, ForeignKey('professional_companies.id', ondelete='SET NULL'), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, default='')
    project_type = Column(String, nullable=True)
    status = Column(String, default='completed', nullable=False)
    start_date = Column(String, nullable=True)
    end_date = Column(String, nullable=True)
    budget = Column(Integer, nullable=True)
    location = Column(String, nullable=True)
    client_name = Column(String, nullable=True)
    images = Column(JSON, default=list)
    featured_image = Column(String, nullable=True)
    tags = Column(JSON, default=list)
    is_featured = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    views = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="professional_projects")
    company = relationship("ProfessionalCompany", back_populates="projects")


class Requirement(Base):
    """
    A homeowner's request for quotes.

    Requirement States:
    - open: accepting quotes
    - in_progress: a quote was selected
    - completed: work finished
    - cancelled: withdrawn by the homeowner
    """
    __tablename__ = 'requirements'

    id = Column(String, primary_key=True, default=generate_uuid)
    homeowner_id = Column(String, ForeignKey('users.id'), nullable=False)
    service_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String, nullable=False)
    budget = Column(Integer, nullable=False, default=0)
    building_type = Column(String, nullable=True)
    size = Column(Integer, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    features = Column(JSON, default=list)
    design_preferences = Column(Text, nullable=True)
    timeline_start = Column(String, nullable=True)  # YYYY-MM-DD
    timeline_end = Column(String, nullable=True)  # YYYY-MM-DD
    priority = Column(String, default='medium', nullable=False)
    request_multiple_quotes = Column(Boolean, default=True, nullable=False)
    attachments = Column(JSON, default=list)
    status = Column(String, default='open', nullable=False)
    selected_quote_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    homeowner = relationship("User", back_populates="requirements")
    quotes = relationship("Quote", back_populates="requirement", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("title != ''"),
        CheckConstraint("budget >= 0"),
        Index('idx_requirements_status', 'status'),
    )

    @property
    def budget_range(self) -> str:
        return format_budget(self.budget)

    @property
    def timeline(self) -> dict:
        return {'startDate': self.timeline_start, 'endDate': self.timeline_end}

    @property
    def quote_count(self) -> int:
        """Number of quotes still in play (withdrawn quotes are not counted)"""
        return sum(1 for quote in self.quotes if quote.status != 'withdrawn')


class Quote(Base):
    __tablename__ = 'quotes'

    id = Column(String, primary_key=True, default=generate_uuid)
    requirement_id = Column(String, ForeignKey('requirements.id'), nullable=False)
    provider_id = Column(String, ForeignKey('users.id'), nullable=False)
    company_id = Column(String, ForeignKey('companies.id', ondelete='SET NULL'), nullable=True)
    design_proposal = Column(Text, nullable=False)
    estimated_budget = Column(Float, nullable=False)
    budget_breakdown = Column(JSON, default=dict)
    timeline_start = Column(String, nullable=True)
    timeline_end = Column(String, nullable=True)
    milestones = Column(JSON, default=list)
    additional_notes = Column(Text, default='')
    terms = Column(JSON, default=dict)
    status = Column(String, default='submitted', nullable=False)
    valid_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    requirement = relationship("Requirement", back_populates="quotes")
    provider = relationship("User", back_populates="quotes")
    company = relationship("Company", back_populates="quotes")

    __table_args__ = (
        UniqueConstraint('requirement_id', 'provider_id', name='uq_quote_provider'),
        CheckConstraint("estimated_budget > 0"),
        Index('idx_quotes_requirement', 'requirement_id'),
    )

    @property
    def timeline(self) -> dict:
        return {
            'startDate': self.timeline_start,
            'endDate': self.timeline_end,
            'milestones': self.milestones or [],
        }


class Inquiry(Base):
    __tablename__ = 'inquiries'

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey('users.id'), nullable=False)
    company_id = Column(String, ForeignKey('companies.id'), nullable=False)
    project_id = Column(String, ForeignKey('projects.id', ondelete='SET NULL'), nullable=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    preferred_contact = Column(String, default='email', nullable=False)
    status = Column(String, default='pending', nullable=False)
    notes = Column(Text, default='')
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="inquiries")
    company = relationship("Company", back_populates="inquiries")
    project = relationship("Project", back_populates="inquiries")

    __table_args__ = (
        Index('idx_inquiries_company_status', 'company_id', 'status'),
    )


class Conversation(Base):
    """
    A chat thread between exactly two users.

    The id is chosen by the client (e.g. conv_<user>_<company>_<inquiry>); the
    participants are fixed by the first message sent into it.
    """
    __tablename__ = 'conversations'

    id = Column(String, primary_key=True)
    participant_one_id = Column(String, ForeignKey('users.id'), nullable=False)
    participant_two_id = Column(String, ForeignKey('users.id'), nullable=False)
    inquiry_id = Column(String, ForeignKey('inquiries.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    participant_one = relationship("User", foreign_keys=[participant_one_id])
    participant_two = relationship("User", foreign_keys=[participant_two_id])
    messages = relationship("Message", back_populates="conversation", cascade="all, delete-orphan",
                            order_by="Message.created_at")

    __table_args__ = (
        CheckConstraint("participant_one_id != participant_two_id"),
    )

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.participant_one_id, self.participant_two_id)

    def other_participant_id(self, user_id: str) -> str:
        """Get the id of the participant that is not user_id"""
        return self.participant_two_id if user_id == self.participant_one_id else self.participant_one_id


class Message(Base):
    __tablename__ = 'messages'

    id = Column(String, primary_key=True, default=generate_uuid)
    conversation_id = Column(String, ForeignKey('conversations.id'), nullable=False)
    sender_id = Column(String, ForeignKey('users.id'), nullable=False)
    receiver_id = Column(String, ForeignKey('users.id'), nullable=False)
    content = Column(Text, nullable=False)
    client_message_id = Column(String, nullable=True)  # optimistic temp id from the sender
    inquiry_id = Column(String, nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    conversation = relationship("Conversation", back_populates="messages")
    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])

    __table_args__ = (
        UniqueConstraint('sender_id', 'client_message_id', name='uq_message_client_id'),
        CheckConstraint("content != ''"),
        Index('idx_messages_conversation', 'conversation_id', 'created_at'),
        Index('idx_messages_receiver_unread', 'receiver_id', 'read'),
    )


class Notification(Base):
    __tablename__ = 'notifications'

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey('users.id'), nullable=False)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, default='')
    link = Column(String, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="notifications")

    __table_args__ = (
        Index('idx_notifications_user_read', 'user_id', 'is_read'),
    )


class Review(Base):
    __tablename__ = 'reviews'

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey('projects.id'), nullable=False)
    user_id = Column(String, ForeignKey('users.id'), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    images = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="reviews")
    user = relationship("User", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint('project_id', 'user_id', name='uq_review_user'),
        CheckConstraint("rating >= 1 AND rating <= 5"),
    )
