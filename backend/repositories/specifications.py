"""
Specification Pattern Implementation

Encapsulates listing and moderation filters in small composable objects that
work both as SQL filters (repository queries) and as in-memory predicates.

Specifications compose with & (AND), | (OR) and ~ (NOT). MatchAll is the
neutral element used when an optional filter is absent.
"""

from abc import ABC, abstractmethod
from typing import Generic, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import and_, func, not_, or_, true

T = TypeVar('T')


class Specification(ABC, Generic[T]):
    """
    Abstract base class for specifications.

    A specification encapsulates a single query criterion.
    """

    @abstractmethod
    def is_satisfied_by(self, candidate: T) -> bool:
        """Check if a candidate object satisfies this specification."""
        pass

    @abstractmethod
    def to_sql_filter(self):
        """Convert specification to SQLAlchemy filter expression."""
        pass

    def __and__(self, other: "Specification[T]") -> "Specification[T]":
        if isinstance(other, MatchAll):
            return self
        if isinstance(self, MatchAll):
            return other
        return AndSpecification(self, other)

    def __or__(self, other: "Specification[T]") -> "OrSpecification[T]":
        return OrSpecification(self, other)

    def __invert__(self) -> "NotSpecification[T]":
        return NotSpecification(self)


class MatchAll(Specification[T]):
    """Specification satisfied by every candidate."""

    def is_satisfied_by(self, candidate: T) -> bool:
        return True

    def to_sql_filter(self):
        return true()


class AndSpecification(Specification[T]):

    def __init__(self, left: Specification[T], right: Specification[T]):
        self.left = left
        self.right = right

    def is_satisfied_by(self, candidate: T) -> bool:
        return self.left.is_satisfied_by(candidate) and self.right.is_satisfied_by(candidate)

    def to_sql_filter(self):
        return and_(self.left.to_sql_filter(), self.right.to_sql_filter())


class OrSpecification(Specification[T]):

    def __init__(self, left: Specification[T], right: Specification[T]):
        self.left = left
        self.right = right

    def is_satisfied_by(self, candidate: T) -> bool:
        return self.left.is_satisfied_by(candidate) or self.right.is_satisfied_by(candidate)

    def to_sql_filter(self):
        return or_(self.left.to_sql_filter(), self.right.to_sql_filter())


class NotSpecification(Specification[T]):

    def __init__(self, spec: Specification[T]):
        self.spec = spec

    def is_satisfied_by(self, candidate: T) -> bool:
        return not self.spec.is_satisfied_by(candidate)

    def to_sql_filter(self):
        return not_(self.spec.to_sql_filter())


class FieldEqualsSpec(Specification[T]):
    """Candidate attribute equals a value."""

    def __init__(self, model, field: str, value):
        self.column = getattr(model, field)
        self.field = field
        self.value = value

    def is_satisfied_by(self, candidate: T) -> bool:
        return getattr(candidate, self.field) == self.value

    def to_sql_filter(self):
        return self.column == self.value


class TextSearchSpec(Specification[T]):
    """
    Case-insensitive substring match against any of several text fields.

    Args:
        model: Mapped class whose columns are searched
        fields: Names of the text columns to search
        term: Substring to look for
    """

    def __init__(self, model, fields: Sequence[str], term: str):
        self.model = model
        self.fields = list(fields)
        self.term = term.strip().lower()

    def is_satisfied_by(self, candidate: T) -> bool:
        return any(self.term in (getattr(candidate, field) or '').lower() for field in self.fields)

    def to_sql_filter(self):
        return or_(*[
            func.lower(getattr(self.model, field)).contains(self.term, autoescape=True)
            for field in self.fields
        ])


class RangeSpec(Specification[T]):
    """Numeric attribute within [minimum, maximum]; either bound may be None."""

    def __init__(self, model, field: str, minimum: Optional[float] = None, maximum: Optional[float] = None):
        self.column = getattr(model, field)
        self.field = field
        self.minimum = minimum
        self.maximum = maximum

    def is_satisfied_by(self, candidate: T) -> bool:
        value = getattr(candidate, self.field)
        if value is None:
            return False
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True

    def to_sql_filter(self):
        clauses = [self.column.isnot(None)]
        if self.minimum is not None:
            clauses.append(self.column >= self.minimum)
        if self.maximum is not None:
            clauses.append(self.column <= self.maximum)
        return and_(*clauses)


def all_of(specs: Iterable[Optional[Specification[T]]]) -> Specification[T]:
    """AND together the given specifications, skipping None entries"""
    combined: Specification[T] = MatchAll()
    for spec in specs:
        if spec is not None:
            combined = combined & spec
    return combined
