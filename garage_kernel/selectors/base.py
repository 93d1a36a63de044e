"""
Module: garage_kernel.selectors.base
Responsibility: Common root of the read side.  Report code receives the
    caller's Session and answers questions about the workshop without
    changing it.
Architecture position: Kernel > Selectors.  Imports db/, models/ and the
    pure domain layer; never services/.

Invariants enforced:
    - No add / delete / flush / commit on the session.
    - Results are frozen dataclasses, not ORM instances.
    - Plain reads: no FOR UPDATE, so reports never block a writer.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from garage_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Holds the session a selector reads through."""

    def __init__(self, session: Session):
        self.session = session
