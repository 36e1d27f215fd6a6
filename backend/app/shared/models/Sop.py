# app/shared/models/Sop.py
"""
Procédures (SOP) et historique de complétion.

CompletionRecord (table user_progress) est un journal append-only :
une ligne par tentative d'un membre sur une procédure. Jamais modifié
par le moteur de scoring.
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, Float,
    DateTime, JSON, ForeignKey, Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base
from app.shared.enums import DifficultyLevel, enum_values


class SopCategory(Base):
    __tablename__ = "sop_categories"

    id            = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    name          = Column(String, nullable=False)
    name_fr       = Column(String, nullable=True)

    documents = relationship("SopDocument", back_populates="category")

    def __repr__(self):
        return f"<SopCategory id={self.id} name={self.name}>"


class SopDocument(Base):
    __tablename__ = "sop_documents"

    id            = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    category_id   = Column(Integer, ForeignKey("sop_categories.id"), nullable=True)

    title    = Column(String, nullable=False)
    title_fr = Column(String, nullable=True)

    difficulty_level    = Column(SAEnum(DifficultyLevel, values_callable=enum_values), nullable=True)
    estimated_read_time = Column(Integer, nullable=True)   # minutes
    tags                = Column(JSON, nullable=False, default=list)

    # Vecteur d'exigences ∈ [0, 1], aligné sur technical + soft + domain
    skill_requirements = Column(JSON, nullable=True)
    decision_points    = Column(Integer, nullable=True)

    is_active  = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    category = relationship("SopCategory", back_populates="documents", lazy="joined")

    @property
    def category_name(self) -> str:
        return self.category.name if self.category else ""

    def __repr__(self):
        return f"<SopDocument id={self.id} title={self.title}>"


class CompletionRecord(Base):
    __tablename__ = "user_progress"

    id                  = Column(Integer, primary_key=True, index=True)
    restaurant_id       = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    sop_id              = Column(Integer, ForeignKey("sop_documents.id"), nullable=False, index=True)
    user_id             = Column(Integer, ForeignKey("staff_members.id"), nullable=False, index=True)
    progress_percentage = Column(Float, nullable=False, default=0.0)   # 0-100
    time_spent          = Column(Float, nullable=False, default=0.0)   # minutes
    created_at          = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<CompletionRecord sop={self.sop_id} user={self.user_id} {self.progress_percentage}%>"
