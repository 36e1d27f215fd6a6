# app/shared/models/Staff.py
"""
Modèles liés au personnel.

- Restaurant        : tenant (toutes les tables portent restaurant_id)
- StaffMember       : membre de l'équipe + traits stables (personnalité, contexte)
- StaffSkillProfile : une ligne par compétence notée (0-10)

Les vecteurs de compétences de l'engine sont reconstruits à partir des
StaffSkillProfile à chaque requête (engine/features/extractor.py).
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, Float,
    DateTime, JSON, ForeignKey, Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base
from app.shared.enums import StaffRole, SkillArea, enum_values


class Restaurant(Base):
    __tablename__ = "restaurants"

    id         = Column(Integer, primary_key=True, index=True)
    name       = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    staff = relationship("StaffMember", back_populates="restaurant")

    def __repr__(self):
        return f"<Restaurant id={self.id} name={self.name}>"


class StaffMember(Base):
    __tablename__ = "staff_members"

    id            = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    full_name     = Column(String, nullable=False)
    email         = Column(String, nullable=True, unique=True)
    role          = Column(SAEnum(StaffRole, values_callable=enum_values), default=StaffRole.STAFF, nullable=False, index=True)
    is_active     = Column(Boolean, default=True)

    # {conscientiousness, openness, extraversion, agreeableness, emotional_stability} ∈ [0, 1]
    personality = Column(JSON, nullable=True)

    stress_tolerance     = Column(Float, nullable=True)   # 0-1
    multitasking_ability = Column(Float, nullable=True)   # 0-1
    promotion_readiness  = Column(Float, nullable=True)   # 0-100

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    restaurant = relationship("Restaurant", back_populates="staff")
    skills = relationship(
        "StaffSkillProfile", back_populates="staff",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<StaffMember id={self.id} role={self.role}>"


class StaffSkillProfile(Base):
    __tablename__ = "staff_skill_profiles"

    id                = Column(Integer, primary_key=True, index=True)
    restaurant_id     = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    staff_id          = Column(Integer, ForeignKey("staff_members.id"), nullable=False, index=True)
    skill_area        = Column(SAEnum(SkillArea, values_callable=enum_values), nullable=False)
    skill_index       = Column(Integer, nullable=False, default=0)   # position dans le vecteur
    skill_name        = Column(String, nullable=True)
    proficiency_level = Column(Float, nullable=False, default=5.0)   # 0-10

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    staff = relationship("StaffMember", back_populates="skills")

    def __repr__(self):
        return f"<StaffSkillProfile staff={self.staff_id} {self.skill_area}[{self.skill_index}]={self.proficiency_level}>"
