# app/shared/models/__init__.py
"""
Point d'entrée unique pour tous les modèles SQLAlchemy.

TOUJOURS importer les modèles depuis ce fichier :
  from app.shared.models import StaffMember, SopDocument, ...

→ Garantit que tous les modèles sont enregistrés dans Base.metadata
  avant la création des tables (Alembic, create_all).
"""

from app.shared.models.Staff   import Restaurant, StaffMember, StaffSkillProfile
from app.shared.models.Sop     import SopCategory, SopDocument, CompletionRecord
from app.shared.models.Scoring import (
    ScoringConfiguration, MatchResult, Prediction, CompletionPattern,
)

__all__ = [
    # Staff
    "Restaurant", "StaffMember", "StaffSkillProfile",
    # SOP
    "SopCategory", "SopDocument", "CompletionRecord",
    # Scoring
    "ScoringConfiguration",
    "MatchResult",
    "Prediction",
    "CompletionPattern",
]
