# app/shared/errors.py
"""
Erreurs métier levées par les services.

Les routers ne les attrapent pas : les handlers de main.py les convertissent
en enveloppe {success: false, error, errorCode, timestamp}.

Un échantillon insuffisant pour UNE entité n'est jamais une erreur
(filtre silencieux dans l'engine). Seule la précondition globale des
prédictions (< 10 enregistrements) lève InsufficientData.
"""


class ServiceError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationFailed(ServiceError):
    status_code = 400
    code = "VALIDATION_ERROR"


class InsufficientData(ServiceError):
    status_code = 422
    code = "INSUFFICIENT_DATA"


class NotFound(ServiceError):
    status_code = 404
    code = "NOT_FOUND"
