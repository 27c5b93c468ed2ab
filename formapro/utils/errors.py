"""
Taxonomie des erreurs métier.
Chaque erreur porte son code HTTP; la traduction en réponse JSON {"error": "..."}
est faite une seule fois, par le handler enregistré dans app_setup.exceptions.
"""

class FormaproError(Exception):
    status_code = 500
    default_message = "Erreur interne"

    def __init__(self, message: str | None = None, code: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__


class ValidationError(FormaproError):
    status_code = 400
    default_message = "Paramètres manquants"


class InvalidSignature(FormaproError):
    status_code = 400
    default_message = "Signature de webhook invalide"


class NotFound(FormaproError):
    status_code = 404
    default_message = "Ressource introuvable"


class WebhookMismatch(FormaproError):
    status_code = 404
    default_message = "Aucune commande ne correspond à cette référence"


class Forbidden(FormaproError):
    status_code = 403
    default_message = "Accès interdit"


class NotEntitled(FormaproError):
    status_code = 403
    default_message = "Formation non achetée ou paiement non complété"


class QuotaExceeded(FormaproError):
    status_code = 403
    default_message = "Limite de téléchargements atteinte"


class InvalidTransition(FormaproError):
    status_code = 409
    default_message = "Transition de statut non autorisée"


class UpstreamFailure(FormaproError):
    status_code = 500
    default_message = "Service externe indisponible"


class LinkGenerationFailed(UpstreamFailure):
    default_message = "Erreur génération lien de téléchargement"
