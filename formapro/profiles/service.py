"""Couche service du domaine Profils."""
from typing import Any, Dict
from formapro.profiles import repository
from formapro.profiles.models import Profile, ProfileUpdate
from formapro.utils.errors import NotFound


def load_profile(user_id: str) -> Profile:
    row = repository.get_profile(user_id)
    if not row:
        raise NotFound("Profil introuvable")
    return Profile.model_validate(row)


def update_own_profile(user_id: str, changes: ProfileUpdate) -> Profile:
    data: Dict[str, Any] = changes.model_dump(exclude_none=True)
    if not data:
        return load_profile(user_id)
    row = repository.update_profile(user_id, data)
    if not row:
        raise NotFound("Profil introuvable")
    return Profile.model_validate(row)
