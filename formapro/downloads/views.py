# module formapro.downloads.views
from typing import Any, Dict
from fastapi import APIRouter, Depends

from formapro.utils.security import require_user
from formapro.utils.rate_limit import optional_rate_limit
from formapro.downloads import service
from formapro.downloads.models import DownloadRequest

router = APIRouter(prefix="/api/v1/downloads", tags=["Downloads API"])


@router.post("", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def api_issue_download(body: DownloadRequest, user: Dict[str, Any] = Depends(require_user)):
    """
    Lien signé vers le fichier d'une formation achetée.
    - Réponse: {url, expires_in}
    - Erreurs: 400 paramètres, 403 non acheté / quota atteint, 404 fichier, 500 signature
    """
    link = service.issue_download_link(user["id"], body.formation_id, requested_user_id=body.user_id)
    return link.model_dump()


@router.get("")
def api_list_downloads(user: Dict[str, Any] = Depends(require_user)):
    return {
        "items": [
            {**e.model_dump(), "remaining": e.remaining}
            for e in service.list_user_downloads(user["id"])
        ]
    }
