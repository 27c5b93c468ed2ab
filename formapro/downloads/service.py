"""
Délivrance des liens de téléchargement.

Étapes:
1) droit d'accès: la formation figure dans une commande « completed » de l'utilisateur
2) réservation d'un téléchargement dans le registre (quota), par incrément conditionnel
3) résolution du fichier de la formation
4) signature d'une URL à durée limitée
Si 3) ou 4) échoue, la réservation est rendue (décrément conditionnel):
le compteur ne compte que les liens effectivement délivrés et ne dépasse jamais max_downloads.
Contrepartie: tant qu'une réservation vouée à être rendue est en cours, une requête
concurrente peut voir le quota atteint et recevoir un 403 qu'un nouvel essai lèverait.
"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple
import logging

from formapro import config
from formapro.catalog import repository as catalog_repository
from formapro.downloads import repository
from formapro.downloads.models import DownloadLink, LedgerEntry
from formapro.orders.models import OrderStatus
from formapro.utils.errors import NotEntitled, NotFound, QuotaExceeded, UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)

ENTITLED_STATUSES = [OrderStatus.COMPLETED.value]
RESERVE_RETRIES = 10


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_entitlement(user_id: str, formation_id: str) -> None:
    if not repository.find_completed_purchase(user_id, formation_id, ENTITLED_STATUSES):
        raise NotEntitled()


def reserve_download(user_id: str, formation_id: str) -> Tuple[LedgerEntry, Optional[str]]:
    """
    Prend une place dans le quota; lève QuotaExceeded si le plafond est atteint.
    Une course perdue (création concurrente, compteur modifié) relance la lecture.
    Retourne l'entrée réservée et la valeur de last_download qu'elle a remplacée.
    """
    for _ in range(RESERVE_RETRIES):
        stamp = _now()
        row = repository.get_ledger(user_id, formation_id)
        if row is None:
            created = repository.insert_ledger({
                "user_id": user_id,
                "formation_id": formation_id,
                "download_count": 1,
                "max_downloads": config.DOWNLOAD_MAX_DEFAULT,
                "last_download": stamp,
            })
            if created is not None:
                return LedgerEntry.model_validate(created), None
            continue

        entry = LedgerEntry.model_validate(row)
        if entry.exhausted:
            raise QuotaExceeded()
        if repository.cas_update_count(entry.id, entry.download_count, entry.download_count + 1, {"last_download": stamp}):
            reserved = entry.model_copy(update={"download_count": entry.download_count + 1, "last_download": stamp})
            return reserved, entry.last_download

    logger.warning("downloads.reserve: contention persistante user_id=%s formation_id=%s", user_id, formation_id)
    raise UpstreamFailure("Registre de téléchargements occupé, réessayez")


def release_download(user_id: str, formation_id: str, reserved: LedgerEntry, previous_last_download: Optional[str]) -> None:
    """
    Rend une réservation après un échec de délivrance (best-effort, journalisé).
    last_download reprend sa valeur antérieure, sauf si un téléchargement concurrent l'a réécrit.
    """
    try:
        for _ in range(RESERVE_RETRIES):
            row = repository.get_ledger(user_id, formation_id)
            if not row:
                return
            entry = LedgerEntry.model_validate(row)
            if entry.download_count <= 0:
                return
            extra = {}
            if entry.last_download == reserved.last_download:
                extra["last_download"] = previous_last_download
            if repository.cas_update_count(entry.id, entry.download_count, entry.download_count - 1, extra):
                return
        logger.error("downloads.release: réservation non rendue user_id=%s formation_id=%s", user_id, formation_id)
    except Exception:
        logger.exception("downloads.release failed user_id=%s formation_id=%s", user_id, formation_id)


def _content_path(formation_id: str) -> str:
    formation = catalog_repository.get_formation(formation_id)
    if not formation:
        raise NotFound("Formation introuvable")
    path = (formation.get("fichier_path") or "").strip()
    if not path:
        raise NotFound("Fichier de formation introuvable")
    return path


def issue_download_link(user_id: str, formation_id: str, requested_user_id: Optional[str] = None) -> DownloadLink:
    if not user_id or not formation_id:
        raise ValidationError("Paramètres manquants")
    if requested_user_id and requested_user_id != user_id:
        raise NotEntitled()

    check_entitlement(user_id, formation_id)
    entry, previous_last_download = reserve_download(user_id, formation_id)
    try:
        url = repository.create_signed_url(_content_path(formation_id), config.DOWNLOAD_LINK_TTL)
    except Exception:
        release_download(user_id, formation_id, entry, previous_last_download)
        raise
    logger.info(
        "downloads.issue user_id=%s formation_id=%s count=%s/%s",
        user_id, formation_id, entry.download_count, entry.max_downloads,
    )
    return DownloadLink(url=url, expires_in=config.DOWNLOAD_LINK_TTL)


def list_user_downloads(user_id: str) -> List[LedgerEntry]:
    return [LedgerEntry.model_validate(r) for r in repository.list_user_ledger(user_id)]
