import threading
import pytest

from formapro.downloads import service
from formapro.utils.errors import (
    LinkGenerationFailed,
    NotEntitled,
    NotFound,
    QuotaExceeded,
    ValidationError,
)


def test_first_download_creates_ledger_entry(ledger, catalog):
    ledger.grant("u1", "F1")
    link = service.issue_download_link("u1", "F1")
    assert link.url.startswith("https://storage.test/formations/python/avance.zip")
    assert link.expires_in == 3600
    entry = ledger.get_ledger("u1", "F1")
    assert entry["download_count"] == 1
    assert entry["max_downloads"] == 3
    assert entry["last_download"]

def test_subsequent_downloads_increment(ledger, catalog):
    ledger.grant("u1", "F1")
    ledger.set_entry("u1", "F1", download_count=1)
    service.issue_download_link("u1", "F1")
    assert ledger.count("u1", "F1") == 2

def test_quota_reached_is_refused(ledger, catalog):
    ledger.grant("u1", "F1")
    ledger.set_entry("u1", "F1", download_count=3, max_downloads=3)
    with pytest.raises(QuotaExceeded):
        service.issue_download_link("u1", "F1")
    assert ledger.count("u1", "F1") == 3
    assert ledger.signed == []

def test_not_purchased_is_not_entitled(ledger, catalog):
    with pytest.raises(NotEntitled):
        service.issue_download_link("u1", "F1")
    assert ledger.rows == {}

@pytest.mark.parametrize("statut", ["pending", "confirmed", "validated", "failed"])
def test_purchase_not_completed_is_not_entitled(ledger, catalog, statut):
    ledger.grant("u1", "F1", statut=statut)
    with pytest.raises(NotEntitled):
        service.issue_download_link("u1", "F1")
    assert ledger.rows == {}

def test_failed_issuance_restores_last_download(ledger, catalog):
    ledger.grant("u1", "F1")
    ledger.set_entry("u1", "F1", download_count=1)["last_download"] = "2024-01-01T10:00:00+00:00"
    ledger.sign_fails = True
    with pytest.raises(LinkGenerationFailed):
        service.issue_download_link("u1", "F1")
    entry = ledger.get_ledger("u1", "F1")
    assert entry["download_count"] == 1
    assert entry["last_download"] == "2024-01-01T10:00:00+00:00"

def test_failed_first_issuance_leaves_no_last_download(ledger, catalog):
    ledger.grant("u1", "F3")
    with pytest.raises(NotFound):
        service.issue_download_link("u1", "F3")
    assert ledger.get_ledger("u1", "F3")["last_download"] is None

def test_foreign_user_id_is_not_entitled(ledger, catalog):
    ledger.grant("u1", "F1")
    with pytest.raises(NotEntitled):
        service.issue_download_link("u1", "F1", requested_user_id="u2")

def test_missing_parameters(ledger):
    with pytest.raises(ValidationError):
        service.issue_download_link("u1", "")

def test_signing_failure_releases_reservation(ledger, catalog):
    ledger.grant("u1", "F1")
    ledger.set_entry("u1", "F1", download_count=2)
    ledger.sign_fails = True
    with pytest.raises(LinkGenerationFailed):
        service.issue_download_link("u1", "F1")
    assert ledger.count("u1", "F1") == 2

def test_missing_content_file_releases_reservation(ledger, catalog):
    ledger.grant("u1", "F3")
    with pytest.raises(NotFound):
        service.issue_download_link("u1", "F3")
    assert ledger.count("u1", "F3") == 0

def test_concurrent_requests_never_exceed_quota(ledger, catalog):
    ledger.grant("u1", "F1")
    results = []
    barrier = threading.Barrier(12)

    def worker():
        barrier.wait()
        try:
            service.issue_download_link("u1", "F1")
            results.append("ok")
        except QuotaExceeded:
            results.append("quota")

    threads = [threading.Thread(target=worker) for _ in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 3
    assert results.count("quota") == 9
    assert ledger.count("u1", "F1") == 3

def test_lost_race_on_creation_falls_back_to_increment(ledger, catalog, monkeypatch):
    ledger.grant("u1", "F1")
    original_insert = ledger.insert_ledger

    def racing_insert(row):
        # Une autre requête crée l'entrée juste avant nous
        original_insert({**row, "download_count": 1})
        return original_insert(row)

    monkeypatch.setattr("formapro.downloads.repository.insert_ledger", racing_insert)
    service.issue_download_link("u1", "F1")
    assert ledger.count("u1", "F1") == 2

def test_list_user_downloads_exposes_remaining(ledger):
    ledger.set_entry("u1", "F1", download_count=1, max_downloads=3)
    entries = service.list_user_downloads("u1")
    assert entries[0].remaining == 2
