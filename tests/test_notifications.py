import pytest

from raktsetu import lifecycle
from raktsetu.models import Notification
from raktsetu.notifications import DatabaseBackend, LoggingBackend, get_backend, notify


def test_default_backend_writes_outbox_row(client_user, make_request):
    req = make_request()
    note = notify(client_user, Notification.Kind.DONOR_ARRIVED, "Donor has arrived", "at the gate",
                  blood_request=req, donor_id=7)

    assert isinstance(get_backend(), DatabaseBackend)
    assert note.pk is not None
    assert note.data == {"donor_id": 7}
    assert note.to_dict()["requestId"] == req.pk
    assert note.to_dict()["read"] is False


def test_logging_backend_stores_nothing(settings, client_user, donor, make_request):
    settings.RAKTSETU_NOTIFICATION_BACKEND = "raktsetu.notifications.LoggingBackend"
    assert isinstance(get_backend(), LoggingBackend)

    req = make_request()
    lifecycle.accept_request(donor, req.pk)

    assert not Notification.objects.exists()
    assert req.confirmed_donors.filter(pk=donor.pk).exists()


def test_unknown_backend_path_fails_loudly(settings, db):
    settings.RAKTSETU_NOTIFICATION_BACKEND = "raktsetu.notifications.NoSuchBackend"
    with pytest.raises(ImportError):
        get_backend()


def test_list_and_mark_read(client, client_user, donor, make_request):
    req = make_request()
    lifecycle.accept_request(donor, req.pk)
    lifecycle.mark_arrived(donor, req.pk)
    client.force_login(client_user)

    notes = client.get("/api/notifications/").json()
    assert [n["kind"] for n in notes] == ["donor_arrived", "request_accepted"]

    resp = client.post(f"/api/notifications/{notes[0]['id']}/read")
    assert resp.status_code == 200
    assert resp.json()["read"] is True

    unread = client.get("/api/notifications/", {"unread": "1"}).json()
    assert [n["kind"] for n in unread] == ["request_accepted"]


def test_cannot_read_someone_elses_notification(client, client_user, donor, make_request):
    req = make_request()
    lifecycle.accept_request(donor, req.pk)
    note = Notification.objects.get(recipient=client_user)
    client.force_login(donor)

    resp = client.post(f"/api/notifications/{note.pk}/read")

    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"
    note.refresh_from_db()
    assert note.read_at is None


def test_rolled_back_mutation_sends_nothing(monkeypatch, donor, make_request):
    req = make_request()

    def failing_audit(*args, **kwargs):
        raise RuntimeError("audit store down")

    monkeypatch.setattr(lifecycle, "log_event", failing_audit)
    with pytest.raises(RuntimeError):
        lifecycle.accept_request(donor, req.pk)

    assert not Notification.objects.exists()
    assert not req.confirmed_donors.exists()
