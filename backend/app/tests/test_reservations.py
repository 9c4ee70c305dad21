"""
Tests for reservation endpoints and the reservation workflows.
"""
import asyncio
import io
import string
from contextlib import contextmanager
from datetime import datetime
import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers
from app.api.routes.reservations import read_uploads
from app.core.config import settings
from app.core.errors import WriteFailure
from app.core.utils import utc_to_local
from app.models.reservation import Reservation, ReservationAttachment, ReservationMember
from app.schemas.reservation import ReservationForm, UploadedFile
from app.services import reservation_service

PNG = ("boarding-pass.png", b"\x89PNG fake image", "image/png")
PDF = ("hotel.pdf", b"%PDF-1.4 fake", "application/pdf")


def _parse(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _stored_path(blobs, attachment):
    return blobs.root / blobs.path_from_url(attachment["file_url"])


def test_create_reservation_with_files(client, blobs, trip, members):
    """Scalars, assignees and attachments come back in the reloaded dashboard."""
    taro, hanako, _ = members
    response = client.post(
        f"/api/trips/{trip.share_id}/reservations",
        data={
            "title": "Hotel Okinawa",
            "member_ids": [str(taro.id), str(hanako.id)],
            "booking_site": "Booking.com",
            "booking_number": "ABC-123",
            "scheduled_at": "2026-03-01T10:00",
            "memo": "",
        },
        files=[("files", PNG), ("files", PDF)]
    )
    assert response.status_code == 201
    body = response.json()
    assert body["failed_uploads"] == []

    reservation = body["dashboard"]["reservations"][0]
    assert reservation["id"] == body["reservation_id"]
    assert reservation["booking_site"] == "Booking.com"
    assert reservation["memo"] is None
    assert [m["name"] for m in reservation["members"]] == ["Taro", "Hanako"]
    assert [a["file_name"] for a in reservation["attachments"]] == ["boarding-pass.png", "hotel.pdf"]
    assert reservation["attachments"][1]["file_type"] == "application/pdf"

    for attachment in reservation["attachments"]:
        prefix = f"http://testserver/static/{trip.id}/{reservation['id']}/"
        assert attachment["file_url"].startswith(prefix)
        assert _stored_path(blobs, attachment).exists()


def test_scheduled_time_round_trip(client, trip):
    """Local wall-clock input reloads as the same local date and hour."""
    client.post(
        f"/api/trips/{trip.share_id}/reservations",
        data={"title": "Flight", "scheduled_at": "2026-03-01T10:00", "timezone": "Asia/Tokyo"}
    )
    reservation = client.get(f"/api/trips/{trip.share_id}").json()["reservations"][0]

    local = utc_to_local(_parse(reservation["scheduled_at"]), "Asia/Tokyo")
    assert (local.date().isoformat(), local.hour) == ("2026-03-01", 10)


def test_create_reservation_requires_title(client, db, trip):
    """A blank title writes nothing."""
    response = client.post(f"/api/trips/{trip.share_id}/reservations", data={"title": "  "})
    assert response.status_code == 400
    assert db.query(Reservation).count() == 0


def test_create_reservation_rejects_foreign_members(client, db, trip):
    """Assignees must belong to the same trip; nothing is written otherwise."""
    other = client.post("/api/trips", json={"name": "Other trip"}).json()
    other_member = client.post(
        f"/api/trips/{other['trip']['share_id']}/members", json={"name": "Outsider"}
    ).json()["members"][0]

    response = client.post(
        f"/api/trips/{trip.share_id}/reservations",
        data={"title": "Hotel", "member_ids": [str(other_member["id"])]}
    )
    assert response.status_code == 400
    assert db.query(Reservation).count() == 0


def test_unscheduled_sort_last(client, trip):
    """Reservations without a time come after every scheduled one."""
    for title, when in [("Souvenirs", ""), ("Dinner", "2026-03-02T19:00"), ("Flight", "2026-03-01T08:00")]:
        client.post(
            f"/api/trips/{trip.share_id}/reservations",
            data={"title": title, "scheduled_at": when}
        )
    reservations = client.get(f"/api/trips/{trip.share_id}").json()["reservations"]
    assert [r["title"] for r in reservations] == ["Flight", "Dinner", "Souvenirs"]
    assert reservations[-1]["scheduled_at"] is None


def test_replace_sync_members(db, blobs, trip, members):
    """Re-assigning {B, C} after {A, B} leaves exactly {B, C}."""
    a, b, c = members
    result = reservation_service.create_reservation(
        trip.id, ReservationForm(title="Hotel", member_ids=[a.id, b.id]), [], db, blobs
    )
    reservation_service.sync_reservation_members(result.reservation_id, [b.id, c.id, c.id], db)

    rows = db.query(ReservationMember.member_id).filter(
        ReservationMember.reservation_id == result.reservation_id
    ).all()
    assert sorted(member_id for (member_id,) in rows) == sorted([b.id, c.id])


def test_replace_sync_to_empty(db, blobs, trip, members):
    """An empty selection leaves the reservation unassigned."""
    result = reservation_service.create_reservation(
        trip.id, ReservationForm(title="Hotel", member_ids=[members[0].id]), [], db, blobs
    )
    reservation_service.sync_reservation_members(result.reservation_id, [], db)
    assert db.query(ReservationMember).count() == 0


def test_update_reservation(client, blobs, trip, members):
    """Update re-syncs members, drops removed attachments and adds new files."""
    a, b, c = members
    created = client.post(
        f"/api/trips/{trip.share_id}/reservations",
        data={"title": "Hotel", "member_ids": [str(a.id), str(b.id)]},
        files=[("files", PNG), ("files", PDF)]
    ).json()
    reservation = created["dashboard"]["reservations"][0]
    png, pdf = reservation["attachments"]

    response = client.put(
        f"/api/trips/{trip.share_id}/reservations/{reservation['id']}",
        data={
            "title": "Hotel (changed)",
            "member_ids": [str(b.id), str(c.id)],
            "scheduled_at": "2026-03-01T15:00",
            "removed_attachment_ids": [str(png["id"])],
        },
        files=[("files", ("receipt.jpg", b"jpeg", "image/jpeg"))]
    )
    assert response.status_code == 200
    updated = response.json()["dashboard"]["reservations"][0]
    assert updated["title"] == "Hotel (changed)"
    assert [m["name"] for m in updated["members"]] == ["Hanako", "Jiro"]
    assert [att["file_name"] for att in updated["attachments"]] == ["hotel.pdf", "receipt.jpg"]
    assert _parse(updated["updated_at"]) >= _parse(reservation["updated_at"])
    assert not _stored_path(blobs, png).exists()
    assert _stored_path(blobs, pdf).exists()


def test_update_rejects_foreign_attachment(client, trip):
    """Attachments of another reservation cannot be removed through this one."""
    first = client.post(
        f"/api/trips/{trip.share_id}/reservations",
        data={"title": "Hotel"},
        files=[("files", PNG)]
    ).json()
    attachment_id = first["dashboard"]["reservations"][0]["attachments"][0]["id"]
    second = client.post(
        f"/api/trips/{trip.share_id}/reservations", data={"title": "Flight"}
    ).json()

    response = client.put(
        f"/api/trips/{trip.share_id}/reservations/{second['reservation_id']}",
        data={"title": "Flight", "removed_attachment_ids": [str(attachment_id)]}
    )
    assert response.status_code == 404
    assert response.json()["details"]["code"] == "ATTACHMENT_NOT_FOUND"
    hotel = [r for r in client.get(f"/api/trips/{trip.share_id}").json()["reservations"] if r["title"] == "Hotel"][0]
    assert len(hotel["attachments"]) == 1


def test_delete_reservation_cascades(client, db, blobs, trip, members):
    """Join rows, attachment rows and blobs go with the reservation."""
    created = client.post(
        f"/api/trips/{trip.share_id}/reservations",
        data={"title": "Hotel", "member_ids": [str(members[0].id)]},
        files=[("files", PNG)]
    ).json()
    reservation = created["dashboard"]["reservations"][0]

    response = client.delete(f"/api/trips/{trip.share_id}/reservations/{reservation['id']}")
    assert response.status_code == 428
    assert db.query(Reservation).count() == 1

    response = client.delete(
        f"/api/trips/{trip.share_id}/reservations/{reservation['id']}?confirm=true"
    )
    assert response.status_code == 200
    assert response.json()["reservations"] == []
    assert len(response.json()["members"]) == 3
    assert db.query(ReservationMember).count() == 0
    assert db.query(ReservationAttachment).count() == 0
    assert not _stored_path(blobs, reservation["attachments"][0]).exists()


def test_reservation_from_another_trip(client, trip):
    """Reservation ids are scoped to the share id in the path."""
    other = client.post("/api/trips", json={"name": "Other trip"}).json()["trip"]
    foreign = client.post(
        f"/api/trips/{other['share_id']}/reservations", data={"title": "Secret"}
    ).json()

    response = client.delete(
        f"/api/trips/{trip.share_id}/reservations/{foreign['reservation_id']}?confirm=true"
    )
    assert response.status_code == 404
    assert response.json()["details"]["code"] == "RESERVATION_NOT_FOUND"


def test_rejected_file_is_reported(client, trip):
    """Unsupported files are skipped while the reservation is still created."""
    response = client.post(
        f"/api/trips/{trip.share_id}/reservations",
        data={"title": "Hotel"},
        files=[("files", ("notes.txt", b"hello", "text/plain")), ("files", PNG)]
    )
    assert response.status_code == 201
    body = response.json()
    assert [f["file_name"] for f in body["failed_uploads"]] == ["notes.txt"]
    assert [a["file_name"] for a in body["dashboard"]["reservations"][0]["attachments"]] == ["boarding-pass.png"]


class FlakyBlobStore:
    """Blob store that fails to store one particular payload."""

    def __init__(self, inner, failing_data):
        self.inner = inner
        self.failing_data = failing_data

    def upload(self, path, data, content_type=None):
        if data == self.failing_data:
            raise OSError("disk full")
        self.inner.upload(path, data, content_type)

    def __getattr__(self, name):
        return getattr(self.inner, name)


def test_storage_failure_is_best_effort(db, blobs, trip):
    """A storage error skips that file and keeps the others."""
    flaky = FlakyBlobStore(blobs, b"broken")
    files = [
        UploadedFile(file_name="a.png", content_type="image/png", data=b"ok-1"),
        UploadedFile(file_name="b.png", content_type="image/png", data=b"broken"),
        UploadedFile(file_name="c.pdf", content_type="application/pdf", data=b"ok-2"),
    ]
    result = reservation_service.create_reservation(
        trip.id, ReservationForm(title="Hotel"), files, db, flaky
    )
    assert [a.file_name for a in result.attachments] == ["a.png", "c.pdf"]
    assert [(f.file_name, f.reason) for f in result.failed_uploads] == [("b.png", "disk full")]


def test_failed_attachment_insert_removes_blob(db, blobs, trip, monkeypatch):
    """A blob whose attachment row cannot be written is deleted again."""
    real_transaction = reservation_service.write_transaction

    @contextmanager
    def failing_attachment_insert(db, action, reservation_id=None):
        if action == "record attachment":
            raise WriteFailure("Failed to record attachment", reservation_id=reservation_id)
        with real_transaction(db, action, reservation_id=reservation_id):
            yield

    monkeypatch.setattr(reservation_service, "write_transaction", failing_attachment_insert)
    files = [UploadedFile(file_name="a.png", content_type="image/png", data=b"ok-1")]
    result = reservation_service.create_reservation(
        trip.id, ReservationForm(title="Hotel"), files, db, blobs
    )

    assert result.attachments == []
    assert [f.file_name for f in result.failed_uploads] == ["a.png"]
    assert db.query(ReservationAttachment).count() == 0
    assert [p for p in blobs.root.rglob("*") if p.is_file()] == []


class UndeletableBlobStore:
    """Blob store whose removals always fail."""

    def __init__(self, inner):
        self.inner = inner

    def remove(self, paths):
        raise OSError("permission denied")

    def __getattr__(self, name):
        return getattr(self.inner, name)


def test_blob_removal_errors_do_not_fail_delete(db, blobs, trip, caplog):
    """Deleting a reservation succeeds when its blobs cannot be removed."""
    files = [UploadedFile(file_name="a.png", content_type="image/png", data=b"ok-1")]
    created = reservation_service.create_reservation(
        trip.id, ReservationForm(title="Hotel"), files, db, blobs
    )
    path = blobs.root / blobs.path_from_url(created.attachments[0].file_url)

    reservation_service.delete_reservation(
        created.reservation_id, db, UndeletableBlobStore(blobs)
    )

    assert db.query(Reservation).count() == 0
    assert db.query(ReservationAttachment).count() == 0
    assert path.exists()
    assert "Failed to remove blobs" in caplog.text


def test_blob_removal_errors_do_not_fail_update(db, blobs, trip):
    """Removing an attachment on update succeeds when its blob cannot be removed."""
    files = [UploadedFile(file_name="a.png", content_type="image/png", data=b"ok-1")]
    created = reservation_service.create_reservation(
        trip.id, ReservationForm(title="Hotel"), files, db, blobs
    )

    result = reservation_service.update_reservation(
        created.reservation_id,
        ReservationForm(title="Hotel (changed)"),
        [],
        [created.attachments[0].id],
        db,
        UndeletableBlobStore(blobs)
    )

    assert result.reservation_id == created.reservation_id
    assert result.failed_uploads == []
    assert db.query(ReservationAttachment).count() == 0
    assert db.query(Reservation).first().title == "Hotel (changed)"


def test_partial_failure_keeps_earlier_steps(db, blobs, trip, members, monkeypatch):
    """A failing member sync raises WriteFailure and leaves the inserted reservation."""
    def broken_sync(reservation_id, member_ids, db):
        raise WriteFailure("Failed to sync reservation members", reservation_id=reservation_id)

    monkeypatch.setattr(reservation_service, "sync_reservation_members", broken_sync)
    with pytest.raises(WriteFailure) as excinfo:
        reservation_service.create_reservation(
            trip.id, ReservationForm(title="Hotel", member_ids=[members[0].id]), [], db, blobs
        )

    assert excinfo.value.reservation_id is not None
    saved = db.query(Reservation).filter(Reservation.id == excinfo.value.reservation_id).first()
    assert saved.title == "Hotel"
    assert db.query(ReservationMember).count() == 0


def test_storage_path_format():
    """Blob paths follow trip/reservation/millis-suffix.ext."""
    path = reservation_service.build_storage_path(3, 7, "Scan.PDF", now_ms=1767225600000)
    trip_dir, reservation_dir, name = path.split("/")
    assert (trip_dir, reservation_dir) == ("3", "7")
    stem, ext = name.split(".")
    millis, suffix = stem.split("-")
    assert millis == "1767225600000"
    assert len(suffix) == 4
    assert set(suffix) <= set(string.ascii_lowercase + string.digits)
    assert ext == "PDF"


def test_oversized_upload_is_reported(client, trip, monkeypatch):
    """Files over the size limit are skipped and read only up to the limit."""
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 8)
    big = UploadFile(
        file=io.BytesIO(b"x" * 64),
        filename="big.png",
        headers=Headers({"content-type": "image/png"})
    )
    uploaded = asyncio.run(read_uploads([big]))
    assert len(uploaded[0].data) == 9

    response = client.post(
        f"/api/trips/{trip.share_id}/reservations",
        data={"title": "Hotel"},
        files=[("files", ("big.png", b"x" * 64, "image/png")), ("files", ("ok.png", b"small", "image/png"))]
    )
    assert response.status_code == 201
    body = response.json()
    assert [f["file_name"] for f in body["failed_uploads"]] == ["big.png"]
    assert [a["file_name"] for a in body["dashboard"]["reservations"][0]["attachments"]] == ["ok.png"]
