"""
Note upload, detail, social signals and downloads over HTTP.
"""
from urllib.parse import quote

from noteshare.auth.jwt_utils import create_access_token
from noteshare.core.errors import ValidationError
from noteshare.services.note_service import NoteService

from conftest import auth_header, register_user, upload_note


def _note(client, note_id):
    response = client.get(f"/api/notes/{note_id}")
    assert response.status_code == 200, response.text
    return response.json()


class TestUpload:
    def test_upload_stores_file_and_metadata(self, client, storage):
        alice = register_user(client)
        note_id = upload_note(client, alice["token"], filename="Week 1.PDF")

        note = _note(client, note_id)
        assert note["title"] == "Calc Notes"
        assert note["course"] == "BE/BTech"
        assert note["subject"] == "Engineering Mathematics"
        assert note["semester"] == 3
        assert note["file_type"] == "application/pdf"
        assert note["file_path"].endswith(".pdf")
        assert note["file_path"] != "Week 1.PDF"
        assert note["downloads"] == 0
        assert note["author_name"] == "Alice"
        assert (storage.base_dir / note["file_path"]).read_bytes() == b"%PDF-1.4 calculus notes"

    def test_upload_without_file_is_400(self, client):
        alice = register_user(client)
        response = client.post(
            "/api/notes",
            data={"title": "t", "course": "c", "subject": "s"},
            headers=auth_header(alice["token"]),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "File required"

    def test_upload_requires_token(self, client):
        response = client.post(
            "/api/notes",
            data={"title": "t", "course": "c", "subject": "s"},
            files={"file": ("a.txt", b"x", "text/plain")},
        )
        assert response.status_code == 401

    def test_semester_is_optional(self, client):
        alice = register_user(client)
        note_id = upload_note(client, alice["token"], semester="")
        assert _note(client, note_id)["semester"] is None

    def test_non_numeric_semester_is_400(self, client):
        alice = register_user(client)
        response = client.post(
            "/api/notes",
            data={"title": "t", "course": "c", "subject": "s", "semester": "third"},
            files={"file": ("a.txt", b"x", "text/plain")},
            headers=auth_header(alice["token"]),
        )
        assert response.status_code == 400

    def test_token_for_missing_account_stores_nothing(self, client, storage):
        token = create_access_token({"id": 999, "email": "gone@x.edu", "name": "Gone"})
        response = client.post(
            "/api/notes",
            data={"title": "t", "course": "c", "subject": "s"},
            files={"file": ("a.pdf", b"x", "application/pdf")},
            headers=auth_header(token),
        )
        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}
        assert list(storage.base_dir.iterdir()) == []

    def test_failed_insert_removes_stored_file(self, client, storage, monkeypatch):
        alice = register_user(client)

        def reject(self, **kwargs):
            raise ValidationError("Title too long")

        monkeypatch.setattr(NoteService, "create_note", reject)
        response = client.post(
            "/api/notes",
            data={"title": "t", "course": "c", "subject": "s"},
            files={"file": ("a.pdf", b"x", "application/pdf")},
            headers=auth_header(alice["token"]),
        )
        assert response.status_code == 400
        assert list(storage.base_dir.iterdir()) == []


class TestDetail:
    def test_missing_note_is_404(self, client):
        response = client.get("/api/notes/999")
        assert response.status_code == 404
        assert response.json() == {"error": "Note not found"}

    def test_detail_has_empty_aggregates(self, client):
        alice = register_user(client)
        note = _note(client, upload_note(client, alice["token"]))
        assert note["avg_rating"] is None
        assert note["rating_count"] == 0
        assert note["like_count"] == 0
        assert note["comments"] == []

    def test_comments_newest_first_with_author_names(self, client):
        alice = register_user(client, email="a@x.edu", name="Alice")
        bob = register_user(client, email="b@x.edu", name="Bob")
        note_id = upload_note(client, alice["token"])

        first = client.post(f"/api/notes/{note_id}/comment", json={"content": "Great notes"},
                            headers=auth_header(bob["token"]))
        second = client.post(f"/api/notes/{note_id}/comment", json={"content": "  Thanks!  "},
                             headers=auth_header(alice["token"]))
        assert first.status_code == second.status_code == 200

        comments = _note(client, note_id)["comments"]
        assert [c["id"] for c in comments] == [second.json()["id"], first.json()["id"]]
        assert comments[0]["content"] == "Thanks!"
        assert comments[0]["user_name"] == "Alice"
        assert comments[1]["user_name"] == "Bob"

    def test_list_does_not_attach_comments(self, client):
        alice = register_user(client)
        note_id = upload_note(client, alice["token"])
        client.post(f"/api/notes/{note_id}/comment", json={"content": "hi"}, headers=auth_header(alice["token"]))

        listed = client.get("/api/notes").json()
        assert "comments" not in listed[0]

    def test_anonymous_detail_has_no_viewer_state(self, client):
        alice = register_user(client)
        note = _note(client, upload_note(client, alice["token"]))
        assert note["liked"] is None
        assert note["my_rating"] is None

    def test_signed_in_detail_shows_own_like_and_rating(self, client):
        alice = register_user(client, email="a@x.edu")
        bob = register_user(client, email="b@x.edu")
        note_id = upload_note(client, alice["token"])
        client.post(f"/api/notes/{note_id}/like", headers=auth_header(bob["token"]))
        client.post(f"/api/notes/{note_id}/rate", json={"rating": 4}, headers=auth_header(bob["token"]))

        as_bob = client.get(f"/api/notes/{note_id}", headers=auth_header(bob["token"])).json()
        assert as_bob["liked"] is True
        assert as_bob["my_rating"] == 4

        as_alice = client.get(f"/api/notes/{note_id}", headers=auth_header(alice["token"])).json()
        assert as_alice["liked"] is False
        assert as_alice["my_rating"] is None

    def test_detail_with_bad_token_is_403(self, client):
        alice = register_user(client)
        note_id = upload_note(client, alice["token"])
        assert client.get(f"/api/notes/{note_id}", headers=auth_header("garbage")).status_code == 403


class TestRatings:
    def test_rerating_overwrites(self, client):
        alice = register_user(client, email="a@x.edu")
        bob = register_user(client, email="b@x.edu")
        note_id = upload_note(client, alice["token"])

        for score in (4, 5):
            response = client.post(f"/api/notes/{note_id}/rate", json={"rating": score},
                                   headers=auth_header(bob["token"]))
            assert response.status_code == 200
            assert response.json() == {"success": True}

        note = _note(client, note_id)
        assert note["avg_rating"] == 5
        assert note["rating_count"] == 1

    def test_average_is_mean_of_all_raters(self, client):
        owner = register_user(client, email="owner@x.edu")
        note_id = upload_note(client, owner["token"])
        for i, score in enumerate((1, 4, 5)):
            rater = register_user(client, email=f"r{i}@x.edu")
            client.post(f"/api/notes/{note_id}/rate", json={"rating": score}, headers=auth_header(rater["token"]))

        note = _note(client, note_id)
        assert note["rating_count"] == 3
        assert abs(note["avg_rating"] - 10 / 3) < 1e-9

    def test_rating_out_of_range_is_400(self, client):
        alice = register_user(client)
        note_id = upload_note(client, alice["token"])
        for score in (0, 6):
            response = client.post(f"/api/notes/{note_id}/rate", json={"rating": score},
                                   headers=auth_header(alice["token"]))
            assert response.status_code == 400
        assert _note(client, note_id)["rating_count"] == 0

    def test_rating_missing_note_is_404(self, client):
        alice = register_user(client)
        response = client.post("/api/notes/42/rate", json={"rating": 3}, headers=auth_header(alice["token"]))
        assert response.status_code == 404


class TestLikes:
    def test_like_toggles(self, client):
        alice = register_user(client, email="a@x.edu")
        bob = register_user(client, email="b@x.edu")
        note_id = upload_note(client, alice["token"])

        first = client.post(f"/api/notes/{note_id}/like", headers=auth_header(bob["token"]))
        assert first.json() == {"liked": True}
        assert _note(client, note_id)["like_count"] == 1

        second = client.post(f"/api/notes/{note_id}/like", headers=auth_header(bob["token"]))
        assert second.json() == {"liked": False}
        assert _note(client, note_id)["like_count"] == 0

    def test_likes_from_different_users_add_up(self, client):
        alice = register_user(client, email="a@x.edu")
        bob = register_user(client, email="b@x.edu")
        note_id = upload_note(client, alice["token"])

        client.post(f"/api/notes/{note_id}/like", headers=auth_header(alice["token"]))
        client.post(f"/api/notes/{note_id}/like", headers=auth_header(bob["token"]))
        assert _note(client, note_id)["like_count"] == 2

    def test_like_missing_note_is_404(self, client):
        alice = register_user(client)
        assert client.post("/api/notes/5/like", headers=auth_header(alice["token"])).status_code == 404


class TestComments:
    def test_blank_comment_is_400(self, client):
        alice = register_user(client)
        note_id = upload_note(client, alice["token"])
        response = client.post(f"/api/notes/{note_id}/comment", json={"content": "   "},
                               headers=auth_header(alice["token"]))
        assert response.status_code == 400
        assert response.json()["error"] == "Comment cannot be empty"

    def test_comment_on_missing_note_is_404(self, client):
        alice = register_user(client)
        response = client.post("/api/notes/9/comment", json={"content": "hello"},
                               headers=auth_header(alice["token"]))
        assert response.status_code == 404


class TestDownloads:
    def test_download_streams_file_and_counts(self, client):
        alice = register_user(client)
        note_id = upload_note(client, alice["token"], title="Calc Notes", filename="calc.pdf")

        for _ in range(2):
            response = client.get(f"/api/notes/{note_id}/download")
            assert response.status_code == 200
            assert response.content == b"%PDF-1.4 calculus notes"

        disposition = response.headers["content-disposition"]
        assert "attachment" in disposition
        assert "Calc Notes.pdf" in disposition or quote("Calc Notes.pdf") in disposition
        assert _note(client, note_id)["downloads"] == 2

    def test_missing_file_is_404_and_not_counted(self, client, storage):
        alice = register_user(client)
        note_id = upload_note(client, alice["token"])
        (storage.base_dir / _note(client, note_id)["file_path"]).unlink()

        response = client.get(f"/api/notes/{note_id}/download")
        assert response.status_code == 404
        assert response.json() == {"error": "File not found"}
        assert _note(client, note_id)["downloads"] == 0

    def test_download_missing_note_is_404(self, client):
        response = client.get("/api/notes/77/download")
        assert response.status_code == 404


def test_example_scenario(client):
    """Upload, rate twice, like twice, download twice, then find it by filters"""
    a = register_user(client, email="a@x.edu", name="A")
    b = register_user(client, email="b@x.edu", name="B")
    note_id = upload_note(
        client, a["token"], title="Calc Notes", course="BTech",
        subject="Engineering Mathematics", semester="3", description=None,
    )

    client.post(f"/api/notes/{note_id}/rate", json={"rating": 4}, headers=auth_header(b["token"]))
    client.post(f"/api/notes/{note_id}/rate", json={"rating": 5}, headers=auth_header(b["token"]))
    note = _note(client, note_id)
    assert note["avg_rating"] == 5
    assert note["rating_count"] == 1

    assert client.post(f"/api/notes/{note_id}/like", headers=auth_header(b["token"])).json()["liked"] is True
    assert _note(client, note_id)["like_count"] == 1
    assert client.post(f"/api/notes/{note_id}/like", headers=auth_header(b["token"])).json()["liked"] is False
    assert _note(client, note_id)["like_count"] == 0

    client.get(f"/api/notes/{note_id}/download")
    client.get(f"/api/notes/{note_id}/download")
    assert _note(client, note_id)["downloads"] == 2

    by_subject = client.get("/api/notes", params={"subject": "Engineering Mathematics"}).json()
    assert note_id in [n["id"] for n in by_subject]
    assert note_id in [n["id"] for n in client.get("/api/notes", params={"search": "calc"}).json()]
    assert note_id not in [n["id"] for n in client.get("/api/notes", params={"search": "biology"}).json()]
