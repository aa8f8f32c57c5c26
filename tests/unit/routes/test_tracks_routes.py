import pytest

from tests.support.factories import CreatorFactory, TrackFactory, email_of


@pytest.mark.unit
def test_list_tracks_newest_first_with_creator_name(client, persist):
    first = persist(TrackFactory, title="Older", artist_name="Band A")
    second = persist(TrackFactory, title="Newer", artist_name=None)

    r = client.get("/api/tracks")
    assert r.status_code == 200
    items = r.get_json()
    assert [item["id"] for item in items] == [second, first]
    assert items[1]["creator"] == {"username": "Band A"}
    assert items[0]["creator"] == {"username": "Unknown Artist"}


@pytest.mark.unit
def test_search_matches_any_text_field_case_insensitively(client, persist):
    persist(TrackFactory, title="Ocean Breeze", genre="Instrumental", album="Beats")
    persist(TrackFactory, title="City Lights", genre="Pop", artist_name="Night OCEAN")
    persist(TrackFactory, title="Unrelated", genre="Rock", artist_name="X", album="Y")

    titles = {t["title"] for t in client.get("/api/tracks/search?q=ocean").get_json()}
    assert titles == {"Ocean Breeze", "City Lights"}

    r = client.get("/api/tracks/search?q=ocean&genre=pop")
    assert [t["title"] for t in r.get_json()] == ["City Lights"]

    r = client.get("/api/tracks/search?genre=all")
    assert len(r.get_json()) == 3


@pytest.mark.unit
def test_search_treats_wildcards_literally(client, persist):
    persist(TrackFactory, title="100% Pure")
    persist(TrackFactory, title="Plain")
    r = client.get("/api/tracks/search?q=%25")
    assert [t["title"] for t in r.get_json()] == ["100% Pure"]


@pytest.mark.unit
def test_get_track(client, persist):
    track_id = persist(TrackFactory, title="Solo")
    assert client.get(f"/api/tracks/{track_id}").get_json()["title"] == "Solo"

    r = client.get("/api/tracks/999999")
    assert r.status_code == 404
    assert r.get_json()["error"] == "track_not_found"

    r = client.get("/api/tracks/not-an-id")
    assert r.status_code == 400
    assert r.get_json()["error"] == "invalid_track_id"


@pytest.mark.unit
def test_like_requires_authentication(client, persist):
    track_id = persist(TrackFactory)
    r = client.post(f"/api/tracks/{track_id}/like")
    assert r.status_code == 401


@pytest.mark.unit
def test_like_toggle_keeps_counter_in_step(client, fan, persist):
    track_id = persist(TrackFactory)

    r = client.post(f"/api/tracks/{track_id}/like")
    body = r.get_json()
    assert body == {"success": True, "liked": True, "likes": 1, "message": "Track liked successfully"}

    r = client.post(f"/api/tracks/{track_id}/like")
    assert r.get_json()["liked"] is False
    assert r.get_json()["likes"] == 0

    assert client.post("/api/tracks/abc/like").status_code == 400
    assert client.post("/api/tracks/424242/like").status_code == 404


@pytest.mark.unit
def test_liked_songs_lists_newest_like_first(app, client, fan, persist):
    first = persist(TrackFactory, title="First")
    second = persist(TrackFactory, title="Second")
    client.post(f"/api/tracks/{first}/like")
    client.post(f"/api/tracks/{second}/like")

    r = client.get("/api/liked-songs")
    assert r.status_code == 200
    songs = r.get_json()
    assert [s["title"] for s in songs] == ["Second", "First"]
    assert all(s["liked_at"] for s in songs)

    me = client.get("/api/auth/user").get_json()
    assert me["liked_songs_count"] == 2


@pytest.mark.unit
def test_play_counter_increments(client, persist):
    track_id = persist(TrackFactory, plays=4)
    r = client.post(f"/api/tracks/{track_id}/play")
    assert r.status_code == 200
    assert r.get_json()["plays"] == 5
    assert client.post("/api/tracks/999/play").status_code == 404


@pytest.mark.unit
def test_genres(client):
    genres = client.get("/api/genres").get_json()
    assert genres[0] == "Rock"
    assert "Instrumental" in genres
    assert len(genres) == 13


@pytest.mark.unit
def test_creator_dashboard_lists_own_tracks(app, client, persist, login):
    from riseup.database.db_manager import Track, db

    creator_id = persist(CreatorFactory)
    other_id = persist(CreatorFactory)
    with app.app_context():
        db.session.add_all(
            [
                Track(title="Mine", audio_url="/m.mp3", creator_id=creator_id, plays=3, likes=1),
                Track(title="Also mine", audio_url="/a.mp3", creator_id=creator_id, plays=2, likes=0),
                Track(title="Theirs", audio_url="/t.mp3", creator_id=other_id, plays=9, likes=9),
            ]
        )
        db.session.commit()
        db.session.remove()

    login(email_of(app, creator_id))
    body = client.get("/api/creators/tracks").get_json()
    assert {t["title"] for t in body["tracks"]} == {"Mine", "Also mine"}
    assert body["totals"] == {"tracks": 2, "plays": 5, "likes": 1}
    assert body["tracks"][0]["creator"]["username"].startswith("creator")
