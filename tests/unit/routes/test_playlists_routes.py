import pytest

from tests.support.factories import TrackFactory, UserFactory, email_of


def _create(client, name="Road Trip", **extra):
    r = client.post("/api/playlists", json=dict({"name": name}, **extra))
    assert r.status_code == 201
    return r.get_json()["playlist"]


@pytest.mark.unit
def test_playlists_require_login(client):
    assert client.get("/api/playlists").status_code == 401
    assert client.post("/api/playlists", json={"name": "x"}).status_code == 401


@pytest.mark.unit
def test_create_and_list_playlists(client, fan):
    created = _create(client, description="Songs", isPublic=True)
    assert created["name"] == "Road Trip"
    assert created["is_public"] is True
    assert created["track_ids"] == []

    r = client.get("/api/playlists")
    body = r.get_json()
    assert [p["id"] for p in body["items"]] == [created["id"]]
    assert body["pagination"]["total"] == 1


@pytest.mark.unit
@pytest.mark.parametrize("name", ["", "x" * 101])
def test_create_playlist_validates_name(client, fan, name):
    r = client.post("/api/playlists", json={"name": name})
    assert r.status_code == 400
    assert "name" in r.get_json()["errors"]


@pytest.mark.unit
def test_add_track_rejects_duplicates_and_unknown_ids(client, fan, persist):
    playlist = _create(client)
    track_id = persist(TrackFactory)
    url = f"/api/playlists/{playlist['id']}/tracks"

    r = client.post(url, json={"trackId": track_id})
    assert r.status_code == 200
    assert r.get_json()["playlist"]["track_ids"] == [track_id]

    r = client.post(url, json={"trackId": track_id})
    assert r.status_code == 409
    assert r.get_json()["error"] == "duplicate_track"

    assert client.post(url, json={"trackId": 987654}).status_code == 404
    assert client.post(url, json={}).status_code == 400
    assert client.post("/api/playlists/99999/tracks", json={"trackId": track_id}).status_code == 404


@pytest.mark.unit
def test_playlist_ownership_is_enforced(app, client, fan, persist, login):
    playlist = _create(client)
    track_id = persist(TrackFactory)

    intruder = app.test_client()
    intruder_id = persist(UserFactory)
    login(email_of(app, intruder_id), target=intruder)

    url = f"/api/playlists/{playlist['id']}"
    assert intruder.get(url).status_code == 404
    assert intruder.put(url, json={"name": "Mine now"}).status_code == 404
    assert intruder.delete(url).status_code == 404
    assert intruder.post(f"{url}/tracks", json={"trackId": track_id}).status_code == 404


@pytest.mark.unit
def test_public_playlist_is_readable_by_anyone(app, client, fan):
    playlist = _create(client, isPublic=True)
    anonymous = app.test_client()
    r = anonymous.get(f"/api/playlists/{playlist['id']}")
    assert r.status_code == 200
    assert r.get_json()["playlist"]["name"] == "Road Trip"


@pytest.mark.unit
def test_update_remove_reorder_and_delete(client, fan, persist):
    playlist = _create(client)
    url = f"/api/playlists/{playlist['id']}"
    tracks = [persist(TrackFactory) for _ in range(3)]
    for track_id in tracks:
        client.post(f"{url}/tracks", json={"track_id": track_id})

    r = client.put(url, json={"name": "Renamed", "description": ""})
    assert r.get_json()["playlist"]["name"] == "Renamed"
    assert r.get_json()["playlist"]["description"] is None

    r = client.put(f"{url}/reorder", json={"order": list(reversed(tracks))})
    assert r.get_json()["playlist"]["track_ids"] == list(reversed(tracks))

    r = client.put(f"{url}/reorder", json={"order": [tracks[0], 55555]})
    assert r.status_code == 400

    r = client.put(f"{url}/reorder", json={"order": [tracks[0], tracks[0]]})
    assert r.status_code == 400

    r = client.delete(f"{url}/tracks/{tracks[1]}")
    assert r.status_code == 200
    assert r.get_json()["playlist"]["track_ids"] == [tracks[2], tracks[0]]
    assert client.delete(f"{url}/tracks/{tracks[1]}").status_code == 404

    assert client.delete(url).status_code == 200
    assert client.get(url).status_code == 404
