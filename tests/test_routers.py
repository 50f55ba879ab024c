import pytest
from fastapi.testclient import TestClient

from dolmen.core.dependencies import (
    admin_artist_store,
    admin_release_store,
    get_admin_directory,
    get_admin_theme_store,
    get_identity_provider,
    get_image_storage,
    public_artist_store,
    public_release_store,
)
from dolmen.core.exceptions import StoreError
from dolmen.main import create_app

from .conftest import (
    FakeAdminDirectory,
    FakeIdentityProvider,
    FakeImageStorage,
    FakeRecordStore,
    FakeThemeStore,
    artist_row,
    release_row,
)

AUTH = {"Authorization": "Bearer test-token"}


class Backend:
    def __init__(self, identity):
        self.provider = FakeIdentityProvider(identity)
        self.directory = FakeAdminDirectory()
        self.artists = FakeRecordStore(
            [artist_row("Aurora Static", 0), artist_row("Mirelle", 1, featured=False)]
        )
        self.releases = FakeRecordStore([release_row("First Light", 0)], table="releases")
        self.theme = FakeThemeStore()
        self.storage = FakeImageStorage()


@pytest.fixture
def backend(admin_identity):
    return Backend(admin_identity)


@pytest.fixture
def client(backend):
    app = create_app()
    app.dependency_overrides[get_identity_provider] = lambda: backend.provider
    app.dependency_overrides[get_admin_directory] = lambda: backend.directory
    app.dependency_overrides[public_artist_store] = lambda: backend.artists
    app.dependency_overrides[admin_artist_store] = lambda: backend.artists
    app.dependency_overrides[public_release_store] = lambda: backend.releases
    app.dependency_overrides[admin_release_store] = lambda: backend.releases
    app.dependency_overrides[get_admin_theme_store] = lambda: backend.theme
    app.dependency_overrides[get_image_storage] = lambda: backend.storage
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_public_artist_listing(client):
    response = client.get("/artists")

    assert response.status_code == 200
    assert [artist["name"] for artist in response.json()] == ["Aurora Static", "Mirelle"]


def test_public_featured_filter(client):
    response = client.get("/artists", params={"featured": "true"})

    assert [artist["name"] for artist in response.json()] == ["Aurora Static"]


def test_public_read_failure(client, backend):
    backend.releases.failures["select_all"] = StoreError("upstream timeout")

    response = client.get("/releases")

    assert response.status_code == 502
    assert response.json()["detail"] == "upstream timeout"


def test_public_artist_post(client, backend):
    response = client.post("/artists", json={"name": "Nova", "color": "#112233"}, headers=AUTH)

    assert response.status_code == 201
    assert response.json() == {"message": "Artist added!"}
    assert backend.artists.count("insert") == 1


def test_session_endpoint(client, admin_identity):
    response = client.get("/admin/session", headers=AUTH)

    assert response.json()["status"] == "authenticated-admin"
    assert response.json()["identity"]["email"] == admin_identity.email


def test_unauthenticated_admin_call(client, backend):
    backend.provider.identity = None

    response = client.get("/admin/artists")

    assert response.status_code == 401


def test_non_admin_is_forbidden(client, backend, fan_identity):
    backend.provider.identity = fan_identity

    response = client.post("/admin/artists", json={"name": "Nova"}, headers=AUTH)

    assert response.status_code == 403
    assert backend.artists.count("insert") == 0


def test_admin_create_returns_fresh_list(client, backend):
    response = client.post(
        "/admin/artists",
        json={"name": "Nova", "color": "#112233", "order_index": 2},
        headers=AUTH,
    )

    assert response.status_code == 201
    body = response.json()
    assert [artist["name"] for artist in body["items"]] == ["Aurora Static", "Mirelle", "Nova"]
    assert body["alerts"] == []


def test_admin_validation_error(client, backend):
    response = client.post("/admin/releases", json={"title": "Echoes", "year": "1899"}, headers=AUTH)

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert {"artist_name", "artwork_url", "year"} <= set(detail["errors"])
    assert backend.releases.count("insert") == 0


def test_admin_update_release(client, backend):
    release_id = backend.releases.rows[0]["id"]
    payload = release_row("First Light (Remastered)", 0)

    response = client.put(f"/admin/releases/{release_id}", json=payload, headers=AUTH)

    assert response.status_code == 200
    assert response.json()["items"][0]["title"] == "First Light (Remastered)"
    assert backend.releases.count("update") == 1


def test_duplicate_maps_to_conflict(client, backend):
    backend.artists.failures["insert"] = StoreError("duplicate key", "23505")

    response = client.post("/admin/artists", json={"name": "Nova"}, headers=AUTH)

    assert response.status_code == 409
    assert response.json()["detail"] == "A record with this information already exists."


def test_delete_requires_confirmation(client, backend):
    artist_id = backend.artists.rows[0]["id"]

    response = client.delete(f"/admin/artists/{artist_id}", headers=AUTH)

    assert response.status_code == 409
    assert backend.artists.count("delete") == 0


def test_confirmed_delete(client, backend):
    artist_id = backend.artists.rows[0]["id"]

    response = client.delete(f"/admin/artists/{artist_id}", params={"confirm": "true"}, headers=AUTH)

    assert response.status_code == 200
    assert artist_id not in [artist["id"] for artist in response.json()["items"]]
    assert backend.artists.count("delete") == 1


def test_image_upload(client, backend):
    response = client.post(
        "/admin/artists/upload",
        files={"file": ("nova.png", b"\x89PNG\r\n", "image/png")},
        headers=AUTH,
    )

    assert response.status_code == 200
    assert response.json()["url"].startswith("https://cdn.test/")
    assert len(backend.storage.objects) == 1


def test_image_upload_rejects_other_types(client, backend):
    response = client.post(
        "/admin/artists/upload",
        files={"file": ("notes.pdf", b"%PDF", "application/pdf")},
        headers=AUTH,
    )

    assert response.status_code == 400
    assert backend.storage.objects == {}


def test_theme_defaults_and_css(client):
    body = client.get("/settings/theme").json()
    assert body["loaded"] is False
    assert body["variables"]["--color-border"] == "#000000"

    css = client.get("/settings/theme.css")
    assert css.headers["content-type"].startswith("text/css")
    assert "--color-primary: #3B82F6;" in css.text


def test_theme_update(client, backend):
    payload = client.get("/settings/theme").json()["settings"]
    payload["accent_color"] = "#ABCDEF"

    response = client.put("/settings/theme", json=payload, headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["settings"]["accent_color"] == "#ABCDEF"
    assert body["alerts"] == ["Theme updated!"]
    assert client.get("/settings/theme").json()["variables"]["--color-accent"] == "#ABCDEF"


def test_admin_create_without_index_goes_last(client, backend):
    response = client.post("/admin/artists", json={"name": "Nova", "color": "#112233"}, headers=AUTH)

    assert response.status_code == 201
    items = response.json()["items"]
    assert [artist["name"] for artist in items] == ["Aurora Static", "Mirelle", "Nova"]
    assert items[-1]["order_index"] == 2


def test_public_artist_post_goes_last(client, backend):
    client.post("/artists", json={"name": "Nova", "color": "#112233"}, headers=AUTH)

    nova = next(row for row in backend.artists.rows if row["name"] == "Nova")
    assert nova["order_index"] == 2
