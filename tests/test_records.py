import pytest

from dolmen.core.exceptions import AdminRequiredError, BackendError, RecordValidationError, StoreError
from dolmen.schemas.catalog import ArtistForm, PendingImage, ReleaseForm
from dolmen.services.error_classifier import ERROR_MESSAGES
from dolmen.services.notifier import CollectingNotifier
from dolmen.services.records import ArtistSynchronizer, ReleaseSynchronizer, generate_image_name

from .conftest import FakeImageStorage


async def test_fetch_all_reads_in_display_order(artists, artist_store):
    artist_store.rows[0]["order_index"] = 5

    assert await artists.fetch_all()

    assert [artist.name for artist in artists.items] == ["Mirelle", "Aurora Static"]


async def test_fetch_all_breaks_ties_by_creation(artists, artist_store):
    artist_store.rows[1]["order_index"] = 0

    await artists.fetch_all()

    assert [artist.name for artist in artists.items] == ["Aurora Static", "Mirelle"]


async def test_fetch_failure_keeps_stale_list(artists, artist_store, notifier):
    await artists.fetch_all()
    before = list(artists.items)
    artist_store.failures["select_all"] = StoreError("connection reset")

    assert not await artists.fetch_all()

    assert artists.items == before
    assert notifier.alerts == ["Could not load artists: connection reset"]


async def test_save_requires_admin(artist_store, guest_session, notifier):
    synchronizer = ArtistSynchronizer(artist_store, guest_session, notifier)

    with pytest.raises(AdminRequiredError):
        await synchronizer.save(ArtistForm(name="Nova", color="#112233"))

    assert artist_store.calls == []


async def test_invalid_candidate_never_reaches_backend(artists, artist_store):
    form = ArtistForm(name="", color="#GGGGGG")

    with pytest.raises(RecordValidationError) as exc_info:
        await artists.save(form)

    assert set(exc_info.value.errors) == {"name", "color"}
    assert exc_info.value.message == "Name is required"
    assert artist_store.calls == []
    assert form.name == "" and form.color == "#GGGGGG"


async def test_create_inserts_normalized_record_and_refetches(artists, artist_store):
    await artists.fetch_all()
    form = artists.new_form()
    form = form.model_copy(update={"name": "  Nova ", "color": "#112233", "instagram": "  "})

    await artists.save(form)

    insert = next(call for call in artist_store.calls if call[0] == "insert")
    record = insert[1]
    assert "id" not in record
    assert record["name"] == "Nova"
    assert record["instagram"] is None
    assert record["order_index"] == 2
    assert record["featured"] is True
    assert artist_store.calls[-1] == ("select_all",)
    assert [artist.name for artist in artists.items][-1] == "Nova"


async def test_saving_same_record_twice_updates_twice_without_duplicates(artists, artist_store):
    await artists.fetch_all()
    existing = artists.items[0]
    form = ArtistForm.from_record(existing).model_copy(update={"genre": "Darkwave"})

    await artists.save(form)
    await artists.save(form)

    assert artist_store.count("update") == 2
    assert artist_store.count("insert") == 0
    assert [artist.id for artist in artists.items].count(existing.id) == 1
    assert artists.find(existing.id).genre == "Darkwave"


async def test_backend_failure_is_classified_and_lists_untouched(artists, artist_store):
    await artists.fetch_all()
    before = list(artists.items)
    artist_store.failures["insert"] = StoreError("duplicate key value", "23505")

    with pytest.raises(BackendError) as exc_info:
        await artists.save(ArtistForm(name="Nova", color="#112233"))

    assert exc_info.value.message == ERROR_MESSAGES["23505"]
    assert exc_info.value.code == "23505"
    assert artists.items == before


async def test_pending_image_is_uploaded_before_insert(artist_store, admin_session, notifier):
    storage = FakeImageStorage()
    synchronizer = ArtistSynchronizer(artist_store, admin_session, notifier, storage=storage)
    form = ArtistForm(
        name="Nova",
        color="#112233",
        image_file=PendingImage(filename="Portrait.PNG", content=b"\x89PNG", content_type="image/png"),
    )

    await synchronizer.save(form)

    (path,) = storage.objects
    assert path.endswith(".png")
    record = next(call for call in artist_store.calls if call[0] == "insert")[1]
    assert record["image_url"].endswith(path)
    assert "image_file" not in record
    assert form.image_file is not None


async def test_failed_upload_aborts_write(artist_store, admin_session, notifier):
    storage = FakeImageStorage(error=StoreError("Bucket not found"))
    synchronizer = ArtistSynchronizer(artist_store, admin_session, notifier, storage=storage)
    form = ArtistForm(name="Nova", image_file=PendingImage(filename="a.jpg", content=b"x"))

    with pytest.raises(BackendError, match="Bucket not found"):
        await synchronizer.save(form)

    assert artist_store.count("insert") == 0


def test_generated_image_names_are_unique():
    names = {generate_image_name("cover.JPG") for _ in range(50)}

    assert len(names) == 50
    assert all(name.endswith(".jpg") for name in names)


async def test_remove_without_confirmation_makes_no_call(artist_store, admin_session):
    notifier = CollectingNotifier(confirmed=False)
    synchronizer = ArtistSynchronizer(artist_store, admin_session, notifier)
    await synchronizer.fetch_all()
    target = synchronizer.items[0].id

    assert not await synchronizer.remove(target)

    assert artist_store.count("delete") == 0
    assert notifier.prompts == ["Delete this artist?"]


async def test_remove_with_confirmation_deletes_once_and_refetches(artists, artist_store):
    await artists.fetch_all()
    target = artists.items[0].id

    assert await artists.remove(target)

    assert artist_store.count("delete") == 1
    assert target not in [artist.id for artist in artists.items]


async def test_remove_failure_keeps_list(artists, artist_store):
    await artists.fetch_all()
    before = list(artists.items)
    artist_store.failures["delete"] = StoreError("violates foreign key", "23503")

    with pytest.raises(BackendError):
        await artists.remove(before[0].id)

    assert artists.items == before


async def test_remove_requires_admin(artist_store, guest_session, notifier):
    synchronizer = ArtistSynchronizer(artist_store, guest_session, notifier)

    with pytest.raises(AdminRequiredError):
        await synchronizer.remove("anything")

    assert notifier.prompts == []


async def test_release_form_seed(releases):
    await releases.fetch_all()
    form = releases.new_form()

    assert form.order_index == 1
    assert form.featured is True
    assert len(form.year) == 4


async def test_release_artist_reference_is_optional(releases, release_store):
    form = ReleaseForm(
        title="Echoes",
        artist_name="Nova",
        artwork_url="https://cdn.test/echoes.jpg",
        year="2024",
        color="#101010",
    )

    await releases.save(form)

    record = next(call for call in release_store.calls if call[0] == "insert")[1]
    assert record["artist_id"] is None
    assert len(releases.items) == 2


async def test_new_record_without_index_goes_after_stored_rows(artists, artist_store):
    assert artists.items == []

    await artists.save(ArtistForm(name="Nova", color="#112233"))

    record = next(call for call in artist_store.calls if call[0] == "insert")[1]
    assert record["order_index"] == 2
    assert [artist.name for artist in artists.items][-1] == "Nova"


async def test_update_without_index_keeps_stored_position(artists, artist_store):
    await artists.fetch_all()
    form = ArtistForm.from_record(artists.items[0]).model_copy(update={"order_index": None})

    await artists.save(form)

    update = next(call for call in artist_store.calls if call[0] == "update")
    assert "order_index" not in update[2]
    assert artists.find(form.id).order_index == 0
