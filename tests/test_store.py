import pytest

from miniforum.core.errors import (
    ProviderError, INVALID_ARGUMENT, NOT_FOUND, PERMISSION_DENIED, UNAUTHENTICATED
)
from miniforum.domains.forum.paths import (
    THREADS, USERS, ASCENDING, DESCENDING, POSTS,
    parse_collection, parse_document, posts_path, post_path, thread_path, user_path
)
from miniforum.domains.forum.rules import ContentAccess
from miniforum.domains.forum.store import ForumStore, SERVER_TIMESTAMP
from miniforum.domains.identity.entities import User


@pytest.fixture
def author():
    return User(id="u-author", email="author@x.com", display_name="author")


@pytest.fixture
def stranger():
    return User(id="u-stranger", email="stranger@x.com", display_name="stranger")


def thread_fields(user, title="Hello"):
    return {
        "title": title,
        "author_id": user.id,
        "author_name": user.name,
        "created_at": SERVER_TIMESTAMP,
        "last_at": SERVER_TIMESTAMP,
    }


def post_fields(user, text="reply"):
    return {
        "text": text,
        "author_id": user.id,
        "author_name": user.name,
        "created_at": SERVER_TIMESTAMP,
    }


class Recorder:
    def __init__(self):
        self.snapshots = []
        self.errors = []

    def __call__(self, docs):
        self.snapshots.append(docs)

    def error(self, error):
        self.errors.append(error)


# -------- пути --------

@pytest.mark.parametrize("path,kind,thread_id,doc_id", [
    ("threads", THREADS, None, None),
    ("threads/t1", THREADS, None, "t1"),
    ("threads/t1/posts", POSTS, "t1", None),
    ("/threads/t1/posts/p1/", POSTS, "t1", "p1"),
    ("users/u1", USERS, None, "u1"),
])
def test_parse_path(path, kind, thread_id, doc_id):
    from miniforum.domains.forum.paths import parse_path

    ref = parse_path(path)
    assert (ref.kind, ref.thread_id, ref.doc_id) == (kind, thread_id, doc_id)


@pytest.mark.parametrize("path", ["", "threads//posts", "comments", "threads/t1/likes", "users/u1/x"])
def test_invalid_paths_are_rejected(path):
    from miniforum.domains.forum.paths import parse_path

    with pytest.raises(ProviderError) as exc_info:
        parse_path(path)
    assert exc_info.value.code == INVALID_ARGUMENT


def test_collection_and_document_paths_are_distinct():
    assert parse_collection(posts_path("t1")).path == "threads/t1/posts"
    assert parse_document(post_path("t1", "p1")).collection_path == "threads/t1/posts"
    with pytest.raises(ProviderError):
        parse_collection(thread_path("t1"))
    with pytest.raises(ProviderError):
        parse_document(THREADS)


def test_content_access_only_owner():
    access = ContentAccess("u1")
    assert access.can_delete("u1")
    assert access.can_edit("u1")
    assert not access.can_delete("u2")
    assert not access.can_delete(None)
    assert not ContentAccess(None).is_owner(None)


# -------- запись --------

async def test_create_thread_uses_one_server_time(store, author, clock):
    thread_id = await store.create(THREADS, thread_fields(author), auth=author)

    thread = await store.get(thread_path(thread_id))
    assert thread.title == "Hello"
    assert thread.created_at == thread.last_at == clock.now
    assert thread.created_at.tzinfo is not None


async def test_write_requires_sign_in(store, author):
    with pytest.raises(ProviderError) as exc_info:
        await store.create(THREADS, thread_fields(author))
    assert exc_info.value.code == UNAUTHENTICATED


async def test_cannot_write_as_someone_else(store, author, stranger):
    with pytest.raises(ProviderError) as exc_info:
        await store.create(THREADS, thread_fields(author), auth=stranger)
    assert exc_info.value.code == PERMISSION_DENIED
    assert await store.query(THREADS) == []


@pytest.mark.parametrize("change", [
    {"title": "   "},
    {"created_at": "2024-01-01T00:00:00Z"},
    {"extra": 1},
])
async def test_invalid_fields_are_rejected(store, author, change):
    fields = thread_fields(author)
    fields.update(change)

    with pytest.raises(ProviderError) as exc_info:
        await store.create(THREADS, fields, auth=author)
    assert exc_info.value.code == INVALID_ARGUMENT


async def test_missing_fields_are_rejected(store, author):
    fields = thread_fields(author)
    del fields["last_at"]

    with pytest.raises(ProviderError) as exc_info:
        await store.create(THREADS, fields, auth=author)
    assert exc_info.value.code == INVALID_ARGUMENT


async def test_post_to_missing_thread(store, author):
    with pytest.raises(ProviderError) as exc_info:
        await store.create(posts_path("nope"), post_fields(author), auth=author)
    assert exc_info.value.code == NOT_FOUND


async def test_profiles_are_written_with_set(store, author, stranger):
    profile = {"display_name": "author", "email": author.email, "created_at": SERVER_TIMESTAMP}

    with pytest.raises(ProviderError) as exc_info:
        await store.create(USERS, profile, auth=author)
    assert exc_info.value.code == INVALID_ARGUMENT

    with pytest.raises(ProviderError) as exc_info:
        await store.set(user_path(author.id), profile, auth=stranger)
    assert exc_info.value.code == PERMISSION_DENIED

    await store.set(user_path(author.id), profile, auth=author)
    saved = await store.get(user_path(author.id))
    assert saved.display_name == "author"


async def test_anyone_signed_in_may_bump_last_at(store, author, stranger, clock):
    thread_id = await store.create(THREADS, thread_fields(author), auth=author)
    await store.create(posts_path(thread_id), post_fields(stranger), auth=stranger)

    await store.update(thread_path(thread_id), {"last_at": SERVER_TIMESTAMP}, auth=stranger)

    thread = await store.get(thread_path(thread_id))
    assert thread.last_at == clock.now
    assert thread.last_at > thread.created_at


async def test_non_author_cannot_edit_thread(store, author, stranger):
    thread_id = await store.create(THREADS, thread_fields(author), auth=author)

    with pytest.raises(ProviderError) as exc_info:
        await store.update(thread_path(thread_id), {"title": "mine now"}, auth=stranger)
    assert exc_info.value.code == PERMISSION_DENIED

    with pytest.raises(ProviderError) as exc_info:
        await store.update(thread_path(thread_id), {"author_id": stranger.id}, auth=author)
    assert exc_info.value.code == PERMISSION_DENIED


async def test_update_missing_document(store, author):
    with pytest.raises(ProviderError) as exc_info:
        await store.update(thread_path("nope"), {"last_at": SERVER_TIMESTAMP}, auth=author)
    assert exc_info.value.code == NOT_FOUND


@pytest.mark.parametrize("target", ["thread", "post"])
async def test_only_author_deletes(store, author, stranger, target):
    thread_id = await store.create(THREADS, thread_fields(author), auth=author)
    post_id = await store.create(posts_path(thread_id), post_fields(author), auth=author)
    path = thread_path(thread_id) if target == "thread" else post_path(thread_id, post_id)

    with pytest.raises(ProviderError) as exc_info:
        await store.delete(path, auth=stranger)
    assert exc_info.value.code == PERMISSION_DENIED
    assert await store.get(path) is not None

    await store.delete(path, auth=author)
    assert await store.get(path) is None


async def test_thread_delete_keeps_posts_by_default(store, author):
    thread_id = await store.create(THREADS, thread_fields(author), auth=author)
    await store.create(posts_path(thread_id), post_fields(author), auth=author)

    await store.delete(thread_path(thread_id), auth=author)

    assert await store.get(thread_path(thread_id)) is None
    assert len(await store.query(posts_path(thread_id))) == 1


async def test_cascading_thread_delete(session_factory, clock, author):
    store = ForumStore(session_factory, clock=clock, cascade_thread_delete=True)
    thread_id = await store.create(THREADS, thread_fields(author), auth=author)
    await store.create(posts_path(thread_id), post_fields(author), auth=author)
    recorder = Recorder()
    store.subscribe(posts_path(thread_id), "created_at", ASCENDING, recorder)
    await store.drain()

    await store.delete(thread_path(thread_id), auth=author)

    assert await store.query(posts_path(thread_id)) == []
    assert [len(s) for s in recorder.snapshots] == [1, 0]


# -------- чтение и подписки --------

async def test_query_order(store, author):
    for title in ("b", "c", "a"):
        await store.create(THREADS, thread_fields(author, title), auth=author)

    newest_first = await store.query(THREADS, "created_at", DESCENDING)
    by_title = await store.query(THREADS, "title", ASCENDING)

    assert [t.title for t in newest_first] == ["a", "c", "b"]
    assert [t.title for t in by_title] == ["a", "b", "c"]


async def test_query_rejects_unknown_order(store):
    with pytest.raises(ProviderError) as exc_info:
        await store.query(THREADS, "password_hash")
    assert exc_info.value.code == INVALID_ARGUMENT

    with pytest.raises(ProviderError):
        await store.query(THREADS, "created_at", "sideways")


async def test_subscription_gets_initial_and_full_snapshots(store, author):
    recorder = Recorder()
    store.subscribe(THREADS, "created_at", DESCENDING, recorder)
    assert recorder.snapshots == []

    await store.drain()
    await store.create(THREADS, thread_fields(author, "one"), auth=author)
    await store.create(THREADS, thread_fields(author, "two"), auth=author)

    assert [[t.title for t in s] for s in recorder.snapshots] == [[], ["one"], ["two", "one"]]


async def test_subscription_sees_only_its_collection(store, author):
    first = await store.create(THREADS, thread_fields(author, "first"), auth=author)
    second = await store.create(THREADS, thread_fields(author, "second"), auth=author)
    recorder = Recorder()
    store.subscribe(posts_path(first), "created_at", ASCENDING, recorder)
    await store.drain()

    await store.create(posts_path(second), post_fields(author), auth=author)
    await store.create(posts_path(first), post_fields(author, "here"), auth=author)

    assert [[p.text for p in s] for s in recorder.snapshots] == [[], ["here"]]


async def test_cancelled_subscription_gets_nothing(store, author):
    recorder = Recorder()
    unsubscribe = store.subscribe(THREADS, "created_at", DESCENDING, recorder)
    unsubscribe()
    unsubscribe()
    await store.drain()

    await store.create(THREADS, thread_fields(author), auth=author)

    assert recorder.snapshots == []
    assert store.subscriber_count(THREADS) == 0


async def test_subscription_error_goes_to_error_callback(store):
    recorder = Recorder()
    store.subscribe(THREADS, "password_hash", ASCENDING, recorder, recorder.error)
    await store.drain()

    assert recorder.snapshots == []
    [error] = recorder.errors
    assert error.code == INVALID_ARGUMENT


async def test_failing_subscriber_does_not_break_writes(store, author):
    def broken(docs):
        raise RuntimeError("subscriber bug")

    recorder = Recorder()
    store.subscribe(THREADS, "created_at", DESCENDING, broken)
    store.subscribe(THREADS, "created_at", DESCENDING, recorder)
    await store.drain()

    await store.create(THREADS, thread_fields(author), auth=author)

    assert len(recorder.snapshots) == 2


async def test_title_longer_than_column_is_rejected(store, author):
    with pytest.raises(ProviderError) as exc_info:
        await store.create(THREADS, thread_fields(author, "t" * 256), auth=author)
    assert exc_info.value.code == INVALID_ARGUMENT
    assert await store.query(THREADS) == []

    await store.create(THREADS, thread_fields(author, "t" * 255), auth=author)


async def test_profile_name_longer_than_column_is_rejected(store, author):
    profile = {"display_name": "n" * 101, "email": author.email, "created_at": SERVER_TIMESTAMP}

    with pytest.raises(ProviderError) as exc_info:
        await store.set(user_path(author.id), profile, auth=author)
    assert exc_info.value.code == INVALID_ARGUMENT
    assert await store.get(user_path(author.id)) is None
