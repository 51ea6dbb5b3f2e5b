from __future__ import annotations

import asyncio

import pytest
from fakes import FakeBackend, make_notes_client

from ainotes_api.client.context import build_notes_context
from ainotes_api.client.controller import SAMPLE_NOTE, NotesAssistant
from ainotes_api.client.retry import retry_async
from ainotes_api.config import ClientSettings
from ainotes_api.domain.entities import NEW_NOTE_CONTENT, NEW_NOTE_TITLE, Note, SyncStatus
from ainotes_api.domain.exceptions import BackendError, BackendTimeout

SAMPLE = Note(id=1, title="Sample Note", content="This is a sample note. You can edit or delete it.")


def test_context_joins_title_content_pairs_with_blank_lines() -> None:
    notes = [Note(1, "A", "alpha"), Note(2, "B", "beta")]
    assert build_notes_context(notes) == "A: alpha\n\nB: beta"
    assert build_notes_context([]) == ""


def test_load_all_replaces_placeholder_state() -> None:
    backend = FakeBackend(notes=[Note(7, "Trip", "Plan Italy trip")])
    client, store = make_notes_client(backend, [SAMPLE])
    seen_loading: list[bool] = []
    store.subscribe(lambda s: seen_loading.append(s.loading))

    loaded = asyncio.run(client.load_all())

    assert loaded == [Note(7, "Trip", "Plan Italy trip")]
    assert client.notes == loaded
    assert client.status(7) is SyncStatus.COMMITTED
    assert seen_loading[0] is True
    assert seen_loading[-1] is False


def test_load_all_retries_then_fails_closed() -> None:
    backend = FakeBackend(notes=[Note(7, "Trip", "x")])
    backend.load_failures = 5
    client, store = make_notes_client(backend, [SAMPLE], load_retries=2)

    loaded = asyncio.run(client.load_all())

    assert loaded == []
    assert client.notes == []
    assert backend.ops() == ["getallnotes"] * 3
    assert store.state.loading is False
    [notification] = store.state.notifications
    assert notification.kind == "load_failure"
    assert notification.timed_out is False


def test_load_all_recovers_within_retry_budget() -> None:
    backend = FakeBackend(notes=[Note(7, "Trip", "x")])
    backend.load_failures = 1
    client, store = make_notes_client(backend, load_retries=1)

    assert asyncio.run(client.load_all()) == [Note(7, "Trip", "x")]
    assert store.state.notifications == []


def test_create_appends_provisional_note_and_opens_session() -> None:
    client, _store = make_notes_client(FakeBackend(), [SAMPLE], clock=lambda: 5000)

    first = client.create()
    second = client.create()

    assert (first.id, second.id) == (5000, 5001)
    assert first.title == NEW_NOTE_TITLE
    assert first.content == NEW_NOTE_CONTENT
    assert len(client.notes) == 3
    assert client.status(first.id) is SyncStatus.PROVISIONAL
    assert client.edit_session.note_id == second.id


def test_begin_edit_discards_other_draft_without_touching_committed_fields() -> None:
    a = Note(1, "A", "alpha")
    b = Note(2, "B", "beta")
    client, _store = make_notes_client(FakeBackend(), [a, b])

    client.begin_edit(a)
    client.update_draft(title="A edited", content="changed")
    session = client.begin_edit(b)

    assert session.note_id == 2
    assert session.draft_title == "B"
    assert client.notes == [a, b]


def test_cancel_edit_makes_no_backend_call() -> None:
    backend = FakeBackend()
    client, _store = make_notes_client(backend, [SAMPLE])
    client.begin_edit(SAMPLE)
    client.update_draft(content="draft")
    client.cancel_edit()

    assert client.edit_session is None
    assert client.notes == [SAMPLE]
    assert backend.calls == []


def test_create_then_save_replaces_provisional_with_canonical() -> None:
    backend = FakeBackend()
    client, _store = make_notes_client(backend, [SAMPLE], clock=lambda: 9000)

    async def scenario():
        created = client.create()
        client.update_draft(title="Groceries", content="Milk, eggs")
        return created, await client.save()

    created, canonical = asyncio.run(scenario())

    [call] = backend.calls
    assert call[0] == "embedandsave"
    assert call[1:3] == ("Groceries", "Milk, eggs")
    assert call[3] == f"Sample Note: {SAMPLE.content}\n\nGroceries: Milk, eggs"
    assert call[4] is None
    assert canonical == Note(101, "Groceries", "Milk, eggs")
    assert client.notes[1] == canonical
    assert created.id not in [n.id for n in client.notes]
    assert client.status(canonical.id) is SyncStatus.COMMITTED
    assert client.status(created.id) is None
    assert client.edit_session is None


def test_save_of_committed_note_sends_its_id() -> None:
    backend = FakeBackend()
    client, _store = make_notes_client(backend, [SAMPLE])

    async def scenario():
        client.begin_edit(SAMPLE)
        client.update_draft(content="rewritten")
        await client.save()

    asyncio.run(scenario())
    assert backend.calls[0][4] == SAMPLE.id
    assert backend.calls[0][3] == "Sample Note: rewritten"


def test_save_failure_reverts_and_keeps_draft() -> None:
    backend = FakeBackend()
    backend.save_error = BackendTimeout("request timed out")
    client, store = make_notes_client(backend, [SAMPLE])

    async def scenario():
        client.begin_edit(SAMPLE)
        client.update_draft(title="Broken")
        return await client.save()

    assert asyncio.run(scenario()) is None
    assert client.notes == [SAMPLE]
    assert client.status(SAMPLE.id) is SyncStatus.REVERTED
    assert client.edit_session.draft_title == "Broken"
    [notification] = store.state.notifications
    assert notification.kind == "save_failure"
    assert notification.timed_out is True


def test_overlapping_save_for_same_note_is_rejected() -> None:
    backend = FakeBackend()
    client, store = make_notes_client(backend, [SAMPLE])

    async def scenario():
        backend.gate = asyncio.Event()
        session = client.begin_edit(SAMPLE)
        first = asyncio.create_task(client.save(session))
        await asyncio.sleep(0)
        assert client.status(SAMPLE.id) is SyncStatus.PENDING
        second = await client.save(session)
        backend.gate.set()
        return await first, second

    first, second = asyncio.run(scenario())
    assert first is not None
    assert second is None
    assert backend.ops() == ["embedandsave"]
    assert [n.kind for n in store.state.notifications] == ["busy"]


def test_delete_is_optimistic_and_closes_session() -> None:
    backend = FakeBackend()
    client, _store = make_notes_client(backend, [SAMPLE])

    async def scenario():
        backend.gate = asyncio.Event()
        client.begin_edit(SAMPLE)
        task = client.delete(SAMPLE)
        assert client.notes == []
        assert client.edit_session is None
        backend.gate.set()
        return await task

    assert asyncio.run(scenario()) is True
    assert backend.calls == [("deletenote", SAMPLE.id)]


def test_delete_of_provisional_note_skips_backend() -> None:
    backend = FakeBackend()
    client, _store = make_notes_client(backend, [SAMPLE])

    async def scenario():
        note = client.create()
        return client.delete(note)

    assert asyncio.run(scenario()) is None
    assert client.notes == [SAMPLE]
    assert backend.calls == []


def test_failed_delete_is_retried_then_compensated() -> None:
    a = Note(1, "A", "alpha")
    b = Note(2, "B", "beta")
    backend = FakeBackend()
    backend.delete_failures = 5
    client, store = make_notes_client(backend, [a, b], delete_retries=1)

    async def scenario():
        task = client.delete(a)
        assert client.notes == [b]
        return await task

    assert asyncio.run(scenario()) is False
    assert backend.ops() == ["deletenote", "deletenote"]
    assert client.notes == [a, b]
    assert [n.kind for n in store.state.notifications] == ["delete_failure"]


def test_repeated_delete_of_same_id_is_tracked_once() -> None:
    backend = FakeBackend()
    client, _store = make_notes_client(backend, [SAMPLE])

    async def scenario():
        backend.gate = asyncio.Event()
        first = client.delete(SAMPLE)
        second = client.delete(SAMPLE)
        backend.gate.set()
        await client.drain()
        return first, second

    first, second = asyncio.run(scenario())
    assert first is second
    assert backend.ops() == ["deletenote"]


def test_delete_during_save_removes_canonical_record() -> None:
    backend = FakeBackend()
    client, _store = make_notes_client(backend, [], clock=lambda: 42)

    async def scenario():
        backend.gate = asyncio.Event()
        note = client.create()
        save = asyncio.create_task(client.save())
        await asyncio.sleep(0)
        assert client.delete(note) is None
        backend.gate.set()
        canonical = await save
        await client.drain()
        return canonical

    canonical = asyncio.run(scenario())
    assert client.notes == []
    assert backend.calls[-1] == ("deletenote", canonical.id)


def test_listeners_observe_each_mutation() -> None:
    client, store = make_notes_client(FakeBackend(), [SAMPLE])
    snapshots: list[int] = []
    unsubscribe = store.subscribe(lambda s: snapshots.append(len(s.notes)))

    client.create()
    unsubscribe()
    client.create()

    assert snapshots == [2]


def test_save_failure_surfaces_generic_backend_error() -> None:
    backend = FakeBackend()
    backend.save_error = BackendError("backend_http_502")
    client, store = make_notes_client(backend, [], clock=lambda: 1)

    async def scenario():
        client.create()
        await client.save()

    asyncio.run(scenario())
    assert client.status(1) is SyncStatus.PROVISIONAL
    assert client.notes == [Note(1, NEW_NOTE_TITLE, NEW_NOTE_CONTENT)]
    assert "backend_http_502" in store.state.notifications[0].message


def test_save_failure_after_delete_removes_persisted_row() -> None:
    a = Note(1, "A", "alpha")
    backend = FakeBackend()
    backend.save_error = BackendError("backend_http_500")
    client, store = make_notes_client(backend, [a])

    async def scenario():
        backend.gate = asyncio.Event()
        client.begin_edit(a)
        client.update_draft(content="changed")
        save = asyncio.create_task(client.save())
        await asyncio.sleep(0)
        assert client.delete(a) is None
        backend.gate.set()
        result = await save
        await client.drain()
        return result

    assert asyncio.run(scenario()) is None
    assert backend.ops() == ["embedandsave", "deletenote"]
    assert backend.calls[-1] == ("deletenote", 1)
    assert client.notes == []
    assert [n.kind for n in store.state.notifications] == ["save_failure"]


def test_save_failure_after_delete_of_unsaved_note_skips_backend() -> None:
    backend = FakeBackend()
    backend.save_error = BackendError("backend_http_500")
    client, store = make_notes_client(backend, [], clock=lambda: 7)

    async def scenario():
        backend.gate = asyncio.Event()
        note = client.create()
        save = asyncio.create_task(client.save())
        await asyncio.sleep(0)
        assert client.delete(note) is None
        backend.gate.set()
        await save
        await client.drain()

    asyncio.run(scenario())
    assert backend.ops() == ["embedandsave"]
    assert client.notes == []
    assert [n.kind for n in store.state.notifications] == ["save_failure"]


def _assistant(backend: FakeBackend) -> NotesAssistant:
    settings = ClientSettings(
        api_url="http://notes.test",
        api_token=None,
        request_timeout_s=1.0,
        ask_timeout_s=1.0,
        load_retries=0,
        delete_retries=0,
        retry_backoff_s=0.0,
    )
    return NotesAssistant(backend, settings=settings)


def test_placeholder_note_is_saved_as_new_record() -> None:
    backend = FakeBackend()
    assistant = _assistant(backend)
    assert assistant.notes.status(SAMPLE_NOTE.id) is SyncStatus.PROVISIONAL

    async def scenario():
        assistant.notes.begin_edit(SAMPLE_NOTE)
        assistant.notes.update_draft(content="edited placeholder")
        return await assistant.notes.save()

    saved = asyncio.run(scenario())
    [call] = backend.calls
    assert call[0] == "embedandsave"
    assert call[4] is None
    assert saved.id == 101


def test_placeholder_note_delete_stays_local() -> None:
    backend = FakeBackend()
    assistant = _assistant(backend)

    async def scenario():
        return assistant.notes.delete(SAMPLE_NOTE)

    assert asyncio.run(scenario()) is None
    assert assistant.notes.notes == []
    assert backend.calls == []


def test_retry_with_no_budget_calls_once() -> None:
    calls: list[int] = []

    async def failing():
        calls.append(1)
        raise BackendError("backend_http_503")

    async def scenario():
        await retry_async(failing, attempts=0, backoff_s=0.0, op="test")

    with pytest.raises(BackendError, match="backend_http_503"):
        asyncio.run(scenario())
    assert calls == [1]
