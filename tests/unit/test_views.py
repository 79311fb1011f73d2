"""Unit tests for inbox view maintenance."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from mail_cache_engine.cache import CacheRepository, ViewMaintainer
from mail_cache_engine.exceptions import MissingParameterError, NotFoundError


@pytest.mark.asyncio
async def test_archive_removes_from_both_views(make_service, seed_inbox, make_fetched):
    service = make_service()
    m1, m2 = await seed_inbox(service, make_fetched("m1"), make_fetched("m2"))
    await service.process_summarization_queue()

    await service.archive(m1)

    index = await service.repository.get_index()
    assert m1 not in index.inbox
    assert m1 not in index.deletables
    assert index.inbox == [m2]
    assert m1 in index.ids
    assert (await service.get(m1)).id == m1


@pytest.mark.asyncio
async def test_archive_unknown_id(make_service, seed_inbox, make_fetched):
    service = make_service()
    [m1] = await seed_inbox(service, make_fetched("m1"))
    await service.archive(m1)

    with pytest.raises(NotFoundError):
        await service.archive(m1)
    with pytest.raises(NotFoundError):
        await service.archive("user-1#acct#nope")
    with pytest.raises(MissingParameterError):
        await service.archive("")


@pytest.mark.asyncio
async def test_update_inbox_without_index(store, settings):
    views = ViewMaintainer(CacheRepository.for_user(store, "nobody", settings))

    assert await views.update_inbox() is None


@pytest.mark.asyncio
async def test_update_inbox_sorts_and_drops_missing(make_service, seed_inbox, make_fetched):
    service = make_service()
    m1, m2, m3 = await seed_inbox(service, make_fetched("m1"), make_fetched("m2"), make_fetched("m3"))
    await service.repository.update_message(m2, lambda m: m.model_copy(update={"priority_score": 0.9}))
    await service.repository.update_message(m3, lambda m: m.model_copy(update={"deletable_score": 0.5}))
    await service.delete(m1)

    index = await service.views.update_inbox()

    assert index.inbox == [m2, m3]
    assert index.deletables == [m3, m2]


@pytest.mark.asyncio
async def test_sort_is_stable_for_equal_scores(make_service, seed_inbox, make_fetched):
    service = make_service()
    ids = await seed_inbox(service, *(make_fetched(f"m{i}") for i in range(4)))

    index = await service.views.update_inbox()

    assert index.inbox == ids
    assert index.deletables == ids


@pytest.mark.asyncio
async def test_rescore_does_not_call_the_model(make_service, seed_inbox, scripted_client, reply, make_fetched, now):
    client = scripted_client({}, default=reply())
    service = make_service(client)
    [m1] = await seed_inbox(service, make_fetched("m1", date=now - timedelta(days=10)))
    await service.repository.update_message(m1, lambda m: m.model_copy(update={"importance_score": 0.8}))

    await service.rescore()

    message = await service.get(m1)
    assert client.calls == []
    # +0.1 for a sender on the recipient's domain
    assert message.importance_score == pytest.approx(0.9)
    assert message.priority_score == pytest.approx(0.63)
    assert message.priority_label == "High"
    assert not message.decay_applied

    await service.rescore(with_decay=True)

    decayed = await service.get(m1)
    assert decayed.decay_applied
    assert decayed.priority_score < 0.63
    assert decayed.priority_label == "Low"


@pytest.mark.asyncio
async def test_repeated_rescore_is_stable(make_service, seed_inbox, scripted_client, reply, make_fetched, now):
    client = scripted_client({}, default=reply(importanceScore=0.5, category="Business"))
    service = make_service(client)
    [m1] = await seed_inbox(service, make_fetched("m1", date=now - timedelta(days=10)))
    await service.process_summarization_queue()
    enriched = await service.get(m1)
    assert enriched.decay_applied

    await service.rescore()
    first = await service.get(m1)
    await service.rescore()
    second = await service.get(m1)

    assert first.importance_score == pytest.approx(enriched.importance_score)
    assert second.importance_score == pytest.approx(enriched.importance_score)
    assert second.decay_applied
    assert second.priority_score == pytest.approx(first.priority_score)
    assert second.priority_label == first.priority_label
    assert second.deletable_score == pytest.approx(first.deletable_score)


@pytest.mark.asyncio
async def test_rescore_reorders_views(make_service, seed_inbox, make_fetched):
    service = make_service()
    m1, m2 = await seed_inbox(service, make_fetched("m1"), make_fetched("m2"))
    await service.repository.update_message(m2, lambda m: m.model_copy(update={"importance_score": 0.7}))

    await service.rescore()

    assert await service.get_inbox() == [m2, m1]


@pytest.mark.asyncio
async def test_rescore_without_inbox_is_a_noop(make_service):
    await make_service().rescore()


@pytest.mark.asyncio
async def test_archive_during_rescore_stays_archived(make_service, seed_inbox, make_fetched):
    service = make_service()
    ids = await seed_inbox(service, *(make_fetched(f"m{i}") for i in range(5)))

    await asyncio.gather(service.rescore(), service.archive(ids[2]))

    index = await service.repository.get_index()
    assert ids[2] not in index.inbox
    assert ids[2] not in index.deletables
    assert set(index.inbox) == set(index.deletables) == set(ids) - {ids[2]}
