"""Unit tests for the import pipeline."""

from __future__ import annotations

import pytest

from mail_cache_engine.cache import CacheRepository, ImportPipeline
from mail_cache_engine.exceptions import GmailAPIError, MissingParameterError


@pytest.fixture
def pipeline(store, accounts, source_factory, settings) -> ImportPipeline:
    return ImportPipeline(store, accounts, source_factory, settings)


@pytest.fixture
def repository(store, settings) -> CacheRepository:
    return CacheRepository.for_user(store, "user-1", settings)


@pytest.mark.asyncio
async def test_imports_new_messages(pipeline, repository, link_accounts, source_factory, fake_source, make_fetched):
    await link_accounts("user-1", {"acct": "token"})
    source = source_factory.sources["acct"] = fake_source({"m1": make_fetched("m1"), "m2": make_fetched("m2")})

    new_ids = await pipeline.import_new_messages("user-1")

    assert new_ids == ["user-1#acct#m1", "user-1#acct#m2"]
    assert source.listed_labels == ["INBOX"]
    index = await repository.get_index()
    assert index.ids == new_ids
    assert index.summarization_queue == new_ids
    assert index.new_mail == new_ids
    assert index.inbox == new_ids
    assert set(index.deletables) == set(index.inbox)
    assert index.updated_at is not None

    message = await repository.get_message("user-1#acct#m1")
    assert message.provider_id == "m1"
    assert message.account_id == "acct"
    assert message.user_id == "user-1"
    assert message.title == "Subject m1"
    assert message.importance_score == 0.0
    assert message.cached_at is not None
    assert not message.is_enriched


@pytest.mark.asyncio
async def test_import_is_idempotent(pipeline, repository, link_accounts, source_factory, fake_source, make_fetched):
    await link_accounts("user-1", {"acct": "token"})
    source = source_factory.sources["acct"] = fake_source({"m1": make_fetched("m1"), "m2": make_fetched("m2")})

    await pipeline.import_new_messages("user-1")
    second = await pipeline.import_new_messages("user-1")

    assert second == []
    assert source.fetched == ["m1", "m2"]
    index = await repository.get_index()
    assert index.ids == ["user-1#acct#m1", "user-1#acct#m2"]
    assert index.summarization_queue == index.ids


@pytest.mark.asyncio
async def test_inbox_follows_provider_listing(
    pipeline, repository, link_accounts, source_factory, fake_source, make_fetched
):
    await link_accounts("user-1", {"acct": "token"})
    source = source_factory.sources["acct"] = fake_source({"m1": make_fetched("m1"), "m2": make_fetched("m2")})
    await pipeline.import_new_messages("user-1")

    del source.messages["m1"]
    source.messages["m3"] = make_fetched("m3")
    new_ids = await pipeline.import_new_messages("user-1")

    assert new_ids == ["user-1#acct#m3"]
    index = await repository.get_index()
    assert index.ids == ["user-1#acct#m1", "user-1#acct#m2", "user-1#acct#m3"]
    assert index.inbox == ["user-1#acct#m2", "user-1#acct#m3"]
    assert set(index.deletables) == set(index.inbox)
    # m1 left the provider inbox but stays cached
    assert await repository.get_message("user-1#acct#m1") is not None


@pytest.mark.asyncio
async def test_imports_every_account(pipeline, repository, link_accounts, source_factory, fake_source, make_fetched):
    await link_accounts("user-1", {"work": "t1", "home": "t2"})
    source_factory.sources["work"] = fake_source({"m1": make_fetched("m1")})
    source_factory.sources["home"] = fake_source({"m1": make_fetched("m1")})

    new_ids = await pipeline.import_new_messages("user-1")

    assert new_ids == ["user-1#work#m1", "user-1#home#m1"]


@pytest.mark.asyncio
async def test_no_accounts_is_a_noop(pipeline, repository):
    assert await pipeline.import_new_messages("user-1") == []
    assert await repository.get_index() is None


@pytest.mark.asyncio
async def test_other_account_types_are_ignored(pipeline, repository, link_accounts):
    await link_accounts("user-1", {"acct": "token"}, account_type="outlook")

    assert await pipeline.import_new_messages("user-1") == []


@pytest.mark.asyncio
async def test_missing_token_fails_before_any_fetch(pipeline, repository, link_accounts, source_factory):
    await link_accounts("user-1", {"good": "token", "bad": None})

    with pytest.raises(MissingParameterError, match="bad"):
        await pipeline.import_new_messages("user-1")

    assert source_factory.sources == {}
    assert await repository.get_index() is None


@pytest.mark.asyncio
async def test_empty_user_id(pipeline):
    with pytest.raises(MissingParameterError):
        await pipeline.import_new_messages("")


@pytest.mark.asyncio
async def test_fetch_failure_leaves_index_untouched(
    pipeline, repository, link_accounts, source_factory, fake_source, make_fetched
):
    await link_accounts("user-1", {"acct": "token"})
    source = source_factory.sources["acct"] = fake_source({"m1": make_fetched("m1"), "m2": make_fetched("m2")})
    source.fail_on_fetch.add("m2")

    with pytest.raises(GmailAPIError):
        await pipeline.import_new_messages("user-1")

    assert await repository.get_index() is None
    assert await repository.get_message("user-1#acct#m1") is not None

    source.fail_on_fetch.clear()
    new_ids = await pipeline.import_new_messages("user-1")

    assert new_ids == ["user-1#acct#m1", "user-1#acct#m2"]


@pytest.mark.asyncio
async def test_user_prefix_length(store, accounts, source_factory, settings, link_accounts, fake_source, make_fetched):
    pipeline = ImportPipeline(
        store, accounts, source_factory, settings.model_copy(update={"id_user_prefix_length": 4})
    )
    await link_accounts("user-1", {"acct": "token"})
    source_factory.sources["acct"] = fake_source({"m1": make_fetched("m1")})

    assert await pipeline.import_new_messages("user-1") == ["user#acct#m1"]
