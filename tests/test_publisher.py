"""
Tests for the publish dispatcher and multi-account fan-out
"""

import asyncio

import httpx
import pytest

from app.errors import AccountNotFound, MissingAccountIdentifier, TokenExpiredNoRefresh, UnsupportedPlatform
from app.models import PostContent
from app.publishing.registry import AdapterRegistry
from app.services.notifier import EventNotifier
from app.services.publisher import PublishDispatcher

TWEETS_URL = "https://api.twitter.com/2/tweets"
WEBHOOK_URL = "https://hooks.example.com/events"


@pytest.fixture
def dispatcher(token_manager, http_client, publications):
    return PublishDispatcher(token_manager, AdapterRegistry.default(http_client), publications)


@pytest.fixture
def content():
    return PostContent(text="Launch day!")


def tweet_ok(routes):
    routes.add("POST", TWEETS_URL, status=201, json={"data": {"id": "1700"}})


class TestPublish:
    async def test_success_records_publication(self, dispatcher, make_account, routes, supabase, content, in_two_hours):
        tweet_ok(routes)
        account_id = make_account(access_token="valid", expires_at=in_two_hours)

        result = await dispatcher.publish(account_id, content)

        assert result.success
        assert result.post_id == "1700"
        assert routes.calls[0].headers["authorization"] == "Bearer valid"
        record = supabase.rows("publications")[0]
        assert record["account_id"] == account_id
        assert record["content"] == "Launch day!"
        assert record["external_post_id"] == "1700"

    async def test_failure_is_returned_not_recorded(self, dispatcher, make_account, routes, supabase, content):
        routes.add("POST", TWEETS_URL, status=429, json={"title": "Too Many Requests"})
        account_id = make_account()

        result = await dispatcher.publish(account_id, content)

        assert not result.success
        assert result.error == "Too Many Requests"
        assert supabase.rows("publications") == []

    async def test_record_failure_keeps_success(self, dispatcher, make_account, routes, supabase, content):
        tweet_ok(routes)
        supabase.fail_on.add(("publications", "insert"))
        account_id = make_account()

        result = await dispatcher.publish(account_id, content)

        assert result.success
        assert result.post_id == "1700"

    async def test_missing_account(self, dispatcher, content):
        with pytest.raises(AccountNotFound):
            await dispatcher.publish("nope", content)

    async def test_platform_without_adapter(self, dispatcher, make_account, routes, content):
        account_id = make_account(platform="tiktok")

        with pytest.raises(UnsupportedPlatform):
            await dispatcher.publish(account_id, content)
        assert routes.calls == []

    async def test_foreign_account_is_not_found(self, dispatcher, make_account, routes, content):
        account_id = make_account(user_id="someone-else")

        with pytest.raises(AccountNotFound):
            await dispatcher.publish(account_id, content, user_id="user-1")
        assert routes.calls == []

    async def test_missing_page_id_fails_before_any_call(self, dispatcher, make_account, routes, content):
        account_id = make_account(platform="facebook", platform_user_id="")

        with pytest.raises(MissingAccountIdentifier):
            await dispatcher.publish(account_id, content)
        assert routes.calls == []

    async def test_account_is_read_once(self, dispatcher, token_manager, make_account, routes, content, in_two_hours, monkeypatch):
        tweet_ok(routes)
        account_id = make_account(expires_at=in_two_hours)
        reads = []
        original_get = token_manager.store.get
        monkeypatch.setattr(token_manager.store, "get", lambda account_id: reads.append(account_id) or original_get(account_id))

        result = await dispatcher.publish(account_id, content)

        assert result.success
        assert reads == [account_id]

    async def test_notifies_on_success(self, token_manager, publications, routes, http_client, make_account, content):
        tweet_ok(routes)
        routes.add("POST", WEBHOOK_URL, json={})
        notifier = EventNotifier(WEBHOOK_URL, http_client)
        dispatcher = PublishDispatcher(token_manager, AdapterRegistry.default(http_client), publications, notifier)

        await dispatcher.publish(make_account(), content)
        await notifier.drain()

        hook = routes.calls_to(WEBHOOK_URL)[0]
        assert b'"post_published"' in hook.content


class TestPublishToMany:
    async def test_partial_success_is_independent(self, dispatcher, make_account, routes, content, an_hour_ago):
        tweet_ok(routes)
        routes.add("POST", "https://graph.facebook.com/v18.0/page-1/feed", status=400, json={
            "error": {"message": "Page token expired"}
        })
        a = make_account(platform="twitter")
        b = make_account(platform="linkedin", refresh_token=None, expires_at=an_hour_ago)
        c = make_account(platform="facebook", platform_user_id="page-1")

        results = await dispatcher.publish_to_many([a, b, c], content)

        assert [r.account_id for r in results] == [a, b, c]
        assert results[0].result.success
        assert not results[1].result.success
        assert results[1].result.error_code == TokenExpiredNoRefresh.code
        assert not results[2].result.success
        assert results[2].result.error == "Page token expired"
        # b never reached the network
        assert routes.calls_to("https://api.linkedin.com") == []

    async def test_runs_concurrently(self, token_manager, publications, routes, make_account, content):
        in_flight = []
        peak = []

        async def slow_tweet(request):
            in_flight.append(request)
            peak.append(len(in_flight))
            await asyncio.sleep(0.01)
            in_flight.remove(request)
            return httpx.Response(201, json={"data": {"id": "1"}})

        routes.add("POST", TWEETS_URL, handler=slow_tweet)
        dispatcher = PublishDispatcher(token_manager, AdapterRegistry.default(routes.client()), publications)
        ids = [make_account(user_id=f"user-{i}") for i in range(3)]

        results = await dispatcher.publish_to_many(ids, content)

        assert all(r.result.success for r in results)
        assert max(peak) == 3

    async def test_missing_and_unsupported_are_results(self, dispatcher, make_account, content):
        tiktok = make_account(platform="tiktok")

        results = await dispatcher.publish_to_many(["missing", tiktok], content)

        assert [r.result.error_code for r in results] == ["account_not_found", "unsupported_platform"]

    async def test_ownership_applies_to_each_account(self, dispatcher, make_account, routes, content):
        tweet_ok(routes)
        mine = make_account(user_id="user-1")
        theirs = make_account(user_id="user-2")

        results = await dispatcher.publish_to_many([mine, theirs], content, user_id="user-1")

        assert results[0].result.success
        assert results[1].result.error_code == "account_not_found"
