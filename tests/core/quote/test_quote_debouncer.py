"""Tests for debounced re-quoting on amount edits."""

import asyncio
import logging

import pytest

from bridgeflow.core.errors import ErrorKind
from bridgeflow.core.quote import QuoteDebouncer, QuoteEngine
from bridgeflow.providers.gateway import GatewayUnavailableError


@pytest.fixture
def engine(gateway, catalog):
    return QuoteEngine(gateway, catalog)


class TestQuoteDebouncer:
    @pytest.mark.asyncio
    async def test_rapid_edits_issue_one_request_for_last_amount(self, gateway, catalog, engine, intent):
        await catalog.load()
        debouncer = QuoteDebouncer(engine, delay_seconds=0.5)

        async def edit(amount, after):
            await asyncio.sleep(after)
            return await debouncer.submit(intent.with_amount(amount))

        outcomes = await asyncio.gather(edit("5", 0), edit("50", 0.1), edit("500", 0.2))

        assert [call.amount for call in gateway.quote_calls] == ["500"]
        assert [outcome.superseded for outcome in outcomes] == [True, True, False]
        assert outcomes[-1].ok
        assert outcomes[-1].quote.is_for(intent.with_amount("500"))

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, catalog, engine, intent):
        await catalog.load()
        debouncer = QuoteDebouncer(engine, delay_seconds=0)

        first = await debouncer.submit(intent)
        second = await debouncer.submit(intent)

        assert second.request_id > first.request_id
        assert debouncer.latest_request_id == second.request_id

    @pytest.mark.asyncio
    async def test_invalid_amount_answers_immediately(self, gateway, catalog, engine, intent):
        await catalog.load()
        debouncer = QuoteDebouncer(engine, delay_seconds=10)

        outcome = await asyncio.wait_for(debouncer.submit(intent.with_amount("0.01")), timeout=1)

        assert outcome.ok is False
        assert outcome.error.kind == ErrorKind.VALIDATION
        assert gateway.quote_calls == []

    @pytest.mark.asyncio
    async def test_in_flight_result_is_discarded_when_superseded(self, gateway, catalog, engine, intent):
        await catalog.load()
        gateway.quote_delay = 0.2
        debouncer = QuoteDebouncer(engine, delay_seconds=0)

        in_flight = asyncio.create_task(debouncer.submit(intent))
        await asyncio.sleep(0.05)
        debouncer.cancel()
        outcome = await in_flight

        assert len(gateway.quote_calls) == 1
        assert outcome.superseded is True
        assert outcome.quote is None

    @pytest.mark.asyncio
    async def test_provider_failure_is_classified(self, gateway, catalog, engine, intent):
        await catalog.load()
        gateway.quote_error = GatewayUnavailableError("Failed to fetch")
        debouncer = QuoteDebouncer(engine, delay_seconds=0)

        outcome = await debouncer.submit(intent)

        assert outcome.error.kind == ErrorKind.PROVIDER_UNAVAILABLE
        assert outcome.error.retryable is True

    @pytest.mark.asyncio
    async def test_superseded_failure_is_logged(self, gateway, catalog, engine, intent, caplog):
        await catalog.load()
        gateway.quote_delay = 0.2
        gateway.quote_error = GatewayUnavailableError("Failed to fetch")
        debouncer = QuoteDebouncer(engine, delay_seconds=0)

        with caplog.at_level(logging.DEBUG, logger="bridgeflow.core.quote.debounce"):
            in_flight = asyncio.create_task(debouncer.submit(intent))
            await asyncio.sleep(0.05)
            debouncer.cancel()
            outcome = await in_flight

        assert outcome.superseded is True
        assert outcome.error is None
        assert "Failed to fetch" in caplog.text
