"""Tests for action providers."""

import random

import pytest

from mcpchain.actions import ActionRegistry, FallbackAction, demo_actions
from mcpchain.catalog import InMemoryCatalog, demo_catalog
from mcpchain.schemas import Entry


class RecordingSleep:
    """Awaitable sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class TestFallbackAction:
    """Tests for FallbackAction."""

    @pytest.mark.asyncio
    async def test_output_is_marked(self):
        """Fallback output carries the fallback marker and entry details."""
        sleep = RecordingSleep()
        fallback = FallbackAction(rng=random.Random(7), sleep=sleep)

        output = await fallback("srv-9", None, name="custom-server")

        assert output["fallback"] is True
        assert output["server_id"] == "srv-9"
        assert output["server_name"] == "custom-server"
        assert output["status"] == "completed"
        assert 1 <= output["operations_performed"] <= 10

    @pytest.mark.asyncio
    async def test_delay_within_range(self):
        """The simulated delay stays inside the configured range."""
        sleep = RecordingSleep()
        fallback = FallbackAction(delay_range=(0.2, 0.4), rng=random.Random(1), sleep=sleep)

        for _ in range(5):
            await fallback("x", None)

        assert len(sleep.delays) == 5
        assert all(0.2 <= d <= 0.4 for d in sleep.delays)

    @pytest.mark.asyncio
    async def test_seeded_rng_is_deterministic(self):
        """Two fallbacks with the same seed produce the same operations count."""
        first = FallbackAction(rng=random.Random(42), sleep=RecordingSleep())
        second = FallbackAction(rng=random.Random(42), sleep=RecordingSleep())

        a = await first("x", None)
        b = await second("x", None)

        assert a["operations_performed"] == b["operations_performed"]

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            FallbackAction(delay_range=(2.0, 1.0))
        with pytest.raises(ValueError):
            FallbackAction(delay_range=(-1.0, 1.0))


class TestActionRegistry:
    """Tests for ActionRegistry."""

    @pytest.mark.asyncio
    async def test_registered_by_id(self):
        """Actions registered under an entry id receive the step input."""
        received = []

        async def action(input):
            received.append(input)
            return {"echo": input}

        registry = ActionRegistry(fallback=FallbackAction(sleep=RecordingSleep()))
        registry.register("srv-1", action)

        output = await registry.invoke("srv-1", {"rows": 3})

        assert output == {"echo": {"rows": 3}}
        assert received == [{"rows": 3}]

    @pytest.mark.asyncio
    async def test_registered_by_name(self):
        """With a catalog, actions can be keyed by entry name."""
        async def action(input):
            return "by-name"

        catalog = InMemoryCatalog([Entry(id="srv-7", name="notion-sync")])
        registry = ActionRegistry(catalog=catalog, actions={"notion-sync": action})

        assert registry.lookup("srv-7") is action
        assert registry.lookup("srv-8") is None
        assert await registry.invoke("srv-7", None) == "by-name"

    @pytest.mark.asyncio
    async def test_unregistered_uses_fallback(self):
        """Entries with no action get the fallback output."""
        sleep = RecordingSleep()
        registry = ActionRegistry(
            catalog=demo_catalog(),
            fallback=FallbackAction(rng=random.Random(0), sleep=sleep),
        )

        output = await registry.invoke("discord-bot", None)

        assert output["fallback"] is True
        assert output["server_name"] == "discord-bot"
        assert len(sleep.delays) == 1

    @pytest.mark.asyncio
    async def test_action_errors_propagate(self):
        """Provider errors are left for the executor to record."""
        async def broken(input):
            raise RuntimeError("api down")

        registry = ActionRegistry(actions={"x": broken})

        with pytest.raises(RuntimeError, match="api down"):
            await registry.invoke("x", None)


class TestDemoActions:
    """Tests for the simulated marketplace servers."""

    @pytest.mark.asyncio
    async def test_known_payloads(self):
        sleep = RecordingSleep()
        actions = demo_actions(sleep=sleep)

        output = await actions["postgres-client"](None)

        assert output == {"tables_queried": 4, "records_processed": 1250, "queries_executed": 8}
        assert "fallback" not in output
        assert sleep.delays == [1.2]

    @pytest.mark.asyncio
    async def test_time_scale(self):
        sleep = RecordingSleep()
        actions = demo_actions(time_scale=0, sleep=sleep)

        await actions["openai-assistant"](None)

        assert sleep.delays == [0]

    @pytest.mark.asyncio
    async def test_payload_copies(self):
        """Mutating one output does not leak into the next."""
        actions = demo_actions(time_scale=0, sleep=RecordingSleep())

        first = await actions["slack-connector"](None)
        first["channels"].append("#oops")
        second = await actions["slack-connector"](None)

        assert second["channels"] == ["#general", "#dev", "#random"]

    def test_all_seeded_servers_covered(self):
        catalog = demo_catalog()
        assert sorted(demo_actions()) == sorted(e.name for e in catalog)
