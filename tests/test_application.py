"""
Tests for the vending service, command routing and the Redis bridge.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from vending_system.application.command_handler import CommandHandler, CommandResponse
from vending_system.application.vending_service import VendingService
from vending_system.core.exceptions import MachineNotFoundError, VendingSystemError
from vending_system.core.value_objects import Dispensing, Idle, ItemSelected
from vending_system.domain.machine_registry import MachineRegistry
from vending_system.domain.vending_state_machine import VendingController
from vending_system.event_system import EventPublisher, EventType
from vending_system.infrastructure.settings import Settings, VendingSettings
from vending_system.main import listen_to_redis, make_notification_forwarder


@pytest.fixture
def settings():
    return Settings(vending=VendingSettings(machine_ids=("m1", "m2")))


@pytest.fixture
def service(scheduler, settings):
    return VendingService(scheduler=scheduler, settings=settings)


# =============================================================================
# Exception Tests
# =============================================================================


class TestExceptions:
    """Tests for custom exceptions."""

    def test_vending_system_error(self):
        error = VendingSystemError("Test error", code="TEST_001")
        assert error.to_dict() == {"error": "TEST_001", "message": "Test error", "details": {}}

    def test_machine_not_found(self):
        error = MachineNotFoundError("m9")
        assert error.code == "MachineNotFoundError"
        assert error.details["machine"] == "m9"


# =============================================================================
# Machine Registry Tests
# =============================================================================


class TestMachineRegistry:
    """Tests for MachineRegistry."""

    def test_register_and_get(self, scheduler):
        registry = MachineRegistry()
        controller = VendingController(scheduler, machine_id="m1")

        registry.register(controller)

        assert "m1" in registry
        assert len(registry) == 1
        assert registry.get("m1") is controller
        assert registry.get_names() == {"m1"}

    def test_require_missing(self):
        with pytest.raises(MachineNotFoundError):
            MachineRegistry().require("nope")

    def test_unregister(self, scheduler):
        registry = MachineRegistry()
        registry.register(VendingController(scheduler, machine_id="m1"))
        assert registry.unregister("m1") is not None
        assert registry.get("m1") is None
        assert registry.unregister("m1") is None


# =============================================================================
# Vending Service Tests
# =============================================================================


class TestVendingService:
    """Tests for VendingService."""

    def test_machines_created_from_settings(self, service):
        assert service.registry.get_names() == {"m1", "m2"}
        assert service.default_machine_id == "m1"

    @pytest.mark.asyncio
    async def test_purchase_flow(self, service, scheduler):
        result = await service.select_item("A1", machine_id="m2")
        assert result["success"] is True
        assert result["message"] == "ItemSelected{A1}"
        assert result["data"] == {"machine_id": "m2", "accepted": True, "state": "ItemSelected", "item_code": "A1"}

        await service.insert_payment(1.5, machine_id="m2")
        result = await service.request_dispense(machine_id="m2")
        assert result["data"]["state"] == "Dispensing"
        assert service.registry.get("m2").current_state == Dispensing("A1")
        assert service.registry.get("m1").current_state == Idle()

        scheduler.fire_all()
        assert service.registry.get("m2").current_state == Idle()

    @pytest.mark.asyncio
    async def test_default_machine(self, service):
        await service.select_item("B2")
        assert service.registry.get("m1").current_state == ItemSelected("B2")

    @pytest.mark.asyncio
    async def test_rejection(self, service):
        result = await service.insert_payment(1.0)
        assert result["success"] is False
        assert "no item selected" in result["message"]
        assert result["data"]["diagnostic"] == result["message"]

    @pytest.mark.asyncio
    async def test_unknown_machine(self, service):
        result = await service.select_item("A1", machine_id="m9")
        assert result["success"] is False
        assert result["message"] == "Unknown machine: m9"
        assert (await service.get_state("m9"))["success"] is False
        assert (await service.get_history("m9"))["success"] is False

    @pytest.mark.asyncio
    async def test_get_state(self, service):
        await service.select_item("A1")
        await service.insert_payment(2.0)

        result = await service.get_state()

        assert result["message"] == "HasFunds{A1,2.0}"
        assert result["data"]["transaction"] == {"item_code": "A1", "amount": 2.0}
        assert result["data"]["dispense_pending"] is False

    @pytest.mark.asyncio
    async def test_reset_and_history(self, service):
        await service.select_item("A1")
        await service.reset()

        result = await service.get_history()

        assert [r["event"] for r in result["data"]] == ["SelectItem", "Reset"]
        assert service.registry.get("m1").current_state == Idle()

    @pytest.mark.asyncio
    async def test_list_machines(self, service):
        await service.select_item("A1", machine_id="m2")
        result = await service.list_machines()
        assert result["data"] == {"m1": "Idle{}", "m2": "ItemSelected{A1}"}

    @pytest.mark.asyncio
    async def test_notifications_published(self, scheduler, settings):
        queue: asyncio.Queue = asyncio.Queue()
        service = VendingService(scheduler, EventPublisher(queue), settings)

        await service.select_item("A1")

        event = queue.get_nowait()
        assert event["type"] == EventType.STATE_CHANGED
        assert event["machine_id"] == "m1"


# =============================================================================
# Command Handler Tests
# =============================================================================


class TestCommandHandler:
    """Tests for CommandHandler."""

    @pytest.mark.asyncio
    async def test_purchase_commands(self, service):
        handler = CommandHandler(service)

        response = await handler.execute(
            {"command": "select_item", "command_id": 1, "data": {"item_code": "A1", "machine_id": "m2"}}
        )
        assert response["command_id"] == 1
        assert response["success"] is True
        assert response["data"]["machine_id"] == "m2"

        response = await handler.execute(
            {"command": "insert_payment", "command_id": 2, "data": {"amount": 1.5, "machine_id": "m2"}}
        )
        assert response["success"] is True
        assert response["data"]["state"] == "HasFunds"

    @pytest.mark.asyncio
    async def test_rejected_transition_is_unsuccessful(self, service):
        handler = CommandHandler(service)
        response = await handler.execute({"command": "request_dispense", "command_id": 3})
        assert response["success"] is False
        assert "nothing to dispense" in response["message"]

    @pytest.mark.asyncio
    async def test_unknown_command(self, service):
        response = await CommandHandler(service).execute({"command": "tilt", "command_id": 4})
        assert response == CommandResponse(command_id=4, message="Unknown command: tilt").to_dict()

    @pytest.mark.asyncio
    async def test_missing_arguments(self, service):
        response = await CommandHandler(service).execute({"command": "select_item", "data": {}})
        assert response["success"] is False
        assert response["message"] == "Missing required arguments: ['item_code']"

    @pytest.mark.asyncio
    async def test_non_object_data_is_rejected(self, service):
        response = await CommandHandler(service).execute(
            {"command": "reset", "command_id": 8, "data": [1]}
        )
        assert response == CommandResponse(
            command_id=8, message="Command data must be an object"
        ).to_dict()
        assert service.registry.get("m1").current_state == Idle()

    @pytest.mark.asyncio
    async def test_non_string_command_is_rejected(self, service):
        response = await CommandHandler(service).execute({"command": ["x"], "command_id": 9})
        assert response["success"] is False
        assert response["message"] == "Invalid command: ['x']"

    @pytest.mark.asyncio
    async def test_handler_exception_is_reported(self):
        api = MagicMock()
        api.reset = AsyncMock(side_effect=RuntimeError("boom"))
        response = await CommandHandler(api).execute({"command": "reset", "command_id": 5})
        assert response["success"] is False
        assert response["message"] == "Error: boom"

    def test_available_commands(self, service):
        names = {cmd["name"] for cmd in CommandHandler(service).get_available_commands()}
        assert names == {
            "select_item",
            "insert_payment",
            "request_dispense",
            "reset",
            "get_state",
            "get_history",
            "list_machines",
        }


# =============================================================================
# Redis Bridge Tests
# =============================================================================


class FakePubSub:
    """Pub/sub double yielding a fixed list of messages."""

    def __init__(self, messages):
        self.messages = messages
        self.subscribed = []

    async def subscribe(self, channel):
        self.subscribed.append(channel)

    async def listen(self):
        for message in self.messages:
            yield message


class TestRedisBridge:
    """Tests for the Redis command listener."""

    @pytest.mark.asyncio
    async def test_listen_dispatches_commands(self, service):
        command = {"command": "select_item", "command_id": 7, "data": {"item_code": "A1"}}
        pubsub = FakePubSub(
            [
                {"type": "subscribe", "data": 1},
                {"type": "message", "data": "ping"},
                {"type": "message", "data": "not json"},
                {"type": "message", "data": "[1, 2]"},
                {"type": "message", "data": json.dumps(command)},
            ]
        )
        redis = MagicMock()
        redis.pubsub.return_value = pubsub
        redis.publish = AsyncMock()

        await listen_to_redis(redis, CommandHandler(service))

        assert pubsub.subscribed == ["vending_commands"]
        redis.publish.assert_awaited_once()
        channel, payload = redis.publish.call_args.args
        assert channel == "vending_commands_response"
        assert json.loads(payload)["command_id"] == 7
        assert service.registry.get("m1").current_state == ItemSelected("A1")

    @pytest.mark.asyncio
    async def test_malformed_command_does_not_stop_listener(self, service):
        """Test a command with bad data is answered and the next one still runs."""
        bad = {"command": "reset", "command_id": 1, "data": [1]}
        good = {"command": "select_item", "command_id": 2, "data": {"item_code": "A1"}}
        pubsub = FakePubSub(
            [
                {"type": "message", "data": json.dumps(bad)},
                {"type": "message", "data": json.dumps(good)},
            ]
        )
        redis = MagicMock()
        redis.pubsub.return_value = pubsub
        redis.publish = AsyncMock()

        await listen_to_redis(redis, CommandHandler(service))

        responses = [json.loads(call.args[1]) for call in redis.publish.call_args_list]
        assert [r["command_id"] for r in responses] == [1, 2]
        assert responses[0]["success"] is False
        assert responses[1]["success"] is True
        assert service.registry.get("m1").current_state == ItemSelected("A1")

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_stop_listener(self, service):
        commands = [
            {"command": "select_item", "command_id": 1, "data": {"item_code": "A1", "machine_id": "m1"}},
            {"command": "select_item", "command_id": 2, "data": {"item_code": "B2", "machine_id": "m2"}},
        ]
        pubsub = FakePubSub([{"type": "message", "data": json.dumps(c)} for c in commands])
        redis = MagicMock()
        redis.pubsub.return_value = pubsub
        redis.publish = AsyncMock(side_effect=[ConnectionError("redis down"), 1])

        await listen_to_redis(redis, CommandHandler(service))

        assert redis.publish.await_count == 2
        assert service.registry.get("m1").current_state == ItemSelected("A1")
        assert service.registry.get("m2").current_state == ItemSelected("B2")

    @pytest.mark.asyncio
    async def test_notification_forwarder(self):
        redis = MagicMock()
        redis.publish = AsyncMock()
        forward = make_notification_forwarder(redis, "events")

        await forward({"type": EventType.TRANSITION_REJECTED, "machine_id": "m1", "message": "no"})

        channel, payload = redis.publish.call_args.args
        assert channel == "events"
        assert json.loads(payload) == {"type": "transition_rejected", "machine_id": "m1", "message": "no"}
