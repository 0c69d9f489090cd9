import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agents.base import BaseAgent
from models.delivery import Order
from models.enums import DeliveryEventType, ServiceType
from models.events import DeliveryEvent
from utils.event_bus import EventBus

# --- Test Fixtures --- #


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Provides a mocked EventBus."""
    return AsyncMock(spec=EventBus)


@pytest.fixture
def base_agent(mock_event_bus: AsyncMock) -> BaseAgent:
    """Provides a BaseAgent instance with a mocked event bus."""
    return BaseAgent(
        agent_id="base_test_agent_001",
        service_type=ServiceType.DISPATCH,
        event_bus=mock_event_bus,
    )


@pytest.fixture
def mock_order() -> MagicMock:
    order = MagicMock(spec=Order)
    order.order_id = "ord123456"
    return order


# --- Test Initialization --- #


def test_base_agent_initialization(base_agent: BaseAgent, mock_event_bus: AsyncMock):
    assert base_agent.agent_id == "base_test_agent_001"
    assert base_agent.service_type == ServiceType.DISPATCH
    assert base_agent.event_bus is mock_event_bus


# --- Test publish_event --- #


@pytest.mark.asyncio
async def test_publish_event_success(base_agent: BaseAgent, mock_event_bus: AsyncMock):
    payload = {"data": "value"}

    returned = await base_agent.publish_event("test.event", payload)

    mock_event_bus.publish.assert_called_once()
    published_event = mock_event_bus.publish.call_args.args[0]
    assert isinstance(published_event, DeliveryEvent)
    assert published_event.event_type == "test.event"
    assert published_event.payload == payload
    assert published_event.source == ServiceType.DISPATCH
    assert returned is published_event


@pytest.mark.asyncio
async def test_publish_event_accepts_enum(base_agent: BaseAgent, mock_event_bus: AsyncMock):
    await base_agent.publish_event(DeliveryEventType.ORDER_ASSIGNED, {})
    assert mock_event_bus.publish.call_args.args[0].event_type == "order.assigned"


@pytest.mark.asyncio
async def test_publish_event_no_bus(base_agent: BaseAgent, mock_event_bus: AsyncMock, caplog):
    """Test publishing when event_bus is None."""
    base_agent.event_bus = None

    with caplog.at_level(logging.ERROR):
        result = await base_agent.publish_event("test.event", {"data": "value"})

    assert result is None
    mock_event_bus.publish.assert_not_called()
    assert f"Agent {base_agent.agent_id} has no event bus" in caplog.text


# --- Test handle_exception --- #


@pytest.mark.asyncio
@patch.object(BaseAgent, "publish_event", new_callable=AsyncMock)
async def test_handle_exception_no_order(mock_publish, base_agent: BaseAgent, caplog):
    """Test handle_exception without an order object."""
    exception = ValueError("Something went wrong")
    context = {"step": "processing"}

    with caplog.at_level(logging.ERROR):
        await base_agent.handle_exception(exception, context)

    assert "Exception in dispatch agent (base_test_agent_001)" in caplog.text
    assert str(exception) in caplog.text

    mock_publish.assert_called_once()
    event_type, payload = mock_publish.call_args.args
    assert event_type == "system.exception"
    error_details = payload["error_details"]
    assert error_details["error_type"] == "ValueError"
    assert error_details["error_message"] == str(exception)
    assert error_details["context"] == context
    assert error_details["agent_id"] == base_agent.agent_id
    assert "order_id" not in error_details


@pytest.mark.asyncio
@patch.object(BaseAgent, "publish_event", new_callable=AsyncMock)
async def test_handle_exception_with_order(mock_publish, base_agent: BaseAgent, mock_order: MagicMock):
    """The failure is noted on the order history and the event names the order."""
    exception = TypeError("Bad type")
    context = {"stage": "assignment"}

    await base_agent.handle_exception(exception, context, order=mock_order)

    mock_order.add_event.assert_called_once()
    source, action, details = mock_order.add_event.call_args.args
    assert source == ServiceType.DISPATCH
    assert action == "exception"
    assert details["error_type"] == "TypeError"

    error_details = mock_publish.call_args.args[1]["error_details"]
    assert error_details["order_id"] == "ord123456"
    assert error_details["context"] == context


@pytest.mark.asyncio
async def test_handle_exception_records_on_real_order(base_agent: BaseAgent, make_order):
    order = make_order()
    await base_agent.handle_exception(RuntimeError("boom"), {"stage": "test"}, order=order)
    assert order.history[-1]["action"] == "exception"
    assert order.history[-1]["details"]["error_message"] == "boom"
