from hotwire.gateway.contracts import (
	UNKNOWN_INTERACTION_CODE,
	Client,
	EventSource,
	Interaction,
	InteractionExpiredError,
	is_interaction_expired,
)
from hotwire.gateway.events import GatewayError, GenericEvent, InteractionCreate, Ready, parse_event
from hotwire.gateway.local import LocalClient, LocalInteraction

__all__ = [
	"UNKNOWN_INTERACTION_CODE",
	"Client",
	"EventSource",
	"GatewayError",
	"GenericEvent",
	"Interaction",
	"InteractionCreate",
	"InteractionExpiredError",
	"LocalClient",
	"LocalInteraction",
	"Ready",
	"is_interaction_expired",
	"parse_event",
]
