"""
Listener control commands.

Uses Pydantic for validation and serialization so a control plane on the
other side of a process boundary can send plain JSON. Every command carries a
``command`` discriminator:

    OSC:     OscStart, Stop
    sACN:    SacnStart, Stop, SubscribeUniverse, UnsubscribeUniverse
    Art-Net: ArtnetStart, Stop, SubscribeUniverse, UnsubscribeUniverse
    Serial:  SerialStart, Stop
"""

from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .errors import UnknownProtocolError
from .records import PROTOCOL_ARTNET, PROTOCOL_OSC, PROTOCOL_SACN, PROTOCOL_SERIAL

DEFAULT_OSC_PORT = 8000
DEFAULT_BAUD_RATE = 115200

Port = Annotated[int, Field(ge=0, le=65535)]
Universe = Annotated[int, Field(ge=0, le=65535)]


class Command(BaseModel):
    """Base command. Commands are immutable once built."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Stop(Command):
    """Release the transport and clear subscriptions."""
    command: Literal["stop"] = "stop"


class SubscribeUniverse(Command):
    """Start forwarding frames of a DMX universe (sACN, Art-Net)."""
    command: Literal["subscribe_universe"] = "subscribe_universe"
    universe: Universe


class UnsubscribeUniverse(Command):
    """Stop forwarding frames of a DMX universe (sACN, Art-Net)."""
    command: Literal["unsubscribe_universe"] = "unsubscribe_universe"
    universe: Universe


class OscStart(Command):
    command: Literal["start"] = "start"
    ip: str = "0.0.0.0"
    port: Port = DEFAULT_OSC_PORT


class SacnStart(Command):
    command: Literal["start"] = "start"
    ip: str


class ArtnetStart(Command):
    command: Literal["start"] = "start"
    ip: str


class SerialStart(Command):
    command: Literal["start"] = "start"
    port: str = Field(..., min_length=1)
    baud_rate: int = Field(DEFAULT_BAUD_RATE, gt=0, alias="baudRate")


OscCommand = Annotated[Union[OscStart, Stop], Field(discriminator="command")]
SacnCommand = Annotated[
    Union[SacnStart, Stop, SubscribeUniverse, UnsubscribeUniverse],
    Field(discriminator="command"),
]
ArtnetCommand = Annotated[
    Union[ArtnetStart, Stop, SubscribeUniverse, UnsubscribeUniverse],
    Field(discriminator="command"),
]
SerialCommand = Annotated[Union[SerialStart, Stop], Field(discriminator="command")]

_ADAPTERS: Dict[str, TypeAdapter] = {
    PROTOCOL_OSC: TypeAdapter(OscCommand),
    PROTOCOL_SACN: TypeAdapter(SacnCommand),
    PROTOCOL_ARTNET: TypeAdapter(ArtnetCommand),
    PROTOCOL_SERIAL: TypeAdapter(SerialCommand),
}


def parse_command(protocol: str, payload: Dict[str, Any]) -> Command:
    """
    Validate a JSON-style payload into the protocol's command.

    Args:
        protocol: "osc", "sacn", "artnet" or "serial"
        payload: e.g. {"command": "subscribe_universe", "universe": 3}

    Raises:
        UnknownProtocolError: protocol is not known
        pydantic.ValidationError: payload does not match any command
    """
    adapter = _ADAPTERS.get(protocol)
    if adapter is None:
        raise UnknownProtocolError(f"Unknown protocol: {protocol!r}")
    return adapter.validate_python(payload)
