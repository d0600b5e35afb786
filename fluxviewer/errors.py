"""Exception types shared across listeners, decoders and the control plane."""


class FluxviewerError(Exception):
    """Base class for all fluxviewer errors."""


class DecodeError(FluxviewerError):
    """A received packet could not be decoded. Only that packet is dropped."""


class ArtNetDecodeError(DecodeError):
    """Malformed Art-Net packet (bad id, short header, truncated payload)."""


class ListenerClosedError(FluxviewerError):
    """The listener thread is gone; commands can no longer be delivered."""


class UnknownProtocolError(FluxviewerError, ValueError):
    """Protocol name is not one of osc, sacn, artnet, serial."""


class ConfigError(FluxviewerError):
    """Configuration file could not be read or has invalid values."""
