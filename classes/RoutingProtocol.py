"""
RoutingProtocol: selector for the candidate MANET routing protocols

Maps the numeric codes used on the command line (1=OLSR, 2=AODV, 3=DSDV,
4=DSR) and the protocol names onto one enumerated value per protocol.
"""

from enum import Enum


class RoutingProtocol(Enum):
    OLSR = 1
    AODV = 2
    DSDV = 3
    DSR = 4

    @property
    def label(self) -> str:
        """Name written to the RoutingProtocol column of the results file."""
        return self.name

    @property
    def uses_list_routing(self) -> bool:
        """DSR installs beside the internet stack instead of through Ipv4ListRoutingHelper."""
        return self is not RoutingProtocol.DSR

    @classmethod
    def parse(cls, selector) -> "RoutingProtocol":
        """
        Resolve a protocol selector.

        Args:
            selector: RoutingProtocol, integer code, numeric string or name
                      (case-insensitive)

        Returns:
            Matching RoutingProtocol member

        Raises:
            ConfigurationError: if the selector names no supported protocol
        """
        # Config imports this module, so the error type is fetched lazily
        from Config import ConfigurationError

        if isinstance(selector, cls):
            return selector
        if isinstance(selector, bool):
            raise ConfigurationError(f"unsupported routing protocol selector: {selector!r}")
        if isinstance(selector, int):
            try:
                return cls(selector)
            except ValueError:
                raise ConfigurationError(
                    f"unsupported routing protocol selector: {selector} "
                    f"(1=OLSR;2=AODV;3=DSDV;4=DSR)"
                ) from None
        if isinstance(selector, str):
            text = selector.strip()
            if text.isdigit():
                return cls.parse(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise ConfigurationError(f"unsupported routing protocol: {selector!r}") from None
        raise ConfigurationError(f"unsupported routing protocol selector: {selector!r}")
