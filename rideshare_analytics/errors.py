#!/usr/bin/env python3
"""
Exception types raised by the Rideshare Trip Analytics core
"""


class RideshareAnalyticsError(Exception):
    """Base class for errors raised by this package"""


class UnknownTemplateKind(RideshareAnalyticsError, KeyError):
    """Raised by a strict template lookup for an unregistered screenshot type"""

    def __init__(self, screenshot_type: str):
        self.screenshot_type = screenshot_type
        super().__init__(f"No template registered for screenshot type '{screenshot_type}'")

    def __str__(self) -> str:
        return self.args[0]


class InvalidCorrectionError(RideshareAnalyticsError, ValueError):
    """Raised when a manual correction targets a field that cannot be overridden"""

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Cannot correct '{field_name}': {reason}")
