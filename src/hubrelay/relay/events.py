"""Reserved event names, wire keys and status codes shared with other services."""

from enum import Enum

# Reserved event names
STATUS_REQUEST = "STATUS_REQUEST"
STATUS_RESPONSE = "STATUS_RESPONSE"
VERSION_REQUEST = "VERSION_REQUEST"
VERSION_RESPONSE = "VERSION_RESPONSE"

# Wire keys
BODY = "body"
EVENT_NAME = "eventName"
EVENT_DATA = "eventData"
SENDER = "sender"
PREVIOUS_EVENT = "previousEvent"
STATUS_CODE = "statusCode"
ERROR_MESSAGE = "errorMessage"
VERSION_RELEASE = "release"
VERSION_PATCH = "patch"
VERSION_HOTFIX = "hotfix"


class StatusCode(str, Enum):
    OK = "OK"
    ERROR = "ERROR"
    OFFLINE = "OFFLINE"


__all__ = [
    "STATUS_REQUEST",
    "STATUS_RESPONSE",
    "VERSION_REQUEST",
    "VERSION_RESPONSE",
    "BODY",
    "EVENT_NAME",
    "EVENT_DATA",
    "SENDER",
    "PREVIOUS_EVENT",
    "STATUS_CODE",
    "ERROR_MESSAGE",
    "VERSION_RELEASE",
    "VERSION_PATCH",
    "VERSION_HOTFIX",
    "StatusCode",
]
