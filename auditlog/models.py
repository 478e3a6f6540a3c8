"""Audit log record model: one JSON line written by the inspection engine."""

from dataclasses import dataclass, field, asdict
from typing import Any


def _obj(d: Any, name: str) -> dict:
    """Return *d* if it is a JSON object (or absent), else fail for *name*."""
    if d is None:
        return {}
    if not isinstance(d, dict):
        raise TypeError(f"{name} must be an object, got {type(d).__name__}")
    return d


def _list(v: Any, name: str) -> list:
    """Return *v* if it is a JSON array (or absent), else fail for *name*."""
    if v is None:
        return []
    if not isinstance(v, list):
        raise TypeError(f"{name} must be an array, got {type(v).__name__}")
    return v


@dataclass
class MessageData:
    file: str = ""
    line: int = 0
    id: int = 0
    rev: str = ""
    msg: str = ""
    data: str = ""
    severity: Any = 0    # engine emits a numeric level or its name
    ver: str = ""
    maturity: int = 0
    accuracy: int = 0
    tags: list[str] = field(default_factory=list)
    raw: str = ""

    @classmethod
    def from_dict(cls, d: Any) -> "MessageData":
        d = _obj(d, "data")
        return cls(
            file=d.get("file", ""),
            line=d.get("line", 0),
            id=d.get("id", 0),
            rev=d.get("rev", ""),
            msg=d.get("msg", ""),
            data=d.get("data", ""),
            severity=d.get("severity", 0),
            ver=d.get("ver", ""),
            maturity=d.get("maturity", 0),
            accuracy=d.get("accuracy", 0),
            tags=list(_list(d.get("tags"), "tags")),
            raw=d.get("raw", ""),
        )

    @property
    def rule_id(self) -> str:
        return f"{self.file}-{self.id}"


@dataclass
class Message:
    message: str = ""
    data: MessageData = field(default_factory=MessageData)

    @classmethod
    def from_dict(cls, d: Any) -> "Message":
        d = _obj(d, "message")
        return cls(
            message=d.get("message", ""),
            data=MessageData.from_dict(d.get("data")),
        )


@dataclass
class TransactionRequest:
    method: str = ""
    protocol: str = ""
    uri: str = ""
    http_version: str = ""
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def from_dict(cls, d: Any) -> "TransactionRequest":
        d = _obj(d, "request")
        return cls(
            method=d.get("method", ""),
            protocol=d.get("protocol", ""),
            uri=d.get("uri", ""),
            http_version=d.get("http_version", ""),
            headers=dict(_obj(d.get("headers"), "headers")),
            body=d.get("body", ""),
        )


@dataclass
class TransactionResponse:
    protocol: str = ""
    status: int = 0
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def from_dict(cls, d: Any) -> "TransactionResponse":
        d = _obj(d, "response")
        return cls(
            protocol=d.get("protocol", ""),
            status=d.get("status", 0),
            headers=dict(_obj(d.get("headers"), "headers")),
            body=d.get("body", ""),
        )


@dataclass
class Transaction:
    timestamp: str = ""   # "02/Jan/2006:15:04:20 -0700"
    unix_timestamp: int = 0
    id: str = ""
    client_ip: str = ""
    client_port: int = 0
    host_ip: str = ""
    host_port: int = 0
    server_id: str = ""
    request: TransactionRequest | None = None
    response: TransactionResponse | None = None

    @classmethod
    def from_dict(cls, d: Any) -> "Transaction":
        d = _obj(d, "transaction")
        request = d.get("request")
        response = d.get("response")
        return cls(
            timestamp=d.get("timestamp", ""),
            unix_timestamp=d.get("unix_timestamp", 0),
            id=d.get("id", ""),
            client_ip=d.get("client_ip", ""),
            client_port=d.get("client_port", 0),
            host_ip=d.get("host_ip", ""),
            host_port=d.get("host_port", 0),
            server_id=d.get("server_id", ""),
            request=TransactionRequest.from_dict(request) if request is not None else None,
            response=TransactionResponse.from_dict(response) if response is not None else None,
        )


@dataclass
class AuditLog:
    """One parsed audit log entry: a transaction and the rules it matched."""

    transaction: Transaction = field(default_factory=Transaction)
    messages: list[Message] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Any) -> "AuditLog":
        d = _obj(d, "log entry")
        messages = _list(d.get("messages"), "messages")
        return cls(
            transaction=Transaction.from_dict(d.get("transaction")),
            messages=[Message.from_dict(m) for m in messages],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the engine's JSON shape, omitting absent request/response and empty messages."""
        data = asdict(self)
        txn = data["transaction"]
        for key in ("request", "response"):
            if txn[key] is None:
                del txn[key]
        if not data["messages"]:
            del data["messages"]
        return data
