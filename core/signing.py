"""
Authenticated Request Signing

This module builds the exact byte sequence an exchange expects to be signed,
issues nonces, and turns the result into authentication headers.

Components:
    - CanonicalForm: ordered field list + serialization rule (the canonical
      message builder)
    - NonceCounter: per-credential monotonic (timestamp, nonce) generator
    - SigningScheme: everything exchange-specific about signing, declared as
      data so a new exchange is added without touching the signer
    - sign_request(): the pure signing transform
    - RequestSigner: binds a scheme, credentials and a nonce counter

Signing flow (ItBit):
    body     = '{"amount":"1.00000000","currency":"XBT",...}'
    message  = '["POST","https://api.itbit.com/v1/wallets/w1/orders","{...}","1700000000","1700000001"]'
    digest   = sha256(str(nonce) + message)
    mac      = hmac_sha512(secret, url + digest)
    headers  = {"Authorization": "<key>:<base64(mac)>", "X-Auth-Timestamp": ..., "X-Auth-Nonce": ...}

Signing flow (Liqui):
    body     = 'nonce=1700000000&method=getInfo'
    headers  = {"Key": "<key>", "Sign": hex(hmac_sha512(secret, body))}

The body returned in SignedRequest is the one that was signed. Callers must
send it unchanged; re-serializing after signing invalidates the signature.
"""

import base64
import hashlib
import hmac
import json
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Literal, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

from core.errors import SigningError
from core.schemas import Credentials


CANONICAL_FIELDS = ("method", "url", "body", "nonce", "timestamp")

Params = Union[Mapping[str, Any], str, None]


# ============================================
# Signable Request
# ============================================

@dataclass(frozen=True)
class SignableRequest:
    """
    The inputs to one signature. Built fresh for every call and never reused.

    Attributes:
        method: HTTP method, uppercase
        url: Full request URL (including query string)
        body: Serialized body exactly as transmitted ("" when empty)
        nonce: Value issued by the credential set's NonceCounter
        timestamp: Seconds since epoch
    """

    method: str
    url: str
    body: str
    nonce: int
    timestamp: int

    def field_value(self, name: str) -> str:
        return str(getattr(self, name))


# ============================================
# Canonical Message Builder
# ============================================

@dataclass(frozen=True)
class CanonicalForm:
    """
    Canonicalization rule for one exchange.

    Attributes:
        fields: Ordered subset of method/url/body/nonce/timestamp
        serialization: "json" for a compact JSON array of the field values
            (as strings), "concat" for plain concatenation

    Example:
        >>> form = CanonicalForm(("method", "url", "body", "nonce", "timestamp"), "json")
        >>> form.build(SignableRequest("GET", "https://x/y", "", 5, 6))
        b'["GET","https://x/y","","5","6"]'
    """

    fields: Tuple[str, ...]
    serialization: Literal["json", "concat"] = "json"

    def __post_init__(self):
        unknown = [f for f in self.fields if f not in CANONICAL_FIELDS]
        if unknown or not self.fields:
            raise ValueError(f"Invalid canonical fields: {self.fields}")
        if self.serialization not in ("json", "concat"):
            raise ValueError(f"Unknown canonical serialization: {self.serialization}")

    def build(self, request: SignableRequest) -> bytes:
        values = [request.field_value(name) for name in self.fields]
        if self.serialization == "json":
            text = json.dumps(values, separators=(",", ":"))
        else:
            text = "".join(values)
        return text.encode("utf-8")

    def parse(self, message: bytes) -> Dict[str, str]:
        """
        Recover the field values from a canonical message.

        Concatenated messages carry no delimiters, so they can only be parsed
        when the form has a single field.

        Raises:
            ValueError: If the message does not match this form
        """
        text = message.decode("utf-8")
        if self.serialization == "json":
            values = json.loads(text)
            if not isinstance(values, list) or len(values) != len(self.fields):
                raise ValueError("Canonical message does not match the field list")
            return dict(zip(self.fields, values))

        if len(self.fields) != 1:
            raise ValueError("Concatenated canonical messages with several fields cannot be parsed")
        return {self.fields[0]: text}


def serialize_body(params: Params, body_format: Literal["json", "form"]) -> str:
    """
    Serialize request parameters once, in the form they will be transmitted.

    JSON bodies use sorted keys and compact separators so the same params
    always produce the same bytes. Form bodies keep insertion order.

    Raises:
        SigningError: If the params cannot be serialized
    """
    if params is None:
        return ""
    if isinstance(params, str):
        return params
    if not params:
        return ""

    try:
        if body_format == "json":
            return json.dumps(dict(params), separators=(",", ":"), sort_keys=True)
        return urlencode(list(params.items()))
    except (TypeError, ValueError) as e:
        raise SigningError(f"Unable to serialize request body: {e}") from e


# ============================================
# Nonce / Timestamp Generator
# ============================================

class NonceCounter:
    """
    Strictly increasing nonce source for one credential set.

    The nonce is derived from the current timestamp plus a per-exchange
    offset (ItBit signs with timestamp - 1). If the clock has not advanced
    since the last issuance, or went backwards, the previous nonce + 1 is
    issued instead.

    Args:
        offset: Added to the timestamp to derive the candidate nonce
        clock: Returns seconds since epoch (injectable for tests)

    Example:
        >>> counter = NonceCounter(offset=-1, clock=lambda: 1700000000.0)
        >>> counter.next()
        (1700000000, 1699999999)
        >>> counter.next()
        (1700000000, 1700000000)
    """

    def __init__(self, offset: int = 0, clock: Callable[[], float] = time.time):
        self._offset = offset
        self._clock = clock
        self._last: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def last(self) -> Optional[int]:
        """Most recently issued nonce, or None before first use."""
        return self._last

    def next(self) -> Tuple[int, int]:
        """Issue a (timestamp, nonce) pair."""
        with self._lock:
            timestamp = int(self._clock())
            nonce = timestamp + self._offset
            if self._last is not None and nonce <= self._last:
                nonce = self._last + 1
            self._last = nonce
            return timestamp, nonce


# ============================================
# Signing Scheme & Signer
# ============================================

@dataclass(frozen=True)
class SigningScheme:
    """
    Exchange-specific signing declaration.

    Attributes:
        name: Exchange the scheme belongs to
        canonical: How the message to sign is assembled
        body_format: "json" or "form" body serialization
        nonce_field: If set, the nonce is added to the body params under this
            name before serialization (Liqui)
        prehash: If "sha256", hash str(nonce) + message first and HMAC
            url + digest (ItBit); None to HMAC the message directly
        digest: HMAC hash function name
        encoding: "base64" or "hex" signature encoding
        key_header: Header carrying the public key
        signature_header: Header carrying the signature; None to send
            "<key>:<signature>" in key_header
        timestamp_header: Header for the timestamp, if the server wants it
        nonce_header: Header for the nonce, if the server wants it
        content_type: Content-Type of the body
        nonce_offset: Offset used by NonceCounters created for this scheme
    """

    name: str
    canonical: CanonicalForm
    body_format: Literal["json", "form"] = "json"
    nonce_field: Optional[str] = None
    prehash: Optional[str] = None
    digest: str = "sha512"
    encoding: Literal["base64", "hex"] = "base64"
    key_header: str = "Authorization"
    signature_header: Optional[str] = None
    timestamp_header: Optional[str] = None
    nonce_header: Optional[str] = None
    content_type: str = "application/json"
    nonce_offset: int = 0

    def new_nonce_counter(self, clock: Callable[[], float] = time.time) -> NonceCounter:
        return NonceCounter(offset=self.nonce_offset, clock=clock)


@dataclass(frozen=True)
class SignedRequest:
    """
    Output of the signer: headers to attach and the body to send verbatim.
    """

    method: str
    url: str
    body: str
    headers: Dict[str, str] = field(default_factory=dict)
    nonce: int = 0
    timestamp: int = 0
    signature: str = field(default="", repr=False)


def sign_request(
    method: str,
    url: str,
    params: Params,
    credentials: Optional[Credentials],
    scheme: SigningScheme,
    nonce: int,
    timestamp: int,
) -> SignedRequest:
    """
    Sign one request with a fixed nonce/timestamp.

    Deterministic: identical inputs produce an identical signature.

    Args:
        method: HTTP method
        url: Full request URL
        params: Body parameters (mapping), a pre-serialized body, or None
        credentials: Key pair; the secret must be non-empty
        scheme: Exchange signing scheme
        nonce: Nonce to sign with
        timestamp: Timestamp to sign with (seconds)

    Returns:
        SignedRequest with headers and the exact body to transmit

    Raises:
        SigningError: If the secret is empty or the body cannot be serialized
    """
    if credentials is None or not credentials.api_secret:
        raise SigningError(f"{scheme.name}: API secret is not set", details={"url": url})

    method = method.upper()

    if scheme.nonce_field:
        if isinstance(params, str):
            raise SigningError(f"{scheme.name}: nonce must be injected into structured params")
        merged: Dict[str, Any] = {scheme.nonce_field: nonce}
        merged.update(params or {})
        merged[scheme.nonce_field] = nonce
        params = merged

    body = serialize_body(params, scheme.body_format)
    request = SignableRequest(method=method, url=url, body=body, nonce=nonce, timestamp=timestamp)

    try:
        message = scheme.canonical.build(request)
    except (TypeError, ValueError) as e:
        raise SigningError(f"{scheme.name}: canonicalization failed: {e}") from e

    secret = credentials.api_secret.encode("utf-8")
    if scheme.prehash:
        inner = hashlib.new(scheme.prehash, str(nonce).encode("utf-8") + message).digest()
        mac = hmac.new(secret, url.encode("utf-8") + inner, scheme.digest).digest()
    else:
        mac = hmac.new(secret, message, scheme.digest).digest()

    if scheme.encoding == "hex":
        signature = mac.hex()
    else:
        signature = base64.b64encode(mac).decode("ascii")

    headers = {"Content-Type": scheme.content_type}
    if scheme.signature_header:
        headers[scheme.key_header] = credentials.api_key
        headers[scheme.signature_header] = signature
    else:
        headers[scheme.key_header] = f"{credentials.api_key}:{signature}"
    if scheme.timestamp_header:
        headers[scheme.timestamp_header] = str(timestamp)
    if scheme.nonce_header:
        headers[scheme.nonce_header] = str(nonce)

    return SignedRequest(
        method=method,
        url=url,
        body=body,
        headers=headers,
        nonce=nonce,
        timestamp=timestamp,
        signature=signature,
    )


class RequestSigner:
    """
    Signs requests for one credential set.

    The nonce counter is owned by whoever owns the credentials (the exchange
    handler) and passed in, so tests can inject a deterministic clock.

    Example:
        >>> signer = RequestSigner(ITBIT_SCHEME, creds, ITBIT_SCHEME.new_nonce_counter())
        >>> signed = signer.sign("GET", "https://api.itbit.com/v1/wallets?userId=u1")
        >>> signed.headers["X-Auth-Nonce"]
        '1699999999'
    """

    def __init__(self, scheme: SigningScheme, credentials: Credentials,
                 nonce_counter: Optional[NonceCounter] = None):
        self.scheme = scheme
        self.credentials = credentials
        self.nonce_counter = nonce_counter or scheme.new_nonce_counter()

    def sign(self, method: str, url: str, params: Params = None) -> SignedRequest:
        """
        Draw a fresh nonce/timestamp and sign.

        The secret is checked before a nonce is consumed.

        Raises:
            SigningError: See sign_request()
        """
        if not self.credentials.api_secret:
            raise SigningError(f"{self.scheme.name}: API secret is not set", details={"url": url})
        timestamp, nonce = self.nonce_counter.next()
        return sign_request(method, url, params, self.credentials, self.scheme, nonce, timestamp)

    def with_credentials(self, credentials: Credentials) -> "RequestSigner":
        """New signer (and new nonce counter) for a different credential set."""
        return RequestSigner(self.scheme, credentials, self.scheme.new_nonce_counter())


# ============================================
# Exchange Schemes
# ============================================

ITBIT_SCHEME = SigningScheme(
    name="itbit",
    canonical=CanonicalForm(("method", "url", "body", "nonce", "timestamp"), "json"),
    body_format="json",
    prehash="sha256",
    digest="sha512",
    encoding="base64",
    key_header="Authorization",
    timestamp_header="X-Auth-Timestamp",
    nonce_header="X-Auth-Nonce",
    content_type="application/json",
    nonce_offset=-1,
)

LIQUI_SCHEME = SigningScheme(
    name="liqui",
    canonical=CanonicalForm(("body",), "concat"),
    body_format="form",
    nonce_field="nonce",
    digest="sha512",
    encoding="hex",
    key_header="Key",
    signature_header="Sign",
    content_type="application/x-www-form-urlencoded",
)

