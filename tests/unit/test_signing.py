"""
Unit Tests for Request Signing

These tests verify that:
- Canonical messages are built deterministically and can be parsed back
- NonceCounter issues strictly increasing nonces, also under threads
- ItBit and Liqui signatures match an independent computation
- Signing fails (and consumes no nonce) when the secret is empty

Run with:
    pytest tests/unit/test_signing.py -v
"""

import base64
import hashlib
import hmac
import json
import threading

import pytest

from core.errors import SigningError
from core.schemas import Credentials
from core.signing import (
    ITBIT_SCHEME,
    LIQUI_SCHEME,
    CanonicalForm,
    NonceCounter,
    RequestSigner,
    SignableRequest,
    serialize_body,
    sign_request,
)


CREDS = Credentials(api_key="my-key", api_secret="my-secret", client_id="user-1")


def frozen_clock(value: float = 1700000000.0):
    return lambda: value


def rebuild(form: CanonicalForm, message: bytes) -> bytes:
    """Parse a canonical message and build it again from the parsed fields."""
    fields = dict(method="", url="", body="", nonce=0, timestamp=0)
    fields.update(form.parse(message))
    return form.build(SignableRequest(**fields))


# ============================================
# Canonical Message Builder
# ============================================

class TestCanonicalForm:
    """Tests for CanonicalForm.build / parse"""

    def test_json_form_is_compact_array_of_strings(self):
        form = CanonicalForm(("method", "url", "body", "nonce", "timestamp"), "json")
        request = SignableRequest("GET", "https://x/y", "", 5, 6)

        assert form.build(request) == b'["GET","https://x/y","","5","6"]'

    def test_build_is_deterministic(self):
        form = ITBIT_SCHEME.canonical
        request = SignableRequest("POST", "https://x/y", '{"a":1}', 10, 11)

        assert form.build(request) == form.build(request)

    def test_json_form_parses_back_to_fields(self):
        form = ITBIT_SCHEME.canonical
        request = SignableRequest("POST", "https://x/y", '{"a":"b"}', 10, 11)

        parsed = form.parse(form.build(request))

        assert parsed == {
            "method": "POST",
            "url": "https://x/y",
            "body": '{"a":"b"}',
            "nonce": "10",
            "timestamp": "11",
        }

    @pytest.mark.parametrize("body", ["", '{"a":"b"}', '{"note":"caf\u00e9 \\"quoted\\""}'])
    def test_json_form_round_trips_to_identical_bytes(self, body):
        form = ITBIT_SCHEME.canonical
        message = form.build(SignableRequest("POST", "https://x/y?b=2&a=1", body, 10, 11))

        assert rebuild(form, message) == message

    def test_concat_single_field_parses_back(self):
        form = LIQUI_SCHEME.canonical
        request = SignableRequest("POST", "https://x/tapi", "nonce=1&method=getInfo", 1, 1)

        message = form.build(request)

        assert message == b"nonce=1&method=getInfo"
        assert form.parse(message) == {"body": "nonce=1&method=getInfo"}
        assert rebuild(form, message) == message

    def test_concat_several_fields_cannot_be_parsed(self):
        form = CanonicalForm(("method", "url"), "concat")
        message = form.build(SignableRequest("GET", "https://x", "", 1, 1))

        assert message == b"GEThttps://x"
        with pytest.raises(ValueError):
            form.parse(message)

    def test_json_parse_rejects_wrong_field_count(self):
        form = ITBIT_SCHEME.canonical
        with pytest.raises(ValueError):
            form.parse(b'["GET","https://x"]')

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            CanonicalForm(("method", "headers"))

    def test_empty_field_list_rejected(self):
        with pytest.raises(ValueError):
            CanonicalForm(())


class TestSerializeBody:
    """Tests for serialize_body"""

    def test_empty_params_serialize_to_empty_string(self):
        assert serialize_body(None, "json") == ""
        assert serialize_body({}, "json") == ""
        assert serialize_body({}, "form") == ""

    def test_json_body_sorted_and_compact(self):
        assert serialize_body({"b": 1, "a": "x"}, "json") == '{"a":"x","b":1}'

    def test_form_body_keeps_insertion_order(self):
        assert serialize_body({"nonce": 1, "method": "getInfo"}, "form") == "nonce=1&method=getInfo"

    def test_preserialized_body_passes_through(self):
        assert serialize_body('{"z":1,"a":2}', "json") == '{"z":1,"a":2}'

    def test_unserializable_body_raises_signing_error(self):
        with pytest.raises(SigningError):
            serialize_body({"a": object()}, "json")


# ============================================
# Nonce / Timestamp Generator
# ============================================

class TestNonceCounter:
    """Tests for NonceCounter.next"""

    def test_first_nonce_is_timestamp_plus_offset(self):
        counter = NonceCounter(offset=-1, clock=frozen_clock(1700000000.0))

        assert counter.last is None
        assert counter.next() == (1700000000, 1699999999)
        assert counter.last == 1699999999

    def test_frozen_clock_still_increases(self):
        counter = NonceCounter(clock=frozen_clock(1000.0))

        nonces = [counter.next()[1] for _ in range(5)]

        assert nonces == [1000, 1001, 1002, 1003, 1004]

    def test_clock_going_backwards_still_increases(self):
        times = iter([1000.0, 990.0, 995.0])
        counter = NonceCounter(clock=lambda: next(times))

        first = counter.next()
        second = counter.next()
        third = counter.next()

        assert first == (1000, 1000)
        assert second == (990, 1001)
        assert third == (995, 1002)

    def test_advancing_clock_uses_timestamp(self):
        times = iter([1000.0, 2000.0])
        counter = NonceCounter(clock=lambda: next(times))

        assert counter.next()[1] == 1000
        assert counter.next()[1] == 2000

    def test_concurrent_callers_get_unique_increasing_nonces(self):
        counter = NonceCounter(clock=frozen_clock(1000.0))
        results = []
        results_lock = threading.Lock()

        def worker():
            local = [counter.next()[1] for _ in range(100)]
            with results_lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 800
        assert sorted(results) == list(range(1000, 1800))

    def test_scheme_counter_uses_scheme_offset(self):
        itbit = ITBIT_SCHEME.new_nonce_counter(clock=frozen_clock(50.0))
        liqui = LIQUI_SCHEME.new_nonce_counter(clock=frozen_clock(50.0))

        assert itbit.next() == (50, 49)
        assert liqui.next() == (50, 50)


# ============================================
# Request Signer
# ============================================

class TestItBitSigning:
    """Signatures produced with ITBIT_SCHEME"""

    URL = "https://api.itbit.com/v1/wallets/w1/orders"
    PARAMS = {"side": "buy", "type": "limit", "currency": "XBT", "amount": "1.00000000",
              "price": "100.00", "instrument": "XBTUSD"}

    def expected_signature(self, method, url, body, nonce, timestamp):
        message = json.dumps([method, url, body, str(nonce), str(timestamp)], separators=(",", ":"))
        digest = hashlib.sha256((str(nonce) + message).encode()).digest()
        mac = hmac.new(b"my-secret", url.encode() + digest, hashlib.sha512).digest()
        return base64.b64encode(mac).decode()

    def test_signature_matches_independent_computation(self):
        signed = sign_request("POST", self.URL, self.PARAMS, CREDS, ITBIT_SCHEME, 1699999999, 1700000000)

        body = json.dumps(self.PARAMS, separators=(",", ":"), sort_keys=True)
        assert signed.body == body
        assert signed.signature == self.expected_signature("POST", self.URL, body, 1699999999, 1700000000)

    def test_headers(self):
        signed = sign_request("POST", self.URL, self.PARAMS, CREDS, ITBIT_SCHEME, 1699999999, 1700000000)

        assert signed.headers["Authorization"] == f"my-key:{signed.signature}"
        assert signed.headers["X-Auth-Timestamp"] == "1700000000"
        assert signed.headers["X-Auth-Nonce"] == "1699999999"
        assert signed.headers["Content-Type"] == "application/json"

    def test_get_signs_empty_body(self):
        url = "https://api.itbit.com/v1/wallets?userId=user-1"
        signed = sign_request("get", url, None, CREDS, ITBIT_SCHEME, 9, 10)

        assert signed.method == "GET"
        assert signed.body == ""
        assert signed.signature == self.expected_signature("GET", url, "", 9, 10)

    def test_signing_is_deterministic(self):
        first = sign_request("POST", self.URL, self.PARAMS, CREDS, ITBIT_SCHEME, 1, 2)
        second = sign_request("POST", self.URL, dict(reversed(list(self.PARAMS.items()))),
                              CREDS, ITBIT_SCHEME, 1, 2)

        assert first.signature == second.signature
        assert first.body == second.body

    def test_different_nonce_changes_signature(self):
        first = sign_request("POST", self.URL, self.PARAMS, CREDS, ITBIT_SCHEME, 1, 2)
        second = sign_request("POST", self.URL, self.PARAMS, CREDS, ITBIT_SCHEME, 2, 2)

        assert first.signature != second.signature


class TestLiquiSigning:
    """Signatures produced with LIQUI_SCHEME"""

    URL = "https://api.liqui.io/tapi"

    def test_nonce_is_injected_first_into_form_body(self):
        signed = sign_request("POST", self.URL, {"method": "getInfo"}, CREDS, LIQUI_SCHEME, 5, 5)

        assert signed.body == "nonce=5&method=getInfo"

    def test_caller_supplied_nonce_is_overridden(self):
        signed = sign_request("POST", self.URL, {"method": "getInfo", "nonce": 1}, CREDS, LIQUI_SCHEME, 5, 5)

        assert signed.body == "nonce=5&method=getInfo"

    def test_signature_is_hex_hmac_of_body(self):
        signed = sign_request("POST", self.URL, {"method": "Trade", "pair": "eth_btc"},
                              CREDS, LIQUI_SCHEME, 42, 42)

        expected = hmac.new(b"my-secret", signed.body.encode(), hashlib.sha512).hexdigest()
        assert signed.body == "nonce=42&method=Trade&pair=eth_btc"
        assert signed.signature == expected

    def test_headers(self):
        signed = sign_request("POST", self.URL, {"method": "getInfo"}, CREDS, LIQUI_SCHEME, 5, 5)

        assert signed.headers["Key"] == "my-key"
        assert signed.headers["Sign"] == signed.signature
        assert signed.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert "X-Auth-Nonce" not in signed.headers

    def test_preserialized_body_rejected(self):
        with pytest.raises(SigningError):
            sign_request("POST", self.URL, "method=getInfo", CREDS, LIQUI_SCHEME, 5, 5)


class TestRequestSigner:
    """Tests for RequestSigner"""

    def test_sign_uses_counter(self):
        counter = ITBIT_SCHEME.new_nonce_counter(clock=frozen_clock(1700000000.0))
        signer = RequestSigner(ITBIT_SCHEME, CREDS, counter)

        first = signer.sign("GET", "https://api.itbit.com/v1/wallets?userId=user-1")
        second = signer.sign("GET", "https://api.itbit.com/v1/wallets?userId=user-1")

        assert first.headers["X-Auth-Nonce"] == "1699999999"
        assert second.headers["X-Auth-Nonce"] == "1700000000"
        assert first.headers["X-Auth-Timestamp"] == "1700000000"

    def test_empty_secret_raises_without_consuming_nonce(self):
        counter = NonceCounter(clock=frozen_clock())
        signer = RequestSigner(LIQUI_SCHEME, Credentials(api_key="k", api_secret=""), counter)

        with pytest.raises(SigningError):
            signer.sign("POST", "https://api.liqui.io/tapi", {"method": "getInfo"})

        assert counter.last is None

    def test_sign_request_without_credentials_raises(self):
        with pytest.raises(SigningError):
            sign_request("GET", "https://x", None, None, ITBIT_SCHEME, 1, 1)

    def test_with_credentials_gets_new_counter(self):
        signer = RequestSigner(ITBIT_SCHEME, CREDS)
        other = signer.with_credentials(Credentials(api_key="k2", api_secret="s2"))

        assert other.credentials.api_key == "k2"
        assert other.nonce_counter is not signer.nonce_counter
        assert other.scheme is ITBIT_SCHEME

    def test_secret_not_in_repr(self):
        assert "my-secret" not in repr(CREDS)
