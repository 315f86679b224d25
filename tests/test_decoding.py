"""
Tests for response decoding

Covers status and content type checks, NetSuite error payloads and
multi-target decoding of success bodies.
"""

from typing import Dict, List, Optional

import pytest
from pydantic import Field

from netsuite_rest import (
    DecodeError,
    ERROR_MEDIA_TYPE,
    ErrorResponse,
    FactoryTarget,
    JsonTarget,
    ModelTarget,
    NetSuiteModel,
    ResponseDecoder,
    ResponseError,
    ValidationError,
)
from netsuite_rest.decoding import ErrorDetail, parse_json

from conftest import make_response, make_error_response


class Customer(NetSuiteModel):
    id: str
    companyName: str = ""
    isPerson: bool = False


class Invoice(NetSuiteModel):
    tranId: str
    total: float = 0.0


class Link(NetSuiteModel):
    rel: str
    href: str


class Page(NetSuiteModel):
    count: int
    has_more: bool = Field(False, alias='hasMore')
    items: List[Customer] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)
    totals: Dict[str, float] = Field(default_factory=dict)
    next_offset: Optional[int] = Field(None, alias='nextOffset')


class Opaque:
    pass


@pytest.fixture
def decoder():
    return ResponseDecoder()


class TestErrorResponses:
    """Test non-2xx handling"""

    def test_error_details_raise_response_error(self, decoder):
        response = make_error_response(
            403,
            [{"detail": "no access", "o:errorCode": "INSUFFICIENT_PERMISSION"}],
            title="Forbidden",
        )

        with pytest.raises(ResponseError) as exc_info:
            decoder.decode(response, JsonTarget())

        error = exc_info.value
        assert str(error) == "INSUFFICIENT_PERMISSION: no access"
        assert error.status_code == 403
        assert error.status == 403
        assert error.title == "Forbidden"
        assert error.response is response
        assert error.error_details[0].error_code == "INSUFFICIENT_PERMISSION"
        assert error.error_code == "RESPONSE_ERROR"

    def test_multiple_details_joined(self, decoder):
        response = make_error_response(400, [
            {"detail": "first", "o:errorCode": "A"},
            {"detail": "skipped"},
            {"detail": "second", "o:errorCode": "B"},
        ])

        with pytest.raises(ResponseError) as exc_info:
            decoder.decode(response)
        assert exc_info.value.message == "A: first\r\nB: second"

    def test_content_type_parameters_ignored(self, decoder):
        response = make_response(
            400,
            {"o:errorDetails": [{"detail": "bad", "o:errorCode": "INVALID"}]},
            content_type=ERROR_MEDIA_TYPE + "; charset=UTF-8",
        )
        with pytest.raises(ResponseError, match="INVALID: bad"):
            decoder.decode(response)

    def test_empty_error_body(self, decoder):
        response = make_response(500, b"", content_type=ERROR_MEDIA_TYPE)

        with pytest.raises(DecodeError, match="response body is empty") as exc_info:
            decoder.decode(response)
        assert exc_info.value.error_code == "EMPTY_ERROR_BODY"

    def test_content_type_mismatch(self, decoder):
        response = make_response(502, b"<html>Bad Gateway</html>", content_type="text/html")

        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(response)
        assert exc_info.value.error_code == "CONTENT_TYPE_MISMATCH"
        assert ERROR_MEDIA_TYPE in str(exc_info.value)
        assert "text/html" in str(exc_info.value)

    def test_content_type_checked_before_emptiness(self, decoder):
        response = make_response(500, b"", content_type="application/json")

        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(response)
        assert exc_info.value.error_code == "CONTENT_TYPE_MISMATCH"

    def test_unparseable_error_body(self, decoder):
        response = make_response(500, b"{oops", content_type=ERROR_MEDIA_TYPE)
        with pytest.raises(DecodeError, match="invalid JSON"):
            decoder.decode(response)

    def test_error_without_details_continues(self, decoder):
        """An error payload without actionable details is not raised"""
        response = make_error_response(404, [])
        target = JsonTarget()

        assert decoder.check_response(make_error_response(404, [])) == ErrorResponse(
            type="https://www.w3.org/Protocols/rfc2616/rfc2616-sec10.html#sec10.4.4",
            title="Error",
            status=404,
        )
        assert decoder.decode(response, target) is response
        assert target.decoded
        assert target.value["status"] == 404

    def test_custom_error_media_type(self):
        decoder = ResponseDecoder(error_media_type="application/problem+json")
        response = make_response(
            400,
            {"o:errorDetails": [{"detail": "x", "o:errorCode": "E"}]},
            content_type="application/problem+json",
        )
        with pytest.raises(ResponseError):
            decoder.decode(response)


class TestSuccessResponses:
    """Test decoding of 2xx bodies"""

    def test_no_content(self, decoder):
        target = JsonTarget()
        response = make_response(204, b"", content_type=None)

        assert decoder.decode(response, target) is response
        assert not target.decoded
        assert target.value is None

    def test_no_targets(self, decoder):
        response = make_response(200, {"id": "1"})
        assert decoder.decode(response) is response

    def test_model_target(self, decoder):
        target = ModelTarget(Customer)
        decoder.decode(make_response(200, {"id": "42", "companyName": "Acme"}), target)

        assert target.decoded
        assert target.value == Customer(id="42", companyName="Acme")

    def test_one_of_two_targets_matches(self, decoder):
        """A call succeeds when at least one target accepts the body"""
        customer, invoice = ModelTarget(Customer), ModelTarget(Invoice)
        decoder.decode(make_response(200, {"tranId": "INV-1", "total": 12}), customer, invoice)

        assert not customer.decoded
        assert customer.value is None
        assert "id: Field required" in str(customer.error)
        assert invoice.decoded
        assert invoice.value == Invoice(tranId="INV-1", total=12.0)

    def test_no_target_matches(self, decoder):
        customer, invoice = ModelTarget(Customer), ModelTarget(Invoice)

        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(make_response(200, {"name": "x"}), customer, invoice)

        message = str(exc_info.value)
        assert message.startswith("Customer: ")
        assert ", Invoice: " in message
        assert exc_info.value.error_code == "DECODE_FAILED"
        assert exc_info.value.details['targets'] == ['Customer', 'Invoice']

    def test_error_payload_on_success_status(self, decoder):
        """Error details in a 2xx body still raise"""
        body = {
            "type": "https://www.w3.org/Protocols/rfc2616/rfc2616-sec10.html#sec10.4.1",
            "title": "Bad Request",
            "status": 400,
            "o:errorDetails": [{"detail": "Invalid field", "o:errorCode": "INVALID_CONTENT"}],
        }

        with pytest.raises(ResponseError, match="INVALID_CONTENT: Invalid field"):
            decoder.decode(make_response(200, body), JsonTarget())

    def test_error_shaped_body_without_details(self, decoder):
        target = JsonTarget()
        decoder.decode(make_response(200, {"title": "ok", "o:errorDetails": []}), target)
        assert target.decoded

    def test_non_object_body(self, decoder):
        target = JsonTarget()
        decoder.decode(make_response(200, [1, 2, 3]), target)
        assert target.value == [1, 2, 3]

    def test_invalid_json_fails_every_target(self, decoder):
        first, second = JsonTarget(), JsonTarget()

        with pytest.raises(DecodeError, match="invalid JSON"):
            decoder.decode(make_response(200, b"{not json"), first, second)
        assert not first.decoded
        assert not second.decoded

    def test_trailing_data_ignored(self, decoder):
        target = JsonTarget()
        decoder.decode(make_response(200, b'{"id": "1"}\n{"id": "2"}'), target)
        assert target.value == {"id": "1"}

    def test_unknown_fields_allowed_by_default(self, decoder):
        target = ModelTarget(Customer)
        decoder.decode(make_response(200, {"id": "1", "email": "a@b.c"}), target)
        assert target.value.id == "1"

    def test_unknown_fields_rejected_when_strict(self):
        decoder = ResponseDecoder(disallow_unknown_fields=True)
        target = ModelTarget(Customer)

        with pytest.raises(DecodeError, match='unknown field "email"'):
            decoder.decode(make_response(200, {"id": "1", "email": "a@b.c"}), target)

    def test_factory_target(self, decoder):
        target = FactoryTarget(lambda data: data["id"].upper())
        decoder.decode(make_response(200, {"id": "abc"}), target)
        assert target.value == "ABC"

    def test_factory_failure_is_decode_error(self, decoder):
        def customer_id(data):
            return data["id"]

        target = FactoryTarget(customer_id)
        with pytest.raises(DecodeError, match="customer_id"):
            decoder.decode(make_response(200, {"name": "x"}), target)
        assert isinstance(target.error.__cause__, KeyError)

    def test_bare_types_rejected(self, decoder):
        """Types and callables must be wrapped so the decoded value is reachable"""
        with pytest.raises(ValidationError, match="Customer"):
            decoder.unmarshal(b'{"id": "7"}', Customer)
        with pytest.raises(ValidationError, match="dict"):
            decoder.decode(make_response(200, {"id": "7"}), dict)

    def test_model_target_requires_supported_type(self):
        with pytest.raises(ValidationError, match="Cannot decode into"):
            ModelTarget(Opaque)


class TestTargetReuse:
    """Test that targets only reflect the latest response"""

    def test_reset_by_no_content(self, decoder):
        target = JsonTarget()
        decoder.decode(make_response(200, {"a": 1}), target)
        assert target.value == {"a": 1}

        decoder.decode(make_response(204, b"", content_type=None), target)
        assert not target.decoded
        assert target.value is None

    def test_reset_by_unmarshal(self, decoder):
        customer, invoice = ModelTarget(Customer), ModelTarget(Invoice)
        decoder.unmarshal(b'{"id": "1"}', customer)
        assert customer.decoded

        decoder.unmarshal(b'{"tranId": "INV-2"}', customer, invoice)
        assert not customer.decoded
        assert customer.value is None
        assert invoice.value == Invoice(tranId="INV-2")

    def test_reset_by_error_response(self, decoder):
        target = JsonTarget()
        decoder.decode(make_response(200, {"a": 1}), target)

        with pytest.raises(ResponseError):
            decoder.decode(make_error_response(400, [{"detail": "bad", "o:errorCode": "E"}]), target)
        assert not target.decoded
        assert target.value is None


class TestNetSuiteModel:
    """Test model validation of JSON objects"""

    def test_nested_and_list_fields(self):
        page = Page.model_validate({
            "count": 2,
            "hasMore": True,
            "items": [{"id": "1"}, {"id": "2", "isPerson": True}],
            "links": [{"rel": "self", "href": "https://example.com"}],
            "totals": {"amount": 3},
            "nextOffset": 100,
        })

        assert page.count == 2
        assert page.has_more is True
        assert page.items == [Customer(id="1"), Customer(id="2", isPerson=True)]
        assert page.links[0].rel == "self"
        assert page.totals == {"amount": 3.0}
        assert page.next_offset == 100

    def test_populate_by_field_name(self):
        assert Page(count=1, has_more=True).has_more is True

    def test_null_uses_default(self):
        page = Page.model_validate({"count": 0, "items": None, "hasMore": None, "nextOffset": None})
        assert page.items == []
        assert page.has_more is False
        assert page.next_offset is None

    def test_null_on_required_field_uses_zero_value(self):
        """A null required field is left at its type's zero value instead of failing"""
        assert Customer.model_validate({"id": None}) == Customer(id="")
        assert Page.model_validate({"count": None}).count == 0

    def test_null_error_fields(self):
        detail = ErrorDetail.model_validate({"detail": None, "o:errorCode": None})
        assert detail.message() == ""

    def test_missing_required_field(self):
        target = ModelTarget(Page)
        with pytest.raises(DecodeError, match="count: Field required"):
            target.decode({})

    def test_type_mismatch_reports_path(self):
        target = ModelTarget(Page)
        with pytest.raises(DecodeError, match=r"items\.1\.isPerson") as exc_info:
            target.decode({"count": 1, "items": [{"id": "1"}, {"id": "2", "isPerson": "maybe"}]})
        assert exc_info.value.details['errors'][0]['loc'] == ('items', 1, 'isPerson')

    def test_strict_applies_to_nested(self):
        target = ModelTarget(Page)
        with pytest.raises(DecodeError, match=r'items\.0: .*unknown field "x"'):
            target.decode({"count": 1, "items": [{"id": "1", "x": 1}]}, strict=True)

    def test_aliases_are_known_fields_when_strict(self):
        page = ModelTarget(Page)
        page.decode({"count": 1, "hasMore": True, "nextOffset": 5}, strict=True)
        assert page.value.next_offset == 5

    def test_list_of_models(self):
        target = ModelTarget(List[Customer])
        target.decode([{"id": "1"}, {"id": "2"}])
        assert target.value == [Customer(id="1"), Customer(id="2")]

    def test_parse_json_blank(self):
        assert parse_json(b"   \n") is parse_json(b"")
        with pytest.raises(DecodeError):
            parse_json(b"\xff\xfe", "utf-8")
