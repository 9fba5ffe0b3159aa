"""Tests for the HAR traffic import endpoint."""

import json
import pytest

from api.listings.har_import import extract_raw_text, handler
from tests.utils.assertions import assert_json_error
from tests.utils.factories import create_listing_data
from tests.utils.helpers import auth_headers, call_handler

PASTE = "\n".join([
    "Address\tMLS#\tDOM\tStatus\tDesktop\tMobile\tPhotos",
    "12 Oak St\t12345678\t12\tA\t1,200\t800\t55",
    "9 Elm St\t99999999\t3\tP\t10\t20\t5",
])


@pytest.mark.unit
def test_extract_raw_text():
    assert extract_raw_text('{"raw": "abc"}', "application/json") == "abc"
    assert extract_raw_text("not json", "application/json") == ""
    assert extract_raw_text("plain paste", "text/plain") == "plain paste"


@pytest.mark.unit
def test_import_matches_listings(signed_in, fake_supabase, caller):
    fake_supabase.add("listings", create_listing_data(caller.user_id, mls_number="12345678"))
    body = json.dumps({"raw": PASTE}).encode("utf-8")

    status, headers, response = call_handler(
        handler, "POST", "/api/listings/har_import",
        {**auth_headers(), "Content-Type": "application/json"}, body,
    )

    payload = json.loads(response)
    assert status == 200
    assert payload["updated"] == 0
    assert payload["matched"] == 1
    assert [row["mls_number"] for row in payload["unmatched"]] == ["99999999"]


@pytest.mark.unit
def test_import_plain_text_body(signed_in, fake_supabase):
    status, _, response = call_handler(
        handler, "POST", "/api/listings/har_import",
        {**auth_headers(), "Content-Type": "text/plain"}, PASTE.encode("utf-8"),
    )

    assert status == 200
    assert json.loads(response)["matched"] == 0


@pytest.mark.unit
def test_import_empty_paste_is_400(signed_in, fake_supabase):
    status, headers, response = call_handler(
        handler, "POST", "/api/listings/har_import",
        {**auth_headers(), "Content-Type": "application/json"}, b'{"raw": "   "}',
    )

    assert assert_json_error(status, headers, response, 400) == {"error": "No data provided."}


@pytest.mark.unit
def test_import_requires_sign_in(fake_supabase):
    status, headers, response = call_handler(
        handler, "POST", "/api/listings/har_import", {"Content-Type": "text/plain"}, PASTE.encode("utf-8"),
    )

    assert_json_error(status, headers, response, 401)


@pytest.mark.unit
def test_get_not_allowed():
    status, headers, response = call_handler(handler, "GET", "/api/listings/har_import")
    assert_json_error(status, headers, response, 405)
