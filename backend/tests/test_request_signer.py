"""
Eleven Interior API - RequestSigner Unit Tests
===============================================

Reference vector: Cloudinary's documented example
    public_id=sample_image&timestamp=1315060510 + "abcd"
    → b4ad47fb4e25c7bf5f92a20089f9db59bc302313
"""

import hashlib

import pytest

from interior_api.security.signing import SIGNABLE_PARAMS, RequestSigner


@pytest.fixture
def signer():
    return RequestSigner()


class TestCanonicalString:
    def test_sorted_and_joined(self, signer):
        params = {"timestamp": 1315060510, "public_id": "sample_image"}
        assert signer.canonical_string(params) == "public_id=sample_image&timestamp=1315060510"

    def test_drops_non_allow_listed_and_none(self, signer):
        params = {
            "timestamp": 1,
            "folder": None,
            "api_key": "123",
            "file": b"...",
            "quality": "auto:good",
        }
        assert signer.canonical_string(params) == "timestamp=1"

    def test_lists_joined_with_commas(self, signer):
        params = {"public_ids": ["a", "b", "c"], "timestamp": 2}
        assert signer.canonical_string(params) == "public_ids=a,b,c&timestamp=2"

    def test_booleans_lowercase(self):
        signer = RequestSigner(allowed_params={"invalidate", "timestamp"})
        assert signer.canonical_string({"invalidate": True, "timestamp": 3}) == "invalidate=true&timestamp=3"

    def test_default_allow_list(self):
        assert SIGNABLE_PARAMS == {"timestamp", "folder", "public_id", "resource_type", "public_ids"}


class TestSign:
    def test_documented_vector(self, signer):
        params = {"public_id": "sample_image", "timestamp": 1315060510}
        assert signer.sign(params, "abcd") == "b4ad47fb4e25c7bf5f92a20089f9db59bc302313"

    def test_is_sha1_of_canonical_plus_secret(self, signer):
        params = {"folder": "eleven-interior/images/gallery", "timestamp": 1700000000}
        expected = hashlib.sha1(
            b"folder=eleven-interior/images/gallery&timestamp=1700000000secret"
        ).hexdigest()
        assert signer.sign(params, "secret") == expected

    def test_insertion_order_does_not_matter(self, signer):
        a = {"timestamp": 1700000000, "folder": "f", "resource_type": "image"}
        b = {"resource_type": "image", "folder": "f", "timestamp": 1700000000}
        assert signer.sign(a, "s") == signer.sign(b, "s")

    @pytest.mark.parametrize(
        "first,second",
        [
            ({"timestamp": 1}, {"timestamp": 2}),
            ({"timestamp": 1, "folder": "a"}, {"timestamp": 1, "folder": "b"}),
            ({"timestamp": 1, "public_id": "x"}, {"timestamp": 1, "public_id": "y"}),
        ],
    )
    def test_signed_value_change_changes_signature(self, signer, first, second):
        assert signer.sign(first, "s") != signer.sign(second, "s")

    def test_extra_fields_do_not_change_signature(self, signer):
        base = {"timestamp": 1700000000, "folder": "f"}
        noisy = dict(base, api_key="k", file="x", signature="old")
        assert signer.sign(base, "s") == signer.sign(noisy, "s")
