"""Tests for document inspection helpers."""

import pytest

from vc_conformance import concat_proof
from vc_conformance.documents import (
    context_values,
    has_type,
    is_datetime_stamp,
    is_enveloped,
    is_url,
    type_values,
)


@pytest.mark.unit
class TestConcatProof:
    """Adding proofs without overwriting existing ones."""

    def test_no_existing_proof(self) -> None:
        assert concat_proof(None, {"id": "A"}) == {"id": "A"}

    def test_single_existing_proof(self) -> None:
        assert concat_proof({"id": "A"}, {"id": "B"}) == [{"id": "A"}, {"id": "B"}]

    def test_chained(self) -> None:
        proofs = concat_proof(concat_proof({"id": "A"}, {"id": "B"}), {"id": "C"})

        assert proofs == [{"id": "A"}, {"id": "B"}, {"id": "C"}]

    def test_existing_list_not_mutated(self) -> None:
        existing = [{"id": "A"}]

        assert concat_proof(existing, {"id": "B"}) == [{"id": "A"}, {"id": "B"}]
        assert existing == [{"id": "A"}]


@pytest.mark.unit
class TestTypesAndContexts:
    """Scalar and array valued properties."""

    def test_type_values(self) -> None:
        assert type_values({"type": "VerifiableCredential"}) == ["VerifiableCredential"]
        assert type_values({"type": ["A", "B"]}) == ["A", "B"]
        assert type_values({}) == []
        assert type_values("not a document") == []

    def test_has_type(self) -> None:
        assert has_type({"type": "EnvelopedVerifiableCredential"}, "EnvelopedVerifiableCredential")
        assert has_type({"type": ["X", "VerifiableCredential"]}, "VerifiableCredential")
        assert not has_type({"type": ["X"]}, "VerifiableCredential")

    def test_context_values(self) -> None:
        assert context_values({"@context": "https://a.test"}) == ["https://a.test"]
        assert context_values({"@context": ["https://a.test", {"@vocab": "x"}]}) == ["https://a.test", {"@vocab": "x"}]
        assert context_values({}) == []

    def test_is_enveloped(self) -> None:
        assert is_enveloped({"type": "EnvelopedVerifiableCredential"})
        assert is_enveloped({"type": ["EnvelopedVerifiablePresentation"]})
        assert not is_enveloped({"type": ["VerifiableCredential"]})


@pytest.mark.unit
class TestValueFormats:
    """URL and dateTimeStamp recognition."""

    @pytest.mark.parametrize("value", [
        "https://example.org/issuers/1",
        "did:example:issuer",
        "urn:uuid:58172aac-d8ba-11ed-83dd-0b3aef56cc33",
    ])
    def test_urls(self, value: str) -> None:
        assert is_url(value)

    @pytest.mark.parametrize("value", ["example-issuer", "https ://not-a-url", "", None, 4])
    def test_not_urls(self, value) -> None:
        assert not is_url(value)

    @pytest.mark.parametrize("value", [
        "2024-01-01T19:23:24Z",
        "2024-01-01T19:23:24.123Z",
        "2024-01-01T19:23:24-05:00",
        "2024-01-01T19:23:24+14:00",
    ])
    def test_datetime_stamps(self, value: str) -> None:
        assert is_datetime_stamp(value)

    @pytest.mark.parametrize("value", [
        "2024-01-01",
        "2024-01-01T19:23:24",
        "01/01/2034",
        "2024-13-01T19:23:24Z",
        None,
    ])
    def test_not_datetime_stamps(self, value) -> None:
        assert not is_datetime_stamp(value)
