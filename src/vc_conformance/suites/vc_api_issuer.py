"""VC API issuer request validation.

Posts request bodies built from ``validVc.json`` straight to issuer endpoints
and checks that malformed bodies are rejected as invalid input (400 or 422,
never 401). The same request checks run against Data Integrity issuers
tagged ``vc-api`` and enveloping issuers tagged ``JWT``; only the check on a
successfully issued credential differs.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from ..assertions import (
    ensure,
    includes_all_required_properties,
    is_secured,
    should_be_issued_vc,
    should_return_result,
    should_throw_invalid_input,
)
from ..errors import NoMatchingEndpointError
from ..outcome import Outcome
from ..registry import Endpoint
from ..request_bodies import create_iso_timestamp, create_request_body
from .base import ScenarioContext, Suite

LINK = "https://w3c-ccg.github.io/vc-api/#issue-credential"

Mutation = Callable[[dict[str, Any]], None]
IssuedCheck = Callable[[Any], None]


def _issuer(ctx: ScenarioContext) -> Endpoint:
    issuer = ctx.endpoints.issuer
    if issuer is None:
        raise NoMatchingEndpointError(ctx.name, "issuers", ctx.endpoints.tag)
    return issuer


def _post(ctx: ScenarioContext, mutate: Mutation) -> Outcome:
    issuer = _issuer(ctx)
    body = create_request_body(issuer, fixtures=ctx.fixtures)
    mutate(body)
    return ctx.endpoints.transport.send(issuer, body)


def _set(prop: str, value: Any) -> Mutation:
    def mutate(body: dict[str, Any]) -> None:
        body["credential"][prop] = value

    return mutate


def _delete(prop: str) -> Mutation:
    def mutate(body: dict[str, Any]) -> None:
        body["credential"].pop(prop, None)

    return mutate


def _expect_created(outcome: Outcome) -> None:
    should_return_result(outcome)
    ensure(outcome.result.status_code == 201, f"Expected statusCode 201, got {outcome.result.status_code}.")


def _invalid_values(prop: str, values: Iterable[Any]) -> Callable[[ScenarioContext], None]:
    def check(ctx: ScenarioContext) -> None:
        for value in values:
            should_throw_invalid_input(_post(ctx, _set(prop, value)))

    return check


def _missing(prop: str) -> Callable[[ScenarioContext], None]:
    def check(ctx: ScenarioContext) -> None:
        should_throw_invalid_input(_post(ctx, _delete(prop)))

    return check


def _accepts_date(prop: str, offset: timedelta) -> Callable[[ScenarioContext], None]:
    def check(ctx: ScenarioContext) -> None:
        value = create_iso_timestamp(datetime.now(timezone.utc) + offset)
        _expect_created(_post(ctx, _set(prop, value)))

    return check


def _rename_credential(body: dict[str, Any]) -> None:
    body["verifiableCredential"] = body.pop("credential")


def issuer_request_suite(
    name: str,
    tag: str,
    check_issued: IssuedCheck,
    subject_values: list[Any],
    optional_dates: Iterable[str],
) -> Suite:
    """Build a suite of VC API issue-credential request checks.

    Args:
        name: Suite title
        tag: Tag issuer endpoints must carry
        check_issued: Assertion run on the credential returned for a valid request
        subject_values: Invalid ``credentialSubject`` values to post
        optional_dates: Date properties an issuer must accept
    """
    suite = Suite(name, tag=tag, role="issuers", column_label="Issuer")

    @suite.scenario("MUST successfully issue a credential.", LINK)
    def issues_credential(ctx: ScenarioContext) -> None:
        outcome = _post(ctx, lambda body: None)
        _expect_created(outcome)
        ensure(outcome.data is not None, "Expected result to have data.")
        check_issued(outcome.data)

    suite.scenario('Request body MUST have property "credential".', LINK)(
        lambda ctx: should_throw_invalid_input(_post(ctx, _rename_credential))
    )
    suite.scenario('credential MUST have property "@context".', LINK)(_missing("@context"))
    suite.scenario('credential "@context" MUST be an array.', LINK)(_invalid_values("@context", [4]))
    suite.scenario('credential "@context" items MUST be strings.', LINK)(
        _invalid_values("@context", [{"foo": True}, 4, False, None])
    )
    suite.scenario('credential MUST have property "type"', LINK)(_missing("type"))
    suite.scenario('"credential.type" MUST be an array.', LINK)(_invalid_values("type", [4]))
    suite.scenario('"credential.type" items MUST be strings', LINK)(_invalid_values("type", [None, True, 4, []]))
    suite.scenario('credential MUST have property "issuer"', LINK)(_missing("issuer"))
    suite.scenario('"credential.issuer" MUST be a string or an object', LINK)(
        _invalid_values("issuer", [None, True, 4, []])
    )
    suite.scenario('credential MUST have property "credentialSubject"', LINK)(_missing("credentialSubject"))
    suite.scenario('"credential.credentialSubject" MUST be an object', LINK)(
        _invalid_values("credentialSubject", subject_values)
    )
    for prop in optional_dates:
        # issuanceDate is a date already past, expirationDate one year ahead
        offset = timedelta(0) if prop == "issuanceDate" else timedelta(days=365)
        suite.scenario(f'credential MAY have property "{prop}"', LINK)(_accepts_date(prop, offset))
    return suite


def _secured_with_required_properties(issued: Any) -> None:
    is_secured(issued)
    includes_all_required_properties(issued)


suite = issuer_request_suite(
    "Issue Credential - Data Integrity",
    tag="vc-api",
    check_issued=should_be_issued_vc,
    subject_values=[None, True, 4, [], "did:example:1234"],
    optional_dates=["expirationDate"],
)

jwt_suite = issuer_request_suite(
    "Issue Credential - JWT",
    tag="JWT",
    check_issued=_secured_with_required_properties,
    subject_values=[None, True, 4, []],
    optional_dates=["issuanceDate", "expirationDate"],
)
