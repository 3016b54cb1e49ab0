"""4.9 Validity Period."""

from ..assertions import check_validity_period, expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#validity-period"

suite = Suite("Validity Period", tag="vc2.0")


@suite.scenario(
    "If present, the value of the validFrom property MUST be an [XMLSCHEMA11-2] dateTimeStamp string "
    "value representing the date and time the credential becomes valid, which could be a date and "
    "time in the future or in the past.",
    LINK,
)
def valid_from_format(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-validfrom-ms-ok.json"),
                    "Failed to accept a VC with a valid `validFrom` date-time.")
    expect_accepted(ctx.issue("credential-validfrom-tz-ok.json"),
                    "Failed to accept a VC using the subtractive timezone format.")
    expect_rejected(ctx.issue("credential-validfrom-invalid-fail.json"),
                    "Failed to reject a VC using an incorrect `validFrom` date-time format.")


@suite.scenario(
    "If present, the value of the validUntil property MUST be an [XMLSCHEMA11-2] dateTimeStamp string "
    "value representing the date and time the credential ceases to be valid, which could be a date "
    "and time in the past or in the future.",
    LINK,
)
def valid_until_format(ctx: ScenarioContext) -> None:
    expect_accepted(ctx.issue("credential-validuntil-ok.json"),
                    "Failed to accept a VC with a valid `validUntil` date-time.")
    expect_accepted(ctx.issue("credential-validuntil-ms-ok.json"),
                    "Failed to accept a VC using milliseconds in `validUntil`.")
    expect_accepted(ctx.issue("credential-validuntil-tz-ok.json"),
                    "Failed to accept a VC using the subtractive timezone format.")
    expect_rejected(ctx.issue("credential-validuntil-invalid-fail.json"),
                    "Failed to reject a VC using an incorrect `validUntil` date-time format.")


@suite.scenario(
    "If a validUntil value also exists, the validFrom value MUST express a datetime that is "
    "temporally the same or earlier than the datetime expressed by the validUntil value.",
    LINK,
)
def valid_from_not_after_until(ctx: ScenarioContext) -> None:
    check_validity_period(ctx.endpoints, ctx.fixtures, ctx.config.skew_days)


@suite.scenario(
    "If a validFrom value also exists, the validUntil value MUST express a datetime that is "
    "temporally the same or later than the datetime expressed by the validFrom value.",
    LINK,
)
def valid_until_not_before_from(ctx: ScenarioContext) -> None:
    check_validity_period(ctx.endpoints, ctx.fixtures, ctx.config.skew_days)
