"""4.6 Names and Descriptions.

``name`` and ``description`` may appear anywhere; these scenarios cover the
credential itself and its ``issuer`` object, each with a plain string, a
language value object, a set of language values, and a value object carrying
a property other than ``@value``, ``@language`` and ``@direction``.
"""

from ..assertions import expect_accepted, expect_rejected
from .base import SPEC_URL, ScenarioContext, Suite

LINK = f"{SPEC_URL}#names-and-descriptions"
FIXTURE_DIR = "names-and-descriptions"

suite = Suite("Names and Descriptions", tag="vc2.0")


def _language_value_scenario(where: str, prop: str) -> None:
    label = "Credential" if where == "credential" else "Issuer"
    subject = "a VC" if where == "credential" else "an issuer"

    @suite.scenario(
        f"{label}: If present, the value of the {prop} property MUST be a string or a language value "
        "object as described in 11.1 Language and Base Direction.",
        LINK,
    )
    def check(ctx: ScenarioContext) -> None:
        def fixture(name: str) -> str:
            return f"{FIXTURE_DIR}/{name}.json"

        expect_accepted(ctx.issue(fixture(f"{where}-{prop}-ok")),
                        f"Failed to accept {subject} with `{prop}` as a string.")
        expect_accepted(ctx.issue(fixture(f"{where}-{prop}-optional-ok")),
                        f"Failed to accept {subject} without `{prop}`.")
        expect_accepted(ctx.issue(fixture(f"{where}-{prop}-language-en-ok")),
                        f"Failed to accept {subject} using `{prop}` in a defined language.")
        expect_accepted(ctx.issue(fixture(f"{where}-{prop}-language-direction-en-ok")),
                        f"Failed to accept {subject} using `{prop}` with language and direction expressed.")
        expect_accepted(ctx.issue(fixture(f"{where}-multi-language-{prop}-ok")),
                        f"Failed to accept {subject} with `{prop}` in multiple languages.")
        expect_rejected(ctx.issue(fixture(f"{where}-{prop}-extra-prop-en-fail")),
                        f"Failed to reject {subject} with `{prop}` containing extra properties.")


for _where in ("credential", "issuer"):
    for _prop in ("name", "description"):
        _language_value_scenario(_where, _prop)
