"""
Compatibility check for custom listener observation conventions.

Custom conventions are not required to keep the documented wire-names, but
dashboards built against ``ListenerLowCardinalityTags`` only work if they do.
This module lets integrators check a convention against a sample context
before deploying it.  Nothing calls it on the receive path.

Findings:
    - documented key missing       -> check fails
    - extra key not in the catalog -> reported, check still passes
    - keys out of catalog order    -> reported, check still passes

Usage::

    from rabbit_observation.compat import check_convention_compatibility

    result = check_convention_compatibility(TenantConvention(), context)
    if not result.passed:
        print(result.missing_keys)
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from rabbit_observation.context import RabbitMessageReceiverContext
from rabbit_observation.convention import RabbitListenerObservationConvention
from rabbit_observation.documentation import LISTENER_OBSERVATION
from rabbit_observation.keys import ListenerLowCardinalityTags

logger = logging.getLogger(__name__)


class ConventionCompatibilityResult(BaseModel):
    """Outcome of checking one convention against the key catalog."""

    model_config = ConfigDict(extra="forbid")

    passed: bool = Field(
        ..., description="True if every documented key is produced"
    )
    convention: str = Field(
        ..., description="Class name of the checked convention"
    )
    contextual_name: str = Field(
        "", description="Name the convention produced for the sample context"
    )
    missing_keys: list[str] = Field(
        default_factory=list,
        description="Documented wire-names the convention did not produce",
    )
    extra_keys: list[str] = Field(
        default_factory=list,
        description="Produced wire-names that are not in the catalog",
    )
    out_of_order: bool = Field(
        False, description="Documented keys present but not in catalog order"
    )


def check_convention_compatibility(
    convention: RabbitListenerObservationConvention,
    context: RabbitMessageReceiverContext,
    key_names: Optional[Sequence[ListenerLowCardinalityTags]] = None,
) -> ConventionCompatibilityResult:
    """Compare a convention's low-cardinality keys with the documented catalog.

    Args:
        convention: Convention to check.
        context: Sample receiver context to run it against.
        key_names: Catalog to compare with (listener catalog by default).
    """
    if key_names is None:
        key_names = LISTENER_OBSERVATION.low_cardinality_key_names
    expected = [key.as_string() for key in key_names]

    produced = convention.get_low_cardinality_key_values(context).keys()

    missing = [key for key in expected if key not in produced]
    extra = [key for key in produced if key not in expected]
    documented_order = [key for key in produced if key in expected]
    out_of_order = documented_order != [key for key in expected if key in produced]

    result = ConventionCompatibilityResult(
        passed=not missing,
        convention=type(convention).__name__,
        contextual_name=convention.get_contextual_name(context),
        missing_keys=missing,
        extra_keys=extra,
        out_of_order=out_of_order,
    )

    if result.passed:
        logger.debug(
            "Convention %s is compatible: extra=%d out_of_order=%s",
            result.convention,
            len(extra),
            out_of_order,
        )
    else:
        logger.warning(
            "Convention %s is missing documented keys: %s",
            result.convention,
            ", ".join(missing),
        )
    return result
