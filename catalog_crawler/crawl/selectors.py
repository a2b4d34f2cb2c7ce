"""Ordered multi-selector resolution against a page or element scope."""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectorSpec:
    """
    One selector candidate.

    Attributes:
        selector: CSS selector, or XPath with Playwright's ``xpath=`` prefix
        attribute: Attribute to read instead of the element text
        pattern: Regex applied to the value; the ``url`` group (or group 1) is kept
    """

    selector: str
    attribute: Optional[str] = None
    pattern: Optional[str] = None


Candidate = Union[str, SelectorSpec]


def parse_candidates(candidates: Union[Candidate, Sequence[Candidate], None]) -> List[SelectorSpec]:
    """
    Normalize selector input into a list of specs.

    Args:
        candidates: Single selector, SelectorSpec, or a list of either

    Returns:
        List of SelectorSpec (blank selectors dropped)
    """
    if candidates is None:
        return []

    if isinstance(candidates, (str, SelectorSpec)):
        candidates = [candidates]

    specs = []
    for candidate in candidates:
        if isinstance(candidate, SelectorSpec):
            specs.append(candidate)
        elif candidate and candidate.strip():
            specs.append(SelectorSpec(candidate.strip()))
    return specs


def _apply_pattern(value: str, pattern: str) -> Optional[str]:
    match = re.search(pattern, value)
    if not match:
        return None
    if "url" in match.groupdict():
        return match.group("url")
    return match.group(1) if match.groups() else match.group(0)


async def _read_value(
    element: Any,
    spec: SelectorSpec,
    attribute: Optional[str],
    transform: Optional[Callable[[str], str]] = None,
) -> Optional[str]:
    attr = spec.attribute or attribute
    if attr:
        value = await element.get_attribute(attr)
    else:
        value = await element.text_content()

    if value is None:
        return None
    value = value.strip()
    if value and spec.pattern:
        value = (_apply_pattern(value, spec.pattern) or "").strip()
    if value and transform:
        value = transform(value).strip()
    return value or None


async def resolve_element(
    scope: Any,
    candidates: Union[Candidate, Sequence[Candidate]],
    attribute: Optional[str] = None,
    transform: Optional[Callable[[str], str]] = None,
) -> Tuple[Optional[Any], Optional[str]]:
    """
    Try candidates in order and return the first element with a non-empty value.

    Later candidates are never queried once one resolves. A failing
    candidate (invalid selector, detached element) is skipped.

    Args:
        scope: Playwright Page or ElementHandle to query within
        candidates: Ordered selector candidates
        attribute: Attribute to read when a candidate does not name one
        transform: Cleanup applied to each value before the emptiness check

    Returns:
        Tuple of (element, value) or (None, None)
    """
    specs = parse_candidates(candidates)

    for i, spec in enumerate(specs):
        try:
            element = await scope.query_selector(spec.selector)
            if not element:
                continue

            value = await _read_value(element, spec, attribute, transform)
            if value:
                return element, value

        except Exception as e:
            logger.debug(f"Selector {i+1}/{len(specs)} error: {spec.selector[:50]} - {e}")
            continue

    return None, None


async def resolve(
    scope: Any,
    candidates: Union[Candidate, Sequence[Candidate]],
    attribute: Optional[str] = None,
    transform: Optional[Callable[[str], str]] = None,
) -> Optional[str]:
    """Return the first non-empty trimmed value among the candidates, or None."""
    _, value = await resolve_element(scope, candidates, attribute, transform)
    return value
