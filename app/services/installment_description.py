from __future__ import annotations

import re

DEFAULT_INSTALLMENT_LABEL = "Installment"
# Rows written before the label was localized carry this one.
LEGACY_INSTALLMENT_LABELS = ("Taksit",)


def _suffix_pattern(labels: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(label) for label in labels)
    return re.compile(
        rf"\s*\((?:{alternatives})\s+(?P<number>\d+)\s*/\s*(?P<count>\d+)\)\s*$",
        re.IGNORECASE,
    )


def _labels(label: str) -> tuple[str, ...]:
    normalized = label.strip() or DEFAULT_INSTALLMENT_LABEL
    return (normalized, *LEGACY_INSTALLMENT_LABELS)


def strip_installment_suffix(
    description: str | None, *, label: str = DEFAULT_INSTALLMENT_LABEL
) -> str:
    if not description:
        return ""
    return _suffix_pattern(_labels(label)).sub("", description).strip()


def parse_installment_suffix(
    description: str | None, *, label: str = DEFAULT_INSTALLMENT_LABEL
) -> tuple[int, int] | None:
    if not description:
        return None
    match = _suffix_pattern(_labels(label)).search(description)
    if match is None:
        return None
    return int(match.group("number")), int(match.group("count"))


def format_installment_description(
    description: str | None,
    sequence_number: int,
    installment_count: int,
    *,
    label: str = DEFAULT_INSTALLMENT_LABEL,
) -> str:
    """Tag ``description`` as installment ``sequence_number`` of the plan.

    Any tag already present is replaced, so formatting twice never stacks
    suffixes.
    """

    base = strip_installment_suffix(description, label=label)
    normalized_label = label.strip() or DEFAULT_INSTALLMENT_LABEL
    tag = f"({normalized_label} {sequence_number}/{installment_count})"
    return f"{base} {tag}" if base else tag
