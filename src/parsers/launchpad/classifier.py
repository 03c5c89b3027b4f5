"""Launch category and lifecycle status.

Category precedence, highest first:
  1. explicit tag at strings[6] ("raffle" / "instant" / "ido")
  2. flags[0] numeric code written by older clients (0 / 1 / 2)
  3. LaunchMeta discriminant

Each rule is a small function returning a category or None; the first
non-None answer wins.
"""

from collections.abc import Callable, Sequence

from src.parsers.launchpad.constants import (
    STRING_CATEGORY_TAG,
    LaunchCategory,
    LaunchMeta,
    LaunchStatus,
)

_CODE_TO_CATEGORY: dict[int, LaunchCategory] = {
    LaunchMeta.RAFFLE: LaunchCategory.RAFFLE,
    LaunchMeta.FCFS: LaunchCategory.INSTANT,
    LaunchMeta.IDO: LaunchCategory.IDO,
}

CategoryRule = Callable[[Sequence[str], Sequence[int], int], LaunchCategory | None]


def category_from_tag(
    strings: Sequence[str], flags: Sequence[int], launch_meta: int
) -> LaunchCategory | None:
    if len(strings) <= STRING_CATEGORY_TAG:
        return None
    tag = strings[STRING_CATEGORY_TAG].strip().lower()
    try:
        return LaunchCategory(tag)
    except ValueError:
        return None


def category_from_flags(
    strings: Sequence[str], flags: Sequence[int], launch_meta: int
) -> LaunchCategory | None:
    """Map the legacy flags[0] code.

    Codes other than 0/1/2 return None so the LaunchMeta rule decides.
    This deliberately departs from the web client, which labels any
    unknown code as raffle and so would mask an instant or IDO launch.
    """
    if not flags:
        return None
    return _CODE_TO_CATEGORY.get(flags[0])


def category_from_launch_meta(
    strings: Sequence[str], flags: Sequence[int], launch_meta: int
) -> LaunchCategory | None:
    return _CODE_TO_CATEGORY.get(launch_meta)


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    category_from_tag,
    category_from_flags,
    category_from_launch_meta,
)


def classify_category(
    strings: Sequence[str],
    flags: Sequence[int],
    launch_meta: int,
    rules: Sequence[CategoryRule] = CATEGORY_RULES,
) -> LaunchCategory:
    """Return the first category any rule accepts (raffle if none does)."""
    for rule in rules:
        category = rule(strings, flags, launch_meta)
        if category is not None:
            return category
    return LaunchCategory.RAFFLE


def launch_status(launch_date: int, end_date: int, now: float) -> LaunchStatus:
    """Status at `now`; all three values are epoch seconds."""
    if now < launch_date:
        return LaunchStatus.UPCOMING
    if now > end_date:
        return LaunchStatus.ENDED
    return LaunchStatus.LIVE
