"""
Skill Matching

Pure functions, no I/O. Decides whether two free-text skill strings refer to
the same thing and scores how well a mentor's offered skills cover a
learner's wanted skills.

Matching is deliberately loose: "machine learning" matches "learning",
"Python Programming" matches "python".
"""

import re
from typing import List, Sequence, Tuple

_DISALLOWED = re.compile(r"[^a-z0-9 ]")


def normalize_skill(skill: str) -> str:
    """Lowercase, drop everything outside [a-z0-9 ], trim."""
    return _DISALLOWED.sub("", skill.lower()).strip()


def _tokens_overlap(norm1: str, norm2: str) -> bool:
    words1 = norm1.split()
    words2 = norm2.split()
    return any(
        w1 == w2 or w2 in w1 or w1 in w2
        for w1 in words1
        for w2 in words2
    )


def skills_match(skill1: str, skill2: str) -> bool:
    """
    True on exact match, containment either way, or any word of one
    equal to / contained in / containing any word of the other.
    Symmetric.
    """
    norm1 = normalize_skill(skill1)
    norm2 = normalize_skill(skill2)

    if norm1 == norm2:
        return True

    if norm1 in norm2 or norm2 in norm1:
        return True

    return _tokens_overlap(norm1, norm2)


def compute_match_score(
    wanted: Sequence[str],
    has: Sequence[str]
) -> Tuple[int, List[str]]:
    """
    Percentage of `wanted` skills covered by `has`.

    Each wanted skill counts at most once, against the FIRST entry of `has`
    (in its given order) that matches it. Matched `has` entries are returned
    deduplicated, in first-match order.

    Returns:
        (score 0-100, matched skills)
    """
    if not wanted or not has:
        return 0, []

    matched: List[str] = []
    match_count = 0

    for wanted_skill in wanted:
        for has_skill in has:
            if skills_match(wanted_skill, has_skill):
                match_count += 1
                if has_skill not in matched:
                    matched.append(has_skill)
                break

    # Round half up, in integers
    score = (200 * match_count + len(wanted)) // (2 * len(wanted))
    if match_count and not score:
        # Keep score == 0 exactly when nothing matched (only hit with 200+ wanted skills)
        score = 1
    return score, matched
