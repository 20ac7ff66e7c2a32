"""
Assignment expansion: turns assignee targets (literal e-mails and `team:<NAME>`
tags) into a de-duplicated list of individual identities.
"""

import logging
import re
from typing import Iterable, List

from taskboard.core.ports import TeamDirectory

logger = logging.getLogger(__name__)

TEAM_PREFIX = "team:"
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_identity(identity: str) -> str:
    return identity.strip().lower()


def is_team_tag(target: str) -> bool:
    return target.strip().lower().startswith(TEAM_PREFIX)


def is_valid_email(identity: str) -> bool:
    return bool(EMAIL_RE.match(identity))


def expand_assignees(targets: Iterable[str], directory: TeamDirectory) -> List[str]:
    """Resolve team tags and literals into unique lower-cased identities.

    First-seen order is kept. A team whose lookup fails contributes nobody.
    """
    expanded = []
    seen = set()

    def add(identity: str):
        identity = normalize_identity(identity)
        if identity and identity not in seen:
            seen.add(identity)
            expanded.append(identity)

    for target in targets:
        if is_team_tag(target):
            team = target.strip()[len(TEAM_PREFIX):].strip()
            try:
                members = directory.list_approved_identities_by_team(team)
            except Exception as e:
                logger.warning(f"Team lookup failed for {target}: {e}")
                continue
            for member in members:
                add(member)
        else:
            add(target)

    return expanded


def validate_assignees(targets: Iterable[str], directory: TeamDirectory) -> List[str]:
    """Return the literal targets that are malformed or not registered.

    Team tags are not checked here, an unknown team simply expands to nobody.
    """
    invalid = []
    for target in targets:
        if is_team_tag(target):
            continue
        identity = normalize_identity(target)
        if not is_valid_email(identity) or not directory.is_registered(identity):
            invalid.append(target)
    return invalid
