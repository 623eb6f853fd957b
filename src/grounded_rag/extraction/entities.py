"""
Organization extraction from noisy program documents.

Internship reports and placement pages mention host organizations in a
handful of recurring shapes ("interned at Hotel Indigo", "Epting Events -
Event Planning Intern", a name / organization / "Report #3" header). The
extractor finds those mentions with regular expressions and filters the
obvious junk.

All literal data (organization keywords, false positives, phrase
patterns, known organizations) lives in a JSON resource, not in code:

    patterns = load_entity_patterns()                  # packaged default
    patterns = load_entity_patterns("my_patterns.json")

    extractor = RegexEntityExtractor(patterns)
    for candidate in extractor.extract(text, source="reports/week3.md"):
        print(candidate.organization, candidate.department)

This is best-effort pattern matching. A model-based extractor can
replace it behind BaseEntityExtractor.
"""

import json
import logging
import re
from importlib import resources
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from grounded_rag.base.extractor import BaseEntityExtractor
from grounded_rag.models.entity import EntityCandidate

logger = logging.getLogger(__name__)

_PERSON_NAME = re.compile(r"^[A-Z][a-z]+(?:[-\s][A-Z][a-z]+)+$")
_PERSON_LIKE = [
    re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+$"),
    re.compile(r"^[A-Z][a-z]+ [A-Z]\. [A-Z][a-z]+$"),
]
_SPECIAL_CHARS = re.compile(r"[0-9&@#$%^*()_+={}\[\]|\\:;\"'<>,.?/]")
_MAX_ORGANIZATION_LENGTH = 100


class PhrasePattern(BaseModel):
    """A regex with an "organization" group and optional "person"/"department" groups."""

    name: str
    pattern: str
    flags: list[str] = Field(default_factory=list, description="re flag names, e.g. MULTILINE")

    def compile(self) -> re.Pattern:
        flags = 0
        for flag in self.flags:
            flags |= re.RegexFlag[flag.upper()]
        return re.compile(self.pattern, flags)


class KnownOrganization(BaseModel):
    """A case-insensitive pattern mapped to a canonical organization name."""

    pattern: str
    organization: str
    department: str = ""


class EntityPatterns(BaseModel):
    """Lookup tables and patterns that drive RegexEntityExtractor."""

    org_keywords: list[str] = Field(default_factory=list)
    false_positives: list[str] = Field(default_factory=list)
    phrase_patterns: list[PhrasePattern] = Field(default_factory=list)
    known_organizations: list[KnownOrganization] = Field(default_factory=list)


def load_entity_patterns(path: Optional[Union[str, Path]] = None) -> EntityPatterns:
    """
    Load extraction patterns from JSON.

    Args:
        path: A JSON file; None loads the packaged default.

    Raises:
        FileNotFoundError: If path does not exist.
        pydantic.ValidationError: If the file does not match EntityPatterns.
    """
    if path is None:
        raw = (
            resources.files("grounded_rag.extraction")
            .joinpath("data/entity_patterns.json")
            .read_text(encoding="utf-8")
        )
    else:
        raw = Path(path).read_text(encoding="utf-8")
    return EntityPatterns.model_validate(json.loads(raw))


class RegexEntityExtractor(BaseEntityExtractor):
    """
    Finds organization names with configurable regular expressions.

    Two passes over the text:
        1. Phrase patterns: capture an organization (and sometimes a
           person or department) from recurring sentence shapes. Captures
           are validated: no person-like names, no false positives, must
           carry an organization keyword or be longer than 10 characters.
        2. Known organizations: canonical names for organizations the
           corpus is known to mention in irregular ways.

    Results are deduplicated case-insensitively by organization, first
    match wins.
    """

    def __init__(self, patterns: Optional[EntityPatterns] = None):
        self._patterns = patterns if patterns is not None else load_entity_patterns()
        self._phrases = [(p.name, p.compile()) for p in self._patterns.phrase_patterns]
        self._known = [
            (re.compile(k.pattern, re.IGNORECASE), k) for k in self._patterns.known_organizations
        ]
        self._keywords = [k.lower() for k in self._patterns.org_keywords]
        self._false_positives = {f.lower() for f in self._patterns.false_positives}

    def extract(self, text: str, source: str = "") -> list[EntityCandidate]:
        candidates: list[EntityCandidate] = []
        seen: set[str] = set()

        def add(candidate: EntityCandidate) -> None:
            key = candidate.organization.lower()
            if key not in seen:
                seen.add(key)
                candidates.append(candidate)

        for name, pattern in self._phrases:
            for match in pattern.finditer(text):
                groups = match.groupdict()
                organization = _clean(groups.get("organization"))
                if not self.is_valid_organization(organization):
                    continue
                person = _clean(groups.get("person"))
                add(EntityCandidate(
                    organization=organization,
                    person=person if self.is_valid_person_name(person) else None,
                    department=_clean(groups.get("department")),
                    source=source,
                    matched_by=name,
                ))

        for pattern, known in self._known:
            if pattern.search(text):
                add(EntityCandidate(
                    organization=known.organization,
                    department=known.department,
                    source=source,
                    matched_by="known_organization",
                ))

        logger.debug("Extracted %d organizations from %s", len(candidates), source or "text")
        return candidates

    def has_org_keyword(self, value: str) -> bool:
        lowered = value.lower()
        return any(keyword in lowered for keyword in self._keywords)

    def is_valid_organization(self, organization: str) -> bool:
        if not organization or len(organization) >= _MAX_ORGANIZATION_LENGTH:
            return False
        if organization.lower() in self._false_positives:
            return False
        if organization[0].isdigit() or "Due:" in organization or "Week " in organization:
            return False
        has_keyword = self.has_org_keyword(organization)
        if not has_keyword and any(p.match(organization) for p in _PERSON_LIKE):
            return False
        return has_keyword or len(organization) > 10

    def is_valid_person_name(self, name: str) -> bool:
        if not name:
            return False
        lowered = name.lower()
        if any(fp in lowered for fp in self._false_positives):
            return False
        if not _PERSON_NAME.match(name) or _SPECIAL_CHARS.search(name):
            return False
        parts = name.split()
        if not 2 <= len(parts) <= 3 or any(not 2 <= len(p) <= 15 for p in parts):
            return False
        return not any(keyword in name for keyword in self._patterns.org_keywords)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip(" \t\n-–.,;:")
