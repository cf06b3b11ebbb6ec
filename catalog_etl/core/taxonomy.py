"""
Audience taxonomy: the closed tag sets the classifier may assign
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class AudienceVocabulary:
    """A closed set of audience tags plus the tag used when classification fails"""
    #: language the classification prompt is written in
    language: str
    dog: str
    cat: str
    humans: str
    fallback: str

    @property
    def tags(self) -> Tuple[str, ...]:
        return (self.dog, self.cat, self.humans, self.fallback)

    @property
    def _lookup(self) -> Dict[str, str]:
        return {tag.casefold(): tag for tag in self.tags}

    def canonical(self, tag: str) -> Optional[str]:
        """Map a model-produced tag onto this vocabulary's spelling, or None"""
        if not isinstance(tag, str):
            return None
        return self._lookup.get(tag.strip().casefold())


ENGLISH_AUDIENCE = AudienceVocabulary(
    language="en",
    dog="Dog",
    cat="Cat",
    humans="Humans",
    fallback="other",
)

# English tags asked for through the localized prompt
CATALOG_AUDIENCE = AudienceVocabulary(
    language="zh-TW",
    dog="Dog",
    cat="Cat",
    humans="Humans",
    fallback="other",
)

LOCALIZED_AUDIENCE = AudienceVocabulary(
    language="zh-TW",
    dog="狗狗",
    cat="貓咪",
    humans="人類",
    fallback="其他",
)

# Tag sets selectable for the CSV source
CSV_AUDIENCE_TAG_SETS: Dict[str, AudienceVocabulary] = {
    "en": CATALOG_AUDIENCE,
    "zh-TW": LOCALIZED_AUDIENCE,
}
