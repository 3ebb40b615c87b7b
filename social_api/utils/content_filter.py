from typing import Iterable
from better_profanity import Profanity
from social_api.config import settings

class ContentFilter:
    """Censors profanity in user supplied text before it is stored.

    Uses the curated ``better_profanity`` word list, extended with any extra
    words from settings. Each censored word becomes four placeholder
    characters.
    """

    def __init__(
        self,
        extra_words: Iterable[str] = (),
        placeholder: str = "*",
        include_default_words: bool = True
    ):
        self.placeholder = placeholder
        words = sorted({w.strip().lower() for w in extra_words if w.strip()})

        if include_default_words:
            self._profanity = Profanity()
            if words:
                self._profanity.add_censor_words(words)
        elif words:
            self._profanity = Profanity(words)
        else:
            self._profanity = None

    def clean(self, text: str) -> str:
        if not text or self._profanity is None:
            return text
        return self._profanity.censor(text, self.placeholder)

content_filter = ContentFilter(settings.BANNED_WORDS)
