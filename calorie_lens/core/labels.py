import re

_SYNSET_PREFIX = re.compile(r'^\s*n\d{8}\b[\s,]*', flags=re.IGNORECASE)


def strip_synset_id(identifier: str) -> str:
    """Drop a leading WordNet synset id such as ``n07742313`` from an ImageNet-style label."""
    return _SYNSET_PREFIX.sub('', identifier or '', count=1)


def normalize_label(identifier: str) -> str:
    """Lower-case, underscores to spaces, trimmed. This is the reference table lookup key."""
    return strip_synset_id(identifier).lower().replace('_', ' ').strip()


def format_food_name(identifier: str) -> str:
    """Human readable name: text before the first comma, separators as spaces, each word capitalised."""
    head = strip_synset_id(identifier).lower().split(',', 1)[0]
    cleaned = head.replace('_', ' ').replace('-', ' ')
    return ' '.join(word[:1].upper() + word[1:] for word in cleaned.split())
