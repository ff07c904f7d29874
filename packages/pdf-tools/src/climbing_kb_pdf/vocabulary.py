"""Fixed climbing vocabularies shared by the reconstructor and chunker."""

# Order matters: detected topics are reported in this order.
CLIMBING_TERMS: tuple[str, ...] = (
    "anchor",
    "anchors",
    "belay",
    "belaying",
    "rappel",
    "rappelling",
    "knot",
    "knots",
    "rope",
    "carabiner",
    "cam",
    "nut",
    "protection",
    "pitch",
    "multipitch",
    "trad",
    "traditional",
    "sport",
    "lead",
    "follow",
    "climbing",
    "technique",
    "safety",
    "SERENE",
    "equalization",
)

# Scanned (in order) when no heading pattern matches a chunk.
SECTION_NAMES: tuple[str, ...] = (
    "sleeping system",
    "campsite selection",
    "food and water",
    "stoves",
    "basic safety",
    "knots",
    "anchors",
    "belaying",
    "rappelling",
    "rock protection",
    "leading",
    "aid climbing",
    "snow travel",
    "ice climbing",
    "avalanche safety",
    "glacier travel",
    "rescue",
    "first aid",
    "leadership",
    "navigation",
    "weather",
)

# Fragmented phrase -> repaired word, applied case-insensitively.
FRAGMENT_FIXES: dict[str, str] = {
    "gene rally": "generally",
    "place ments": "placements",
    "place ment": "placement",
    "import ant": "important",
    "strong er": "stronger",
    "small er": "smaller",
    "larg er": "larger",
    "fig ure": "figure",
    "anch ors": "anchors",
    "anch or": "anchor",
    "protect ion": "protection",
    "cara bin ers": "carabiners",
    "cara bin er": "carabiner",
}

# Words the boundary-insertion rules must never split.
PROTECTED_WORDS: frozenset[str] = frozenset(
    {term.lower() for term in CLIMBING_TERMS}
    | {word for name in SECTION_NAMES for word in name.split()}
    | set(FRAGMENT_FIXES.values())
)

# Everyday words that may appear on either side of a glued-word split.
# Includes compounds such as "within" that would otherwise look glued.
COMMON_WORDS: frozenset[str] = frozenset(
    {
        "a", "about", "above", "after", "again", "against", "all", "also",
        "always", "an", "any", "as", "at", "back", "be", "before", "below",
        "body", "both", "build", "building", "but", "by", "chain", "check",
        "clip", "cord", "crack", "each", "edge", "every", "fall", "feet",
        "foot", "force", "from", "gear", "good", "hand", "hands", "have",
        "hold", "holding", "ice", "into", "is", "it", "keep", "ledge",
        "line", "load", "long", "many", "more", "most", "mountain", "must",
        "never", "not", "on", "onto", "other", "over", "partner", "place",
        "placing", "point", "rock", "route", "safe", "same", "set", "should",
        "sling", "slings", "snow", "some", "strong", "such", "system", "team",
        "terrain", "test", "than", "that", "their", "them", "then", "there",
        "these", "they", "this", "those", "tying", "under", "upon", "using",
        "very", "wall", "water", "weight", "well", "what", "when", "where",
        "which", "while", "with", "within", "without", "you", "your",
    }
)

# Words a split may produce; a split is only made when both halves are known.
KNOWN_WORDS: frozenset[str] = PROTECTED_WORDS | COMMON_WORDS
