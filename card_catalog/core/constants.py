from typing import Final, List, Tuple

UNKNOWN_CARD_NAME: Final[str] = "Unknown Card"

# Object labels the recognition service uses for collectibles
CARD_LABELS: Final[Tuple[str, ...]] = ("card",)
COMIC_LABELS: Final[Tuple[str, ...]] = ("comics", "comic")
COLLECTIBLE_LABELS: Final[Tuple[str, ...]] = CARD_LABELS + COMIC_LABELS

# Subcategory keywords routed to the trading-card-game endpoint
TCG_KEYWORDS: Final[Tuple[str, ...]] = (
    "pokemon", "magic", "mtg", "yu-gi-oh", "yugioh", "one piece", "lorcana",
    "digimon", "dragon ball", "flesh and blood", "weiss schwarz",
    "star wars unlimited", "metazoo", "cardfight", "union arena",
)

# Pricing payload keys holding price values
PRICE_KEYS: Final[Tuple[str, ...]] = ("price", "avg", "median", "low", "high", "mid")

PRICE_SOURCES_SPORT: Final[List[str]] = ["tcgplayer", "ebay"]
PRICE_SOURCES_TCG: Final[List[str]] = ["tcgplayer", "cardmarket", "ebay"]
PRICE_SOURCES_ANALYZE: Final[List[str]] = ["tcgplayer", "ebay", "cardmarket"]
PRICE_SOURCES_COMICS: Final[List[str]] = ["ebay"]

CONDITION_MODES: Final[Tuple[str, ...]] = ("ebay", "psa", "bgs", "sgc", "cgc")

# OCR hints shorter than this are too ambiguous to match names against
MIN_OCR_KEYWORD_LENGTH: Final[int] = 3

CSV_HEADER: Final[List[str]] = [
    "Name", "Year", "Set", "Card Number", "Sport/Category", "Team", "Rarity",
    "Price", "Grade", "Grade Company", "Date Added",
]
