"""Word lists used by character-name extraction."""

from __future__ import annotations

# Capitalized words that never start or continue a character name.
STOPWORDS = frozenset({
    # function words
    "A", "An", "The", "And", "But", "Or", "Nor", "So", "Yet", "For", "If",
    "In", "On", "At", "Of", "To", "By", "As", "Up", "With", "From", "Into",
    "Onto", "Upon", "Over", "Under", "About", "Above", "Below", "After",
    "Before", "Behind", "Between", "Beyond", "Through", "During", "Without",
    "Within", "Despite", "Until", "Since", "Because", "Although", "Though",
    "While", "When", "Whenever", "Where", "Wherever", "What", "Whatever",
    "Who", "Whom", "Whose", "Which", "Why", "How", "Than", "Then", "That",
    "This", "These", "Those", "There", "Here", "It", "Its", "He", "She",
    "They", "We", "You", "His", "Her", "Hers", "Him", "Them", "Their",
    "Our", "Your", "My", "Me", "Us", "Mine", "Yours", "Not", "No", "Yes",
    "All", "Any", "Some", "Each", "Every", "Both", "Either", "Neither",
    "One", "Two", "Three", "Many", "Most", "Much", "More", "Few", "Such",
    "Own", "Other", "Another", "Is", "Was", "Were", "Are", "Be", "Been",
    "Do", "Did", "Does", "Had", "Has", "Have", "Would", "Could",
    "Should", "Shall", "Can", "May", "Might", "Must", "Let",
    # common sentence starters
    "Suddenly", "Finally", "Later", "Meanwhile", "Perhaps", "Maybe", "Still",
    "Now", "Soon", "Once", "Even", "Just", "Only", "Never", "Always",
    "Sometimes", "Often", "Today", "Tomorrow", "Yesterday", "Tonight",
    "However", "Therefore", "Instead", "Again", "Also", "Well", "Oh", "Ah",
    "Hey", "Hello", "Goodbye", "Thanks", "Please", "Sorry", "Dear", "Call",
    "Everyone", "Everything", "Nothing", "Nobody", "Someone", "Something",
    "Anyone", "Anything", "Outside", "Inside", "Together", "Somewhere",
    "Chapter", "Part", "Book", "Prologue", "Epilogue", "Interlude", "Scene",
    "Mr", "Mrs", "Ms", "Miss", "Dr", "Sir", "Madam",
})

MONTHS = frozenset({
    "January", "February", "March", "April", "June", "July", "August",
    "September", "October", "November", "December",
})

WEEKDAYS = frozenset({
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
})

EXCLUDED_WORDS = STOPWORDS | MONTHS | WEEKDAYS

DEFAULT_INTRODUCTION_MARKERS = ["introduced", "met", "named", "called", "I am", "my name is"]

DEFAULT_RETROSPECTIVE_MARKERS = ["remembered", "used to", "years ago", "back when"]

# Pronoun set key -> every form of that set.
PRONOUN_SETS: dict[str, frozenset[str]] = {
    "she": frozenset({"she", "her", "hers", "herself"}),
    "he": frozenset({"he", "him", "his", "himself"}),
    "they": frozenset({"they", "them", "their", "theirs", "themselves", "themself"}),
}

# Forms that count as evidence for the name they follow. Object and
# possessive forms usually point at someone else in the sentence.
EVIDENCE_PRONOUNS: dict[str, str] = {
    "she": "she",
    "herself": "she",
    "he": "he",
    "himself": "he",
    "they": "they",
    "themselves": "they",
    "themself": "they",
}

# Full name -> known short forms.
NICKNAMES: dict[str, frozenset[str]] = {
    "Abigail": frozenset({"Abby", "Gail"}),
    "Alexander": frozenset({"Alex", "Sandy", "Xander"}),
    "Alexandra": frozenset({"Alex", "Sandra", "Sasha", "Lexi"}),
    "Andrew": frozenset({"Andy", "Drew"}),
    "Anthony": frozenset({"Tony"}),
    "Benjamin": frozenset({"Ben", "Benny", "Benji"}),
    "Catherine": frozenset({"Cathy", "Kate", "Katie", "Cat"}),
    "Charles": frozenset({"Charlie", "Chuck", "Chaz"}),
    "Christina": frozenset({"Chris", "Tina", "Christy"}),
    "Christopher": frozenset({"Chris", "Kit", "Topher"}),
    "Daniel": frozenset({"Dan", "Danny"}),
    "Dorothy": frozenset({"Dot", "Dottie", "Dolly"}),
    "Edward": frozenset({"Ed", "Eddie", "Ted", "Ned"}),
    "Elizabeth": frozenset({"Liz", "Beth", "Betty", "Eliza", "Lizzie", "Libby"}),
    "Frederick": frozenset({"Fred", "Freddie"}),
    "Gregory": frozenset({"Greg"}),
    "Harold": frozenset({"Harry", "Hal"}),
    "Henry": frozenset({"Hank", "Harry", "Hal"}),
    "Isabella": frozenset({"Bella", "Izzy", "Isa"}),
    "James": frozenset({"Jim", "Jimmy", "Jamie"}),
    "Jennifer": frozenset({"Jen", "Jenny"}),
    "John": frozenset({"Jack", "Johnny"}),
    "Jonathan": frozenset({"Jon", "Jonny"}),
    "Joseph": frozenset({"Joe", "Joey"}),
    "Josephine": frozenset({"Jo", "Josie"}),
    "Katherine": frozenset({"Kate", "Kathy", "Katie", "Kat", "Kit"}),
    "Margaret": frozenset({"Maggie", "Meg", "Peggy", "Marge", "Greta"}),
    "Matthew": frozenset({"Matt", "Matty"}),
    "Michael": frozenset({"Mike", "Mick", "Mickey"}),
    "Nicholas": frozenset({"Nick", "Nicky", "Klaus"}),
    "Patricia": frozenset({"Pat", "Patty", "Trish"}),
    "Peter": frozenset({"Pete"}),
    "Rebecca": frozenset({"Becky", "Becca"}),
    "Richard": frozenset({"Rick", "Rich", "Dick", "Richie"}),
    "Robert": frozenset({"Rob", "Bob", "Bobby", "Robbie", "Bert"}),
    "Samantha": frozenset({"Sam", "Sammy"}),
    "Samuel": frozenset({"Sam", "Sammy"}),
    "Stephen": frozenset({"Steve", "Stevie"}),
    "Steven": frozenset({"Steve", "Stevie"}),
    "Susan": frozenset({"Sue", "Susie"}),
    "Theodore": frozenset({"Theo", "Ted", "Teddy"}),
    "Thomas": frozenset({"Tom", "Tommy"}),
    "Victoria": frozenset({"Vicky", "Tori"}),
    "William": frozenset({"Will", "Bill", "Billy", "Liam", "Willy"}),
}

_SHORT_TO_FULL: dict[str, set[str]] = {}
for _full, _shorts in NICKNAMES.items():
    for _short in _shorts:
        _SHORT_TO_FULL.setdefault(_short, set()).add(_full)


def nickname_of(short: str, full: str) -> bool:
    """True if ``short`` is a listed short form of ``full``."""
    return short in NICKNAMES.get(full, ())


def nickname_pair(a: str, b: str) -> tuple[str, str] | None:
    """Return ``(full, short)`` when one name is a short form of the other."""
    if nickname_of(b, a):
        return a, b
    if nickname_of(a, b):
        return b, a
    return None


def related_names(a: str, b: str) -> bool:
    """Nickname pair, or two short forms of the same full name (Bill / Billy)."""
    if nickname_pair(a, b) is not None:
        return True
    return bool(_SHORT_TO_FULL.get(a, set()) & _SHORT_TO_FULL.get(b, set()))


def normalize_pronouns(value: str | list[str]) -> str | None:
    """Map a declaration such as ``she/her`` or ``["they", "them"]`` to a set key."""
    if isinstance(value, list):
        value = "/".join(str(v) for v in value)
    tokens = [t.strip().lower() for t in str(value).replace(",", "/").split("/") if t.strip()]
    if not tokens:
        return None
    for key, forms in PRONOUN_SETS.items():
        if tokens[0] in forms:
            return key
    return tokens[0]
