import re

TITLE_PATTERNS: list[tuple[tuple[str, ...], str]] = [
    (("kitchen", "cabinet", "countertop", "appliance"), "Kitchen Renovation"),
    (("bathroom", "shower", "bathtub", "toilet", "vanity"), "Bathroom Renovation"),
    (("bedroom", "master bedroom", "guest room"), "Bedroom Renovation"),
    (("living room", "family room", "great room"), "Living Room Renovation"),
    (("basement", "cellar", "lower level"), "Basement Renovation"),
    (("attic", "loft", "upper level"), "Attic Renovation"),
    (("roof", "roofing", "shingle", "gutter"), "Roofing Project"),
    (("deck", "patio", "outdoor"), "Deck/Patio Project"),
    (("fence", "fencing", "gate"), "Fencing Project"),
    (("driveway", "walkway", "sidewalk"), "Concrete Work"),
    (("paint", "painting", "interior paint", "exterior paint"), "Painting Project"),
    (("floor", "flooring", "hardwood", "tile", "carpet"), "Flooring Project"),
    (("addition", "add on", "extension"), "Home Addition"),
    (("garage", "carport"), "Garage Project"),
    (("window", "door", "entry"), "Windows & Doors"),
    (("plumbing", "pipe", "leak", "faucet"), "Plumbing Work"),
    (("electrical", "wiring", "outlet", "switch"), "Electrical Work"),
    (("hvac", "heating", "cooling", "air conditioning"), "HVAC Project"),
    (("landscaping", "garden", "yard", "lawn"), "Landscaping Project"),
    (("siding", "exterior", "brick", "stucco"), "Exterior Work"),
]

_SIZE_RE = re.compile(r"(\d+)\s*(square feet|sq ft|sf)", re.IGNORECASE)


def generate_smart_title(description: str) -> str:
    """Derive a short project title from a free-text description.

    Keyword patterns win, in table order, with an optional "(N sq ft)"
    suffix. Otherwise the first four words are used, capitalised.
    """
    desc = description.strip()
    lowered = desc.lower()

    for keywords, title in TITLE_PATTERNS:
        if any(k in lowered for k in keywords):
            size = _SIZE_RE.search(lowered)
            if size:
                return f"{title} ({size.group(1)} sq ft)"
            return title

    words = desc.split(" ")
    phrase = " ".join(words[:4]) if len(words) > 4 else desc
    return phrase[:1].upper() + phrase[1:]


def needs_smart_title(title: str | None, project_type: str | None) -> bool:
    if not title or not title.strip():
        return True
    return bool(project_type) and title.strip().lower() == project_type.strip().lower()
