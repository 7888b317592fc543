"""
Keyword-driven replies of the booking assistant.

Intents are matched on the lower-cased message, in a fixed order, and each
one contributes its set of buttons. Property searches additionally get a
short list of recommended listings.
"""
import re
from dataclasses import dataclass, field
from datetime import timedelta

from django.utils import timezone

from properties.models import Property

INTENT_KEYWORDS = [
    ("property", ("property", "properties", "stay", "accommodation")),
    ("booking", ("booking", "reservation")),
    ("payment", ("payment", "pay", "price")),
    ("auth", ("login", "sign in", "account", "register", "sign up")),
    ("date", ("date", "when", "calendar", "check-in", "check out")),
    ("guests", ("guest", "people", "adults", "children")),
    ("location", ("where", "location", "city", "destination")),
    ("confirm", ("confirm", "proceed", "correct", "right")),
]

SEARCH_KEYWORDS = (
    "find", "looking for", "search", "show me", "recommend", "suggest",
    "property", "properties", "rental", "rentals", "accommodation",
    "stay", "place", "apartment", "house", "villa", "room",
    "bedroom", "guest", "price", "budget", "location", "city",
)

FALLBACK_CITIES = ("Miami", "New York", "Los Angeles")

REPLIES = {
    "property": "I can help you find the perfect place to stay. Here are some properties you might like.",
    "booking": "Let's get your booking sorted. Pick your dates and the number of guests to continue.",
    "payment": "You can pay by credit card or PayPal. Your card is only charged once the host confirms.",
    "auth": "Log in or create an account to manage your bookings, or continue as a guest for now.",
    "date": "When would you like to check in? Choose one of the dates below or pick another one.",
    "guests": "How many guests will be staying?",
    "location": "Where would you like to go?",
    "confirm": "Shall I go ahead with that?",
}
DEFAULT_REPLY = (
    "Hi, I'm Sara, your HabibiStay assistant. I can search properties, "
    "help with bookings and answer questions about payments."
)
NO_RESULTS_REPLY = "I couldn't find a matching property right now. Try another city or fewer filters."

FAQ = [
    (("cancel",), "You can cancel a pending or confirmed booking from My Bookings. "
                  "Completed payments for cancelled bookings are refunded in full."),
    (("refund",), "Refunds go back to the original payment method. Full refunds cancel the booking; "
                  "hosts can also issue partial refunds."),
    (("payment", "pay", "card", "paypal"), "We accept credit cards (via Stripe) and PayPal. "
                                            "A booking is confirmed as soon as its payment completes."),
    (("check-in", "check in", "checkin", "check-out", "check out", "checkout"),
     "Check-in and check-out times are set by each host; you will find them in the house rules "
     "of the property and in your booking confirmation."),
    (("contact", "support", "help"), "You can reach our support team at any time from the Help page "
                                      "or by replying to any booking email."),
]
FAQ_FALLBACK = "I couldn't find an answer to that question. Please contact our support team."

RECOMMENDATION_LIMIT = 5
MAX_SUGGESTED_ACTIONS = 3
MAX_OPTIONS_BEFORE_HELP = 6

GUESTS_RE = re.compile(r"(\d+)\s*(?:guests?|people|persons?|adults?)")
BEDROOMS_RE = re.compile(r"(\d+)\s*(?:bedrooms?|br\b|beds?\b)")
MAX_PRICE_RE = re.compile(r"(?:under|below|less than|max(?:imum)?|up to)\s*\$?\s*(\d+)")


def option(id, label, value, primary=False):
    data = {"id": id, "label": label, "value": value}
    if primary:
        data["primary"] = True
    return data


HELP_OPTION = option("help", "Help", "I need help")
BACK_OPTION = option("back", "Back", "Go back")


def detect_intents(text: str) -> list:
    lowered = text.lower()
    return [name for name, words in INTENT_KEYWORDS if any(w in lowered for w in words)]


def is_property_search(text: str) -> bool:
    lowered = text.lower()
    return any(w in lowered for w in SEARCH_KEYWORDS)


def known_cities(limit=None):
    qs = (
        Property.objects.filter(is_published=True)
        .order_by("city")
        .values_list("city", flat=True)
        .distinct()
    )
    return list(qs[:limit] if limit else qs)


def _date_options(today):
    items = []
    for i in range(1, 4):
        day = today + timedelta(days=i)
        label = f"{day:%a}, {day:%b} {day.day}"
        items.append(option(f"date-{i}", label, f"I choose {label}"))
    items.append(option("other-date", "Other Date", "I want to select a different date"))
    return items


def _location_options():
    cities = known_cities(limit=3) or list(FALLBACK_CITIES)
    items = [option(f"loc-{slug(c)}", c, c) for c in cities]
    items.append(option("loc-other", "Other Location", "I want a different location"))
    return items


def slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def options_for(intents, today=None):
    today = today or timezone.localdate()
    sets = {
        "property": lambda: [
            option("view-details", "View Details", "Show me more details"),
            option("check-availability", "Check Availability", "Check availability"),
            option("book-now", "Book Now", "I want to book this property", primary=True),
        ],
        "booking": lambda: [
            option("select-dates", "Select Dates", "I want to select dates"),
            option("guest-count", "Guest Count", "Let me specify number of guests"),
            option("continue-booking", "Continue Booking", "Continue with booking", primary=True),
        ],
        "payment": lambda: [
            option("credit-card", "Credit Card", "I want to pay with credit card"),
            option("paypal", "PayPal", "I want to pay with PayPal"),
            option("confirm-payment", "Confirm Payment", "Confirm payment", primary=True),
        ],
        "auth": lambda: [
            option("login", "Login", "I want to login"),
            option("register", "Register", "I want to register"),
            option("continue-guest", "Continue as Guest", "Continue as guest", primary=True),
        ],
        "date": lambda: _date_options(today),
        "guests": lambda: [
            option("guests-1", "1 Guest", "1 guest"),
            option("guests-2", "2 Guests", "2 guests"),
            option("guests-4", "4 Guests", "4 guests"),
            option("guests-more", "More Guests", "More than 4 guests"),
        ],
        "location": _location_options,
        "confirm": lambda: [
            option("confirm-yes", "Yes, Confirm", "Yes, that is correct", primary=True),
            option("confirm-no", "No, Change", "No, I need to make changes"),
        ],
    }

    options = []
    for intent in intents:
        options.extend(sets[intent]())

    if not options:
        options = [
            option("search-properties", "Search Properties", "I want to search for properties"),
            option("my-bookings", "My Bookings", "Show my bookings"),
            HELP_OPTION,
        ]
    elif len(options) < MAX_OPTIONS_BEFORE_HELP:
        options.append(HELP_OPTION)
    options.append(BACK_OPTION)
    return options


def suggested_actions(text: str, reply: str) -> list:
    lowered, reply_lowered = text.lower(), reply.lower()
    actions = []
    if "book" in lowered or "book" in reply_lowered:
        actions.append("View Available Dates")
    if "price" in lowered or "cost" in lowered:
        actions.append("Calculate Total Cost")
    if "location" in lowered or "where" in lowered:
        actions.append("View on Map")
    if "review" in lowered or "rating" in lowered:
        actions.append("Read Reviews")
    if "amenities" in lowered or "facilities" in lowered:
        actions.append("View All Amenities")
    if not actions:
        actions = ["Browse Properties", "Contact Support"]
    return actions[:MAX_SUGGESTED_ACTIONS]


def _first_int(pattern, text):
    match = pattern.search(text)
    return int(match.group(1)) if match else None


@dataclass
class SearchPreferences:
    city: str = ""
    guests: int | None = None
    bedrooms: int | None = None
    max_price: int | None = None

    @classmethod
    def from_text(cls, text: str, cities=None):
        lowered = text.lower()
        prefs = cls()
        for city in cities if cities is not None else known_cities():
            if city and city.lower() in lowered:
                prefs.city = city
                break
        prefs.guests = _first_int(GUESTS_RE, lowered)
        prefs.bedrooms = _first_int(BEDROOMS_RE, lowered)
        prefs.max_price = _first_int(MAX_PRICE_RE, lowered)
        return prefs

    def as_dict(self):
        return {k: v for k, v in self.__dict__.items() if v not in ("", None)}


def recommend(prefs: SearchPreferences, limit=RECOMMENDATION_LIMIT):
    qs = Property.objects.filter(is_published=True)
    if prefs.city:
        qs = qs.filter(city__iexact=prefs.city)
    if prefs.guests:
        qs = qs.filter(max_guests__gte=prefs.guests)
    if prefs.bedrooms:
        qs = qs.filter(bedrooms__gte=prefs.bedrooms)
    if prefs.max_price:
        qs = qs.filter(price__lte=prefs.max_price)
    return list(qs.order_by("-is_featured", "-views_count", "-created_at")[:limit])


def recommendation_dict(prop):
    return {
        "id": prop.id,
        "title": prop.title,
        "city": prop.city,
        "country": prop.country,
        "propertyType": prop.property_type,
        "price": str(prop.price),
        "bedrooms": prop.bedrooms,
        "maxGuests": prop.max_guests,
        "averageRating": prop.average_rating,
        "isFeatured": prop.is_featured,
    }


@dataclass
class AssistantReply:
    response: str
    intents: list = field(default_factory=list)
    options: list = field(default_factory=list)
    recommendations: list = field(default_factory=list)
    suggested_actions: list = field(default_factory=list)
    preferences: dict = field(default_factory=dict)


def reply_to(text: str, today=None) -> AssistantReply:
    intents = detect_intents(text)
    response = REPLIES[intents[0]] if intents else DEFAULT_REPLY

    recommendations, preferences = [], {}
    if is_property_search(text):
        prefs = SearchPreferences.from_text(text)
        preferences = prefs.as_dict()
        recommendations = [recommendation_dict(p) for p in recommend(prefs)]
        response = REPLIES["property"] if recommendations else NO_RESULTS_REPLY

    return AssistantReply(
        response=response,
        intents=intents,
        options=options_for(intents, today),
        recommendations=recommendations,
        suggested_actions=suggested_actions(text, response),
        preferences=preferences,
    )


def answer_faq(question: str) -> str:
    lowered = question.lower()
    for keywords, answer in FAQ:
        if any(k in lowered for k in keywords):
            return answer
    return FAQ_FALLBACK
