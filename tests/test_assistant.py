from datetime import date

import pytest

from assistant import intents
from assistant.conversation import Conversation


class TestIntents:
    def test_detection_order(self):
        assert intents.detect_intents("Can I pay for my booking by card?") == ["booking", "payment"]
        assert intents.detect_intents("good morning") == []

    def test_date_options(self):
        options = intents.options_for(["date"], today=date(2024, 5, 31))
        labels = [o["label"] for o in options]
        assert labels[:3] == ["Sat, Jun 1", "Sun, Jun 2", "Mon, Jun 3"]
        assert labels[-2:] == ["Help", "Back"]

    def test_many_options_skip_help(self):
        options = intents.options_for(["property", "guests"])
        ids = [o["id"] for o in options]
        assert "help" not in ids
        assert ids[-1] == "back"

    def test_location_falls_back_to_default_cities(self, db):
        labels = [o["label"] for o in intents.options_for(["location"])]
        assert labels[:3] == list(intents.FALLBACK_CITIES)

    def test_preferences_from_text(self):
        prefs = intents.SearchPreferences.from_text(
            "3 bedrooms for 5 guests in dubai under $400", cities=["Dubai", "Abu Dhabi"]
        )
        assert prefs.as_dict() == {"city": "Dubai", "guests": 5, "bedrooms": 3, "max_price": 400}

    def test_suggested_actions_are_capped(self):
        actions = intents.suggested_actions("book it, what's the price, where, any reviews?", "")
        assert actions == ["View Available Dates", "Calculate Total Cost", "View on Map"]

    def test_faq(self):
        assert "refunded in full" in intents.answer_faq("How do I cancel?")
        assert intents.answer_faq("Is there a gym?") == intents.FAQ_FALLBACK


@pytest.mark.django_db
class TestAssistantApi:
    def test_property_search(self, api_client, prop, property_factory, host):
        property_factory(host, title="Too pricey", price="900.00")
        resp = api_client.post(
            "/api/assistant/", {"message": "Find me a property in Dubai for 2 guests under 150"}, format="json"
        )

        assert resp.status_code == 200
        assert resp.data["success"] is True
        assert resp.data["response"] == intents.REPLIES["property"]
        assert [p["id"] for p in resp.data["propertyRecommendations"]] == [prop.id]
        assert resp.data["preferences"] == {"city": "Dubai", "guests": 2, "max_price": 150}
        assert resp.data["options"][-1]["id"] == "back"

    def test_no_results(self, api_client, prop):
        resp = api_client.post("/api/assistant/", {"message": "Show me a villa in Oslo under 10"}, format="json")
        assert resp.data["propertyRecommendations"] == []
        assert resp.data["response"] == intents.NO_RESULTS_REPLY

    def test_greeting(self, api_client, db):
        resp = api_client.post("/api/assistant/", {"message": "hello"}, format="json")
        assert resp.data["response"] == intents.DEFAULT_REPLY
        assert [o["id"] for o in resp.data["options"]] == ["search-properties", "my-bookings", "help", "back"]

    def test_conversation_continues(self, api_client, db):
        first = api_client.post("/api/assistant/", {"message": "hello"}, format="json")
        conversation_id = first.data["conversationId"]
        second = api_client.post(
            "/api/assistant/", {"message": "I want to pay", "conversationId": conversation_id}, format="json"
        )

        assert second.data["conversationId"] == conversation_id
        assert second.data["turns"] == 4
        assert Conversation(conversation_id).turns[-1]["intents"] == ["payment"]

    def test_history_is_bounded(self, db):
        conversation = Conversation()
        for i in range(30):
            conversation.add("user", f"message {i}")
        conversation.save()
        assert len(Conversation(conversation.id).turns) == 20

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": 42}])
    def test_message_required(self, api_client, body):
        resp = api_client.post("/api/assistant/", body, format="json")
        assert resp.status_code == 400
        assert "Message is required and must be a string" in resp.data["error"]

    def test_faq_endpoint(self, api_client):
        resp = api_client.get("/api/assistant/faq/", {"question": "Do you take PayPal?"})
        assert resp.status_code == 200
        assert "PayPal" in resp.data["answer"]

    def test_faq_requires_question(self, api_client):
        resp = api_client.get("/api/assistant/faq/")
        assert resp.status_code == 400
        assert resp.data["error"] == "Question parameter is required"


@pytest.mark.django_db
def test_expired_conversation_starts_over(settings, api_client):
    settings.ASSISTANT_CONVERSATION_TTL = 0
    first = api_client.post("/api/assistant/", {"message": "hello"}, format="json")
    again = api_client.post(
        "/api/assistant/", {"message": "hello", "conversationId": first.data["conversationId"]}, format="json"
    )
    assert again.data["turns"] == 2
